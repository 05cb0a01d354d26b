"""Command line interface for the environment idler."""
