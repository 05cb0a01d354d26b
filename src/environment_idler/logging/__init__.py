"""Logging configuration for environment_idler."""

from environment_idler.logging.config import configure_logging, get_logger

__all__ = ["configure_logging", "get_logger"]
