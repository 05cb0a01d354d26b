"""Workload idling controller for multi-tenant Kubernetes environments."""

__version__ = "0.1.0"
