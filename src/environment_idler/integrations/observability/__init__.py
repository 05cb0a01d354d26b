"""Metrics backend integration."""

from environment_idler.integrations.observability.config import PrometheusConfig

__all__ = ["PrometheusConfig"]
