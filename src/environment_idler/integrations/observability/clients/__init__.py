"""HTTP clients for observability backends."""

from environment_idler.integrations.observability.clients.prometheus import (
    PrometheusClient,
    PrometheusQueryError,
)

__all__ = ["PrometheusClient", "PrometheusQueryError"]
