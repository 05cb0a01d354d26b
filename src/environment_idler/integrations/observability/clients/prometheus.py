"""Prometheus Query API client."""

from __future__ import annotations

from datetime import datetime
from typing import Any, cast

import httpx
import structlog

from environment_idler.integrations.observability.clients.base import (
    BaseObservabilityClient,
    ObservabilityClientError,
)
from environment_idler.integrations.observability.config import PrometheusConfig

logger = structlog.get_logger()


class PrometheusQueryError(ObservabilityClientError):
    """Raised when Prometheus answers a query with an error status."""


class PrometheusClient(BaseObservabilityClient):
    """Client for the Prometheus instant query API.

    Example:
        ```python
        from environment_idler.integrations.observability import PrometheusConfig
        from environment_idler.integrations.observability.clients import PrometheusClient

        with PrometheusClient(PrometheusConfig(url="http://localhost:9090")) as client:
            samples = client.query("up")
        ```
    """

    def __init__(self, config: PrometheusConfig) -> None:
        super().__init__(
            base_url=config.url,
            timeout=config.timeout,
            retries=config.retries,
        )
        self.config = config
        self._auth_config = (
            (config.username, config.password)
            if config.auth_type == "basic" and config.username and config.password
            else None
        )
        self._token = config.token if config.auth_type == "bearer" else None

    @property
    def client_name(self) -> str:
        return "Prometheus"

    def _build_client(self, **kwargs: Any) -> httpx.Client:
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"

        return httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout),
            auth=self._auth_config,
            headers=headers if headers else None,
            **kwargs,
        )

    def _parse_query_response(self, data: dict[str, Any]) -> list[dict[str, Any]]:
        """Return the result items of a query response.

        Warnings are logged; an error status raises.

        Raises:
            PrometheusQueryError: If the query failed.
        """
        if data.get("status") != "success":
            error = data.get("error", "Unknown error")
            raise PrometheusQueryError(f"Query failed: {error}")

        if warnings := data.get("warnings"):
            logger.warning("prometheus_query_warnings", warnings=warnings)

        result_data = data.get("data") or {}
        result = result_data.get("result", []) if isinstance(result_data, dict) else None
        if not isinstance(result, list):
            raise PrometheusQueryError(f"Malformed query response: {data!r}")
        return cast(list[dict[str, Any]], result)

    def query(
        self,
        query: str,
        time: datetime | None = None,
    ) -> list[dict[str, Any]]:
        """Execute an instant query.

        Args:
            query: PromQL query expression.
            time: Evaluation timestamp (default: server time).

        Returns:
            Result items, each with ``metric`` labels and a ``[ts, value]`` pair.
        """
        params: dict[str, Any] = {"query": query}
        if time:
            params["time"] = time.timestamp()

        logger.debug("prometheus_instant_query", query=query)
        data = self.get("/api/v1/query", params=params)
        return self._parse_query_response(data)
