"""Configuration model for the Prometheus backend."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator


class PrometheusConfig(BaseModel):
    """Prometheus server configuration.

    Attributes:
        url: Prometheus server URL.
        timeout: Request timeout in seconds. Bounds every traffic query
            independently of the caller.
        retries: Attempts for connection errors; 1 disables retrying.
        auth_type: Authentication type (none, basic, bearer).
        username: Username for basic auth.
        password: Password for basic auth.
        token: Bearer token for bearer auth.
    """

    model_config = ConfigDict(extra="forbid")

    url: str = "http://prometheus-operated.monitoring.svc:9090"
    timeout: int = 10
    retries: int = 1
    auth_type: Literal["none", "basic", "bearer"] = "none"
    username: str | None = None
    password: str | None = None
    token: str | None = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("timeout", "retries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Validate timeout and retries are positive."""
        if v <= 0:
            raise ValueError("value must be positive")
        return v
