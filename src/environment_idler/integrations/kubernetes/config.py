"""Kubernetes connection configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, field_validator


class KubernetesConfig(BaseModel):
    """How the idler reaches the cluster.

    With neither ``kubeconfig`` nor ``context`` set the client tries the
    default kubeconfig locations and then falls back to the in-cluster
    service account, which is the normal mode for the controller.
    """

    model_config = ConfigDict(extra="forbid")

    kubeconfig: str | None = None
    context: str | None = None
    request_timeout: int = 30
    exec_timeout: int = 30

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if not v:
            return None
        return str(Path(v).expanduser())

    @field_validator("request_timeout", "exec_timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeouts are positive."""
        if v <= 0:
            raise ValueError("timeout must be positive")
        return v
