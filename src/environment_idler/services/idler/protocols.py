"""Capabilities injected into the evaluators and actuators."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol

from environment_idler.integrations.kubernetes.models import (
    IngressDescriptor,
    NamespaceSummary,
    PodSnapshot,
    WorkloadDescriptor,
)


class WorkloadRepository(Protocol):
    """List/patch access to an environment's resources."""

    def list_namespaces(self, label_selector: str | None = None) -> list[NamespaceSummary]: ...

    def get_namespace(self, name: str) -> NamespaceSummary: ...

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[PodSnapshot]: ...

    def list_deployments(
        self, namespace: str, label_selector: str | None = None
    ) -> list[WorkloadDescriptor]: ...

    def list_ingresses(
        self, namespace: str, label_selector: str | None = None
    ) -> list[IngressDescriptor]: ...

    def patch_deployment(self, name: str, namespace: str, body: dict[str, Any]) -> None: ...

    def patch_ingress(self, name: str, namespace: str, body: dict[str, Any]) -> None: ...


class PodExecutor(Protocol):
    """Runs a command inside a pod and returns its stdout."""

    def exec_command(self, pod_name: str, namespace: str, command: list[str]) -> str: ...


class MetricsQuerier(Protocol):
    """Runs an instant query and returns Prometheus-style result items."""

    def query(self, query: str, time: datetime | None = None) -> list[dict[str, Any]]: ...
