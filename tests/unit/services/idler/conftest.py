"""Shared fixtures for idler service tests."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import MagicMock

import pytest

from environment_idler.integrations.kubernetes.models import (
    ContainerEnv,
    IngressDescriptor,
    PodSnapshot,
    WorkloadDescriptor,
)
from environment_idler.services.idler.config import IdlerConfig
from environment_idler.services.idler.models import Environment

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture
def now() -> datetime:
    """Fixed evaluation time."""
    return NOW


@pytest.fixture
def idler_config() -> IdlerConfig:
    """Default idler configuration."""
    return IdlerConfig()


@pytest.fixture
def environment() -> Environment:
    """A development environment."""
    return Environment(name="project-develop", environment_type="development", project="project")


@pytest.fixture
def production_environment() -> Environment:
    """A production environment."""
    return Environment(name="project-main", environment_type="production", project="project")


@pytest.fixture
def mock_repository() -> MagicMock:
    """Repository returning nothing unless a test says otherwise."""
    repository = MagicMock()
    repository.list_pods.return_value = []
    repository.list_deployments.return_value = []
    repository.list_ingresses.return_value = []
    return repository


@pytest.fixture
def make_deployment() -> Callable[..., WorkloadDescriptor]:
    """Factory for deployment snapshots."""

    def _make(
        name: str, replicas: int = 1, env: dict[str, str] | None = None
    ) -> WorkloadDescriptor:
        return WorkloadDescriptor(
            name=name,
            namespace="project-develop",
            replicas=replicas,
            containers=[ContainerEnv(name=name, env=env or {})],
        )

    return _make


@pytest.fixture
def make_pod() -> Callable[..., PodSnapshot]:
    """Factory for pod snapshots started ``minutes`` before NOW."""

    def _make(name: str, minutes: int = 0, phase: str = "Running", **kwargs: Any) -> PodSnapshot:
        return PodSnapshot(
            name=name,
            namespace="project-develop",
            phase=phase,
            start_time=NOW - timedelta(minutes=minutes),
            **kwargs,
        )

    return _make


@pytest.fixture
def make_ingress() -> Callable[..., IngressDescriptor]:
    """Factory for ingress snapshots."""

    def _make(name: str) -> IngressDescriptor:
        return IngressDescriptor(name=name, namespace="project-develop")

    return _make


def pods_by_selector(mapping: dict[str | None, Any]) -> Callable[..., Any]:
    """side_effect for ``list_pods`` answering per label selector."""

    def _list_pods(namespace: str, label_selector: str | None = None) -> Any:
        result = mapping.get(label_selector, [])
        if isinstance(result, Exception):
            raise result
        return result

    return _list_pods


@pytest.fixture
def pods_for() -> Callable[[dict[str | None, Any]], Callable[..., Any]]:
    """Expose ``pods_by_selector`` to tests."""
    return pods_by_selector
