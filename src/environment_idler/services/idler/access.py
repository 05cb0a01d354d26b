"""Repository calls translated into the idler error taxonomy."""

from __future__ import annotations

from typing import Any

from environment_idler.integrations.kubernetes.exceptions import KubernetesError
from environment_idler.integrations.kubernetes.models import (
    IngressDescriptor,
    PodSnapshot,
    WorkloadDescriptor,
)
from environment_idler.services.idler.exceptions import ListingError, PatchError
from environment_idler.services.idler.protocols import WorkloadRepository


def list_pods(
    repository: WorkloadRepository, namespace: str, selector: str | None
) -> list[PodSnapshot]:
    try:
        return repository.list_pods(namespace, selector)
    except KubernetesError as e:
        raise ListingError(str(e), resource=namespace) from e


def list_deployments(
    repository: WorkloadRepository, namespace: str, selector: str | None
) -> list[WorkloadDescriptor]:
    try:
        return repository.list_deployments(namespace, selector)
    except KubernetesError as e:
        raise ListingError(str(e), resource=namespace) from e


def list_ingresses(
    repository: WorkloadRepository, namespace: str, selector: str | None
) -> list[IngressDescriptor]:
    try:
        return repository.list_ingresses(namespace, selector)
    except KubernetesError as e:
        raise ListingError(str(e), resource=namespace) from e


def patch_deployment(
    repository: WorkloadRepository, name: str, namespace: str, body: dict[str, Any]
) -> None:
    try:
        repository.patch_deployment(name, namespace, body)
    except KubernetesError as e:
        raise PatchError(str(e), resource=name) from e


def patch_ingress(
    repository: WorkloadRepository, name: str, namespace: str, body: dict[str, Any]
) -> None:
    try:
        repository.patch_ingress(name, namespace, body)
    except KubernetesError as e:
        raise PatchError(str(e), resource=name) from e
