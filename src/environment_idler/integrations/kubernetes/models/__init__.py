"""Snapshot models for the Kubernetes resources the idler reads."""

from environment_idler.integrations.kubernetes.models.base import K8sEntityBase
from environment_idler.integrations.kubernetes.models.namespaces import NamespaceSummary
from environment_idler.integrations.kubernetes.models.networking import IngressDescriptor
from environment_idler.integrations.kubernetes.models.workloads import (
    ContainerEnv,
    PodSnapshot,
    WorkloadDescriptor,
)

__all__ = [
    "ContainerEnv",
    "IngressDescriptor",
    "K8sEntityBase",
    "NamespaceSummary",
    "PodSnapshot",
    "WorkloadDescriptor",
]
