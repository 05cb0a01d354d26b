"""Kubernetes resource managers used by the idler."""

from environment_idler.services.kubernetes.base import K8sBaseManager
from environment_idler.services.kubernetes.exec_manager import PodExecManager
from environment_idler.services.kubernetes.workload_repository import (
    KubernetesWorkloadRepository,
)

__all__ = ["K8sBaseManager", "KubernetesWorkloadRepository", "PodExecManager"]
