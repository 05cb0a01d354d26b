"""Kubernetes integration for the idler."""

from environment_idler.integrations.kubernetes.client import KubernetesClient
from environment_idler.integrations.kubernetes.config import KubernetesConfig
from environment_idler.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

__all__ = [
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConfig",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesValidationError",
]
