"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig/in-cluster
loading, lazy API group initialization and consistent error translation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from environment_idler.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import AppsV1Api, CoreV1Api, NetworkingV1Api

    from environment_idler.integrations.kubernetes.config import KubernetesConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client used by the idler.

    Only the three API groups the idler touches are exposed: ``core_v1``
    (namespaces, pods, pod exec), ``apps_v1`` (deployments) and
    ``networking_v1`` (ingresses).

    Example:
        ```python
        from environment_idler.integrations.kubernetes import KubernetesClient, KubernetesConfig

        with KubernetesClient(KubernetesConfig()) as client:
            pods = client.core_v1.list_namespaced_pod("my-project-main")
        ```
    """

    def __init__(self, config: KubernetesConfig) -> None:
        """Initialize the client and load cluster credentials.

        Args:
            config: Kubernetes connection configuration.

        Raises:
            KubernetesConnectionError: If neither kubeconfig nor in-cluster
                credentials can be loaded.
        """
        self._config = config
        self._current_context: str | None = None

        self._core_v1: CoreV1Api | None = None
        self._apps_v1: AppsV1Api | None = None
        self._networking_v1: NetworkingV1Api | None = None

        self._load_config()

        logger.info("kubernetes_client_initialized", context=self._current_context)

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            config.load_kube_config(
                config_file=self._config.kubeconfig,
                context=self._config.context,
            )
            self._current_context = self._config.context or "current-context"
            logger.debug(
                "loaded_kubeconfig",
                context=self._config.context,
                kubeconfig=self._config.kubeconfig,
            )
        except ConfigException:
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._core_v1 = None
        self._apps_v1 = None
        self._networking_v1 = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (namespaces, pods, pod exec)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api()
        return self._core_v1

    @property
    def apps_v1(self) -> AppsV1Api:
        """Get AppsV1Api instance (deployments)."""
        if self._apps_v1 is None:
            from kubernetes.client import AppsV1Api

            self._apps_v1 = AppsV1Api()
        return self._apps_v1

    @property
    def networking_v1(self) -> NetworkingV1Api:
        """Get NetworkingV1Api instance (ingresses)."""
        if self._networking_v1 is None:
            from kubernetes.client import NetworkingV1Api

            self._networking_v1 = NetworkingV1Api()
        return self._networking_v1

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Args:
            e: The original ApiException.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Patch rejected by the API server",
                status_code=status,
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def request_timeout(self) -> int:
        """Per-request timeout in seconds for list and patch calls."""
        return self._config.request_timeout

    @property
    def exec_timeout(self) -> int:
        """Upper bound in seconds for a pod exec session."""
        return self._config.exec_timeout

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        self._invalidate_api_cache()
        logger.debug("kubernetes_client_closed")

    def __enter__(self) -> KubernetesClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
