"""Kubernetes-backed workload repository.

Lists the namespaces, pods, deployments and ingresses an idling pass reads,
and applies the single-shot merge patches the actuators write. Every call is
a fresh read against the API server; nothing is cached between passes.
"""

from __future__ import annotations

from typing import Any

from environment_idler.integrations.kubernetes.models import (
    IngressDescriptor,
    NamespaceSummary,
    PodSnapshot,
    WorkloadDescriptor,
)
from environment_idler.services.kubernetes.base import K8sBaseManager


class KubernetesWorkloadRepository(K8sBaseManager):
    """List/patch access to the resources an environment is made of."""

    _entity_name = "workload_repository"

    # =========================================================================
    # Namespace Operations
    # =========================================================================

    def list_namespaces(self, label_selector: str | None = None) -> list[NamespaceSummary]:
        """List namespaces matching a label selector.

        Args:
            label_selector: Kubernetes label selector string.

        Returns:
            Namespace snapshots in API order.
        """
        self._log.debug("listing_namespaces", label_selector=label_selector)
        try:
            result = self._client.core_v1.list_namespace(**self._request_kwargs(label_selector))
        except Exception as e:
            self._handle_api_error(e, "Namespace")
        namespaces = [NamespaceSummary.from_k8s_object(ns) for ns in result.items]
        self._log.debug("listed_namespaces", count=len(namespaces))
        return namespaces

    def get_namespace(self, name: str) -> NamespaceSummary:
        """Get a single namespace by name.

        Args:
            name: Namespace name.

        Returns:
            Namespace snapshot.
        """
        self._log.debug("getting_namespace", name=name)
        try:
            result = self._client.core_v1.read_namespace(name=name, **self._request_kwargs())
        except Exception as e:
            self._handle_api_error(e, "Namespace", name)
        return NamespaceSummary.from_k8s_object(result)

    # =========================================================================
    # Pod Operations
    # =========================================================================

    def list_pods(self, namespace: str, label_selector: str | None = None) -> list[PodSnapshot]:
        """List pods in a namespace.

        Args:
            namespace: Target namespace.
            label_selector: Kubernetes label selector string.

        Returns:
            Pod snapshots in API order.
        """
        self._log.debug("listing_pods", namespace=namespace, label_selector=label_selector)
        try:
            result = self._client.core_v1.list_namespaced_pod(
                namespace=namespace, **self._request_kwargs(label_selector)
            )
        except Exception as e:
            self._handle_api_error(e, "Pod", None, namespace)
        pods = [PodSnapshot.from_k8s_object(pod) for pod in result.items]
        self._log.debug("listed_pods", namespace=namespace, count=len(pods))
        return pods

    # =========================================================================
    # Deployment Operations
    # =========================================================================

    def list_deployments(
        self, namespace: str, label_selector: str | None = None
    ) -> list[WorkloadDescriptor]:
        """List deployments in a namespace.

        Args:
            namespace: Target namespace.
            label_selector: Kubernetes label selector string.

        Returns:
            Workload descriptors in API order.
        """
        self._log.debug("listing_deployments", namespace=namespace, label_selector=label_selector)
        try:
            result = self._client.apps_v1.list_namespaced_deployment(
                namespace=namespace, **self._request_kwargs(label_selector)
            )
        except Exception as e:
            self._handle_api_error(e, "Deployment", None, namespace)
        deployments = [WorkloadDescriptor.from_k8s_object(d) for d in result.items]
        self._log.debug("listed_deployments", namespace=namespace, count=len(deployments))
        return deployments

    def patch_deployment(self, name: str, namespace: str, body: dict[str, Any]) -> None:
        """Apply a JSON merge patch to a deployment.

        Args:
            name: Deployment name.
            namespace: Target namespace.
            body: Merge patch document.
        """
        self._merge_patch(
            self._client.apps_v1.patch_namespaced_deployment, "Deployment", name, namespace, body
        )

    # =========================================================================
    # Ingress Operations
    # =========================================================================

    def list_ingresses(
        self, namespace: str, label_selector: str | None = None
    ) -> list[IngressDescriptor]:
        """List ingresses in a namespace.

        Args:
            namespace: Target namespace.
            label_selector: Kubernetes label selector string.

        Returns:
            Ingress descriptors in API order.
        """
        self._log.debug("listing_ingresses", namespace=namespace, label_selector=label_selector)
        try:
            result = self._client.networking_v1.list_namespaced_ingress(
                namespace=namespace, **self._request_kwargs(label_selector)
            )
        except Exception as e:
            self._handle_api_error(e, "Ingress", None, namespace)
        ingresses = [IngressDescriptor.from_k8s_object(i) for i in result.items]
        self._log.debug("listed_ingresses", namespace=namespace, count=len(ingresses))
        return ingresses

    def patch_ingress(self, name: str, namespace: str, body: dict[str, Any]) -> None:
        """Apply a JSON merge patch to an ingress.

        Args:
            name: Ingress name.
            namespace: Target namespace.
            body: Merge patch document.
        """
        self._merge_patch(
            self._client.networking_v1.patch_namespaced_ingress, "Ingress", name, namespace, body
        )
