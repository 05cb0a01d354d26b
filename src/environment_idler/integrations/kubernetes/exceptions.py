"""Errors raised by the Kubernetes layer.

The idler only lists, reads, merge-patches and execs, so a response maps to
one of four outcomes: credentials missing, access denied, object gone, or
patch body rejected. Anything else is a plain ``KubernetesError``.
"""

from __future__ import annotations


class KubernetesError(Exception):
    """Base exception for Kubernetes calls.

    Attributes:
        message: Human-readable error message.
        status_code: HTTP status from the API server, if there was a response.
        resource_type: Kind of the object involved ("Deployment", "Ingress", ...).
        resource_name: Name of the object, when the call targeted one.
        namespace: Environment namespace of the object.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.resource_type = resource_type
        self.resource_name = resource_name
        self.namespace = namespace

    @property
    def resource(self) -> str | None:
        """``Kind/name`` of the object, or just the kind for list calls."""
        if not self.resource_type:
            return None
        if self.resource_name:
            return f"{self.resource_type}/{self.resource_name}"
        return self.resource_type

    def __str__(self) -> str:
        text = self.message
        if self.status_code:
            text += f" (status: {self.status_code})"
        if self.resource:
            text += f" [{self.resource}"
            text += f" in {self.namespace}]" if self.namespace else "]"
        return text


class KubernetesConnectionError(KubernetesError):
    """Neither a kubeconfig nor in-cluster credentials could be loaded."""

    def __init__(
        self,
        message: str = "Failed to connect to Kubernetes cluster",
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message=message)
        self.original_error = original_error


class KubernetesAuthError(KubernetesError):
    """A 401/403 response, including RBAC denials.

    The idler's service account needs list on pods, deployments, ingresses
    and namespaces, patch on deployments and ingresses, and create on
    pods/exec. A missing verb surfaces here.
    """

    def __init__(
        self,
        message: str = "Kubernetes authentication/authorization failed",
        status_code: int | None = 401,
        reason: str | None = None,
    ) -> None:
        super().__init__(message=message, status_code=status_code)
        self.reason = reason


class KubernetesNotFoundError(KubernetesError):
    """A 404: a named namespace does not exist, or an object vanished mid-pass."""

    def __init__(
        self,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        message = "Kubernetes resource not found"
        if resource_type and resource_name:
            message = f"{resource_type} '{resource_name}' not found"
        super().__init__(
            message=message,
            status_code=404,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )


class KubernetesValidationError(KubernetesError):
    """The API server rejected a merge patch body (400/422)."""

    def __init__(
        self,
        message: str = "Patch rejected by the API server",
        status_code: int | None = 422,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=status_code,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
