"""Shared plumbing for the idler's Kubernetes managers.

Every call the idler makes is bounded by the client's request timeout, and
every write is a JSON merge patch, so both live here rather than in each
manager.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, NoReturn

import structlog

if TYPE_CHECKING:
    from environment_idler.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()

MERGE_PATCH_CONTENT_TYPE = "application/merge-patch+json"


class K8sBaseManager:
    """Base class for the repository and exec managers.

    Subclasses set ``_entity_name``; it is bound as ``entity`` on every log
    line the manager emits.
    """

    _entity_name: str = ""

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client
        self._log = logger.bind(entity=self._entity_name)

    def _request_kwargs(self, label_selector: str | None = None) -> dict[str, Any]:
        """Keyword arguments common to list/read calls."""
        kwargs: dict[str, Any] = {"_request_timeout": self._client.request_timeout}
        if label_selector:
            kwargs["label_selector"] = label_selector
        return kwargs

    def _merge_patch(
        self,
        patch_call: Callable[..., Any],
        kind: str,
        name: str,
        namespace: str,
        body: dict[str, Any],
    ) -> None:
        """Send ``body`` as a merge patch through a ``patch_namespaced_*`` call.

        Raises:
            KubernetesError: If the API server rejects the patch.
        """
        self._log.debug("merge_patch", kind=kind, name=name, namespace=namespace)
        try:
            patch_call(
                name=name,
                namespace=namespace,
                body=body,
                _content_type=MERGE_PATCH_CONTENT_TYPE,
                _request_timeout=self._client.request_timeout,
            )
        except Exception as e:
            self._handle_api_error(e, kind, name, namespace)

    def _handle_api_error(
        self,
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> NoReturn:
        raise self._client.translate_api_exception(
            e,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )
