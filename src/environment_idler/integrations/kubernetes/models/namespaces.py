"""Namespace snapshots used for environment discovery."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from environment_idler.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _get_annotations,
    _get_labels,
    _safe_get,
)


class NamespaceSummary(K8sEntityBase):
    """Namespace display model."""

    _entity_name: ClassVar[str] = "namespace"

    phase: str = Field(default="Active", description="Namespace phase")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> NamespaceSummary:
        """Create from a kubernetes V1Namespace object."""
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            uid=_safe_get(obj, "metadata", "uid"),
            labels=_get_labels(obj),
            annotations=_get_annotations(obj),
            phase=_safe_get(obj, "status", "phase", default="Active"),
        )
