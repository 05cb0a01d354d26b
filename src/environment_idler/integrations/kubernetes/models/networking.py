"""Ingress snapshots consumed by the idle actuator."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import Field

from environment_idler.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _get_annotations,
    _get_labels,
    _safe_get,
)


class IngressDescriptor(K8sEntityBase):
    """Ingress display model."""

    _entity_name: ClassVar[str] = "ingress"

    ingress_class: str | None = Field(default=None, description="Ingress class name")
    hosts: list[str] = Field(default_factory=list, description="Rule hostnames")

    @classmethod
    def from_k8s_object(cls, obj: Any) -> IngressDescriptor:
        """Create from a kubernetes V1Ingress object."""
        rules = _safe_get(obj, "spec", "rules") or []
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            namespace=_safe_get(obj, "metadata", "namespace"),
            uid=_safe_get(obj, "metadata", "uid"),
            labels=_get_labels(obj),
            annotations=_get_annotations(obj),
            ingress_class=_safe_get(obj, "spec", "ingress_class_name"),
            hosts=[h for h in (getattr(r, "host", None) for r in rules) if h],
        )
