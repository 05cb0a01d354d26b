"""Base models for Kubernetes resource snapshots."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field


class K8sEntityBase(BaseModel):
    """Base class for point-in-time snapshots of Kubernetes objects."""

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    name: str = Field(description="Resource name")
    namespace: str | None = Field(default=None, description="Resource namespace")
    uid: str | None = Field(default=None, description="Kubernetes UID")
    labels: dict[str, str] = Field(default_factory=dict, description="Resource labels")
    annotations: dict[str, str] = Field(default_factory=dict, description="Resource annotations")

    _entity_name: ClassVar[str] = "entity"


def _safe_get(obj: Any, *attrs: str, default: Any = None) -> Any:
    """Safely traverse nested attributes on kubernetes SDK objects."""
    current = obj
    for attr in attrs:
        if current is None:
            return default
        current = getattr(current, attr, None)
    return current if current is not None else default


def _get_datetime(obj: Any) -> datetime | None:
    """Normalize an SDK timestamp (datetime or RFC3339 string) to aware UTC."""
    if obj is None:
        return None
    if isinstance(obj, str):
        obj = datetime.fromisoformat(obj.replace("Z", "+00:00"))
    if not isinstance(obj, datetime):
        return None
    if obj.tzinfo is None:
        return obj.replace(tzinfo=UTC)
    return obj.astimezone(UTC)


def _get_labels(obj: Any) -> dict[str, str]:
    labels = _safe_get(obj, "metadata", "labels")
    return dict(labels) if labels else {}


def _get_annotations(obj: Any) -> dict[str, str]:
    annotations = _safe_get(obj, "metadata", "annotations")
    return dict(annotations) if annotations else {}
