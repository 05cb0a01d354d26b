"""Deployment and pod snapshots consumed by the eligibility evaluators."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from environment_idler.integrations.kubernetes.models.base import (
    K8sEntityBase,
    _get_annotations,
    _get_datetime,
    _get_labels,
    _safe_get,
)


class ContainerEnv(BaseModel):
    """Literal environment variables declared on one container.

    Variables sourced through ``valueFrom`` are recorded with an empty value.
    """

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    env: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_k8s_object(cls, obj: Any) -> ContainerEnv:
        """Create from a kubernetes V1Container object."""
        env = {
            getattr(var, "name", ""): getattr(var, "value", None) or ""
            for var in (getattr(obj, "env", None) or [])
        }
        return cls(name=getattr(obj, "name", "") or "", env=env)


class WorkloadDescriptor(K8sEntityBase):
    """Snapshot of a Deployment as seen at the start of an idling pass."""

    _entity_name: ClassVar[str] = "deployment"

    replicas: int = Field(default=0, description="Desired replicas")
    containers: list[ContainerEnv] = Field(
        default_factory=list, description="Pod template containers"
    )
    template_labels: dict[str, str] = Field(
        default_factory=dict, description="Pod template labels"
    )

    @property
    def is_idle(self) -> bool:
        """Whether the deployment is already scaled to zero."""
        return self.replicas == 0

    def env_value(self, variable: str) -> str | None:
        """Return the first non-empty value of ``variable`` across containers."""
        for container in self.containers:
            if value := container.env.get(variable):
                return value
        return None

    @classmethod
    def from_k8s_object(cls, obj: Any) -> WorkloadDescriptor:
        """Create from a kubernetes V1Deployment object."""
        containers = _safe_get(obj, "spec", "template", "spec", "containers") or []
        template_labels = _safe_get(obj, "spec", "template", "metadata", "labels") or {}
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            namespace=_safe_get(obj, "metadata", "namespace"),
            uid=_safe_get(obj, "metadata", "uid"),
            labels=_get_labels(obj),
            annotations=_get_annotations(obj),
            # an unset spec.replicas is defaulted to 1 by the API server
            replicas=_safe_get(obj, "spec", "replicas", default=1),
            containers=[ContainerEnv.from_k8s_object(c) for c in containers],
            template_labels=dict(template_labels),
        )


class PodSnapshot(K8sEntityBase):
    """Snapshot of a pod: start time, phase and owning workload."""

    _entity_name: ClassVar[str] = "pod"

    phase: str = Field(default="Unknown", description="Pod phase")
    start_time: datetime | None = Field(default=None, description="Kubelet start time")
    owner: str | None = Field(default=None, description="Name of the controlling owner")

    def running_minutes(self, now: datetime | None = None) -> int | None:
        """Whole minutes elapsed since the pod started, or None if unknown."""
        if self.start_time is None:
            return None
        now = now or datetime.now(UTC)
        return int((now - self.start_time).total_seconds() // 60)

    @classmethod
    def from_k8s_object(cls, obj: Any) -> PodSnapshot:
        """Create from a kubernetes V1Pod object."""
        owners = _safe_get(obj, "metadata", "owner_references") or []
        controller = next((o for o in owners if getattr(o, "controller", False)), None)
        if controller is None and owners:
            controller = owners[0]
        return cls(
            name=_safe_get(obj, "metadata", "name", default=""),
            namespace=_safe_get(obj, "metadata", "namespace"),
            uid=_safe_get(obj, "metadata", "uid"),
            labels=_get_labels(obj),
            annotations=_get_annotations(obj),
            phase=_safe_get(obj, "status", "phase", default="Unknown"),
            start_time=_get_datetime(_safe_get(obj, "status", "start_time")),
            owner=getattr(controller, "name", None) if controller else None,
        )
