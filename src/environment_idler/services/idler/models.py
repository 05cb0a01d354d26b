"""Value objects passed between the evaluators, actuators and driver."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from environment_idler.integrations.kubernetes.models import (
    NamespaceSummary,
    WorkloadDescriptor,
)

PRODUCTION = "production"


class LoopPolicy(str, Enum):
    """What a loop does when it meets an item that ends its own checks."""

    BREAK = "break"
    CONTINUE = "continue"


class Environment(BaseModel):
    """A namespace holding one deployed instance of a project."""

    model_config = ConfigDict(extra="ignore")

    name: str = Field(description="Namespace name")
    environment_type: str = Field(default="", description="production, development, ...")
    project: str | None = Field(default=None, description="Owning project name")
    labels: dict[str, str] = Field(default_factory=dict)

    @property
    def is_production(self) -> bool:
        return self.environment_type == PRODUCTION

    @classmethod
    def from_namespace(
        cls,
        namespace: NamespaceSummary,
        environment_type_label: str,
        project_label: str,
    ) -> Environment:
        """Build an environment from a namespace and its Lagoon-style labels."""
        return cls(
            name=namespace.name,
            environment_type=namespace.labels.get(environment_type_label, ""),
            project=namespace.labels.get(project_label),
            labels=namespace.labels,
        )


@dataclass
class EligibilityDecision:
    """Outcome of an eligibility evaluator.

    ``workloads`` are the deployments the decision applies to. For the
    service path that is every matched deployment in the environment.
    """

    eligible: bool
    workloads: list[WorkloadDescriptor] = field(default_factory=list)
    reason: str = ""

    @classmethod
    def rejected(cls, reason: str) -> EligibilityDecision:
        return cls(eligible=False, reason=reason)


@dataclass
class ActuationOutcome:
    """Result of one at-most-once mutation against one resource."""

    kind: str
    name: str
    namespace: str
    success: bool
    dry_run: bool = False
    error: str | None = None


@dataclass
class IdleResult:
    """Result of the two-phase service idle actuation."""

    ingress_ok: bool
    ingress_outcomes: list[ActuationOutcome] = field(default_factory=list)
    deployment_outcomes: list[ActuationOutcome] = field(default_factory=list)

    @property
    def outcomes(self) -> list[ActuationOutcome]:
        return [*self.ingress_outcomes, *self.deployment_outcomes]


@dataclass
class EnvironmentReport:
    """Everything one pass did to one environment, for the CLI summary."""

    environment: str
    cli_decision: EligibilityDecision | None = None
    service_decision: EligibilityDecision | None = None
    outcomes: list[ActuationOutcome] = field(default_factory=list)
    error: str | None = None
