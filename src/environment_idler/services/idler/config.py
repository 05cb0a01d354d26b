"""Idler configuration models.

Configuration is read from a YAML file and overridden by ``IDLER_*``
environment variables. Label selectors are expressed as lists of
requirements, each rendered to Kubernetes label-selector syntax and joined
with commas (all requirements must match).
"""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from environment_idler.integrations.kubernetes.config import KubernetesConfig
from environment_idler.integrations.observability.config import PrometheusConfig
from environment_idler.services.idler.exceptions import IdlerConfigError
from environment_idler.services.idler.models import LoopPolicy

# Prometheus range durations, e.g. "4h", "30m", "1h30m"
_DURATION_RE = re.compile(r"^(\d+(ms|s|m|h|d|w|y))+$")

_TRUE_VALUES = {"1", "true", "yes", "on"}


class SelectorOperator(str, Enum):
    """Label selector operators."""

    IN = "In"
    NOT_IN = "NotIn"
    EXISTS = "Exists"
    DOES_NOT_EXIST = "DoesNotExist"
    EQUALS = "Equals"
    NOT_EQUALS = "NotEquals"


class LabelRequirement(BaseModel):
    """One label selector requirement."""

    model_config = ConfigDict(extra="forbid")

    key: str
    operator: SelectorOperator = SelectorOperator.EQUALS
    values: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_values(self) -> LabelRequirement:
        """Check the value count fits the operator."""
        op = self.operator
        if op in (SelectorOperator.EXISTS, SelectorOperator.DOES_NOT_EXIST) and self.values:
            raise ValueError(f"{op.value} takes no values")
        if op in (SelectorOperator.EQUALS, SelectorOperator.NOT_EQUALS) and len(self.values) != 1:
            raise ValueError(f"{op.value} takes exactly one value")
        if op in (SelectorOperator.IN, SelectorOperator.NOT_IN) and not self.values:
            raise ValueError(f"{op.value} takes at least one value")
        return self

    def to_selector(self) -> str:
        """Render as a Kubernetes label selector term."""
        match self.operator:
            case SelectorOperator.IN:
                return f"{self.key} in ({','.join(self.values)})"
            case SelectorOperator.NOT_IN:
                return f"{self.key} notin ({','.join(self.values)})"
            case SelectorOperator.EXISTS:
                return self.key
            case SelectorOperator.DOES_NOT_EXIST:
                return f"!{self.key}"
            case SelectorOperator.EQUALS:
                return f"{self.key}={self.values[0]}"
            case SelectorOperator.NOT_EQUALS:
                return f"{self.key}!={self.values[0]}"


def render_selector(requirements: list[LabelRequirement]) -> str | None:
    """Join requirements into one selector string; None selects everything."""
    if not requirements:
        return None
    return ",".join(r.to_selector() for r in requirements)


def _req(key: str, operator: SelectorOperator, *values: str) -> LabelRequirement:
    return LabelRequirement(key=key, operator=operator, values=list(values))


def _build_pods() -> list[LabelRequirement]:
    return [_req("lagoon.sh/jobType", SelectorOperator.EQUALS, "build")]


class CLISelectors(BaseModel):
    """Selectors and switches for the CLI workload path."""

    model_config = ConfigDict(extra="forbid")

    builds: list[LabelRequirement] = Field(default_factory=_build_pods)
    deployments: list[LabelRequirement] = Field(
        default_factory=lambda: [_req("lagoon.sh/service", SelectorOperator.EQUALS, "cli")]
    )
    pods: list[LabelRequirement] = Field(
        default_factory=lambda: [_req("lagoon.sh/service", SelectorOperator.EQUALS, "cli")]
    )
    skip_build_check: bool = False
    skip_cron_check: bool = False
    skip_process_check: bool = False


class ServiceSelectors(BaseModel):
    """Selectors and switches for the service workload path.

    ``pods`` holds extra requirements AND-ed with the service-name match
    used to find each deployment's pods.
    """

    model_config = ConfigDict(extra="forbid")

    builds: list[LabelRequirement] = Field(default_factory=_build_pods)
    deployments: list[LabelRequirement] = Field(
        default_factory=lambda: [
            _req("idling.amazee.io/watch", SelectorOperator.NOT_IN, "false"),
            _req("lagoon.sh/service", SelectorOperator.NOT_IN, "cli"),
        ]
    )
    pods: list[LabelRequirement] = Field(default_factory=list)
    ingress: list[LabelRequirement] = Field(default_factory=list)
    skip_build_check: bool = False
    skip_hit_check: bool = False
    skip_ingress_patch: bool = False


class SelectorsConfig(BaseModel):
    """Label selectors for both idling paths."""

    model_config = ConfigDict(extra="forbid")

    cli: CLISelectors = Field(default_factory=CLISelectors)
    service: ServiceSelectors = Field(default_factory=ServiceSelectors)
    service_name_label: str = "lagoon.sh/service"


class IdlerConfig(BaseModel):
    """Complete idler configuration."""

    model_config = ConfigDict(extra="forbid")

    dry_run: bool = False
    debug: bool = False
    idle_minutes: int = 240
    check_interval: str = "4h"

    cli_enabled: bool = True
    service_enabled: bool = True

    annotation_domain: str = "amazee.io"
    ingress_controller_prefix: str = "nginx.ingress.kubernetes.io"
    request_metric: str = "nginx_ingress_controller_requests"

    namespace_selector: list[LabelRequirement] = Field(
        default_factory=lambda: [
            _req("lagoon.sh/environmentType", SelectorOperator.EXISTS),
            _req("idling.amazee.io/disable-idling", SelectorOperator.NOT_IN, "true"),
        ]
    )
    environment_type_label: str = "lagoon.sh/environmentType"
    project_label: str = "lagoon.sh/project"

    on_idled_deployment: LoopPolicy = LoopPolicy.BREAK
    on_probe_error: LoopPolicy = LoopPolicy.BREAK

    selectors: SelectorsConfig = Field(default_factory=SelectorsConfig)
    prometheus: PrometheusConfig = Field(default_factory=PrometheusConfig)
    kubernetes: KubernetesConfig = Field(default_factory=KubernetesConfig)

    @field_validator("idle_minutes")
    @classmethod
    def validate_idle_minutes(cls, v: int) -> int:
        """Validate the idle threshold is positive."""
        if v <= 0:
            raise ValueError("idle_minutes must be positive")
        return v

    @field_validator("check_interval")
    @classmethod
    def validate_check_interval(cls, v: str) -> str:
        """Validate the interval is a Prometheus duration."""
        if not _DURATION_RE.match(v):
            raise ValueError(f"check_interval must be a Prometheus duration like '4h': {v!r}")
        return v

    # =========================================================================
    # Resource Keys
    # =========================================================================

    def idling_key(self, name: str) -> str:
        """Fully qualified ``idling.<domain>/<name>`` label or annotation key."""
        return f"idling.{self.annotation_domain}/{name}"

    @property
    def custom_http_errors_key(self) -> str:
        return f"{self.ingress_controller_prefix}/custom-http-errors"

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> IdlerConfig:
        """Create configuration with environment variable overrides.

        Environment variables take precedence over base_config values.

        Supported environment variables:
            IDLER_DRY_RUN: Log intended mutations instead of applying them
            IDLER_DEBUG: Extra per-resource log lines
            IDLER_IDLE_MINUTES: Pod age threshold in minutes
            IDLER_CHECK_INTERVAL: Traffic window for non-production environments
            IDLER_PROMETHEUS_URL: Prometheus server URL
            IDLER_KUBECONFIG: Kubeconfig path
            IDLER_CONTEXT: Kubeconfig context

        Raises:
            IdlerConfigError: If the resulting configuration is invalid.
        """
        config_dict = dict(base_config) if base_config else {}
        prometheus = dict(config_dict.get("prometheus") or {})
        kubernetes = dict(config_dict.get("kubernetes") or {})

        if dry_run := os.environ.get("IDLER_DRY_RUN"):
            config_dict["dry_run"] = dry_run.lower() in _TRUE_VALUES
        if debug := os.environ.get("IDLER_DEBUG"):
            config_dict["debug"] = debug.lower() in _TRUE_VALUES
        if idle_minutes := os.environ.get("IDLER_IDLE_MINUTES"):
            config_dict["idle_minutes"] = idle_minutes
        if check_interval := os.environ.get("IDLER_CHECK_INTERVAL"):
            config_dict["check_interval"] = check_interval
        if prometheus_url := os.environ.get("IDLER_PROMETHEUS_URL"):
            prometheus["url"] = prometheus_url
        if kubeconfig := os.environ.get("IDLER_KUBECONFIG"):
            kubernetes["kubeconfig"] = kubeconfig
        if context := os.environ.get("IDLER_CONTEXT"):
            kubernetes["context"] = context

        config_dict["prometheus"] = prometheus
        config_dict["kubernetes"] = kubernetes

        try:
            return cls.model_validate(config_dict)
        except ValidationError as e:
            raise IdlerConfigError("Invalid idler configuration", details=str(e)) from e


def load_config(path: Path | None = None) -> IdlerConfig:
    """Load the idler configuration.

    Args:
        path: YAML configuration file; defaults only when None.

    Returns:
        Validated configuration with environment overrides applied.

    Raises:
        IdlerConfigError: If the file is missing, unreadable or invalid.
    """
    if path is None:
        return IdlerConfig.from_env()

    if not path.exists():
        raise IdlerConfigError("Configuration file not found", details=str(path))

    try:
        with path.open() as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise IdlerConfigError("Invalid configuration file format", details=str(e)) from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise IdlerConfigError(
            "Invalid configuration file format",
            details=f"expected a mapping at the top level of {path}",
        )
    return IdlerConfig.from_env(data)
