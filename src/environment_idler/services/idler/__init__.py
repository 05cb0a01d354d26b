"""Idling core: eligibility evaluators, actuators and the pass driver."""

from environment_idler.services.idler.actuators import CLIActuator, IdleActuator
from environment_idler.services.idler.cli_evaluator import CLIEligibilityEvaluator
from environment_idler.services.idler.config import IdlerConfig, load_config
from environment_idler.services.idler.handler import IdlingHandler
from environment_idler.services.idler.models import (
    ActuationOutcome,
    EligibilityDecision,
    Environment,
    EnvironmentReport,
    IdleResult,
    LoopPolicy,
)
from environment_idler.services.idler.probes import (
    ActivityProbe,
    TrafficProbe,
    parse_process_count,
)
from environment_idler.services.idler.service_evaluator import ServiceEligibilityEvaluator

__all__ = [
    "ActivityProbe",
    "ActuationOutcome",
    "CLIActuator",
    "CLIEligibilityEvaluator",
    "EligibilityDecision",
    "Environment",
    "EnvironmentReport",
    "IdleActuator",
    "IdleResult",
    "IdlerConfig",
    "IdlingHandler",
    "LoopPolicy",
    "ServiceEligibilityEvaluator",
    "TrafficProbe",
    "load_config",
    "parse_process_count",
]
