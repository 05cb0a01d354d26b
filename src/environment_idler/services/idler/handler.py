"""Idling driver.

Runs one idling pass: discover environments, then for each one evaluate the
CLI and service paths and hand positive decisions to the matching actuator.
Environments share no state, and nothing raised while handling one of them
stops the others.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

import structlog

from environment_idler.integrations.kubernetes.client import KubernetesClient
from environment_idler.integrations.kubernetes.models import NamespaceSummary
from environment_idler.integrations.observability.clients.prometheus import PrometheusClient
from environment_idler.services.idler.actuators import CLIActuator, IdleActuator
from environment_idler.services.idler.cli_evaluator import CLIEligibilityEvaluator
from environment_idler.services.idler.config import IdlerConfig, render_selector
from environment_idler.services.idler.models import Environment, EnvironmentReport
from environment_idler.services.idler.probes import ActivityProbe, TrafficProbe
from environment_idler.services.idler.protocols import (
    MetricsQuerier,
    PodExecutor,
    WorkloadRepository,
)
from environment_idler.services.idler.service_evaluator import ServiceEligibilityEvaluator
from environment_idler.services.kubernetes.exec_manager import PodExecManager
from environment_idler.services.kubernetes.workload_repository import (
    KubernetesWorkloadRepository,
)

logger = structlog.get_logger()


class IdlingHandler:
    """Wires the evaluators and actuators for one configuration.

    Example:
        ```python
        config = load_config(Path("idler.yaml"))
        with IdlingHandler.from_config(config) as handler:
            reports = handler.run()
        ```
    """

    def __init__(
        self,
        config: IdlerConfig,
        repository: WorkloadRepository,
        executor: PodExecutor,
        querier: MetricsQuerier,
    ) -> None:
        self._config = config
        self._repository = repository
        self._querier = querier

        self.cli_evaluator = CLIEligibilityEvaluator(
            repository,
            ActivityProbe(executor),
            config.selectors.cli,
            on_idled_deployment=config.on_idled_deployment,
            on_probe_error=config.on_probe_error,
        )
        self.service_evaluator = ServiceEligibilityEvaluator(
            repository,
            TrafficProbe(querier, config.request_metric),
            config,
        )
        self.cli_actuator = CLIActuator(repository, dry_run=config.dry_run)
        self.idle_actuator = IdleActuator(repository, config)

    @classmethod
    def from_config(cls, config: IdlerConfig) -> IdlingHandler:
        """Build a handler talking to the configured cluster and Prometheus."""
        client = KubernetesClient(config.kubernetes)
        return cls(
            config,
            KubernetesWorkloadRepository(client),
            PodExecManager(client),
            PrometheusClient(config.prometheus),
        )

    # =========================================================================
    # Discovery
    # =========================================================================

    def discover(self) -> list[Environment]:
        """List every namespace matching the namespace selector as an environment.

        Raises:
            KubernetesError: If the namespaces cannot be listed.
        """
        selector = render_selector(self._config.namespace_selector)
        namespaces = self._repository.list_namespaces(selector)
        environments = [self._to_environment(ns) for ns in namespaces]
        logger.info("environments_discovered", count=len(environments), selector=selector)
        return environments

    def resolve(self, names: Iterable[str]) -> list[Environment]:
        """Look up explicitly named namespaces, bypassing the namespace selector.

        Raises:
            KubernetesError: If a namespace cannot be read.
        """
        return [self._to_environment(self._repository.get_namespace(name)) for name in names]

    def _to_environment(self, namespace: NamespaceSummary) -> Environment:
        return Environment.from_namespace(
            namespace,
            environment_type_label=self._config.environment_type_label,
            project_label=self._config.project_label,
        )

    # =========================================================================
    # Passes
    # =========================================================================

    def run(self, environments: Iterable[Environment] | None = None) -> list[EnvironmentReport]:
        """Run one pass over ``environments`` (discovered when None)."""
        if environments is None:
            environments = self.discover()
        return [self.run_environment(environment) for environment in environments]

    def run_environment(self, environment: Environment) -> EnvironmentReport:
        """Evaluate and, where eligible, idle one environment."""
        log = logger.bind(namespace=environment.name, environment_type=environment.environment_type)
        report = EnvironmentReport(environment=environment.name)
        try:
            if self._config.cli_enabled:
                decision = self.cli_evaluator.evaluate(environment)
                report.cli_decision = decision
                if decision.eligible:
                    report.outcomes.extend(
                        self.cli_actuator.actuate(environment, decision.workloads)
                    )

            if self._config.service_enabled:
                decision = self.service_evaluator.evaluate(environment)
                report.service_decision = decision
                if decision.eligible:
                    result = self.idle_actuator.actuate(environment, decision.workloads)
                    report.outcomes.extend(result.outcomes)
        except Exception as e:
            log.exception("environment_pass_failed")
            report.error = str(e)
        return report

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Release the metrics client connection."""
        close = getattr(self._querier, "close", None)
        if callable(close):
            close()

    def __enter__(self) -> IdlingHandler:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
