"""Eligibility evaluation for service workloads.

Service deployments are idled together or not at all. The environment is a
candidate as soon as any pod of any running service deployment has been up
for at least the idle threshold; it is eligible when, in addition, its
ingresses served no requests within the traffic window.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from environment_idler.integrations.kubernetes.models import WorkloadDescriptor
from environment_idler.services.idler import access
from environment_idler.services.idler.config import (
    IdlerConfig,
    LabelRequirement,
    SelectorOperator,
    render_selector,
)
from environment_idler.services.idler.exceptions import ListingError, QueryError
from environment_idler.services.idler.models import EligibilityDecision, Environment
from environment_idler.services.idler.probes import TrafficProbe
from environment_idler.services.idler.protocols import WorkloadRepository

logger = structlog.get_logger()

BLOCKING_BUILD_PHASES = frozenset({"Running", "Pending"})


class ServiceEligibilityEvaluator:
    """Decides whether an environment's service deployments can be idled."""

    def __init__(
        self,
        repository: WorkloadRepository,
        traffic_probe: TrafficProbe,
        config: IdlerConfig,
    ) -> None:
        self._repository = repository
        self._traffic = traffic_probe
        self._config = config
        self._selectors = config.selectors.service

    def evaluate(
        self, environment: Environment, now: datetime | None = None
    ) -> EligibilityDecision:
        """Return a decision covering every matched service deployment."""
        log = logger.bind(namespace=environment.name, path="service")
        now = now or datetime.now(UTC)

        if not self._selectors.skip_build_check and self._has_active_build(environment, log):
            return EligibilityDecision.rejected("running build")

        try:
            deployments = access.list_deployments(
                self._repository, environment.name, render_selector(self._selectors.deployments)
            )
        except ListingError as e:
            log.error("deployment_listing_failed", error=e.message)
            return EligibilityDecision.rejected("deployment listing failed")

        if not self._any_pod_past_threshold(environment, deployments, now, log):
            return EligibilityDecision.rejected("no pod past idle threshold")

        if self._selectors.skip_hit_check:
            log.info("environment_marked_for_idling", hit_check="skipped")
        else:
            log.info("environment_marked_for_idling", hit_check="pending")
            window = self.traffic_window(environment)
            try:
                hits = self._traffic.hits(environment.name, window, at=now)
            except QueryError as e:
                log.error("traffic_query_failed", error=e.message)
                return EligibilityDecision.rejected("traffic query failed")
            log.info("environment_hits", hits=hits, window=window)
            if hits != 0:
                log.info("environment_not_idle", reason="traffic")
                return EligibilityDecision.rejected("environment received traffic")

        return EligibilityDecision(eligible=True, workloads=deployments, reason="service idle")

    def traffic_window(self, environment: Environment) -> str:
        """Production environments are measured over the idle threshold
        itself, everything else over the configured check interval."""
        if environment.is_production:
            return f"{self._config.idle_minutes}m"
        return self._config.check_interval

    def _has_active_build(self, environment: Environment, log: structlog.BoundLogger) -> bool:
        try:
            builds = access.list_pods(
                self._repository, environment.name, render_selector(self._selectors.builds)
            )
        except ListingError as e:
            log.error("build_listing_failed", error=e.message)
            return False

        for build in builds:
            if build.phase in BLOCKING_BUILD_PHASES:
                log.info("environment_has_running_build", build=build.name, phase=build.phase)
                return True
        return False

    def _pod_selector(self, deployment: WorkloadDescriptor) -> str | None:
        by_service = LabelRequirement(
            key=self._config.selectors.service_name_label,
            operator=SelectorOperator.EQUALS,
            values=[deployment.name],
        )
        return render_selector([by_service, *self._selectors.pods])

    def _any_pod_past_threshold(
        self,
        environment: Environment,
        deployments: list[WorkloadDescriptor],
        now: datetime,
        log: structlog.BoundLogger,
    ) -> bool:
        """Fold pod ages over all running deployments into one flag.

        The flag is never reset once set. A pod listing failure stops the
        remaining checks and keeps what was found so far.
        """
        idle_minutes = self._config.idle_minutes
        idle = False
        for deployment in deployments:
            if deployment.is_idle:
                log.debug("deployment_already_idled", deployment=deployment.name)
                continue
            log.info("deployment_running", deployment=deployment.name, replicas=deployment.replicas)

            try:
                pods = access.list_pods(
                    self._repository, environment.name, self._pod_selector(deployment)
                )
            except ListingError as e:
                log.error("pod_listing_failed", deployment=deployment.name, error=e.message)
                break

            for pod in pods:
                minutes = pod.running_minutes(now)
                if minutes is None:
                    continue
                log.debug("pod_running_minutes", pod=pod.name, minutes=minutes)
                if minutes >= idle_minutes:
                    log.info("pod_past_idle_threshold", pod=pod.name, idle_minutes=idle_minutes)
                    idle = True
        return idle
