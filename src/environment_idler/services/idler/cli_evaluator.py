"""Eligibility evaluation for CLI workloads.

A CLI deployment is idled on its own, without any wake-up bookkeeping, when
the environment has no running build, the deployment declares no cron jobs
and at least one of its pods has no user sessions attached.
"""

from __future__ import annotations

import structlog

from environment_idler.integrations.kubernetes.models import PodSnapshot, WorkloadDescriptor
from environment_idler.services.idler import access
from environment_idler.services.idler.config import CLISelectors, render_selector
from environment_idler.services.idler.exceptions import (
    ListingError,
    ProbeExecError,
    ProbeParseError,
)
from environment_idler.services.idler.models import (
    EligibilityDecision,
    Environment,
    LoopPolicy,
)
from environment_idler.services.idler.probes import ActivityProbe, parse_process_count
from environment_idler.services.idler.protocols import WorkloadRepository

logger = structlog.get_logger()

CRON_VARIABLE = "CRONJOBS"
# cron entries are separated by a literal backslash-n in the variable value
CRON_SEPARATOR = "\\n"


class CLIEligibilityEvaluator:
    """Decides which CLI deployments of an environment can be idled."""

    def __init__(
        self,
        repository: WorkloadRepository,
        activity_probe: ActivityProbe,
        selectors: CLISelectors,
        *,
        on_idled_deployment: LoopPolicy = LoopPolicy.BREAK,
        on_probe_error: LoopPolicy = LoopPolicy.BREAK,
    ) -> None:
        self._repository = repository
        self._probe = activity_probe
        self._selectors = selectors
        self._on_idled_deployment = on_idled_deployment
        self._on_probe_error = on_probe_error

    def evaluate(self, environment: Environment) -> EligibilityDecision:
        """Return the CLI deployments that should be scaled to zero."""
        log = logger.bind(namespace=environment.name, path="cli")

        if not self._selectors.skip_build_check and self._has_running_build(environment, log):
            return EligibilityDecision.rejected("running build")

        try:
            deployments = access.list_deployments(
                self._repository, environment.name, render_selector(self._selectors.deployments)
            )
        except ListingError as e:
            log.error("deployment_listing_failed", error=e.message)
            return EligibilityDecision.rejected("deployment listing failed")

        eligible: list[WorkloadDescriptor] = []
        for deployment in deployments:
            if deployment.is_idle:
                log.info("deployment_already_idled", deployment=deployment.name)
                # BREAK also leaves every deployment listed after this one unchecked
                if self._on_idled_deployment is LoopPolicy.BREAK:
                    break
                continue
            log.info("deployment_running", deployment=deployment.name, replicas=deployment.replicas)

            if self._has_cronjobs(deployment, log):
                continue
            if self._has_idle_pod(environment, deployment, log):
                eligible.append(deployment)

        if not eligible:
            return EligibilityDecision.rejected("no idle cli deployment")
        return EligibilityDecision(eligible=True, workloads=eligible, reason="cli idle")

    def _has_running_build(self, environment: Environment, log: structlog.BoundLogger) -> bool:
        try:
            builds = access.list_pods(
                self._repository, environment.name, render_selector(self._selectors.builds)
            )
        except ListingError as e:
            # no build information; carry on with the deployment checks
            log.error("build_listing_failed", error=e.message)
            return False

        for build in builds:
            if build.phase == "Running":
                log.info("environment_has_running_build", build=build.name)
                return True
        return False

    def _has_cronjobs(self, deployment: WorkloadDescriptor, log: structlog.BoundLogger) -> bool:
        if self._selectors.skip_cron_check:
            return False
        log.debug("checking_cronjobs", deployment=deployment.name)
        cronjobs = deployment.env_value(CRON_VARIABLE)
        if not cronjobs:
            return False
        log.info(
            "deployment_has_cronjobs",
            deployment=deployment.name,
            count=len(cronjobs.split(CRON_SEPARATOR)),
        )
        return True

    def _has_idle_pod(
        self,
        environment: Environment,
        deployment: WorkloadDescriptor,
        log: structlog.BoundLogger,
    ) -> bool:
        try:
            pods = access.list_pods(
                self._repository, environment.name, render_selector(self._selectors.pods)
            )
        except ListingError as e:
            log.error("pod_listing_failed", deployment=deployment.name, error=e.message)
            return False

        for pod in pods:
            if self._selectors.skip_process_check:
                return True
            log.debug("checking_pod_processes", pod=pod.name)
            try:
                output = self._probe.probe(pod.name, environment.name)
            except ProbeExecError as e:
                log.error("process_probe_failed", pod=pod.name, error=e.message)
                # BREAK leaves the remaining pods of this deployment unprobed
                if self._on_probe_error is LoopPolicy.BREAK:
                    break
                continue

            processes = self._process_count(output, pod, log)
            if processes == 0:
                log.info("pod_has_no_processes", pod=pod.name, deployment=deployment.name)
                return True
            log.info("pod_has_processes", pod=pod.name, processes=processes)
        return False

    @staticmethod
    def _process_count(output: str, pod: PodSnapshot, log: structlog.BoundLogger) -> int:
        trimmed = output.strip()
        try:
            return parse_process_count(trimmed)
        except ProbeParseError as e:
            # unparseable output counts as an idle pod
            log.warning(
                "process_probe_unparseable",
                pod=pod.name,
                output=trimmed,
                error=e.message,
                assumed_processes=0,
            )
            return 0
