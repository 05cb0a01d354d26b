"""Actuators: the only code that mutates cluster state.

Every mutation is attempted at most once per pass. A failed patch is logged
and reported as an ``ActuationOutcome``; the next polling cycle is what
retries it.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

import structlog

from environment_idler.integrations.kubernetes.models import WorkloadDescriptor
from environment_idler.services.idler import access
from environment_idler.services.idler.config import IdlerConfig, render_selector
from environment_idler.services.idler.exceptions import ListingError, PatchError
from environment_idler.services.idler.models import (
    ActuationOutcome,
    Environment,
    IdleResult,
)
from environment_idler.services.idler.protocols import WorkloadRepository

logger = structlog.get_logger()

SCALE_TO_ZERO_PATCH: dict[str, Any] = {"spec": {"replicas": 0}}


def unidle_replicas(workload: WorkloadDescriptor) -> int:
    """Replica count the wake-up path restores; never zero."""
    return max(1, workload.replicas)


def idle_deployment_patch(
    config: IdlerConfig, workload: WorkloadDescriptor, now: datetime | None = None
) -> dict[str, Any]:
    """Merge patch that scales a service deployment to zero and records
    what the wake-up path needs to restore it."""
    now = now or datetime.now(UTC)
    return {
        "spec": {"replicas": 0},
        "metadata": {
            "labels": {config.idling_key("watch"): "true"},
            "annotations": {
                config.idling_key("idled-at"): now.strftime("%Y-%m-%dT%H:%M:%SZ"),
                config.idling_key("unidle-replicas"): str(unidle_replicas(workload)),
                config.idling_key("idled"): "true",
            },
        },
    }


def ingress_patch(config: IdlerConfig) -> dict[str, Any]:
    """Merge patch that routes 503s to the unidling backend."""
    return {"metadata": {"annotations": {config.custom_http_errors_key: "503"}}}


class CLIActuator:
    """Scales CLI deployments to zero. No wake-up metadata is written."""

    def __init__(self, repository: WorkloadRepository, *, dry_run: bool = False) -> None:
        self._repository = repository
        self._dry_run = dry_run

    def actuate(
        self, environment: Environment, workloads: Iterable[WorkloadDescriptor]
    ) -> list[ActuationOutcome]:
        """Scale each workload to zero; failures do not stop siblings."""
        log = logger.bind(namespace=environment.name, path="cli")
        outcomes = []
        for workload in workloads:
            if self._dry_run:
                log.info("deployment_would_be_scaled", deployment=workload.name, replicas=0)
                outcomes.append(_outcome("Deployment", workload.name, environment, dry_run=True))
                continue
            try:
                access.patch_deployment(
                    self._repository, workload.name, environment.name, SCALE_TO_ZERO_PATCH
                )
            except PatchError as e:
                log.error("deployment_scale_failed", deployment=workload.name, error=e.message)
                outcomes.append(_outcome("Deployment", workload.name, environment, error=e.message))
                continue
            log.info("deployment_scaled", deployment=workload.name, replicas=0)
            outcomes.append(_outcome("Deployment", workload.name, environment))
        return outcomes


class IdleActuator:
    """Idles a service environment in two ordered phases.

    Phase 1 annotates every matched ingress so the proxy hands 503s to the
    wake-up backend. Phase 2 scales the deployments and records the restore
    hint. Phase 2 only runs when phase 1 fully succeeded or is switched off;
    a deployment scaled without its ingress annotation can never be woken.
    """

    def __init__(self, repository: WorkloadRepository, config: IdlerConfig) -> None:
        self._repository = repository
        self._config = config

    @property
    def _dry_run(self) -> bool:
        return self._config.dry_run

    def actuate(
        self, environment: Environment, workloads: Iterable[WorkloadDescriptor]
    ) -> IdleResult:
        """Run both phases for an eligible environment."""
        log = logger.bind(namespace=environment.name, path="service")

        ingress_ok, ingress_outcomes = self.patch_ingresses(environment)
        if not ingress_ok:
            log.warning("environment_not_idled", reason="ingress_patch_failed")
            return IdleResult(ingress_ok=False, ingress_outcomes=ingress_outcomes)

        log.info("environment_idling")
        return IdleResult(
            ingress_ok=True,
            ingress_outcomes=ingress_outcomes,
            deployment_outcomes=self.idle_deployments(environment, workloads),
        )

    def patch_ingresses(self, environment: Environment) -> tuple[bool, list[ActuationOutcome]]:
        """Phase 1. Stops at the first failure and reports it."""
        log = logger.bind(namespace=environment.name, path="service")
        outcomes: list[ActuationOutcome] = []
        if self._config.selectors.service.skip_ingress_patch:
            log.info("ingress_patch_skipped")
            return True, outcomes

        selector = render_selector(self._config.selectors.service.ingress)
        try:
            ingresses = access.list_ingresses(self._repository, environment.name, selector)
        except ListingError as e:
            log.error("ingress_listing_failed", error=e.message)
            return False, outcomes

        body = ingress_patch(self._config)
        for ingress in ingresses:
            if self._dry_run:
                log.info("ingress_would_be_patched", ingress=ingress.name, patch=body)
                outcomes.append(_outcome("Ingress", ingress.name, environment, dry_run=True))
                continue
            try:
                access.patch_ingress(self._repository, ingress.name, environment.name, body)
            except PatchError as e:
                log.error("ingress_patch_failed", ingress=ingress.name, error=e.message)
                outcomes.append(_outcome("Ingress", ingress.name, environment, error=e.message))
                return False, outcomes
            log.info("ingress_patched", ingress=ingress.name)
            outcomes.append(_outcome("Ingress", ingress.name, environment))
        return True, outcomes

    def idle_deployments(
        self, environment: Environment, workloads: Iterable[WorkloadDescriptor]
    ) -> list[ActuationOutcome]:
        """Phase 2. Partial success is accepted: failures do not stop siblings."""
        log = logger.bind(namespace=environment.name, path="service")
        outcomes = []
        for workload in workloads:
            body = idle_deployment_patch(self._config, workload)
            if self._dry_run:
                log.info(
                    "deployment_would_be_scaled",
                    deployment=workload.name,
                    unidle_replicas=unidle_replicas(workload),
                )
                outcomes.append(_outcome("Deployment", workload.name, environment, dry_run=True))
                continue
            try:
                access.patch_deployment(self._repository, workload.name, environment.name, body)
            except PatchError as e:
                log.error("deployment_scale_failed", deployment=workload.name, error=e.message)
                outcomes.append(_outcome("Deployment", workload.name, environment, error=e.message))
                continue
            log.info(
                "deployment_scaled",
                deployment=workload.name,
                unidle_replicas=unidle_replicas(workload),
            )
            outcomes.append(_outcome("Deployment", workload.name, environment))
        return outcomes


def _outcome(
    kind: str,
    name: str,
    environment: Environment,
    *,
    dry_run: bool = False,
    error: str | None = None,
) -> ActuationOutcome:
    return ActuationOutcome(
        kind=kind,
        name=name,
        namespace=environment.name,
        success=error is None,
        dry_run=dry_run,
        error=error,
    )
