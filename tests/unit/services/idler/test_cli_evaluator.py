"""Unit tests for CLIEligibilityEvaluator."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import MagicMock

import pytest
from structlog.testing import capture_logs

from environment_idler.integrations.kubernetes.exceptions import KubernetesError
from environment_idler.services.idler.cli_evaluator import CLIEligibilityEvaluator
from environment_idler.services.idler.config import CLISelectors
from environment_idler.services.idler.models import Environment, LoopPolicy
from environment_idler.services.idler.probes import ActivityProbe

BUILD_SELECTOR = "lagoon.sh/jobType=build"
CLI_SELECTOR = "lagoon.sh/service=cli"


@pytest.fixture
def executor() -> MagicMock:
    """Pod executor reporting no sessions."""
    executor = MagicMock()
    executor.exec_command.return_value = "0\n"
    return executor


def make_evaluator(
    repository: MagicMock,
    executor: MagicMock,
    selectors: CLISelectors | None = None,
    **policies: LoopPolicy,
) -> CLIEligibilityEvaluator:
    return CLIEligibilityEvaluator(
        repository,
        ActivityProbe(executor),
        selectors or CLISelectors(),
        **policies,
    )


@pytest.mark.unit
class TestBuildCheck:
    """Tests for the running-build gate."""

    def test_running_build_rejects(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should reject the environment while a build is running."""
        mock_repository.list_pods.side_effect = pods_for(
            {BUILD_SELECTOR: [make_pod("build-1", phase="Running")]}
        )

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        assert decision.reason == "running build"
        mock_repository.list_deployments.assert_not_called()

    def test_finished_build_does_not_block(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should ignore builds that are not in the Running phase."""
        mock_repository.list_pods.side_effect = pods_for(
            {
                BUILD_SELECTOR: [make_pod("build-1", phase="Succeeded")],
                CLI_SELECTOR: [make_pod("cli-abc")],
            }
        )
        mock_repository.list_deployments.return_value = [make_deployment("cli")]

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert decision.eligible

    def test_build_listing_failure_continues(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should carry on with the deployment checks when builds cannot be listed."""
        mock_repository.list_pods.side_effect = pods_for(
            {
                BUILD_SELECTOR: KubernetesError("forbidden"),
                CLI_SELECTOR: [make_pod("cli-abc")],
            }
        )
        mock_repository.list_deployments.return_value = [make_deployment("cli")]

        with capture_logs() as logs:
            decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert decision.eligible
        assert any(log["event"] == "build_listing_failed" for log in logs)

    def test_skip_build_check(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should not list builds when the build check is skipped."""
        mock_repository.list_pods.side_effect = pods_for(
            {
                BUILD_SELECTOR: [make_pod("build-1", phase="Running")],
                CLI_SELECTOR: [make_pod("cli-abc")],
            }
        )
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        selectors = CLISelectors(skip_build_check=True)

        decision = make_evaluator(mock_repository, executor, selectors).evaluate(environment)

        assert decision.eligible
        selectors_used = [c.args[1] for c in mock_repository.list_pods.call_args_list]
        assert BUILD_SELECTOR not in selectors_used


@pytest.mark.unit
class TestDeployments:
    """Tests for deployment iteration."""

    def test_idle_pod_makes_deployment_eligible(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should return the deployment when a pod reports zero processes."""
        cli = make_deployment("cli")
        mock_repository.list_deployments.return_value = [cli]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert decision.eligible
        assert decision.workloads == [cli]
        mock_repository.list_deployments.assert_called_once_with("project-develop", CLI_SELECTOR)

    def test_active_session_keeps_deployment(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should reject when every pod has a user session."""
        executor.exec_command.return_value = "1"
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        assert decision.reason == "no idle cli deployment"

    def test_multi_digit_count_reads_last_digit(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should read "10" as zero processes and "12" as two."""
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        executor.exec_command.return_value = "12\n"
        assert not make_evaluator(mock_repository, executor).evaluate(environment).eligible

        executor.exec_command.return_value = "10\n"
        assert make_evaluator(mock_repository, executor).evaluate(environment).eligible

    def test_unparseable_output_counts_as_idle(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should treat output that is not a digit as zero processes."""
        executor.exec_command.return_value = "sh: pgrep: not found"
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        with capture_logs() as logs:
            decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert decision.eligible
        warning = next(log for log in logs if log["event"] == "process_probe_unparseable")
        assert warning["log_level"] == "warning"
        assert warning["assumed_processes"] == 0

    def test_cronjobs_skip_deployment(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should never idle a deployment that declares cron jobs."""
        mock_repository.list_deployments.return_value = [
            make_deployment("cli", env={"CRONJOBS": "*/5 * * * * drush cron\\n0 1 * * * backup"})
        ]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        with capture_logs() as logs:
            decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        executor.exec_command.assert_not_called()
        cron_log = next(log for log in logs if log["event"] == "deployment_has_cronjobs")
        assert cron_log["count"] == 2

    def test_empty_cronjobs_do_not_block(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should treat an empty CRONJOBS value as no cron jobs."""
        mock_repository.list_deployments.return_value = [
            make_deployment("cli", env={"CRONJOBS": ""})
        ]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        assert make_evaluator(mock_repository, executor).evaluate(environment).eligible

    def test_skip_cron_check(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should ignore cron jobs when the cron check is skipped."""
        mock_repository.list_deployments.return_value = [
            make_deployment("cli", env={"CRONJOBS": "*/5 * * * * drush cron"})
        ]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})
        selectors = CLISelectors(skip_cron_check=True)

        assert make_evaluator(mock_repository, executor, selectors).evaluate(environment).eligible

    def test_skip_process_check(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should accept the first pod without probing it."""
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})
        selectors = CLISelectors(skip_process_check=True)

        decision = make_evaluator(mock_repository, executor, selectors).evaluate(environment)

        assert decision.eligible
        executor.exec_command.assert_not_called()

    def test_no_pods_not_eligible(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_deployment: Callable[..., Any],
    ) -> None:
        """Should not idle a deployment with no pods to inspect."""
        mock_repository.list_deployments.return_value = [make_deployment("cli")]

        assert not make_evaluator(mock_repository, executor).evaluate(environment).eligible

    def test_deployment_listing_failure_rejects(
        self, mock_repository: MagicMock, executor: MagicMock, environment: Environment
    ) -> None:
        """Should abandon the CLI path when deployments cannot be listed."""
        mock_repository.list_deployments.side_effect = KubernetesError("timeout")

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        assert decision.reason == "deployment listing failed"


@pytest.mark.unit
class TestLoopPolicies:
    """Tests for the early-exit loop policies."""

    def test_idled_deployment_breaks_by_default(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should stop checking deployments after an already idled one."""
        mock_repository.list_deployments.return_value = [
            make_deployment("cli-old", replicas=0),
            make_deployment("cli"),
        ]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        executor.exec_command.assert_not_called()

    def test_idled_deployment_continue(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should check later deployments when configured to continue."""
        cli = make_deployment("cli")
        mock_repository.list_deployments.return_value = [
            make_deployment("cli-old", replicas=0),
            cli,
        ]
        mock_repository.list_pods.side_effect = pods_for({CLI_SELECTOR: [make_pod("cli-abc")]})

        decision = make_evaluator(
            mock_repository, executor, on_idled_deployment=LoopPolicy.CONTINUE
        ).evaluate(environment)

        assert decision.eligible
        assert decision.workloads == [cli]

    def test_probe_error_breaks_by_default(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should stop probing pods after a failed exec."""
        executor.exec_command.side_effect = [KubernetesError("exec failed"), "0"]
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for(
            {CLI_SELECTOR: [make_pod("cli-abc"), make_pod("cli-def")]}
        )

        decision = make_evaluator(mock_repository, executor).evaluate(environment)

        assert not decision.eligible
        assert executor.exec_command.call_count == 1

    def test_probe_error_continue(
        self,
        mock_repository: MagicMock,
        executor: MagicMock,
        environment: Environment,
        make_pod: Callable[..., Any],
        make_deployment: Callable[..., Any],
        pods_for: Callable[..., Any],
    ) -> None:
        """Should probe the next pod when configured to continue."""
        executor.exec_command.side_effect = [KubernetesError("exec failed"), "0"]
        mock_repository.list_deployments.return_value = [make_deployment("cli")]
        mock_repository.list_pods.side_effect = pods_for(
            {CLI_SELECTOR: [make_pod("cli-abc"), make_pod("cli-def")]}
        )

        decision = make_evaluator(
            mock_repository, executor, on_probe_error=LoopPolicy.CONTINUE
        ).evaluate(environment)

        assert decision.eligible
        assert executor.exec_command.call_count == 2
