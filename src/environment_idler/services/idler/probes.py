"""Activity and traffic probes.

The activity probe counts user processes inside a CLI pod; the traffic probe
asks the metrics backend how many requests an environment's ingresses served
within a window.
"""

from __future__ import annotations

from datetime import UTC, datetime

import structlog

from environment_idler.integrations.kubernetes.exceptions import KubernetesError
from environment_idler.integrations.observability.clients.base import ObservabilityClientError
from environment_idler.services.idler.exceptions import (
    ProbeExecError,
    ProbeParseError,
    QueryError,
)
from environment_idler.services.idler.protocols import MetricsQuerier, PodExecutor

logger = structlog.get_logger()

# Anything whose parent is PID 0 is a session started through the API
# (exec, attach); the first two lines are the container's own init processes.
PROCESS_COUNT_COMMAND = ["/bin/sh", "-c", "pgrep -P 0|tail -n +3|wc -l|tr -d ' '"]

TRAFFIC_QUERY_TEMPLATE = (
    'round(sum(increase({metric}{{exported_namespace="{namespace}"}}[{window}])) by (status))'
)


def parse_process_count(trimmed_output: str) -> int:
    """Derive the active process count from trimmed probe output.

    Only the last character is read, as a single decimal digit, so "12"
    yields 2 and any count of ten or more is misread.

    Raises:
        ProbeParseError: If the output is empty or its last character is
            not a digit.
    """
    if not trimmed_output:
        raise ProbeParseError("empty probe output")
    last = trimmed_output[-1]
    if not last.isdigit() or not last.isascii():
        raise ProbeParseError(f"unexpected probe output: {trimmed_output!r}")
    return int(last)


def build_traffic_query(metric: str, namespace: str, window: str) -> str:
    """Render the request-count query for one namespace and window."""
    return TRAFFIC_QUERY_TEMPLATE.format(metric=metric, namespace=namespace, window=window)


class ActivityProbe:
    """Counts non-init processes in a pod through the exec API."""

    def __init__(self, executor: PodExecutor) -> None:
        self._executor = executor

    def probe(self, pod_name: str, namespace: str) -> str:
        """Run the process count command and return its raw stdout.

        Raises:
            ProbeExecError: If the exec session fails. Never retried.
        """
        try:
            return self._executor.exec_command(pod_name, namespace, PROCESS_COUNT_COMMAND)
        except KubernetesError as e:
            raise ProbeExecError(str(e), resource=pod_name) from e


class TrafficProbe:
    """Sums ingress request counts for a namespace over a window."""

    def __init__(self, querier: MetricsQuerier, metric: str) -> None:
        self._querier = querier
        self._metric = metric

    def hits(self, namespace: str, window: str, at: datetime | None = None) -> int:
        """Total requests across all status codes within ``window``.

        Args:
            namespace: Exported namespace label to filter on.
            window: Prometheus range duration, e.g. "4h".
            at: Evaluation time (default: now).

        Raises:
            QueryError: If the backend fails or a sample is not a finite
                number. NaN and infinite samples are rejected, not zeroed.
        """
        query = build_traffic_query(self._metric, namespace, window)
        at = at or datetime.now(UTC)
        logger.debug("querying_traffic", namespace=namespace, window=window, query=query)
        try:
            series = self._querier.query(query, time=at)
        except ObservabilityClientError as e:
            raise QueryError(e.message, resource=namespace) from e

        total = 0
        for item in series:
            try:
                value = item.get("value") or [None, "0"]
                total += int(float(value[1]))
            except (AttributeError, TypeError, ValueError, IndexError, OverflowError) as e:
                raise QueryError(f"unusable sample {item!r}", resource=namespace) from e
        return total
