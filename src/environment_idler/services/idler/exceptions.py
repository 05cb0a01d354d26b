"""Idler error taxonomy.

None of these escape an idling pass: evaluators and actuators catch them,
log the affected resource and decide how much of the pass to abandon.
"""

from __future__ import annotations


class IdlerError(Exception):
    """Base exception for the idling core."""

    def __init__(self, message: str, resource: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.resource = resource


class IdlerConfigError(IdlerError):
    """Raised when the idler configuration file is missing or invalid."""

    def __init__(self, message: str, details: str | None = None) -> None:
        super().__init__(message)
        self.details = details


class ListingError(IdlerError):
    """A build, deployment, pod, ingress or namespace listing failed."""


class ProbeExecError(IdlerError):
    """The activity probe could not run its command inside a pod."""


class ProbeParseError(IdlerError):
    """The activity probe returned output that is not a digit."""


class QueryError(IdlerError):
    """The traffic query against the metrics backend failed."""


class PatchError(IdlerError):
    """A merge patch against a deployment or ingress failed."""
