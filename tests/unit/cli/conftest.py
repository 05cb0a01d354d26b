"""Shared fixtures for CLI tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import pytest


@pytest.fixture(autouse=True)
def mock_configure_logging(mocker: Any) -> MagicMock:
    """Keep CLI invocations from reconfiguring structlog for the session."""
    mocker.patch("environment_idler.cli.commands.run.configure_logging")
    return mocker.patch("environment_idler.cli.main.configure_logging")
