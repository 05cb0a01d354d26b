"""Shared pytest fixtures for environment_idler tests."""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest
import structlog
import typer
from typer.testing import CliRunner

from environment_idler.cli.main import app


@pytest.fixture
def cli_runner() -> CliRunner:
    """Create a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def temp_config_file(tmp_path: Path) -> Path:
    """Create a temporary idler config file."""
    config_path = tmp_path / "idler.yaml"
    config_path.write_text(
        """
idle_minutes: 60
check_interval: 2h
prometheus:
  url: http://prometheus.test:9090
selectors:
  service:
    skip_hit_check: true
"""
    )
    return config_path


@pytest.fixture(autouse=True)
def reset_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset environment variables for each test."""
    # Clear any IDLER_ prefixed environment variables
    for key in list(os.environ.keys()):
        if key.startswith("IDLER_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def reset_structlog() -> Generator[None]:
    """Drop structlog configuration made by a test."""
    yield
    structlog.reset_defaults()


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the CLI app for testing."""
    return app
