"""Shared fixtures for observability integration tests."""

from __future__ import annotations

from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest


@pytest.fixture
def mock_httpx_client(mocker: Any) -> MagicMock:
    """Replace httpx.Client so the Prometheus client builds this mock."""
    mock_client = MagicMock(spec=httpx.Client)
    mocker.patch("httpx.Client", return_value=mock_client)
    return mock_client


def json_response(payload: Any, status_code: int = 200) -> MagicMock:
    response = MagicMock(spec=httpx.Response)
    response.status_code = status_code
    response.json.return_value = payload
    response.text = str(payload)
    return response


@pytest.fixture
def make_response() -> Any:
    """Factory for canned httpx responses."""
    return json_response
