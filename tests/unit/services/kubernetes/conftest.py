"""Shared fixtures for Kubernetes service tests."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from environment_idler.integrations.kubernetes.client import KubernetesClient


@pytest.fixture
def mock_k8s_client() -> MagicMock:
    """Create a mock Kubernetes client with API sub-mocks.

    ``core_v1``, ``apps_v1`` and ``networking_v1`` are auto-created
    MagicMocks; error translation is the real one.
    """
    mock_client = MagicMock()
    mock_client.request_timeout = 30
    mock_client.exec_timeout = 30
    mock_client.translate_api_exception.side_effect = KubernetesClient.translate_api_exception
    return mock_client
