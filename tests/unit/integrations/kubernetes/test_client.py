"""Unit tests for the Kubernetes client."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from kubernetes.client import ApiException
from kubernetes.config import ConfigException

from environment_idler.integrations.kubernetes.client import KubernetesClient
from environment_idler.integrations.kubernetes.config import KubernetesConfig
from environment_idler.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)


@pytest.mark.unit
@pytest.mark.kubernetes
class TestKubernetesClientInitialization:
    """Test KubernetesClient initialization."""

    @patch("kubernetes.config.load_kube_config")
    def test_init_with_kubeconfig(self, mock_load: MagicMock) -> None:
        """Should load the configured kubeconfig and context."""
        config = KubernetesConfig(kubeconfig="/tmp/kubeconfig", context="staging")

        client = KubernetesClient(config)

        mock_load.assert_called_once_with(config_file="/tmp/kubeconfig", context="staging")
        assert client._current_context == "staging"

    @patch("kubernetes.config.load_incluster_config")
    @patch("kubernetes.config.load_kube_config", side_effect=ConfigException("no kubeconfig"))
    def test_fallback_to_incluster(
        self, mock_load: MagicMock, mock_incluster: MagicMock
    ) -> None:
        """Should fall back to the in-cluster service account."""
        client = KubernetesClient(KubernetesConfig())

        mock_incluster.assert_called_once()
        assert client._current_context == "in-cluster"

    @patch(
        "kubernetes.config.load_incluster_config",
        side_effect=ConfigException("not in cluster"),
    )
    @patch("kubernetes.config.load_kube_config", side_effect=ConfigException("no kubeconfig"))
    def test_no_credentials(self, mock_load: MagicMock, mock_incluster: MagicMock) -> None:
        """Should raise KubernetesConnectionError when nothing can be loaded."""
        with pytest.raises(KubernetesConnectionError) as exc_info:
            KubernetesClient(KubernetesConfig())

        assert isinstance(exc_info.value.original_error, ConfigException)

    @patch("kubernetes.config.load_kube_config")
    def test_timeouts_exposed(self, mock_load: MagicMock) -> None:
        """Should expose the configured timeouts."""
        client = KubernetesClient(KubernetesConfig(request_timeout=5, exec_timeout=15))

        assert client.request_timeout == 5
        assert client.exec_timeout == 15

    @patch("kubernetes.client.CoreV1Api")
    @patch("kubernetes.config.load_kube_config")
    def test_api_groups_are_lazy(self, mock_load: MagicMock, mock_core: MagicMock) -> None:
        """Should create API group instances once, on first use."""
        client = KubernetesClient(KubernetesConfig())
        mock_core.assert_not_called()

        assert client.core_v1 is client.core_v1
        mock_core.assert_called_once()

        client.close()
        assert client._core_v1 is None


@pytest.mark.unit
@pytest.mark.kubernetes
class TestTranslateApiException:
    """Test ApiException translation."""

    @pytest.mark.parametrize(
        ("status", "expected"),
        [
            (401, KubernetesAuthError),
            (403, KubernetesAuthError),
            (404, KubernetesNotFoundError),
            (400, KubernetesValidationError),
            (422, KubernetesValidationError),
        ],
    )
    def test_status_mapping(self, status: int, expected: type[KubernetesError]) -> None:
        """Should map HTTP status codes to exception types."""
        error = KubernetesClient.translate_api_exception(
            ApiException(status=status, reason="reason"), "Deployment", "nginx", "drupal-main"
        )
        assert isinstance(error, expected)

    def test_conflict_is_plain_error(self) -> None:
        """Should not single out 409; merge patches carry no resourceVersion."""
        error = KubernetesClient.translate_api_exception(
            ApiException(status=409, reason="Conflict"), "Deployment", "nginx", "drupal-main"
        )

        assert type(error) is KubernetesError
        assert error.status_code == 409

    def test_rejected_patch_keeps_resource(self) -> None:
        """Should name the object whose patch was rejected."""
        error = KubernetesClient.translate_api_exception(
            ApiException(status=422, reason="Unprocessable Entity"),
            "Ingress",
            "web",
            "drupal-main",
        )

        assert isinstance(error, KubernetesValidationError)
        assert error.resource == "Ingress/web"
        assert str(error) == "Unprocessable Entity (status: 422) [Ingress/web in drupal-main]"

    def test_other_status(self) -> None:
        """Should keep the status code for unmapped errors."""
        error = KubernetesClient.translate_api_exception(
            ApiException(status=500, reason="Internal Server Error"), "Pod", "cli", "ns"
        )

        assert type(error) is KubernetesError
        assert error.status_code == 500
        assert error.resource_name == "cli"

    def test_non_api_exception(self) -> None:
        """Should wrap arbitrary exceptions."""
        error = KubernetesClient.translate_api_exception(TimeoutError("read timed out"), "Pod")

        assert type(error) is KubernetesError
        assert error.message == "read timed out"

    def test_kubernetes_error_passthrough(self) -> None:
        """Should return an existing KubernetesError unchanged."""
        original = KubernetesNotFoundError(resource_type="Pod", resource_name="cli")

        assert KubernetesClient.translate_api_exception(original) is original
