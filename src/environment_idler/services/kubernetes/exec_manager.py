"""Non-interactive command execution inside pods."""

from __future__ import annotations

from typing import Any

from environment_idler.integrations.kubernetes.exceptions import KubernetesError
from environment_idler.services.kubernetes.base import K8sBaseManager


class PodExecManager(K8sBaseManager):
    """Runs a command in a pod and collects its stdout.

    Sessions are opened without stdin or a TTY and are bounded by the
    client's exec timeout.
    """

    _entity_name = "exec"

    def exec_command(
        self,
        pod_name: str,
        namespace: str,
        command: list[str],
        *,
        container: str | None = None,
    ) -> str:
        """Execute a command in a pod container and return its stdout.

        Args:
            pod_name: Pod name.
            namespace: Target namespace.
            command: Command and arguments.
            container: Specific container name (first container if None).

        Returns:
            Everything the command wrote to stdout.

        Raises:
            KubernetesError: If the session cannot be opened, does not finish
                within the exec timeout, or the command exits non-zero.
        """
        import kubernetes.stream

        self._log.debug("exec_command", pod=pod_name, namespace=namespace, command=command)

        kwargs: dict[str, Any] = {
            "name": pod_name,
            "namespace": namespace,
            "command": command,
            "stdin": False,
            "stdout": True,
            "stderr": True,
            "tty": False,
            "_preload_content": False,
        }
        if container:
            kwargs["container"] = container

        try:
            ws_client = kubernetes.stream.stream(
                self._client.core_v1.connect_get_namespaced_pod_exec,
                **kwargs,
            )
        except Exception as e:
            self._handle_api_error(e, "Pod", pod_name, namespace)

        try:
            ws_client.run_forever(timeout=self._client.exec_timeout)
            if ws_client.is_open():
                raise KubernetesError(
                    message=f"exec did not finish within {self._client.exec_timeout}s",
                    resource_type="Pod",
                    resource_name=pod_name,
                    namespace=namespace,
                )
            stdout = str(ws_client.read_stdout() or "")
            stderr = str(ws_client.read_stderr() or "")
            returncode = ws_client.returncode
        except KubernetesError:
            raise
        except Exception as e:
            self._handle_api_error(e, "Pod", pod_name, namespace)
        finally:
            ws_client.close()

        if returncode:
            raise KubernetesError(
                message=f"command exited with code {returncode}: {stderr.strip()}",
                resource_type="Pod",
                resource_name=pod_name,
                namespace=namespace,
            )
        return stdout
