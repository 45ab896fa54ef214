"""Container runtime access through the Docker SDK."""

from __future__ import annotations

import asyncio
from typing import Callable, Protocol, TypeVar

import docker
from docker.errors import DockerException, NotFound

from dappnode_e2e.core.exceptions import RemoteOperationError
from dappnode_e2e.core.logging import get_logger

logger = get_logger("services.container_runtime")

T = TypeVar("T")


class ContainerRuntime(Protocol):
    """Read-only container operations used by the verification checks."""

    async def inspect_status(self, container_name: str) -> str | None:
        """Raw state string of the container, None if it does not exist."""
        ...

    async def logs(self, container_name: str) -> str:
        """All stdout and stderr lines of the container, timestamped."""
        ...


class DockerContainerRuntime:
    """
    ContainerRuntime backed by the Docker daemon.

    The Docker SDK is blocking, so every call runs in a worker thread and is
    bounded by call_timeout.
    """

    def __init__(
        self,
        client: docker.DockerClient | None = None,
        call_timeout: float = 30.0,
    ):
        if client is None:
            try:
                client = docker.from_env()
            except DockerException as exc:
                logger.error(f"Docker daemon unavailable: {exc}")
                raise RemoteOperationError(f"Docker daemon unavailable: {exc}") from exc
        self._client = client
        self._call_timeout = call_timeout

    async def _run(self, what: str, func: Callable[[], T]) -> T:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(func), timeout=self._call_timeout
            )
        except asyncio.TimeoutError as exc:
            raise RemoteOperationError(
                f"Docker {what} timed out after {self._call_timeout:g}s"
            ) from exc
        except DockerException as exc:
            logger.warning(f"Docker {what} failed: {exc}")
            raise RemoteOperationError(f"Docker {what} failed: {exc}") from exc

    async def inspect_status(self, container_name: str) -> str | None:
        def _inspect() -> str | None:
            try:
                container = self._client.containers.get(container_name)
            except NotFound:
                return None
            return container.attrs.get("State", {}).get("Status", container.status)

        return await self._run(f"inspect {container_name}", _inspect)

    async def logs(self, container_name: str) -> str:
        def _logs() -> str:
            container = self._client.containers.get(container_name)
            raw = container.logs(stdout=True, stderr=True, timestamps=True)
            return raw.decode("utf-8", errors="replace")

        return await self._run(f"logs {container_name}", _logs)

    def close(self) -> None:
        self._client.close()
