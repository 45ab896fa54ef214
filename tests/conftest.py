"""Pytest configuration and fixtures."""

from __future__ import annotations

from typing import Callable, Iterable

import httpx
import pytest

from dappnode_e2e.schemas import (
    InstalledPackage,
    IpfsClientTargetSetRequest,
    IpfsRepository,
    Network,
    PackageInstallRequest,
    PackageRemoveRequest,
    StakerConfig,
)
from dappnode_e2e.services.context import RunContext


# =============================================================================
# FAKE COLLABORATORS
# =============================================================================


class FakeDappmanager:
    """In-memory DAppManager that applies and records every call."""

    def __init__(
        self,
        installed: Iterable[str] = (),
        ipfs_target: str = "local",
    ):
        self.installed = [InstalledPackage(name=name, version="0.1.0") for name in installed]
        self.ipfs = IpfsRepository(
            ipfs_client_target=ipfs_target,
            ipfs_gateway="https://gateway.ipfs.dappnode.io",
        )
        self.calls: list[tuple[str, object]] = []

    @property
    def installed_names(self) -> list[str]:
        return [pkg.name for pkg in self.installed]

    def calls_to(self, method: str) -> list[object]:
        return [arg for name, arg in self.calls if name == method]

    @property
    def mutations(self) -> list[tuple[str, object]]:
        reads = {"health_check", "packages_get", "ipfs_client_target_get"}
        return [call for call in self.calls if call[0] not in reads]

    async def health_check(self) -> None:
        self.calls.append(("health_check", None))

    async def packages_get(self) -> list[InstalledPackage]:
        self.calls.append(("packages_get", None))
        return list(self.installed)

    async def package_install(self, request: PackageInstallRequest) -> None:
        self.calls.append(("package_install", request))
        self.installed.append(InstalledPackage(name=request.name, version=request.version))

    async def package_remove(self, request: PackageRemoveRequest) -> None:
        self.calls.append(("package_remove", request))
        self.installed = [pkg for pkg in self.installed if pkg.name != request.name]

    async def staker_config_set(self, config: StakerConfig) -> None:
        self.calls.append(("staker_config_set", config))

    async def ipfs_client_target_get(self) -> IpfsRepository:
        self.calls.append(("ipfs_client_target_get", None))
        return self.ipfs

    async def ipfs_client_target_set(self, request: IpfsClientTargetSetRequest) -> None:
        self.calls.append(("ipfs_client_target_set", request))
        self.ipfs = request.ipfs_repository


class FakeRuntime:
    """
    Container runtime returning scripted observations.

    statuses maps a container to the sequence of states returned by
    successive inspect calls; the last one repeats.
    """

    def __init__(
        self,
        statuses: dict[str, list[str | None]] | None = None,
        logs: dict[str, str] | None = None,
    ):
        self.statuses = statuses or {}
        self.container_logs = logs or {}
        self.inspect_calls: list[str] = []
        self.log_calls: list[str] = []

    async def inspect_status(self, container_name: str) -> str | None:
        self.inspect_calls.append(container_name)
        sequence = self.statuses.get(container_name, ["running"])
        index = min(self.inspect_calls.count(container_name) - 1, len(sequence) - 1)
        return sequence[index]

    async def logs(self, container_name: str) -> str:
        self.log_calls.append(container_name)
        return self.container_logs.get(container_name, "")


class RecordingSleep:
    """Replacement for asyncio.sleep that returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)

    @property
    def total(self) -> float:
        return sum(self.delays)


def mock_client(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
    """AsyncClient whose requests are answered by handler."""
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def fake_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def fake_runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def mainnet_context() -> RunContext:
    return RunContext.for_network(Network.MAINNET)


@pytest.fixture
def prater_context() -> RunContext:
    return RunContext.for_network(Network.PRATER, validator_index="123456")


@pytest.fixture
def undefined_context() -> RunContext:
    return RunContext.for_network(Network.UNDEFINED)


@pytest.fixture
def make_dappmanager() -> type[FakeDappmanager]:
    """Factory for FakeDappmanager instances."""
    return FakeDappmanager


@pytest.fixture
def make_runtime() -> type[FakeRuntime]:
    """Factory for FakeRuntime instances."""
    return FakeRuntime


@pytest.fixture
def make_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Factory for AsyncClients backed by a MockTransport handler."""
    return mock_client
