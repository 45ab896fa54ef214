"""DAppManager test API client."""

from __future__ import annotations

from typing import Any, List, Protocol

import httpx

from dappnode_e2e.core.exceptions import RemoteOperationError
from dappnode_e2e.core.logging import get_logger
from dappnode_e2e.schemas import (
    InstalledPackage,
    IpfsClientTargetSetRequest,
    IpfsRepository,
    PackageInstallRequest,
    PackageRemoveRequest,
    StakerConfig,
)

logger = get_logger("services.dappmanager")


class DappmanagerApi(Protocol):
    """Operations of a running DAppManager consumed by the reconciler."""

    async def health_check(self) -> None: ...

    async def packages_get(self) -> List[InstalledPackage]: ...

    async def package_install(self, request: PackageInstallRequest) -> None: ...

    async def package_remove(self, request: PackageRemoveRequest) -> None: ...

    async def staker_config_set(self, config: StakerConfig) -> None: ...

    async def ipfs_client_target_get(self) -> IpfsRepository: ...

    async def ipfs_client_target_set(self, request: IpfsClientTargetSetRequest) -> None: ...


class DappmanagerTestApi:
    """
    HTTP adapter for the DAppManager test API.

    Every route is named after the DAppManager call it proxies. Reads are
    GET requests, mutations are POST requests with a JSON body.
    """

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def _call(self, route: str, body: dict[str, Any] | None = None) -> Any:
        url = f"{self._base_url}/{route}"
        try:
            if body is None:
                response = await self._client.get(url)
            else:
                response = await self._client.post(url, json=body)
            response.raise_for_status()
        except httpx.RequestError as exc:
            logger.warning(f"DAppManager request {route} failed: {exc}")
            raise RemoteOperationError(
                message=f"DAppManager {route} unavailable: {exc}",
                details={"route": route},
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning(f"DAppManager {route} error: {exc.response.status_code}")
            raise RemoteOperationError(
                message=f"DAppManager {route} returned {exc.response.status_code}",
                details={"route": route, "status_code": exc.response.status_code},
            ) from exc

        if not response.content:
            return None
        return response.json()

    async def health_check(self) -> None:
        await self._call("ping")

    async def packages_get(self) -> List[InstalledPackage]:
        data = await self._call("packagesGet")
        return [InstalledPackage.model_validate(item) for item in data or []]

    async def package_install(self, request: PackageInstallRequest) -> None:
        await self._call("packageInstall", request.to_wire())

    async def package_remove(self, request: PackageRemoveRequest) -> None:
        await self._call("packageRemove", request.to_wire())

    async def staker_config_set(self, config: StakerConfig) -> None:
        await self._call("stakerConfigSet", {"stakerConfig": config.to_wire()})

    async def ipfs_client_target_get(self) -> IpfsRepository:
        data = await self._call("ipfsClientTargetGet")
        return IpfsRepository.model_validate(data or {})

    async def ipfs_client_target_set(self, request: IpfsClientTargetSetRequest) -> None:
        await self._call("ipfsClientTargetSet", request.to_wire())
