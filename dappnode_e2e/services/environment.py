"""
Environment reconciliation - drive the test DAppNode to its desired state.

Runs before any verification check. Every step is fail-fast: a
RemoteOperationError raised by the DAppManager aborts the whole run since
the checks assume a known package set.

Steps:
1. Host resolves the DAppManager alias
2. DAppManager answers its health check
3. Extra packages are removed
4. Staker configuration of the network is pushed
5. Required non staker packages are installed
6. IPFS runs in local mode
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Collection, Iterable, Sequence

import httpx

from dappnode_e2e.core.logging import get_logger
from dappnode_e2e.params import DEFAULT_VERSION, NON_STAKER_PACKAGES, packages_to_keep
from dappnode_e2e.schemas import (
    InstalledPackage,
    IpfsClientTarget,
    IpfsClientTargetSetRequest,
    Network,
    PackageInstallRequest,
    PackageRemoveRequest,
)
from dappnode_e2e.services.context import RunContext
from dappnode_e2e.services.dappmanager import DappmanagerApi
from dappnode_e2e.services.host_alias import DAPPMANAGER_ALIAS, ensure_alias_resolves

logger = get_logger("services.environment")


@dataclass
class ReconciliationPlan:
    """Mutations needed to reach the desired package set."""

    to_remove: list[str] = field(default_factory=list)
    to_install: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.to_remove or self.to_install)


class PackageSetReconciler:
    """Remove packages outside the keep-list and install required ones."""

    def __init__(
        self,
        api: DappmanagerApi,
        required: Sequence[str] = NON_STAKER_PACKAGES,
        keep_list: Callable[[Network], Collection[str]] = packages_to_keep,
        version: str = DEFAULT_VERSION,
    ):
        self.api = api
        self.required = tuple(required)
        self.keep_list = keep_list
        self.version = version

    def extras(
        self, installed: Iterable[InstalledPackage], network: Network
    ) -> list[str]:
        keep = self.keep_list(network)
        return [pkg.name for pkg in installed if pkg.name not in keep]

    def missing(self, installed: Iterable[InstalledPackage]) -> list[str]:
        installed_names = {pkg.name for pkg in installed}
        return [name for name in self.required if name not in installed_names]

    def plan(
        self, installed: Sequence[InstalledPackage], network: Network
    ) -> ReconciliationPlan:
        """Compute removals and installs without touching the environment."""
        return ReconciliationPlan(
            to_remove=self.extras(installed, network),
            to_install=self.missing(installed),
        )

    async def reconcile(
        self,
        network: Network,
        after_removal: Callable[[], Awaitable[object]] | None = None,
    ) -> ReconciliationPlan:
        """
        Apply the plan for the currently installed packages.

        Required packages are always in the keep-list, so a plan computed
        once stays valid after the removals. after_removal runs between the
        removals and the installs.
        """
        installed = await self.api.packages_get()
        plan = self.plan(installed, network)

        for name in plan.to_remove:
            logger.info(f"  - Removing package {name} from the DAppNode environment")
            await self.api.package_remove(
                PackageRemoveRequest(name=name, delete_volumes=True)
            )

        if after_removal is not None:
            await after_removal()

        for name in plan.to_install:
            logger.info(f"  - Installing package {name} in the DAppNode environment")
            await self.api.package_install(
                PackageInstallRequest(name=name, version=self.version)
            )

        if plan.is_empty:
            logger.debug("Package set already matches the desired state")
        return plan


class StakerConfigSynchronizer:
    """Push the staker configuration of the run network, overwriting it."""

    def __init__(self, api: DappmanagerApi):
        self.api = api

    async def sync(self, context: RunContext) -> bool:
        config = context.profile.staker_config
        if config is None:
            return False
        logger.info(f"  - Persisting {context.network.value} staker configuration")
        await self.api.staker_config_set(config)
        return True


class IpfsModeEnforcer:
    """Make sure the IPFS client target is local."""

    def __init__(self, api: DappmanagerApi):
        self.api = api

    async def enforce(self) -> bool:
        """Returns True when the mode had to be switched."""
        repository = await self.api.ipfs_client_target_get()
        if repository.is_local:
            return False

        logger.info("  - IPFS is not in local mode. Switching to local mode...")
        await self.api.ipfs_client_target_set(
            IpfsClientTargetSetRequest(
                ipfs_repository=repository.model_copy(
                    update={"ipfs_client_target": IpfsClientTarget.LOCAL.value}
                ),
                delete_local_ipfs_client=False,
            )
        )
        return True


async def ensure_dappnode_environment(
    api: DappmanagerApi,
    http_client: httpx.AsyncClient,
    context: RunContext,
    alias: str = DAPPMANAGER_ALIAS,
    reconciler: PackageSetReconciler | None = None,
) -> None:
    """Ensure the DAppNode environment is ready to run the integration tests."""
    await ensure_alias_resolves(http_client, alias)
    await api.health_check()

    reconciler = reconciler or PackageSetReconciler(api)
    synchronizer = StakerConfigSynchronizer(api)
    await reconciler.reconcile(
        context.network, after_removal=lambda: synchronizer.sync(context)
    )

    await IpfsModeEnforcer(api).enforce()
    logger.info("DAppNode environment is ready")
