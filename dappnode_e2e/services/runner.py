"""End-to-end test run: reconcile the DAppNode, install, verify."""

from __future__ import annotations

import asyncio
from typing import Sequence

import httpx

from dappnode_e2e.core.config import Settings
from dappnode_e2e.core.exceptions import ConfigurationError
from dappnode_e2e.core.logging import get_logger
from dappnode_e2e.schemas import PackageInstallRequest
from dappnode_e2e.services.container_runtime import ContainerRuntime, DockerContainerRuntime
from dappnode_e2e.services.context import RunContext
from dappnode_e2e.services.dappmanager import DappmanagerApi, DappmanagerTestApi
from dappnode_e2e.services.environment import ensure_dappnode_environment
from dappnode_e2e.services.verification import execute_test_checkers

logger = get_logger("services.runner")


async def run_end_to_end_test(
    settings: Settings,
    dnp_name: str,
    services: Sequence[str],
    version: str | None = None,
    health_check_url: str | None = None,
    error_logs_timeout: float = 30,
    cancel_event: asyncio.Event | None = None,
    http_client: httpx.AsyncClient | None = None,
    api: DappmanagerApi | None = None,
    runtime: ContainerRuntime | None = None,
) -> None:
    """
    Run the whole end-to-end stage for one package.

    Reconciliation errors abort the run immediately. Verification errors are
    reported together at the end as a VerificationFailedError.

    Args:
        settings: Loaded settings, the only source of environment input
        dnp_name: Package under test
        services: Compose service names of the package
        version: Version or release hash to install first, None to skip
        health_check_url: Optional healthcheck endpoint of the package
        error_logs_timeout: Seconds to observe logs before scanning them
        cancel_event: Set it to abort verification
        http_client, api, runtime: Collaborators, built from settings when omitted
    """
    if not services:
        raise ConfigurationError(f"No compose services given for {dnp_name}")

    context = RunContext.from_settings(settings)

    owns_client = http_client is None
    if http_client is None:
        http_client = httpx.AsyncClient(timeout=settings.http_timeout)
    owns_runtime = runtime is None

    try:
        if runtime is None:
            runtime = DockerContainerRuntime(call_timeout=settings.docker_call_timeout)
        api = api or DappmanagerTestApi(http_client, settings.dappmanager_test_api_url)

        await ensure_dappnode_environment(
            api, http_client, context, alias=settings.dappmanager_alias
        )

        if version:
            logger.info(f"Installing {dnp_name} ({version})")
            await api.package_install(PackageInstallRequest(name=dnp_name, version=version))

        await execute_test_checkers(
            dnp_name,
            services,
            context,
            runtime,
            http_client,
            error_logs_timeout,
            health_check_url=health_check_url,
            cancel_event=cancel_event,
        )
        logger.info(f"End to end tests passed for {dnp_name}")
    finally:
        if owns_client:
            await http_client.aclose()
        if owns_runtime and isinstance(runtime, DockerContainerRuntime):
            runtime.close()
