"""Check that a Docker alias resolves from the host."""

from __future__ import annotations

import httpx

from dappnode_e2e.core.exceptions import EnvironmentNotReadyError
from dappnode_e2e.core.logging import get_logger

logger = get_logger("services.host_alias")

DAPPMANAGER_ALIAS = "dappmanager.dappnode"


async def ensure_alias_resolves(
    client: httpx.AsyncClient, alias: str = DAPPMANAGER_ALIAS
) -> None:
    """
    Request http://{alias} once and require a 2XX answer.

    Raises:
        EnvironmentNotReadyError: On transport errors or non 2XX responses.
    """
    try:
        response = await client.get(f"http://{alias}", follow_redirects=True)
    except httpx.RequestError as exc:
        raise EnvironmentNotReadyError(
            f"Could not resolve {alias} from host: {exc}",
            details={"alias": alias},
        ) from exc

    if not response.is_success:
        raise EnvironmentNotReadyError(
            f"Could not resolve {alias} from host: Response status code is {response.status_code}",
            details={"alias": alias, "status_code": response.status_code},
        )

    logger.debug(f"{alias} resolves from host")
