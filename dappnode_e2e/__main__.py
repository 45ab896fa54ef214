"""Run the end-to-end stage configured through E2E_* environment variables."""

from __future__ import annotations

import asyncio
import sys

from dappnode_e2e.core.config import get_settings
from dappnode_e2e.core.exceptions import ConfigurationError, E2EError
from dappnode_e2e.core.logging import get_logger, setup_logging
from dappnode_e2e.services.runner import run_end_to_end_test

logger = get_logger("main")


async def main() -> int:
    settings = get_settings()
    setup_logging(settings)

    try:
        if not settings.e2e_dnp_name:
            raise ConfigurationError("E2E_DNP_NAME env var not found")
        await run_end_to_end_test(
            settings,
            dnp_name=settings.e2e_dnp_name,
            services=settings.e2e_services or [settings.e2e_dnp_name],
            version=settings.e2e_version,
            health_check_url=settings.e2e_health_check_url,
            error_logs_timeout=settings.e2e_error_logs_timeout,
        )
    except E2EError as exc:
        logger.error(f"End to end tests failed [{exc.error_code}]:\n{exc.message}")
        return 1
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
