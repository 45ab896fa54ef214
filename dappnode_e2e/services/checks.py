"""
Verification checks run against a freshly deployed package.

Each check is an independent awaitable that either returns or raises an
E2EError subclass. None of them depends on another's result.

Checks:
1. ContainerHealthChecker - container stays running over a polling window
2. LogErrorScanner - no error lines in the container logs
3. HttpHealthProbe - healthcheck endpoint answers 2XX
4. AttestationPoller - validator becomes active_online (network specific)
"""

from __future__ import annotations

import asyncio
import re
from typing import Awaitable, Callable, Protocol

import httpx

from dappnode_e2e.core.exceptions import (
    ContainerNotRunningError,
    ErrorLogsFoundError,
    HealthCheckFailedError,
    RemoteOperationError,
    ValidatorNotActiveError,
)
from dappnode_e2e.core.logging import get_logger
from dappnode_e2e.schemas import ContainerStatus, ValidatorStatus
from dappnode_e2e.services.container_runtime import ContainerRuntime
from dappnode_e2e.services.context import RunContext

logger = get_logger("services.checks")

Sleep = Callable[[float], Awaitable[None]]

# Upper bound of the log observation window, in seconds
MAX_ERROR_LOGS_TIMEOUT = 120


# =============================================================================
# Container status
# =============================================================================


class ContainerHealthChecker:
    """
    Poll a container's status a fixed number of rounds.

    max_consecutive_failures sets how many non-running observations in a
    row are tolerated. With the default of 0 the first non-running round
    fails the check. Any running observation resets the counter.
    """

    def __init__(
        self,
        runtime: ContainerRuntime,
        rounds: int = 10,
        interval: float = 1.0,
        max_consecutive_failures: int = 0,
        sleep: Sleep = asyncio.sleep,
    ):
        self.runtime = runtime
        self.rounds = rounds
        self.interval = interval
        self.max_consecutive_failures = max_consecutive_failures
        self._sleep = sleep

    @classmethod
    def from_context(
        cls, runtime: ContainerRuntime, context: RunContext, sleep: Sleep = asyncio.sleep
    ) -> "ContainerHealthChecker":
        return cls(
            runtime,
            rounds=context.container_status_rounds,
            interval=context.container_status_interval,
            max_consecutive_failures=context.container_max_consecutive_failures,
            sleep=sleep,
        )

    @property
    def expected_duration(self) -> float:
        return self.rounds * self.interval

    async def check(self, container_name: str) -> None:
        consecutive_failures = 0
        for attempt in range(1, self.rounds + 1):
            raw_status = await self.runtime.inspect_status(container_name)
            status = ContainerStatus.from_raw(raw_status)

            if status is ContainerStatus.RUNNING:
                consecutive_failures = 0
            else:
                consecutive_failures += 1
                observed = raw_status or status.value
                if consecutive_failures > self.max_consecutive_failures:
                    logger.error(
                        f"  x Container {container_name} is not running. Status: {observed}"
                    )
                    raise ContainerNotRunningError(container_name, observed, attempt)
                logger.warning(
                    f"  - Container {container_name} is {observed} "
                    f"({consecutive_failures}/{self.max_consecutive_failures} tolerated)"
                )

            if attempt < self.rounds:
                await self._sleep(self.interval)


# =============================================================================
# Error logs
# =============================================================================


class LogClassifier(Protocol):
    """Decides whether a log line reports an error."""

    def is_error(self, line: str) -> bool: ...


class RegexLogClassifier:
    """
    Case-insensitive pattern match per line.

    The default flags "error" at line start or after whitespace. It is a
    coarse heuristic: "no error" is also flagged.
    """

    DEFAULT_PATTERN = r"(?:^|\s)error"

    def __init__(self, pattern: str = DEFAULT_PATTERN):
        self._pattern = re.compile(pattern, re.IGNORECASE)

    def is_error(self, line: str) -> bool:
        return bool(self._pattern.search(line))


def clamp_error_logs_timeout(timeout: float) -> float:
    """Observation window in seconds, bounded to [0, MAX_ERROR_LOGS_TIMEOUT]."""
    return max(0, min(timeout, MAX_ERROR_LOGS_TIMEOUT))


class LogErrorScanner:
    """Wait once for the observation window, then scan all container logs."""

    def __init__(
        self,
        runtime: ContainerRuntime,
        classifier: LogClassifier | None = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.runtime = runtime
        self.classifier = classifier or RegexLogClassifier()
        self._sleep = sleep

    def find_errors(self, logs: str) -> list[str]:
        return [line for line in logs.splitlines() if self.classifier.is_error(line)]

    async def check(self, container_name: str, timeout: float) -> None:
        window = clamp_error_logs_timeout(timeout)
        await self._sleep(window)

        logs = await self.runtime.logs(container_name)
        error_lines = self.find_errors(logs)

        if error_lines:
            logger.error(f"  x Error logs found in {container_name}")
            for line in error_lines:
                logger.error(f"    {line}")
            raise ErrorLogsFoundError(container_name, error_lines)


# =============================================================================
# Healthcheck endpoint
# =============================================================================


class HttpHealthProbe:
    """Single GET against the package healthcheck URL."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client

    async def check(self, url: str) -> None:
        try:
            response = await self.client.get(url, follow_redirects=True)
        except httpx.RequestError as exc:
            message = f"Healthcheck endpoint returned {exc}"
            logger.error(f"  x {message}")
            raise HealthCheckFailedError(message, details={"url": url}) from exc

        if not response.is_success:
            message = (
                f"Healthcheck endpoint returned HTTP {response.status_code}"
            )
            logger.error(f"  x {message}")
            raise HealthCheckFailedError(
                message, details={"url": url, "status_code": response.status_code}
            )


# =============================================================================
# Validator attestations
# =============================================================================


class AttestationPoller:
    """
    Wait for a validator to be active_online on beaconcha.in.

    Only networks whose profile carries an attestation policy are polled;
    for every other network the check succeeds without any request. Each
    round waits interval seconds, then queries the validator status. A non
    200 answer is fatal and not retried.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        context: RunContext,
        sleep: Sleep = asyncio.sleep,
    ):
        self.client = client
        self.context = context
        self._sleep = sleep

    @property
    def is_exempt(self) -> bool:
        return self.context.profile.attestation is None

    @property
    def expected_duration(self) -> float:
        if self.is_exempt:
            return 0
        return self.context.attestation_rounds * self.context.attestation_interval

    async def fetch_status(self) -> str | None:
        policy = self.context.profile.attestation
        url = f"{policy.api_base_url.rstrip('/')}/api/v1/validator/{self.context.validator_index}"
        params = {}
        if self.context.beaconchain_api_key:
            params["apikey"] = self.context.beaconchain_api_key

        try:
            response = await self.client.get(
                url, params=params or None, headers={"Accept": "application/json"}
            )
        except httpx.RequestError as exc:
            raise RemoteOperationError(
                f"Error while fetching validator data: {exc}"
            ) from exc

        if response.status_code != 200:
            raise RemoteOperationError(
                "Error while fetching validator data. "
                f"Beaconcha.in returned {response.status_code}",
                details={"status_code": response.status_code},
            )

        payload = response.json()
        return (payload.get("data") or {}).get("status")

    async def check(self) -> None:
        if self.is_exempt:
            logger.debug(
                f"Attestations are not verified on {self.context.network.value}"
            )
            return

        rounds = self.context.attestation_rounds
        interval = self.context.attestation_interval
        logger.info("  - Checking if validator is active")

        for attempt in range(1, rounds + 1):
            await self._sleep(interval)
            status = await self.fetch_status()

            if status == ValidatorStatus.ACTIVE_ONLINE.value:
                logger.info("  ✓ Validator is active")
                return

            if attempt < rounds:
                logger.info(
                    f"  - Validator is not active yet ({status}). "
                    f"Retrying (minutes passed: {attempt * interval / 60:g})"
                )

        error = ValidatorNotActiveError(
            self.context.validator_index or "", rounds, rounds * interval
        )
        logger.error(f"  x {error}")
        raise error
