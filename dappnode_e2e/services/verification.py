"""
Verification orchestrator - run every check and report failures jointly.

No check's failure prevents another check from running. Failures are
collected in declaration order and raised as one VerificationFailedError
once every check has finished.

Usage:
    await execute_test_checkers(
        dnp_name="geth.dnp.dappnode.eth",
        services=["geth"],
        context=context,
        runtime=runtime,
        http_client=client,
        error_logs_timeout=30,
    )
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence, TypeVar

import httpx

from dappnode_e2e.core.exceptions import (
    CheckTimeoutError,
    RunCancelledError,
    VerificationFailedError,
)
from dappnode_e2e.core.logging import dnp_name_var, get_logger
from dappnode_e2e.params import get_container_name
from dappnode_e2e.services.checks import (
    AttestationPoller,
    ContainerHealthChecker,
    HttpHealthProbe,
    LogClassifier,
    LogErrorScanner,
    Sleep,
    clamp_error_logs_timeout,
)
from dappnode_e2e.services.container_runtime import ContainerRuntime
from dappnode_e2e.services.context import RunContext

logger = get_logger("services.verification")

T = TypeVar("T")


@dataclass
class VerificationCheck:
    """One independent check and how long it may take."""

    name: str
    run: Callable[[], Awaitable[None]]
    success_message: str
    timeout: float | None = None


class ErrorAggregator:
    """Collects failures of independent checks in order."""

    def __init__(self) -> None:
        self._failures: list[tuple[str, Exception]] = []

    def record(self, check_name: str, error: Exception) -> None:
        self._failures.append((check_name, error))

    @property
    def errors(self) -> list[Exception]:
        return [error for _, error in self._failures]

    @property
    def failed_checks(self) -> list[str]:
        return [name for name, _ in self._failures]

    @property
    def has_failures(self) -> bool:
        return bool(self._failures)

    def raise_if_failed(self) -> None:
        """Raise a single error joining every recorded failure."""
        if self._failures:
            raise VerificationFailedError(self.errors)


async def _run_check(check: VerificationCheck) -> Exception | None:
    """Run a check, returning its failure instead of raising it."""
    try:
        if check.timeout is None:
            await check.run()
        else:
            await asyncio.wait_for(check.run(), timeout=check.timeout)
    except asyncio.TimeoutError:
        error = CheckTimeoutError(check.name, check.timeout or 0)
        logger.error(f"  x {error}")
        return error
    except Exception as exc:
        logger.debug(f"Check {check.name} failed: {exc}")
        return exc

    logger.info(f"  ✓ {check.success_message}")
    return None


async def _run_sequentially(checks: Sequence[VerificationCheck]) -> list[Exception | None]:
    return [await _run_check(check) for check in checks]


async def _until_cancelled(work: Awaitable[T], cancel_event: asyncio.Event | None) -> T:
    """Await work, aborting it as soon as cancel_event is set."""
    if cancel_event is None:
        return await work

    work_task = asyncio.ensure_future(work)
    cancel_task = asyncio.ensure_future(cancel_event.wait())
    try:
        done, _ = await asyncio.wait(
            {work_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED
        )
    except asyncio.CancelledError:
        work_task.cancel()
        raise
    finally:
        cancel_task.cancel()

    if work_task in done:
        return work_task.result()

    work_task.cancel()
    await asyncio.gather(work_task, return_exceptions=True)
    logger.warning("Verification cancelled, in-flight checks aborted")
    raise RunCancelledError()


async def run_checks(
    checks: Sequence[VerificationCheck],
    concurrent: bool = True,
    cancel_event: asyncio.Event | None = None,
) -> ErrorAggregator:
    """Run every check to completion and collect the failures."""
    if concurrent:
        work = asyncio.gather(*(_run_check(check) for check in checks))
    else:
        work = _run_sequentially(checks)

    outcomes = await _until_cancelled(work, cancel_event)

    aggregator = ErrorAggregator()
    for check, outcome in zip(checks, outcomes):
        if outcome is not None:
            aggregator.record(check.name, outcome)
    return aggregator


def build_checks(
    dnp_name: str,
    services: Iterable[str],
    context: RunContext,
    runtime: ContainerRuntime,
    http_client: httpx.AsyncClient,
    error_logs_timeout: float,
    health_check_url: str | None = None,
    classifier: LogClassifier | None = None,
    sleep: Sleep = asyncio.sleep,
) -> list[VerificationCheck]:
    """Declare the checks of a deployed package, in reporting order."""
    margin = context.check_timeout_margin
    status_checker = ContainerHealthChecker.from_context(runtime, context, sleep=sleep)
    log_scanner = LogErrorScanner(runtime, classifier=classifier, sleep=sleep)
    log_window = clamp_error_logs_timeout(error_logs_timeout)

    checks: list[VerificationCheck] = []
    for service in services:
        container_name = get_container_name(dnp_name, service)
        checks.append(
            VerificationCheck(
                name=f"container:{container_name}",
                run=lambda name=container_name: status_checker.check(name),
                success_message=f"Container {container_name} is running",
                timeout=status_checker.expected_duration + margin,
            )
        )
        checks.append(
            VerificationCheck(
                name=f"logs:{container_name}",
                run=lambda name=container_name: log_scanner.check(name, error_logs_timeout),
                success_message=f"No error logs found in {container_name}",
                timeout=log_window + margin,
            )
        )

    if health_check_url:
        probe = HttpHealthProbe(http_client)
        checks.append(
            VerificationCheck(
                name="healthcheck",
                run=lambda: probe.check(health_check_url),
                success_message="Healthcheck endpoint returned 2XX",
                timeout=margin,
            )
        )
    else:
        logger.debug("No healthcheck URL, skipping healthcheck")

    if context.network.is_defined:
        poller = AttestationPoller(http_client, context, sleep=sleep)
        checks.append(
            VerificationCheck(
                name="attestation",
                run=poller.check,
                success_message="Attestation proof",
                timeout=poller.expected_duration + margin,
            )
        )

    return checks


async def execute_test_checkers(
    dnp_name: str,
    services: Iterable[str],
    context: RunContext,
    runtime: ContainerRuntime,
    http_client: httpx.AsyncClient,
    error_logs_timeout: float,
    health_check_url: str | None = None,
    classifier: LogClassifier | None = None,
    cancel_event: asyncio.Event | None = None,
    sleep: Sleep = asyncio.sleep,
) -> None:
    """
    Verify a deployed package.

    Raises:
        VerificationFailedError: If any check failed, listing every failure.
        RunCancelledError: If cancel_event was set before all checks finished.
    """
    token = dnp_name_var.set(dnp_name)
    try:
        checks = build_checks(
            dnp_name,
            services,
            context,
            runtime,
            http_client,
            error_logs_timeout,
            health_check_url=health_check_url,
            classifier=classifier,
            sleep=sleep,
        )
        logger.info(f"Running {len(checks)} checks on {dnp_name}")
        aggregator = await run_checks(
            checks, concurrent=context.concurrent, cancel_event=cancel_event
        )
        if aggregator.has_failures:
            logger.error(
                f"{len(aggregator.errors)} of {len(checks)} checks failed: "
                + ", ".join(aggregator.failed_checks)
            )
        aggregator.raise_if_failed()
    finally:
        dnp_name_var.reset(token)
