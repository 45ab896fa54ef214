"""Tests for the verification orchestrator and error aggregation."""

from __future__ import annotations

import asyncio

import httpx
import pytest

from dappnode_e2e.core.exceptions import (
    CheckTimeoutError,
    ContainerNotRunningError,
    E2EError,
    ErrorLogsFoundError,
    RunCancelledError,
    VerificationFailedError,
)
from dappnode_e2e.services.verification import (
    ErrorAggregator,
    VerificationCheck,
    build_checks,
    execute_test_checkers,
    run_checks,
)

DNP_NAME = "geth.dnp.dappnode.eth"
GETH = "DAppNodePackage-geth.geth.dnp.dappnode.eth"
VALIDATOR = "DAppNodePackage-validator.geth.dnp.dappnode.eth"


def _check(name: str, run, timeout: float | None = None) -> VerificationCheck:
    return VerificationCheck(name=name, run=run, success_message=f"{name} ok", timeout=timeout)


class TestErrorAggregator:
    """Tests for ErrorAggregator."""

    def test_empty_does_not_raise(self):
        aggregator = ErrorAggregator()
        aggregator.raise_if_failed()
        assert not aggregator.has_failures

    def test_joins_messages_in_order(self):
        aggregator = ErrorAggregator()
        aggregator.record("a", E2EError("first failure"))
        aggregator.record("b", E2EError("second failure"))

        with pytest.raises(VerificationFailedError) as exc_info:
            aggregator.raise_if_failed()

        assert str(exc_info.value) == "first failure\nsecond failure"
        assert aggregator.failed_checks == ["a", "b"]
        assert exc_info.value.details == {"failures": 2}


class TestRunChecks:
    """Tests for run_checks."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrent", [True, False])
    async def test_fail_pass_fail(self, concurrent):
        """Every check runs; both failures are reported, in declaration order."""
        executed = []

        async def fail_a():
            executed.append("a")
            raise E2EError("failure A")

        async def passes():
            executed.append("pass")

        async def fail_b():
            executed.append("b")
            raise E2EError("failure B")

        aggregator = await run_checks(
            [_check("a", fail_a), _check("pass", passes), _check("b", fail_b)],
            concurrent=concurrent,
        )

        assert sorted(executed) == ["a", "b", "pass"]
        with pytest.raises(VerificationFailedError) as exc_info:
            aggregator.raise_if_failed()
        assert str(exc_info.value) == "failure A\nfailure B"

    @pytest.mark.asyncio
    async def test_order_is_declaration_order_not_completion(self):
        """Concurrent failures are still reported in declaration order."""

        async def slow():
            await asyncio.sleep(0.05)
            raise E2EError("slow")

        async def fast():
            raise E2EError("fast")

        aggregator = await run_checks([_check("slow", slow), _check("fast", fast)])

        assert aggregator.failed_checks == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_timeout_is_a_failure(self):
        """A hanging check is recorded as CheckTimeoutError, others still run."""
        ran = []

        async def hangs():
            await asyncio.sleep(10)

        async def quick():
            ran.append("quick")

        aggregator = await run_checks(
            [_check("hangs", hangs, timeout=0.01), _check("quick", quick)]
        )

        assert ran == ["quick"]
        assert len(aggregator.errors) == 1
        assert isinstance(aggregator.errors[0], CheckTimeoutError)
        assert aggregator.errors[0].check_name == "hangs"

    @pytest.mark.asyncio
    async def test_cancel_event_aborts_polling(self):
        """Setting the cancel event stops in-flight checks promptly."""
        cancel_event = asyncio.Event()
        cancelled = []

        async def polls_forever():
            try:
                while True:
                    await asyncio.sleep(0.01)
            except asyncio.CancelledError:
                cancelled.append(True)
                raise

        async def cancel_soon():
            await asyncio.sleep(0.02)
            cancel_event.set()

        canceller = asyncio.create_task(cancel_soon())
        with pytest.raises(RunCancelledError):
            await asyncio.wait_for(
                run_checks([_check("poll", polls_forever)], cancel_event=cancel_event),
                timeout=1,
            )
        await canceller

        assert cancelled == [True]

    @pytest.mark.asyncio
    async def test_cancel_event_unused(self):
        """An event that is never set does not change the outcome."""

        async def passes():
            return None

        aggregator = await run_checks(
            [_check("pass", passes)], cancel_event=asyncio.Event()
        )

        assert not aggregator.has_failures


class TestBuildChecks:
    """Tests for build_checks."""

    def test_checks_per_service_and_network(
        self, make_runtime, make_client, prater_context
    ):
        client = make_client(lambda request: httpx.Response(200))
        checks = build_checks(
            DNP_NAME,
            ["geth", "validator"],
            prater_context,
            make_runtime(),
            client,
            error_logs_timeout=30,
            health_check_url="http://geth.dappnode:8545",
        )

        assert [c.name for c in checks] == [
            f"container:{GETH}",
            f"logs:{GETH}",
            f"container:{VALIDATOR}",
            f"logs:{VALIDATOR}",
            "healthcheck",
            "attestation",
        ]
        assert checks[0].timeout == 10 * 1.0 + prater_context.check_timeout_margin
        assert checks[-1].timeout == 8 * 120.0 + prater_context.check_timeout_margin

    def test_optional_checks_skipped(self, make_runtime, make_client, undefined_context):
        """No URL means no healthcheck; undefined network means no attestation."""
        client = make_client(lambda request: httpx.Response(200))
        checks = build_checks(
            DNP_NAME, ["geth"], undefined_context, make_runtime(), client, error_logs_timeout=500
        )

        assert [c.name for c in checks] == [f"container:{GETH}", f"logs:{GETH}"]
        assert checks[1].timeout == 120 + undefined_context.check_timeout_margin


class TestExecuteTestCheckers:
    """Tests for execute_test_checkers."""

    @pytest.mark.asyncio
    async def test_all_checks_pass(self, make_runtime, make_client, mainnet_context, fake_sleep):
        runtime = make_runtime()

        async with make_client(lambda request: httpx.Response(200)) as client:
            await execute_test_checkers(
                DNP_NAME,
                ["geth"],
                mainnet_context,
                runtime,
                client,
                error_logs_timeout=30,
                health_check_url="http://geth.dappnode:8545",
                sleep=fake_sleep,
            )

        assert runtime.log_calls == [GETH]
        assert len(runtime.inspect_calls) == 10

    @pytest.mark.asyncio
    async def test_failures_reported_jointly(
        self, make_runtime, make_client, mainnet_context, fake_sleep, caplog
    ):
        """A stopped container and error logs elsewhere are both reported."""
        runtime = make_runtime(
            statuses={GETH: ["exited"]},
            logs={VALIDATOR: "2024-01-01T00:00:00Z ERROR slashing protection"},
        )

        with caplog.at_level("INFO", logger="dappnode_e2e"):
            async with make_client(lambda request: httpx.Response(200)) as client:
                with pytest.raises(VerificationFailedError) as exc_info:
                    await execute_test_checkers(
                        DNP_NAME,
                        ["geth", "validator"],
                        mainnet_context,
                        runtime,
                        client,
                        error_logs_timeout=30,
                        health_check_url="http://geth.dappnode:8545",
                        sleep=fake_sleep,
                    )

        errors = exc_info.value.errors
        assert [type(e) for e in errors] == [ContainerNotRunningError, ErrorLogsFoundError]
        assert f"Container {GETH} is not running. Status: exited" in str(exc_info.value)
        assert f"Error logs found in {VALIDATOR}" in str(exc_info.value)
        # Passing checks still ran and were reported
        assert "Healthcheck endpoint returned 2XX" in caplog.text
        assert f"Container {VALIDATOR} is running" in caplog.text
