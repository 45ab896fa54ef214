"""Exception hierarchy for environment reconciliation and verification."""

from __future__ import annotations

from typing import Any, Sequence


class E2EError(Exception):
    """Base exception with a structured error payload."""

    error_code: str = "E2E_ERROR"
    message: str = "End-to-end test failed"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON friendly dict."""
        return {
            "error": self.error_code,
            "message": self.message,
            **({"details": self.details} if self.details else {}),
        }


# =============================================================================
# Reconciliation errors (fatal)
# =============================================================================


class ConfigurationError(E2EError):
    """A required environment-derived input is missing."""

    error_code = "CONFIGURATION_ERROR"
    message = "Missing required configuration"


class EnvironmentNotReadyError(E2EError):
    """The DAppNode environment cannot be reached from the host."""

    error_code = "ENVIRONMENT_NOT_READY"
    message = "DAppNode environment is not ready"


class RemoteOperationError(E2EError):
    """A collaborator call failed or returned an unexpected status."""

    error_code = "REMOTE_OPERATION_FAILED"
    message = "Remote operation failed"


# =============================================================================
# Verification errors (aggregated)
# =============================================================================


class ContainerNotRunningError(E2EError):
    """A container was observed in a non-running state."""

    error_code = "CONTAINER_NOT_RUNNING"

    def __init__(self, container_name: str, observed_status: str, attempt: int):
        self.container_name = container_name
        self.observed_status = observed_status
        self.attempt = attempt
        super().__init__(
            f"Container {container_name} is not running. Status: {observed_status}",
            details={
                "container": container_name,
                "status": observed_status,
                "attempt": attempt,
            },
        )


class ErrorLogsFoundError(E2EError):
    """Error lines were found in a container's logs."""

    error_code = "ERROR_LOGS_FOUND"

    def __init__(self, container_name: str, lines: Sequence[str]):
        self.container_name = container_name
        self.lines = list(lines)
        super().__init__(
            f"Error logs found in {container_name}",
            details={"container": container_name, "lines": self.lines},
        )


class HealthCheckFailedError(E2EError):
    """The package healthcheck endpoint did not answer with a 2XX."""

    error_code = "HEALTH_CHECK_FAILED"
    message = "Healthcheck endpoint failed"


class ValidatorNotActiveError(E2EError):
    """The validator never reached the active_online status."""

    error_code = "VALIDATOR_NOT_ACTIVE"

    def __init__(self, validator_index: str, rounds: int, elapsed_seconds: float):
        self.validator_index = validator_index
        self.rounds = rounds
        super().__init__(
            f"Validator is not active after {elapsed_seconds / 60:g} minutes",
            details={"validator_index": validator_index, "rounds": rounds},
        )


class CheckTimeoutError(E2EError):
    """A verification check exceeded its time budget."""

    error_code = "CHECK_TIMEOUT"

    def __init__(self, check_name: str, timeout: float):
        self.check_name = check_name
        self.timeout = timeout
        super().__init__(
            f"Check {check_name} timed out after {timeout:g}s",
            details={"check": check_name, "timeout": timeout},
        )


class RunCancelledError(E2EError):
    """Verification was cancelled by the caller."""

    error_code = "RUN_CANCELLED"
    message = "Verification run was cancelled"


class VerificationFailedError(E2EError):
    """One or more independent verification checks failed."""

    error_code = "VERIFICATION_FAILED"

    def __init__(self, errors: Sequence[BaseException]):
        self.errors = list(errors)
        super().__init__(
            "\n".join(str(e) for e in self.errors),
            details={"failures": len(self.errors)},
        )
