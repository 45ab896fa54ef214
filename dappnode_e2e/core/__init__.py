"""Core infrastructure: settings, logging, exceptions."""

from .config import Settings, get_settings, settings
from .exceptions import (
    CheckTimeoutError,
    ConfigurationError,
    ContainerNotRunningError,
    E2EError,
    EnvironmentNotReadyError,
    ErrorLogsFoundError,
    HealthCheckFailedError,
    RemoteOperationError,
    RunCancelledError,
    ValidatorNotActiveError,
    VerificationFailedError,
)
from .logging import get_logger, setup_logging

__all__ = [
    "CheckTimeoutError",
    "ConfigurationError",
    "ContainerNotRunningError",
    "E2EError",
    "EnvironmentNotReadyError",
    "ErrorLogsFoundError",
    "HealthCheckFailedError",
    "RemoteOperationError",
    "RunCancelledError",
    "Settings",
    "ValidatorNotActiveError",
    "VerificationFailedError",
    "get_logger",
    "get_settings",
    "settings",
    "setup_logging",
]
