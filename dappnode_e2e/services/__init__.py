"""Reconciliation and verification services."""

from . import checks, environment, runner, verification


__all__ = [
    "checks",
    "environment",
    "runner",
    "verification",
]
