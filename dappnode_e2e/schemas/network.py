"""Network and runtime observation enums."""

from __future__ import annotations

from enum import Enum


class Network(str, Enum):
    """Network a test runner is attached to."""

    MAINNET = "mainnet"
    GNOSIS = "gnosis"
    PRATER = "prater"
    UNDEFINED = "undefined"

    @property
    def is_defined(self) -> bool:
        return self is not Network.UNDEFINED


class ContainerStatus(str, Enum):
    """Tri-state observation of a container at poll time."""

    RUNNING = "running"
    NOT_RUNNING = "not_running"
    UNKNOWN = "unknown"

    @classmethod
    def from_raw(cls, raw: str | None) -> "ContainerStatus":
        """Map a Docker state string (None when the container is missing)."""
        if raw is None:
            return cls.UNKNOWN
        if raw == "running":
            return cls.RUNNING
        return cls.NOT_RUNNING


class ValidatorStatus(str, Enum):
    """Validator statuses reported by beaconcha.in that matter here."""

    ACTIVE_ONLINE = "active_online"
