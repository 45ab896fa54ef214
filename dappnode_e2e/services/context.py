"""Explicit per-run configuration threaded through every operation."""

from __future__ import annotations

from dataclasses import dataclass

from dappnode_e2e.core.config import Settings
from dappnode_e2e.core.exceptions import ConfigurationError
from dappnode_e2e.core.logging import get_logger
from dappnode_e2e.params import NetworkProfile, get_network_profile
from dappnode_e2e.schemas import Network
from dappnode_e2e.services.network_resolver import resolve_network

logger = get_logger("services.context")


@dataclass(frozen=True)
class RunContext:
    """
    Immutable inputs of a single reconciliation/verification run.

    Built once from Settings so that no helper reads process-wide state.
    """

    network: Network
    profile: NetworkProfile
    validator_index: str | None = None
    beaconchain_api_key: str | None = None
    container_status_rounds: int = 10
    container_status_interval: float = 1.0
    container_max_consecutive_failures: int = 0
    attestation_rounds: int = 8
    attestation_interval: float = 120.0
    check_timeout_margin: float = 60.0
    concurrent: bool = True

    @classmethod
    def for_network(cls, network: Network, **kwargs) -> "RunContext":
        context = cls(network=network, profile=get_network_profile(network), **kwargs)
        context.validate()
        return context

    @classmethod
    def from_settings(cls, settings: Settings) -> "RunContext":
        """Resolve the network from the runner labels and freeze the run inputs."""
        network = resolve_network(settings.runner_labels)
        logger.info(f"Running end to end tests on network: {network.value}")
        return cls.for_network(
            network,
            validator_index=settings.val_index,
            beaconchain_api_key=settings.beaconchain_api_key,
            container_status_rounds=settings.container_status_rounds,
            container_status_interval=settings.container_status_interval,
            container_max_consecutive_failures=settings.container_max_consecutive_failures,
            attestation_rounds=settings.attestation_rounds,
            attestation_interval=settings.attestation_interval,
            check_timeout_margin=settings.check_timeout_margin,
            concurrent=settings.verification_concurrent,
        )

    def validate(self) -> None:
        if self.profile.attestation and not self.validator_index:
            raise ConfigurationError(
                f"VAL_INDEX env var is required to verify attestations on {self.network.value}"
            )
