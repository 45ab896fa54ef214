"""Derive the target network from runner labels."""

from __future__ import annotations

from typing import Sequence

from dappnode_e2e.core.exceptions import ConfigurationError
from dappnode_e2e.schemas import Network


# Precedence order, first match wins
NETWORK_PRECEDENCE: tuple[Network, ...] = (
    Network.MAINNET,
    Network.GNOSIS,
    Network.PRATER,
)


def resolve_network(labels: str | Sequence[str] | None) -> Network:
    """
    Resolve the network a runner is attached to.

    Labels are free text, either one string (as exported in RUNNER_LABELS)
    or a sequence of strings. A label matches a network when it contains the
    network name. No match resolves to Network.UNDEFINED.

    Raises:
        ConfigurationError: If there are no labels at all, or only blank ones.
    """
    if labels is None:
        raise ConfigurationError("RUNNER_LABELS env var not found")

    text = labels if isinstance(labels, str) else " ".join(labels)
    if not text.strip():
        raise ConfigurationError("RUNNER_LABELS env var not found")
    text = text.lower()

    for network in NETWORK_PRECEDENCE:
        if network.value in text:
            return network
    return Network.UNDEFINED
