"""
Static desired state of the test DAppNode.

One lookup table keyed by network holds everything that varies per
network: which packages are kept, which staker configuration is pushed and
whether validator attestations are verified.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

from dappnode_e2e.schemas import MevBoostItem, Network, StakerConfig, StakerItem


# Core packages, never removed on any network
CORE_PACKAGES: tuple[str, ...] = (
    "bind.dnp.dappnode.eth",
    "core.dnp.dappnode.eth",
    "dappmanager.dnp.dappnode.eth",
    "https.dnp.dappnode.eth",
    "ipfs.dnp.dappnode.eth",
    "vpn.dnp.dappnode.eth",
    "wifi.dnp.dappnode.eth",
    "wireguard.dnp.dappnode.eth",
)

# Non staker packages that must be installed before testing
NON_STAKER_PACKAGES: tuple[str, ...] = ("dms.dnp.dappnode.eth",)

DEFAULT_VERSION = "latest"


@dataclass(frozen=True)
class AttestationPolicy:
    """Where validator attestations are checked for a network."""

    api_base_url: str


@dataclass(frozen=True)
class NetworkProfile:
    """Everything that is network specific in a test run."""

    network: Network
    staker_packages: tuple[str, ...] = ()
    staker_config: StakerConfig | None = None
    attestation: AttestationPolicy | None = None

    @property
    def keep_packages(self) -> frozenset[str]:
        """Packages a reconciliation must never remove."""
        return frozenset(CORE_PACKAGES + NON_STAKER_PACKAGES + self.staker_packages)


def _staker_profile(
    network: Network,
    execution: str,
    consensus: str,
    web3signer: str,
    mev_boost: str | None = None,
    attestation: AttestationPolicy | None = None,
) -> NetworkProfile:
    packages = (execution, consensus, web3signer) + ((mev_boost,) if mev_boost else ())
    return NetworkProfile(
        network=network,
        staker_packages=packages,
        staker_config=StakerConfig(
            network=network.value,
            execution_client=StakerItem(dnp_name=execution),
            consensus_client=StakerItem(dnp_name=consensus),
            mev_boost=MevBoostItem(dnp_name=mev_boost) if mev_boost else None,
            enable_web3signer=True,
        ),
        attestation=attestation,
    )


NETWORK_PROFILES: Mapping[Network, NetworkProfile] = MappingProxyType(
    {
        # Mainnet attestations are not verified by the test runner
        Network.MAINNET: _staker_profile(
            Network.MAINNET,
            execution="geth.dnp.dappnode.eth",
            consensus="lighthouse.dnp.dappnode.eth",
            web3signer="web3signer.dnp.dappnode.eth",
            mev_boost="mev-boost.dnp.dappnode.eth",
        ),
        Network.GNOSIS: _staker_profile(
            Network.GNOSIS,
            execution="nethermind-xdai.dnp.dappnode.eth",
            consensus="lighthouse-gnosis.dnp.dappnode.eth",
            web3signer="web3signer-gnosis.dnp.dappnode.eth",
        ),
        Network.PRATER: _staker_profile(
            Network.PRATER,
            execution="goerli-geth.dnp.dappnode.eth",
            consensus="lighthouse-prater.dnp.dappnode.eth",
            web3signer="web3signer-prater.dnp.dappnode.eth",
            mev_boost="mev-boost-goerli.dnp.dappnode.eth",
            attestation=AttestationPolicy(api_base_url="https://prater.beaconcha.in"),
        ),
        Network.UNDEFINED: NetworkProfile(network=Network.UNDEFINED),
    }
)


def get_network_profile(network: Network) -> NetworkProfile:
    return NETWORK_PROFILES[network]


def packages_to_keep(network: Network) -> frozenset[str]:
    return get_network_profile(network).keep_packages


def get_container_domain(dnp_name: str, service_name: str | None = None) -> str:
    if not service_name or service_name == dnp_name:
        return dnp_name
    return f"{service_name}.{dnp_name}"


def get_container_name(
    dnp_name: str, service_name: str | None = None, is_core: bool = False
) -> str:
    """Docker container name of a package service."""
    prefix = "DAppNodeCore-" if is_core else "DAppNodePackage-"
    return prefix + get_container_domain(dnp_name, service_name)
