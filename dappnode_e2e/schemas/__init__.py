"""Data models shared by the reconciler and the verifier."""

from .dappmanager import (
    InstalledPackage,
    IpfsClientTarget,
    IpfsClientTargetSetRequest,
    IpfsRepository,
    MevBoostItem,
    PackageInstallRequest,
    PackageRemoveRequest,
    StakerConfig,
    StakerItem,
)
from .network import ContainerStatus, Network, ValidatorStatus

__all__ = [
    "ContainerStatus",
    "InstalledPackage",
    "IpfsClientTarget",
    "IpfsClientTargetSetRequest",
    "IpfsRepository",
    "MevBoostItem",
    "Network",
    "PackageInstallRequest",
    "PackageRemoveRequest",
    "StakerConfig",
    "StakerItem",
    "ValidatorStatus",
]
