"""DAppManager test API schemas."""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model speaking the camelCase wire format of the DAppManager."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class InstalledPackage(CamelModel):
    """Package currently installed in the DAppNode."""

    name: str = Field(..., alias="dnpName", description="Unique package name")
    version: str = Field(default="", description="Installed version")


class PackageInstallRequest(CamelModel):
    """Body of a packageInstall call."""

    name: str = Field(..., alias="dnpName")
    version: str = "latest"


class PackageRemoveRequest(CamelModel):
    """Body of a packageRemove call."""

    name: str = Field(..., alias="dnpName")
    delete_volumes: bool = True


class IpfsClientTarget(str, Enum):
    """Where the DAppNode resolves IPFS content from."""

    LOCAL = "local"
    REMOTE = "remote"


class IpfsRepository(CamelModel):
    """Current IPFS client configuration."""

    ipfs_client_target: str = IpfsClientTarget.LOCAL.value
    ipfs_gateway: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.ipfs_client_target == IpfsClientTarget.LOCAL.value


class IpfsClientTargetSetRequest(CamelModel):
    """Body of an ipfsClientTargetSet call."""

    ipfs_repository: IpfsRepository
    delete_local_ipfs_client: bool = False


class StakerItem(CamelModel):
    """A client selected in a staker configuration."""

    dnp_name: str


class MevBoostItem(StakerItem):
    """MEV boost selection with its relays."""

    relays: List[str] = Field(default_factory=list)


class StakerConfig(CamelModel):
    """Staker configuration pushed as a whole for one network."""

    network: str
    execution_client: Optional[StakerItem] = None
    consensus_client: Optional[StakerItem] = None
    mev_boost: Optional[MevBoostItem] = None
    # to_camel would produce enableWeb3Signer
    enable_web3signer: bool = Field(default=False, alias="enableWeb3signer")
