"""Settings with Pydantic validation and environment loading."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """End-to-end test settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Runner metadata
    runner_labels: Optional[str] = Field(
        default=None,
        alias="RUNNER_LABELS",
        description="Labels of the CI runner, used to derive the network",
    )
    val_index: Optional[str] = Field(
        default=None,
        alias="VAL_INDEX",
        description="Index of the validator whose attestations are checked",
    )
    beaconchain_api_key: Optional[str] = Field(
        default=None,
        alias="BEACONCHAIN_API_KEY",
        description="Optional beaconcha.in API key",
    )

    # DAppNode environment
    dappmanager_test_api_url: str = Field(
        default="http://dappmanager.dappnode:7000",
        alias="DAPPMANAGER_TEST_API_URL",
        description="Base URL of the DAppManager test API",
    )
    dappmanager_alias: str = Field(
        default="dappmanager.dappnode",
        description="Docker alias that must resolve from the host",
    )

    # Timeouts (seconds)
    http_timeout: float = Field(default=30.0, gt=0, le=300)
    docker_call_timeout: float = Field(default=30.0, gt=0, le=300)
    check_timeout_margin: float = Field(
        default=60.0,
        gt=0,
        description="Extra seconds granted to each check on top of its expected duration",
    )

    # Verification policy
    verification_concurrent: bool = Field(
        default=True, description="Run verification checks concurrently"
    )
    container_status_rounds: int = Field(default=10, ge=1, le=100)
    container_status_interval: float = Field(default=1.0, ge=0)
    container_max_consecutive_failures: int = Field(
        default=0,
        ge=0,
        description="Non-running observations tolerated in a row (0 = fail fast)",
    )
    attestation_rounds: int = Field(default=8, ge=1)
    attestation_interval: float = Field(default=120.0, ge=0)

    # Run parameters
    e2e_dnp_name: Optional[str] = Field(default=None, description="Package under test")
    e2e_version: Optional[str] = Field(
        default=None, description="Version or release hash to install before checking"
    )
    e2e_services: Annotated[List[str], NoDecode] = Field(
        default_factory=list, description="Compose services of the package under test"
    )
    e2e_health_check_url: Optional[str] = Field(default=None)
    e2e_error_logs_timeout: int = Field(default=30, ge=0)

    # Logging
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="text", description="text or json")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return v

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        v = v.lower()
        if v not in {"text", "json"}:
            raise ValueError("log_format must be 'text' or 'json'")
        return v

    @field_validator("e2e_services", mode="before")
    @classmethod
    def parse_services(cls, v):
        """Accept a comma separated list in addition to JSON."""
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()]
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
