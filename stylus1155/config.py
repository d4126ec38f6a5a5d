from pathlib import Path
from typing import Any, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def model_post_init(self, __context: Any) -> None:
        """Normalise URL settings so callers can join paths safely."""

        super().model_post_init(__context)

        if self.deployment_api_url:
            object.__setattr__(self, "deployment_api_url", self.deployment_api_url.rstrip("/"))

    # Server Settings
    host: str = Field(default="127.0.0.1", description="Server host")
    port: int = Field(default=8000, description="Server port")
    log_level: str = Field(default="INFO", description="Logging level")

    # Network
    default_network: str = Field(
        default="arbitrum-sepolia",
        description="Network used when none is given explicitly",
    )
    rpc_endpoint: str = Field(
        default="",
        description="Override the network's default RPC endpoint",
        validation_alias=AliasChoices("rpc_endpoint", "RPC_ENDPOINT", "ERC1155_RPC_ENDPOINT"),
    )
    contract_address: str = Field(
        default="",
        description="Default ERC-1155 contract address",
        validation_alias=AliasChoices(
            "contract_address",
            "ERC1155_ADDRESS",
            "NEXT_PUBLIC_ERC1155_ADDRESS",
        ),
    )

    # Signing
    private_key: str = Field(
        default="",
        description="Private key used for deployment and local signing",
        validation_alias=AliasChoices("private_key", "PRIVATE_KEY"),
    )

    # Deployment service
    deployment_api_url: str = Field(
        default="http://localhost:4002",
        description="Base URL of the ERC-1155 deployment service",
        validation_alias=AliasChoices(
            "deployment_api_url",
            "ERC1155_DEPLOYMENT_API_URL",
            "DEPLOYMENT_API_URL",
        ),
    )
    deployment_timeout_seconds: float = Field(
        default=300.0,
        description="Timeout for a single deployment request (build + deploy + activate)",
    )

    # Transactions
    request_timeout_seconds: float = Field(default=30.0, description="JSON-RPC request timeout")
    receipt_timeout_seconds: float = Field(
        default=120.0,
        description="Max seconds to wait for a transaction receipt",
    )
    receipt_poll_interval_seconds: float = Field(
        default=2.0,
        description="Seconds between receipt polls",
    )
    gas_multiplier: float = Field(default=1.2, description="Safety margin applied to gas estimates")
    tx_status_display_seconds: float = Field(
        default=5.0,
        ge=0,
        description="Seconds a success/error status stays visible before resetting to idle",
    )
    balance_scan_max_token_id: int = Field(
        default=10,
        ge=0,
        description="Highest token id probed by the panel balance scan",
    )

    @property
    def has_private_key(self) -> bool:
        return bool(self.private_key)

    def resolve_rpc_endpoint(self, network_rpc_url: str, override: Optional[str] = None) -> str:
        return override or self.rpc_endpoint or network_rpc_url


# Global settings instance
settings = Settings()
