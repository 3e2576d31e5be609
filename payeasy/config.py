import os

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
        extra="ignore",
        populate_by_name=True,
    )

    def model_post_init(self, __context: Any) -> None:
        """Ensure we pick up legacy environment variable aliases."""

        super().model_post_init(__context)

        if not self.stellar_network:
            fallback = os.getenv("NEXT_PUBLIC_STELLAR_NETWORK")
            if fallback:
                object.__setattr__(self, "stellar_network", fallback)

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="auto", description="Log rendering: json, console or auto")

    # Stellar / Soroban network
    stellar_network: str = Field(default="", description="Default Stellar network name (empty = testnet)")
    soroban_rpc_url: str = Field(
        default="",
        description="Soroban RPC override (empty = network default)",
        validation_alias=AliasChoices("soroban_rpc_url", "SOROBAN_RPC_URL", "NEXT_PUBLIC_SOROBAN_RPC_URL"),
    )
    horizon_url: str = Field(
        default="",
        description="Horizon override (empty = network default)",
        validation_alias=AliasChoices(
            "horizon_url",
            "STELLAR_HORIZON_URL",
            "NEXT_PUBLIC_STELLAR_HORIZON_URL",
        ),
    )
    network_passphrase: str = Field(
        default="",
        description="Network passphrase override (empty = network default)",
        validation_alias=AliasChoices(
            "network_passphrase",
            "STELLAR_NETWORK_PASSPHRASE",
            "NEXT_PUBLIC_STELLAR_NETWORK_PASSPHRASE",
        ),
    )

    # Transaction building
    base_fee: int = Field(default=100, ge=100, description="Baseline inclusion fee per operation (stroops)")
    transaction_timeout_seconds: int = Field(
        default=60,
        ge=1,
        description="Validity window attached to built envelopes",
    )
    fee_buffer_multiplier: float = Field(
        default=1.0,
        ge=1.0,
        description="Multiplier applied to the estimated resource fee (1.2 = +20%)",
    )

    # History store
    history_api_url: str = Field(
        default="http://localhost:3000/api",
        description="Base URL of the transaction history API",
    )
    history_api_token: Optional[str] = Field(default=None, description="Bearer token for the history API")

    # Signing bridge
    signing_agent_url: str = Field(default="", description="HTTP signing bridge endpoint")

    # Status tracking
    status_poll_interval_seconds: float = Field(default=4.0, gt=0, description="Status poll interval")
    status_poll_timeout_seconds: float = Field(default=120.0, gt=0, description="Status poll deadline")

    request_timeout_seconds: int = Field(default=30, description="HTTP request timeout")

    @property
    def has_signing_agent(self) -> bool:
        return bool(self.signing_agent_url)

    @property
    def has_history_token(self) -> bool:
        return bool(self.history_api_token)


# Global settings instance
settings = Settings()
