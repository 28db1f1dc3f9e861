from pathlib import Path
from typing import Any, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.constants import NETWORK_PASSPHRASES


BASE_DIR = Path(__file__).resolve().parents[1]


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=BASE_DIR / ".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Network
    stellar_network: str = Field(
        default="testnet",
        description="Network name; selects the passphrase every signed operation is scoped to",
    )
    stellar_rpc_url: str = Field(
        default="https://soroban-testnet.stellar.org",
        description="Soroban JSON-RPC endpoint",
    )
    contract_id: str = Field(
        default="CDRUJA7RWIJNPD4GHXIPC5PAPKXJKXGYJXZKUQ3HKLNLCXY4JBFZXS3E",
        description="Deployed pool contract ID",
    )

    # Local signing (non-production testing flows only)
    test_secret_key: str = Field(default="", description="Secret seed used by the local signer")
    source_public_key: str = Field(
        default="",
        description="Account used as transaction source; derived from the secret seed when empty",
    )

    # RPC transport
    rpc_timeout_seconds: float = Field(default=30.0, description="HTTP timeout for RPC calls")
    rpc_max_retries: int = Field(default=3, ge=1, description="Attempts per RPC call on transport errors")

    # Transaction lifecycle
    poll_interval_seconds: float = Field(default=1.0, gt=0, description="Delay between status checks")
    max_poll_attempts: int = Field(default=30, ge=1, description="Status checks before giving up")
    tx_timeout_seconds: int = Field(
        default=30,
        ge=1,
        description="Validity window stamped on built operations",
    )
    base_fee: int = Field(default=100, ge=100, description="Inclusion fee for read-only queries (stroops)")
    contract_call_fee: int = Field(
        default=100_000,
        ge=100,
        description="Inclusion fee for state-changing contract calls (stroops)",
    )

    @field_validator("stellar_network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        network = value.strip().lower()
        if network not in NETWORK_PASSPHRASES:
            raise ValueError(
                f"Unknown stellar_network {value!r}; expected one of {sorted(NETWORK_PASSPHRASES)}"
            )
        return network

    @property
    def network_passphrase(self) -> str:
        return NETWORK_PASSPHRASES[self.stellar_network]

    @property
    def has_signing_key(self) -> bool:
        return bool(self.test_secret_key)

    def resolve_source_account(self, signer_public_key: Optional[str] = None) -> Optional[str]:
        """Pick the source account: explicit setting first, then the signer's key."""
        return self.source_public_key or signer_public_key or None

    def model_post_init(self, __context: Any) -> None:
        super().model_post_init(__context)
        object.__setattr__(self, "stellar_rpc_url", self.stellar_rpc_url.rstrip("/"))


# Global settings instance
settings = Settings()
