"""
Application settings for mizu.

Settings come from the environment (``MIZU_*``). The private key is a
SecretStr so it never shows up in logs or reprs; read it with
``settings.private_key.get_secret_value()``.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, SecretStr, field_validator

from mizu.integrations.sui.client import NETWORK_URLS


class Settings(BaseModel):
    """Runtime settings."""

    network: str = Field("testnet", description="mainnet, testnet, devnet or localnet")
    rpc_url: str | None = Field(None, description="Fullnode URL; defaults from network")
    private_key: SecretStr | None = Field(None, description="Base64 Ed25519 secret key")

    state_dir: Path = Field(Path("."), description="Directory holding the store snapshots")
    params_file: Path = Field(Path("mizu.yaml"), description="Flow parameters (YAML)")

    gas_budget: int = Field(100_000_000, gt=0)
    request_timeout: float = Field(30.0, gt=0)
    max_retries: int = Field(3, ge=0)
    stage_timeout: float | None = Field(None, gt=0)

    log_level: str = "INFO"
    log_json: bool = False

    @field_validator("network")
    @classmethod
    def _known_network(cls, value: str) -> str:
        if value not in NETWORK_URLS:
            raise ValueError(f"unknown network '{value}' (expected one of {sorted(NETWORK_URLS)})")
        return value

    @property
    def fullnode_url(self) -> str:
        return self.rpc_url or NETWORK_URLS[self.network]

    def store_path(self, actor: str) -> Path:
        """Snapshot file for an actor: admin owns the deployment ids."""
        if actor == "admin":
            return self.state_dir / "deployed_objects.json"
        return self.state_dir / f"{actor}_objects.json"


def _optional_float(value: str | None) -> float | None:
    return float(value) if value else None


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build Settings from an environment mapping (os.environ by default)."""
    env = os.environ if environ is None else environ
    private_key = env.get("MIZU_PRIVATE_KEY") or env.get("PRIVATE_KEY")
    return Settings(
        network=env.get("MIZU_NETWORK", "testnet"),
        rpc_url=env.get("MIZU_RPC_URL") or None,
        private_key=SecretStr(private_key) if private_key else None,
        state_dir=Path(env.get("MIZU_STATE_DIR", ".")),
        params_file=Path(env.get("MIZU_PARAMS_FILE", "mizu.yaml")),
        gas_budget=int(env.get("MIZU_GAS_BUDGET", "100000000")),
        request_timeout=float(env.get("MIZU_REQUEST_TIMEOUT", "30")),
        max_retries=int(env.get("MIZU_MAX_RETRIES", "3")),
        stage_timeout=_optional_float(env.get("MIZU_STAGE_TIMEOUT")),
        log_level=env.get("MIZU_LOG_LEVEL", "INFO").upper(),
        log_json=env.get("MIZU_LOG_JSON", "false").lower() == "true",
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings from environment.

    Uses lru_cache for singleton pattern.
    """
    return load_settings()
