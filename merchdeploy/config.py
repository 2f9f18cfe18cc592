"""Deployment configuration — env-driven.

Centralized settings using pydantic-settings. Reads from a ``.env`` file and
``MERCHDEPLOY_*`` environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class DeployConfig(BaseSettings):
    """Pipeline configuration with environment variable overrides.

    Examples
    --------
    Point the pipeline at a local network::

        export MERCHDEPLOY_RPC_URL=http://127.0.0.1:9000
        export MERCHDEPLOY_FAUCET_URL=http://127.0.0.1:9123
        export MERCHDEPLOY_NETWORK=localnet

    Or via .env file::

        MERCHDEPLOY_LOG_LEVEL=DEBUG
        MERCHDEPLOY_MANIFEST_PATH=deployments/testnet.json
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="MERCHDEPLOY_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime
    network: str = "testnet"
    log_level: str = "INFO"
    http_timeout_seconds: float = 30.0

    # Remote endpoints
    rpc_url: str = "https://rpc-testnet.onelabs.cc:443"
    faucet_url: str = "https://faucet-testnet.onelabs.cc:443"
    fallback_faucet_url: str = "https://faucet.testnet.sui.io"

    # Local files shared between stages
    keystore_path: Path = Path(".sui/sui_config/sui.keystore")
    manifest_path: Path = Path("deployment-info.json")
    project_root: Path = Path(".")
    build_dir: Path = Path("build/anime_merchandise")

    # Coins and gas (smallest unit)
    coin_type: str = "0x2::sui::SUI"
    min_balance: int = 1_000_000_000
    gas_budget: int = 100_000_000

    # Faucet confirmation poll
    faucet_poll_attempts: int = 30
    faucet_poll_interval_seconds: float = 1.0

    # Contract layout
    module_name: str = "anime_nft"
    init_function: str = "init"
    publish_dependencies: list[str] = []
    marketplace_type_marker: str = "Marketplace"
    capability_type_marker: str = "MarketplaceCap"

    @property
    def build_output_dir(self) -> Path:
        """Directory ``sui move build`` writes to, resolved against ``project_root``."""
        return self.project_root / self.build_dir

    @property
    def bytecode_dir(self) -> Path:
        """Directory holding the compiled ``.mv`` modules."""
        return self.build_output_dir / "bytecode_modules"


# Module-level singleton, import as `from merchdeploy.config import config`
config = DeployConfig()
