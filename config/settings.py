from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_CONFIG = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)

SEPOLIA_CHAIN_ID = 11155111
MAINNET_CHAIN_ID = 1


class AppSettings(BaseSettings):
    """General application settings."""

    model_config = ENV_CONFIG

    name: str = Field("Ethereum Wallet Tracker", validation_alias="APP_NAME")
    log_level: str = Field("INFO", validation_alias="LOG_LEVEL")
    log_file: Optional[str] = Field(None, validation_alias="LOG_FILE")


class NetworkSettings(BaseSettings):
    """RPC endpoints per supported chain."""

    model_config = ENV_CONFIG

    sepolia_rpc_url: str = Field(
        default="https://eth-sepolia.g.alchemy.com/v2/demo",
        validation_alias=AliasChoices("SEPOLIA_RPC_URL", "ETHEREUM_RPC_URL"),
        description="Sepolia JSON-RPC URL (ETHEREUM_RPC_URL is accepted as a fallback name)",
    )
    mainnet_rpc_url: str = Field(
        default="https://eth-mainnet.g.alchemy.com/v2/demo",
        validation_alias="MAINNET_RPC_URL",
        description="Ethereum mainnet JSON-RPC URL",
    )
    default_chain_id: int = Field(default=SEPOLIA_CHAIN_ID, validation_alias="DEFAULT_CHAIN_ID")
    # Timeout for a single RPC HTTP request (seconds)
    rpc_timeout: int = Field(default=60, gt=0, validation_alias="RPC_TIMEOUT")


class IndexerSettings(BaseSettings):
    """Etherscan-style transaction indexer."""

    model_config = ENV_CONFIG

    api_url: str = Field("https://api.etherscan.io/v2/api", validation_alias="ETHERSCAN_API_URL")
    api_key: Optional[str] = Field(
        default=None,
        validation_alias="ETHERSCAN_API_KEY",
        description="Without a key the indexer is skipped and block scanning is used",
    )
    timeout: int = Field(default=30, gt=0, validation_alias="ETHERSCAN_TIMEOUT")


class StorageSettings(BaseSettings):
    """Settings for the local transaction cache."""

    model_config = ENV_CONFIG

    database_url: str = Field("sqlite+aiosqlite:///./wallet_tracker.db", validation_alias="DATABASE_URL")
    echo: bool = Field(False, validation_alias="DATABASE_ECHO")


class SyncSettings(BaseSettings):
    """Budgets for transaction sync, block scanning and enrichment."""

    model_config = ENV_CONFIG

    fetch_limit: int = Field(default=50, gt=0, validation_alias="SYNC_FETCH_LIMIT")
    max_blocks_to_check: int = Field(default=5000, gt=0, validation_alias="BLOCK_SCAN_MAX_BLOCKS")
    block_number_timeout: float = Field(default=30.0, gt=0, validation_alias="BLOCK_NUMBER_TIMEOUT")
    block_fetch_timeout: float = Field(default=3.0, gt=0, validation_alias="BLOCK_FETCH_TIMEOUT")
    receipt_fetch_timeout: float = Field(default=2.0, gt=0, validation_alias="RECEIPT_FETCH_TIMEOUT")
    scan_budget_seconds: float = Field(default=60.0, gt=0, validation_alias="BLOCK_SCAN_BUDGET")
    enrichment_receipt_timeout: float = Field(default=3.0, gt=0, validation_alias="ENRICHMENT_RECEIPT_TIMEOUT")


class Settings(BaseSettings):
    """
    Main Settings class that composes all sub-settings.
    Each group reads its own flat env vars (and .env), so nesting does not leak into variable names.
    """

    app: AppSettings = Field(default_factory=AppSettings)
    networks: NetworkSettings = Field(default_factory=NetworkSettings)
    indexer: IndexerSettings = Field(default_factory=IndexerSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)

    model_config = ENV_CONFIG


# Singleton instance
settings = Settings()
