"""Indexer configuration, env-driven.

Centralized config using pydantic-settings. Reads from a .env file and
ACCESSINDEX_* environment variables; CLI options override per invocation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IndexerConfig(BaseSettings):
    """Indexer configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export ACCESSINDEX_NETWORK_ID=stellar-testnet
        export ACCESSINDEX_LOG_LEVEL=DEBUG
        export ACCESSINDEX_DB_PATH=/data/index.db

    Or via .env file::

        ACCESSINDEX_ENVIRONMENT=production
        ACCESSINDEX_STORE_BACKEND=sqlite
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACCESSINDEX_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"
    debug: bool = False

    # Storage
    db_path: Path = Path(".accessindex/index.db")
    store_backend: Literal["sqlite", "memory"] = "sqlite"

    # Indexing
    network_id: str = "ethereum-mainnet"

    # Queries
    page_size: int = Field(default=100, ge=1, le=1000)

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton: import as `from accessindex.config import config`
config = IndexerConfig()
