"""Configuration Manager for State Store Settings.

This module provides the configuration manager for selecting and configuring the
state store backing the ledger.

Security Impact:
    - Configuration is validated before use (fail-fast)
    - Configuration files with permissive modes are flagged

Architecture:
    - Follows Hexagonal Architecture: Infrastructure layer isolated from domain
    - Supports environment variables (with .env loading) and JSON files
    - Type-safe configuration using Pydantic models
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

SUPPORTED_STORE_TYPES = ["memory", "duckdb"]


class StoreConfig(BaseModel):
    """State store configuration model.

    Parameters:
        store_type: Type of state store ('memory' or 'duckdb')
        db_path: Path to the DuckDB database file, or ':memory:'
        table_name: Table holding the key-value world state (DuckDB only)
    """

    store_type: str = Field(default="memory", description="State store type (memory, duckdb)")
    db_path: Optional[str] = Field(None, description="Path to DuckDB database file")
    table_name: str = Field(default="world_state", pattern=r"^[A-Za-z_][A-Za-z0-9_]*$")

    @field_validator("store_type")
    @classmethod
    def validate_store_type(cls, v: str) -> str:
        """Validate state store type."""
        if v.lower() not in SUPPORTED_STORE_TYPES:
            raise ValueError(f"Unsupported store type: {v}. Supported: {SUPPORTED_STORE_TYPES}")
        return v.lower()

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: Optional[str]) -> Optional[str]:
        """Validate database directory exists (if a path is provided)."""
        if v is None or v == ":memory:":
            return v

        db_path_obj = Path(v)
        # File may not exist yet; its directory must
        if not db_path_obj.parent.exists():
            raise ValueError(f"Database directory does not exist: {db_path_obj.parent}")

        return str(db_path_obj)


class ConfigManager:
    """Configuration manager for the state store and related settings.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        store_config = config.get_store_config()

        # Load from file
        config = ConfigManager.from_file("medledger.json")
        store_config = config.get_store_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        self._config_data = config_data
        self._store_config: Optional[StoreConfig] = None

    @classmethod
    def from_environment(cls) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - ML_STORE_TYPE: State store type (memory, duckdb)
            - ML_DB_PATH: Path to DuckDB database file
            - ML_DB_TABLE: World state table name

        A ``.env`` file in the project root is loaded first if present.

        Returns:
            ConfigManager instance
        """
        env_path = Path(__file__).parent.parent.parent / ".env"
        if env_path.exists():
            load_dotenv(env_path)
            logger.debug(f"Loaded environment variables from {env_path}")

        store: Dict[str, Any] = {
            "store_type": os.getenv("ML_STORE_TYPE", "memory"),
            "db_path": os.getenv("ML_DB_PATH"),
        }
        if os.getenv("ML_DB_TABLE"):
            store["table_name"] = os.getenv("ML_DB_TABLE")

        return cls({"store": store})

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        stat_info = config_file.stat()
        if stat_info.st_mode & 0o077 != 0:
            logger.warning(
                f"Configuration file has overly permissive permissions: {config_path}. "
                "Consider setting to 600."
            )

        try:
            with open(config_file, 'r') as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        return cls(config_data)

    def get_store_config(self) -> StoreConfig:
        """Get the validated state store configuration."""
        if self._store_config is None:
            self._store_config = StoreConfig(**self._config_data.get("store", {}))
        return self._store_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Parameters:
            key: Configuration key (supports dot notation, e.g., "store.db_path")
            default: Default value if key not found
        """
        value = self._config_data

        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default


def get_store_config() -> StoreConfig:
    """Load the state store configuration from the environment."""
    return ConfigManager.from_environment().get_store_config()
