"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from typing import Optional

from medledger.infrastructure.config_manager import ConfigManager, StoreConfig

# Application metadata
APP_NAME = "MedLedger"
APP_VERSION = "1.0.0"


class Settings:
    """Application settings loaded from configuration manager and environment.

    Combines values from the configuration manager with environment variables
    and sensible defaults.
    """

    def __init__(self):
        """Initialize settings from environment."""
        self._store_config: Optional[StoreConfig] = None
        self._config_manager: Optional[ConfigManager] = None

        self.app_name = os.getenv("ML_APP_NAME", APP_NAME)
        self.app_version = APP_VERSION

        # Logging
        self.log_level = os.getenv("ML_LOG_LEVEL", "INFO")
        self.json_logs = os.getenv("ML_JSON_LOGS", "false").lower() == "true"

        # Headers carrying the caller's identity in the HTTP API
        self.client_id_header = os.getenv("ML_CLIENT_ID_HEADER", "X-Client-Id")
        self.client_cert_header = os.getenv("ML_CLIENT_CERT_HEADER", "X-Client-Cert")

    @property
    def config_manager(self) -> ConfigManager:
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment()
        return self._config_manager

    @property
    def store_config(self) -> StoreConfig:
        """State store configuration, loaded lazily on first access."""
        if self._store_config is None:
            self._store_config = self.config_manager.get_store_config()
        return self._store_config


# Global settings instance
settings = Settings()
