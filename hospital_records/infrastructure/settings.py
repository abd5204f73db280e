"""Application Settings and Configuration.

This module provides application-wide settings that combine configuration
from the configuration manager with application-specific defaults.
"""

import os
from pathlib import Path
from typing import Optional

from hospital_records.infrastructure.config_manager import ConfigManager, StorageConfig, load_env_file

# Application metadata
APP_NAME = "Hospital-Records"
APP_VERSION = "1.0.0"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """Application settings loaded from configuration manager and environment.

    Values are read when the instance is created, so tests can build a fresh
    ``Settings()`` after patching the environment. A ``.env`` file is loaded
    first, so it feeds the logging and seeding flags as well as storage.
    """

    def __init__(self, config_manager: Optional[ConfigManager] = None, env_file: Optional[Path] = None):
        """Initialize settings from configuration manager and environment."""
        load_env_file(env_file)
        self._env_file = env_file
        self._config_manager = config_manager
        self._storage_config: Optional[StorageConfig] = None

        self.app_name = os.getenv("HMS_APP_NAME", APP_NAME)

        # Logging
        self.log_level = os.getenv("HMS_LOG_LEVEL", "INFO")
        self.log_json = _env_flag("HMS_LOG_JSON", "false")

        # Seed the four default accounts when the user store is empty
        self.seed_default_users = _env_flag("HMS_SEED_DEFAULT_USERS", "true")

    @property
    def config_manager(self) -> ConfigManager:
        """Get configuration manager instance."""
        if self._config_manager is None:
            self._config_manager = ConfigManager.from_environment(env_file=self._env_file)
        return self._config_manager

    @property
    def storage_config(self) -> StorageConfig:
        """Storage configuration, loaded lazily on first access."""
        if self._storage_config is None:
            self._storage_config = self.config_manager.get_storage_config()
        return self._storage_config


# Global settings instance
settings = Settings()
