"""Configuration Manager for Record Storage.

This module loads and validates where hospital records are kept on disk.
Configuration can come from environment variables (optionally seeded from a
``.env`` file) or from a JSON file.

Architecture:
    - Infrastructure layer, isolated from the domain
    - Type-safe configuration using Pydantic models
    - Fail-fast validation prevents runtime errors
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

logger = logging.getLogger(__name__)

ENV_PREFIX = "HMS_"
DEFAULT_DATA_DIR = "data"


def load_env_file(env_file: Optional[Path] = None) -> None:
    """Seed os.environ from a ``.env`` file, if one exists.

    Defaults to ``.env`` in the working directory. Variables already set in
    the environment win over the file.
    """
    env_path = env_file or Path.cwd() / ".env"
    if env_path.exists():
        load_dotenv(env_path)
        logger.debug(f"Loaded environment variables from {env_path}")


class StorageConfig(BaseModel):
    """Where and how record files are written.

    Every collection (patients, users, ...) gets a blob ``<name><blob_suffix>``,
    a mirror ``<name><mirror_suffix>`` and, for append-logged collections, a
    log ``<name><log_suffix>``, all inside ``data_dir``.

    Parameters:
        data_dir: Directory holding every data file (created on first use)
        blob_suffix: Extension of the authoritative snapshots
        mirror_suffix: Extension of the regenerated CSV mirrors
        log_suffix: Extension of the append-only CSV logs
    """

    data_dir: Path = Field(default=Path(DEFAULT_DATA_DIR), description="Directory for data files")
    blob_suffix: str = Field(default=".ser", description="Blob file extension")
    mirror_suffix: str = Field(default=".txt", description="Mirror file extension")
    log_suffix: str = Field(default=".csv", description="Append-only log file extension")

    @field_validator("data_dir", mode="before")
    @classmethod
    def validate_data_dir(cls, v) -> Path:
        """Reject empty paths; the directory itself may not exist yet."""
        if v is None or not str(v).strip():
            raise ValueError("data_dir cannot be empty")
        return Path(str(v).strip())

    @field_validator("blob_suffix", "mirror_suffix", "log_suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"File suffix must look like '.ext'. Got: {v!r}")
        return v

    def blob_path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}{self.blob_suffix}"

    def mirror_path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}{self.mirror_suffix}"

    def log_path(self, collection: str) -> Path:
        return self.data_dir / f"{collection}{self.log_suffix}"


class ConfigManager:
    """Configuration manager for storage settings.

    Example Usage:
        ```python
        # Load from environment variables
        config = ConfigManager.from_environment()
        storage = config.get_storage_config()

        # Load from file
        config = ConfigManager.from_file("config.json")
        storage = config.get_storage_config()
        ```
    """

    def __init__(self, config_data: Dict[str, Any]):
        """Initialize configuration manager.

        Parameters:
            config_data: Configuration dictionary
        """
        self._config_data = config_data
        self._storage_config: Optional[StorageConfig] = None

    @classmethod
    def from_environment(cls, env_file: Optional[Path] = None) -> 'ConfigManager':
        """Load configuration from environment variables.

        Environment Variables:
            - HMS_DATA_DIR: Directory for data files
            - HMS_BLOB_SUFFIX: Blob file extension
            - HMS_MIRROR_SUFFIX: Mirror file extension
            - HMS_LOG_SUFFIX: Log file extension

        Parameters:
            env_file: Optional ``.env`` file; defaults to ``.env`` in the
                working directory. Existing variables are not overridden.

        Returns:
            ConfigManager instance
        """
        load_env_file(env_file)

        storage: Dict[str, Any] = {}
        for key in ("data_dir", "blob_suffix", "mirror_suffix", "log_suffix"):
            value = os.getenv(f"{ENV_PREFIX}{key.upper()}")
            if value:
                storage[key] = value

        return cls({"storage": storage})

    @classmethod
    def from_file(cls, config_path: str) -> 'ConfigManager':
        """Load configuration from a JSON file.

        Parameters:
            config_path: Path to configuration file

        Returns:
            ConfigManager instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config file is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        try:
            with open(config_file, 'r', encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in configuration file: {str(e)}")

        if not isinstance(config_data, dict):
            raise ValueError("Configuration file must contain a JSON object")

        return cls(config_data)

    def get_storage_config(self) -> StorageConfig:
        """Get storage configuration.

        Returns:
            Validated StorageConfig instance
        """
        if self._storage_config is None:
            self._storage_config = StorageConfig(**self._config_data.get("storage", {}))
        return self._storage_config

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Parameters:
            key: Configuration key (supports dot notation, e.g., "storage.data_dir")
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split(".")
        value = self._config_data

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default
