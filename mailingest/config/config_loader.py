"""Locate, read and validate the application config file."""

import json
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from .import_config import AppConfig


class ConfigError(Exception):
    """Raised when a configuration file exists but cannot be used."""

    pass


class ConfigLoader:
    """
    Load the importer configuration once and hand out the cached model.

    Without an explicit path the first existing entry of
    DEFAULT_CONFIG_PATHS is used; with none present all defaults apply.
    """

    DEFAULT_CONFIG_PATHS = [
        Path("~/.mailingest/app_config.json"),
        Path("config/app_config.json"),
    ]

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize configuration loader.

        Args:
            config_path: Config file to use instead of the search path
        """
        self.config_path = config_path
        self.source: Optional[Path] = None
        self._config: Optional[AppConfig] = None

    def find_config_file(self) -> Optional[Path]:
        """First existing candidate file, None when there is none."""
        candidates = [self.config_path] if self.config_path else self.DEFAULT_CONFIG_PATHS
        for candidate in candidates:
            path = candidate.expanduser()
            if path.is_file():
                return path
        return None

    def load_app_config(self) -> AppConfig:
        """
        Return the application configuration, reading it on first use.

        Raises:
            ConfigError: If the config file is not valid JSON or fails validation
        """
        if self._config is None:
            self.source = self.find_config_file()
            self._config = self._read(self.source) if self.source else AppConfig()
        return self._config

    def reload(self) -> AppConfig:
        """Drop the cached model and read the file again."""
        self._config = None
        return self.load_app_config()

    @staticmethod
    def _read(path: Path) -> AppConfig:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            return AppConfig.model_validate(data)
        except (json.JSONDecodeError, ValidationError) as e:
            raise ConfigError(f"Invalid config in {path}: {e}") from e
