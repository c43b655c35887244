"""Configuration management"""

from .config_loader import ConfigError, ConfigLoader
from .import_config import AppConfig, LimitsConfig, LoggingConfig, ParsingConfig

__all__ = ["AppConfig", "ConfigError", "ConfigLoader", "LimitsConfig", "LoggingConfig", "ParsingConfig"]
