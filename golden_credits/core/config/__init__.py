"""
Configuration Infrastructure

- Config: static settings from environment variables
- ConfigManager (``golden_credits.core.config.manager``): YAML-backed economy
  tunables with dot-notation access. Not re-exported here because it depends
  on the logging subsystem, which itself reads ``Config``.
"""

from golden_credits.core.config.config import Config
from golden_credits.core.config.errors import (
    ConfigError,
    ConfigInitializationError,
    ConfigValidationError,
)

__all__ = [
    "Config",
    "ConfigError",
    "ConfigValidationError",
    "ConfigInitializationError",
]
