"""
Configuration error hierarchy.

Exception Hierarchy
-------------------
ConfigError (base)
├── ConfigValidationError (schema/type validation failures)
└── ConfigInitializationError (startup/init failures)
"""


class ConfigError(Exception):
    """
    Base exception for all configuration-related errors.

    Example
    -------
    >>> try:
    ...     ConfigManager.set("rewards.daily_cap.limit", "lots")
    ... except ConfigError as e:
    ...     logger.error(f"Config operation failed: {e}")
    """


class ConfigValidationError(ConfigError):
    """
    Raised when configuration validation fails.

    This exception is raised when:
    - A registered validator rejects a value
    - Type coercion fails
    - A required key is missing
    """


class ConfigInitializationError(ConfigError):
    """Raised when the YAML configuration cannot be loaded at startup."""
