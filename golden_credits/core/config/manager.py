"""
ConfigManager: dot-notation access to reward economy tunables.

Purpose
-------
- Provide hierarchical, dot-notation access to tunable economy values
  (reward tables, caps, wheel segments, streak tiers).
- Back configuration with YAML defaults from the `config/` directory.
- Allow runtime overrides (tests, operator tooling) guarded by validators.

Responsibilities
----------------
- Load and deep-merge every YAML file found under `Config.CONFIG_DIR`.
- Serve reads from the merged in-memory view.
- Apply in-memory overrides on top of YAML defaults.
- Run registered validators before accepting an override.

Key Design Decisions
--------------------
- YAML is the single source for **defaults**; overrides never touch disk.
- Top-level keys group related tunables (`rewards`, `streak`, `wheel`,
  `engine`).
- Reward policy validity (e.g. wheel weights) is enforced by the components
  that consume it, at container initialization.

Dependencies
------------
- PyYAML for parsing.
- `golden_credits.core.config.config.Config` for the config directory.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Callable, Dict, MutableMapping, Optional

import yaml

from golden_credits.core.config.config import Config
from golden_credits.core.config.errors import (
    ConfigInitializationError,
    ConfigValidationError,
)
from golden_credits.core.logging.logger import get_logger

logger = get_logger(__name__)

_MISSING = object()


class ConfigManager:
    """
    Tunable configuration with YAML defaults and in-memory overrides.

    Usage
    -----
    >>> ConfigManager.initialize()
    >>> ConfigManager.get("rewards.daily_cap.limit")
    200
    """

    _defaults: Dict[str, Any] = {}
    _cache: Dict[str, Any] = {}
    _initialized: bool = False
    _config_dir: Optional[Path] = None

    # Optional validators: full dot key -> callable(value) -> value
    _validators: Dict[str, Callable[[Any], Any]] = {}

    # =========================================================================
    # YAML LOADING & DEFAULTS
    # =========================================================================

    @staticmethod
    def _deep_merge_dict(
        target: MutableMapping[str, Any],
        source: MutableMapping[str, Any],
    ) -> None:
        """Recursively merge `source` into `target` (in-place)."""
        for key, value in source.items():
            if isinstance(value, dict) and isinstance(target.get(key), dict):
                ConfigManager._deep_merge_dict(target[key], value)
            else:
                target[key] = value

    @classmethod
    def _load_yaml_configs(cls, config_dir: Path) -> Dict[str, Any]:
        """
        Load all YAML config files under `config_dir` into one mapping.

        Files are merged in sorted path order so later files override earlier
        ones deterministically.

        Raises
        ------
        ConfigInitializationError
            If a file cannot be parsed.
        """
        merged: Dict[str, Any] = {}

        if not config_dir.exists():
            logger.warning(
                "Config directory not found; using built-in defaults only",
                extra={"config_dir": str(config_dir)},
            )
            return merged

        yaml_files = sorted(
            list(config_dir.rglob("*.yaml")) + list(config_dir.rglob("*.yml"))
        )

        for yaml_file in yaml_files:
            try:
                with yaml_file.open("r", encoding="utf-8") as handle:
                    data = yaml.safe_load(handle)
            except (OSError, yaml.YAMLError) as exc:
                logger.error(
                    "Failed to load YAML config",
                    extra={
                        "file": str(yaml_file),
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise ConfigInitializationError(
                    f"Could not load configuration file {yaml_file}: {exc}"
                ) from exc

            if isinstance(data, dict):
                cls._deep_merge_dict(merged, data)
                logger.debug(
                    "Loaded YAML config",
                    extra={"file": str(yaml_file.relative_to(config_dir))},
                )
            elif data is not None:
                logger.warning(
                    "Ignoring non-dict YAML root object",
                    extra={
                        "file": str(yaml_file.relative_to(config_dir)),
                        "root_type": type(data).__name__,
                    },
                )

        logger.info(
            "YAML configs loaded",
            extra={
                "yaml_file_count": len(yaml_files),
                "top_level_keys": sorted(merged.keys()),
            },
        )
        return merged

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    @classmethod
    def initialize(cls, config_dir: Optional[Path] = None) -> None:
        """
        Load YAML defaults (idempotent unless a different directory is given).

        Parameters
        ----------
        config_dir:
            Directory to scan. Defaults to `Config.CONFIG_DIR`.
        """
        target_dir = Path(config_dir) if config_dir is not None else Path(Config.CONFIG_DIR)

        if cls._initialized and cls._config_dir == target_dir:
            logger.debug("ConfigManager already initialized; skipping")
            return

        cls._defaults = cls._load_yaml_configs(target_dir)
        cls._cache = copy.deepcopy(cls._defaults)
        cls._config_dir = target_dir
        cls._initialized = True

    @classmethod
    def reset(cls) -> None:
        """Drop overrides and reload state; primarily used by tests."""
        cls._defaults = {}
        cls._cache = {}
        cls._validators = {}
        cls._initialized = False
        cls._config_dir = None

    # =========================================================================
    # VALIDATORS
    # =========================================================================

    @classmethod
    def register_validator(cls, key: str, validator: Callable[[Any], Any]) -> None:
        """
        Register a validator for a full dot key.

        The validator receives the candidate value and returns the (possibly
        coerced) value, or raises to reject it.
        """
        cls._validators[key] = validator
        logger.debug("Config validator registered", extra={"config_key": key})

    @classmethod
    def _apply_validator(cls, key: str, value: Any) -> Any:
        validator = cls._validators.get(key)
        if validator is None:
            return value
        try:
            return validator(value)
        except Exception as exc:
            raise ConfigValidationError(
                f"Validation failed for '{key}': {exc}"
            ) from exc

    # =========================================================================
    # READ API
    # =========================================================================

    @staticmethod
    def _resolve(source: Dict[str, Any], key: str) -> Any:
        value: Any = source
        for part in key.split("."):
            if not isinstance(value, dict) or part not in value:
                return _MISSING
            value = value[part]
        return value

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieve a configuration value by dot-notation path.

        Returns a deep copy for mapping and list values so callers cannot
        mutate the shared view.

        Examples
        --------
        >>> ConfigManager.get("wheel.paid_spin_cost", 100)
        100
        """
        if not cls._initialized:
            logger.warning(
                "ConfigManager accessed before explicit initialization; "
                "loading defaults now"
            )
            cls.initialize()

        value = cls._resolve(cls._cache, key)
        if value is _MISSING or value is None:
            return default
        if isinstance(value, (dict, list)):
            return copy.deepcopy(value)
        return value

    # =========================================================================
    # WRITE API
    # =========================================================================

    @classmethod
    def set(cls, key: str, value: Any, modified_by: str = "system") -> None:
        """
        Override a configuration value in memory.

        Raises
        ------
        ConfigValidationError
            If a registered validator rejects the value.
        """
        if not cls._initialized:
            cls.initialize()

        validated = cls._apply_validator(key, value)

        parts = key.split(".")
        node: Dict[str, Any] = cls._cache
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        old_value = node.get(parts[-1])
        node[parts[-1]] = validated

        logger.info(
            "Configuration override applied",
            extra={
                "config_key": key,
                "old_value": old_value,
                "new_value": validated,
                "modified_by": modified_by,
            },
        )
