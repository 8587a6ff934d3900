"""
Base Service Foundation

Purpose
-------
Foundational class for the economy services (ledger, streak, wheel,
orchestrator). Services implement business rules, run inside transactions
supplied by `DatabaseService`, and emit domain events after commit.

Design Notes
------------
This base class provides:
- Structured logging with operation context
- Safe config access (`get_config`, raising InvalidConfigurationError when a
  required key is missing)
- Event emission helpers
- Outcome logging that keeps expected business rejections out of error logs

What this class does NOT do:
- Own database transactions (DatabaseService does)
- Hold per-account locks (AccountLockManager does)

Usage
-----
    class WheelService(BaseService):
        def __init__(self, ledger, config_manager, event_bus, logger):
            super().__init__(config_manager, event_bus, logger)
            self._ledger = ledger
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from golden_credits.modules.shared.exceptions import ErrorSeverity, GoldenDomainException

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.config.manager import ConfigManager
    from golden_credits.core.event.bus import EventBus

_SEVERITY_TO_LEVEL = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


class BaseService:
    """
    Base class for all domain services.

    Args:
        config_manager: Tunable configuration access
        event_bus: Event bus for post-commit notifications
        logger: Structured logger instance
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        self._config = config_manager
        self._events = event_bus
        self.log = logger

    def get_config(
        self, key: str, default: Optional[Any] = None, required: bool = False
    ) -> Any:
        """
        Safely retrieve a configuration value.

        Raises:
            InvalidConfigurationError: If required=True and key is missing
        """
        from golden_credits.core.exceptions import InvalidConfigurationError

        value = self._config.get(key, default)
        if required and value is None:
            raise InvalidConfigurationError(
                key, f"Required configuration key '{key}' is missing"
            )
        return value

    async def emit_event(
        self,
        event_type: str,
        data: Dict[str, Any],
        context: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Publish an event. Call only after the transaction committed."""
        await self._events.publish(event_type, {**data, **(context or {})})

    def log_error(
        self,
        operation: str,
        error: Exception,
        **context: Any,
    ) -> None:
        """Log an infrastructure or storage failure at its declared severity."""
        from golden_credits.core.exceptions import get_error_severity

        self.log.log(
            _SEVERITY_TO_LEVEL[get_error_severity(error)],
            f"Service error during {operation}: {str(error)}",
            extra={
                "operation": operation,
                "error_type": type(error).__name__,
                "error_message": str(error),
                **context,
            },
        )

    def log_outcome(
        self,
        operation: str,
        error: GoldenDomainException,
        **context: Any,
    ) -> None:
        """Log a business rejection at the severity it declares."""
        self.log.log(
            _SEVERITY_TO_LEVEL.get(error.severity, logging.INFO),
            f"{operation} rejected: {error.error_code}",
            extra={
                "operation": operation,
                "error_code": error.error_code,
                "error_details": error.details,
                **context,
            },
        )
