"""
Infrastructure exceptions for the Golden Credits engine.

Purpose
-------
Define the structured exception hierarchy for infrastructure-level concerns:
storage failures, configuration errors, and lock contention. These are
engineering-level issues, as opposed to the expected business outcomes in
`golden_credits.modules.shared.exceptions`.

Design Notes
------------
- All infrastructure exceptions inherit from `GoldenInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- `ErrorSeverity` is shared with the domain hierarchy so callers can treat
  both uniformly.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from golden_credits.modules.shared.exceptions import (
    ErrorSeverity,
    GoldenDomainException,
)


class GoldenInfrastructureException(Exception):
    """
    Base exception for all infrastructure-level errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE: bool = False

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        is_retryable: Optional[bool] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.is_retryable: bool = (
            is_retryable if is_retryable is not None else self.DEFAULT_RETRYABLE
        )
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
            "is_retryable": self.is_retryable,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}, "
            f"is_retryable={self.is_retryable!r}"
            ")"
        )


class InvalidConfigurationError(GoldenInfrastructureException):
    """
    Raised when economy configuration is invalid or missing.

    A deployment error: wheel weights that do not sum to 1.0, an empty
    attractive band, malformed reward rules. Raised at load time and halts
    startup.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL
    DEFAULT_RETRYABLE = False

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="INVALID_CONFIGURATION",
        )


class AccountLockTimeoutError(GoldenInfrastructureException):
    """
    Raised when the per-account write lock is not acquired in time.

    Callers should retry with backoff; the engine never retries internally.

    Args:
        account_id: Account whose lock was contended
        wait_timeout: Seconds waited before giving up
        operation: Operation that attempted the acquisition
    """

    DEFAULT_SEVERITY = ErrorSeverity.WARNING
    DEFAULT_RETRYABLE = True

    def __init__(
        self,
        account_id: str,
        wait_timeout: float,
        operation: Optional[str] = None,
    ) -> None:
        self.account_id = account_id
        self.wait_timeout = wait_timeout
        self.operation = operation
        super().__init__(
            f"Could not lock account {account_id} within {wait_timeout:.2f}s",
            details={
                "account_id": account_id,
                "wait_timeout": wait_timeout,
                "operation": operation,
            },
            error_code="ACCOUNT_LOCK_TIMEOUT",
        )


class DatabaseError(GoldenInfrastructureException):
    """
    Raised when database operations fail.

    Wraps the underlying driver/SQLAlchemy exception. The surrounding
    transaction has been rolled back, so no partial state is visible.

    Args:
        operation: Description of the database operation that failed
        original_error: The underlying database exception
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Database error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="DATABASE_ERROR",
        )


class RedisConnectionError(GoldenInfrastructureException):
    """Raised when the Redis lock backend is unavailable."""

    DEFAULT_SEVERITY = ErrorSeverity.ERROR
    DEFAULT_RETRYABLE = True

    def __init__(self, operation: str, original_error: Exception) -> None:
        self.operation = operation
        self.original_error = original_error
        super().__init__(
            f"Redis error during {operation}: {original_error}",
            details={
                "operation": operation,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            error_code="REDIS_ERROR",
        )


# Utility functions for exception handling patterns


def is_transient_error(exc: Exception) -> bool:
    """
    Check if an exception represents a transient error that can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if error is retryable, False otherwise.
    """
    if isinstance(exc, (GoldenInfrastructureException, GoldenDomainException)):
        return exc.is_retryable
    return False


def get_error_severity(exc: Exception) -> ErrorSeverity:
    """Get the severity level of an exception for logging."""
    if isinstance(exc, (GoldenInfrastructureException, GoldenDomainException)):
        return exc.severity
    return ErrorSeverity.ERROR


def should_alert(exc: Exception) -> bool:
    """True if severity is ERROR or CRITICAL."""
    return get_error_severity(exc) in (ErrorSeverity.ERROR, ErrorSeverity.CRITICAL)
