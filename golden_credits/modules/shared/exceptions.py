"""
Domain exceptions for the Golden Credits reward economy.

Purpose
-------
Define the structured, domain-specific exception hierarchy for economy
rules. These exceptions are expected business outcomes: the caller receives
them as distinguishable results, and they are never logged as failures.

Design Notes
------------
- All domain exceptions inherit from `GoldenDomainException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict-like)
  - `severity`: `ErrorSeverity` value for logging decisions
  - `is_retryable`: whether the operation can be retried
  - `error_code`: short, stable identifier for programmatic use
- "Capped to zero" is a success, not an exception; every class here is a
  rejection the caller can tell apart from a zero-credit outcome.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"  # Expected, not concerning (e.g., already claimed)
    INFO = "info"  # Normal operation (e.g., validation failures)
    WARNING = "warning"  # Concerning but handled (e.g., retryable errors)
    ERROR = "error"  # Unexpected errors requiring attention
    CRITICAL = "critical"  # System-level failures requiring immediate action


class GoldenDomainException(Exception):
    """
    Base exception for all reward-economy domain errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error (dict-like)
        severity: Error severity level for logging handlers
        is_retryable: Whether the operation can be retried
        error_code: Optional code for programmatic handling

    Example:
        >>> raise GoldenDomainException(
        ...     "Spin failed",
        ...     {"reason": "wheel disabled"}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.INFO
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


class InsufficientFundsError(GoldenDomainException):
    """
    Raised when a debit would take the wallet below zero.

    Args:
        required: Amount the operation needs to debit
        current: Balance at the time of the attempt
    """

    def __init__(self, required: int, current: int) -> None:
        self.required = required
        self.current = current
        super().__init__(
            f"Insufficient Golden Credits: need {required:,}, have {current:,}",
            details={
                "required": required,
                "current": current,
                "deficit": required - current,
            },
            error_code="INSUFFICIENT_FUNDS",
        )


class AlreadyClaimedError(GoldenDomainException):
    """
    Raised when a claim-once reward is claimed a second time.

    Args:
        claim_type: Kind of claim (daily_login, streak_milestone, spin_reward, ...)
        claim_key: Identifier of the specific claim
    """

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG

    def __init__(self, claim_type: str, claim_key: Any) -> None:
        self.claim_type = claim_type
        self.claim_key = claim_key
        super().__init__(
            f"{claim_type} already claimed: {claim_key}",
            details={"claim_type": claim_type, "claim_key": claim_key},
            error_code="ALREADY_CLAIMED",
        )


class NoSpinAvailableError(GoldenDomainException):
    """Raised when a wheel spin of the requested type is not available."""

    DEFAULT_SEVERITY = ErrorSeverity.DEBUG

    def __init__(self, spin_type: str, paid_spins_available: int = 0) -> None:
        self.spin_type = spin_type
        self.paid_spins_available = paid_spins_available
        super().__init__(
            f"No {spin_type} spin available",
            details={
                "spin_type": spin_type,
                "paid_spins_available": paid_spins_available,
            },
            error_code="NO_SPIN_AVAILABLE",
        )


class UnknownRewardTypeError(GoldenDomainException):
    """
    Raised when no reward rule exists for a (game, event type) pair.

    Non-fatal: callers should treat it as a zero reward.
    """

    def __init__(self, game_id: str, event_type: str) -> None:
        self.game_id = game_id
        self.event_type = event_type
        super().__init__(
            f"No reward rule for game '{game_id}' event '{event_type}'",
            details={"game_id": game_id, "event_type": event_type},
            error_code="UNKNOWN_REWARD_TYPE",
        )


class NotFoundError(GoldenDomainException):
    """
    Raised when a referenced economy record does not exist.

    Args:
        resource_type: Type of resource (e.g., "Spin", "Milestone")
        identifier: Optional identifier for the missing resource
    """

    def __init__(self, resource_type: str, identifier: Optional[Any] = None) -> None:
        self.resource_type = resource_type
        self.identifier = identifier

        if identifier is not None:
            message = f"{resource_type} not found: {identifier}"
        else:
            message = f"{resource_type} not found"

        super().__init__(
            message,
            details={"resource_type": resource_type, "identifier": identifier},
            error_code=f"{resource_type.upper()}_NOT_FOUND",
        )


class ValidationError(GoldenDomainException):
    """
    Raised when caller input fails domain validation.

    Args:
        field: Name of the field that failed validation
        message: Explanation of why validation failed
    """

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        self.validation_message = message
        super().__init__(
            f"Validation error for {field}: {message}",
            details={"field": field, "validation_message": message},
            error_code=f"VALIDATION_{field.upper()}",
        )


class InvalidOperationError(GoldenDomainException):
    """
    Raised when an action violates economy rules in the current state.

    Args:
        action: Description of the invalid action
        reason: Explanation of why it's not allowed
    """

    def __init__(self, action: str, reason: str) -> None:
        self.action = action
        self.reason = reason
        super().__init__(
            f"Invalid operation '{action}': {reason}",
            details={"action": action, "reason": reason},
            error_code=f"INVALID_{action.upper()}",
        )


class MilestoneNotReachedError(InvalidOperationError):
    """Raised when a streak milestone is claimed before the streak reaches it."""

    def __init__(self, threshold_days: int, current_streak: int) -> None:
        self.threshold_days = threshold_days
        self.current_streak = current_streak
        super().__init__(
            "claim_milestone",
            f"streak {current_streak} has not reached {threshold_days} days",
        )
        self.details.update(
            {"threshold_days": threshold_days, "current_streak": current_streak}
        )


class GameAlreadyUnlockedError(InvalidOperationError):
    """Raised when an account purchases a game it already owns."""

    def __init__(self, game_id: str) -> None:
        self.game_id = game_id
        super().__init__("purchase_game", f"game '{game_id}' is already unlocked")
        self.details["game_id"] = game_id


# Utility functions for exception handling patterns


def is_expected_outcome(exc: Exception) -> bool:
    """
    True for business rejections that must not be logged as failures.

    Args:
        exc: Exception to check
    """
    return isinstance(exc, GoldenDomainException) and exc.severity in (
        ErrorSeverity.DEBUG,
        ErrorSeverity.INFO,
    )
