"""
Input validation for the reward engine's public operations.

Purpose
-------
Fail fast on malformed caller input (account ids, game ids, quantities,
amounts, choices) before any lock is taken or row is written.

Responsibilities
----------------
- Validate and convert inputs to the expected types
- Enforce bounds on numerical inputs
- Validate identifier formats and lengths
- Raise ValidationError with a clear message

Non-Responsibilities
--------------------
- Business rules such as balance checks (service layer concern)
- Database constraints (persistence concern)

Observability
-------------
Every failure is logged at debug level with field_name, raw_value (repr)
and reason.
"""

from __future__ import annotations

import re
from typing import Any, Optional, Sequence, NoReturn

from golden_credits.core.logging.logger import get_logger
from golden_credits.modules.shared.exceptions import ValidationError

logger = get_logger(__name__)

MAX_ACCOUNT_ID_LENGTH = 64
MAX_GAME_ID_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 255

_GAME_ID_PATTERN = re.compile(r"^[a-z0-9][a-z0-9_\-]*$")


def _raise_validation_error(field_name: str, value: Any, message: str) -> NoReturn:
    logger.debug(
        "Input validation failed",
        extra={
            "field_name": field_name,
            "raw_value": repr(value),
            "reason": message,
        },
    )
    raise ValidationError(field_name, message)


class InputValidator:
    """
    Stateless validation helpers.

    Each method returns the validated (possibly normalized) value or raises
    ValidationError.
    """

    # =========================================================================
    # INTEGER VALIDATION
    # =========================================================================

    @staticmethod
    def validate_integer(
        value: Any,
        field_name: str,
        min_value: Optional[int] = None,
        max_value: Optional[int] = None,
        allow_zero: bool = True,
    ) -> int:
        """
        Validate an integer with optional bounds.

        Booleans and non-integral floats are rejected.
        """
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if isinstance(value, bool):
            _raise_validation_error(field_name, value, "Must be a whole number")

        if isinstance(value, float) and not value.is_integer():
            _raise_validation_error(
                field_name, value, f"Must be a whole number, got '{value}'"
            )

        try:
            int_value = int(value)
        except (ValueError, TypeError):
            _raise_validation_error(
                field_name,
                value,
                f"Must be a whole number, got '{value}'",
            )

        if not allow_zero and int_value == 0:
            _raise_validation_error(field_name, int_value, "Cannot be zero")

        if min_value is not None and int_value < min_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Must be at least {min_value}, got {int_value}",
            )

        if max_value is not None and int_value > max_value:
            _raise_validation_error(
                field_name,
                int_value,
                f"Cannot exceed {max_value}, got {int_value}",
            )

        return int_value

    @staticmethod
    def validate_positive_integer(
        value: Any,
        field_name: str,
        max_value: Optional[int] = None,
    ) -> int:
        return InputValidator.validate_integer(
            value=value,
            field_name=field_name,
            min_value=1,
            max_value=max_value,
            allow_zero=False,
        )

    @staticmethod
    def validate_non_negative_integer(
        value: Any,
        field_name: str,
        max_value: Optional[int] = None,
    ) -> int:
        return InputValidator.validate_integer(
            value=value,
            field_name=field_name,
            min_value=0,
            max_value=max_value,
            allow_zero=True,
        )

    # =========================================================================
    # IDENTIFIER VALIDATION
    # =========================================================================

    @staticmethod
    def validate_account_id(value: Any, field_name: str = "account_id") -> str:
        """
        Validate an opaque account identifier.

        Any non-blank string up to 64 characters is accepted; surrounding
        whitespace is not allowed because identifiers are compared verbatim.
        """
        if not isinstance(value, str):
            _raise_validation_error(field_name, value, "Must be a string")

        if not value.strip():
            _raise_validation_error(field_name, value, "Cannot be empty")

        if value != value.strip():
            _raise_validation_error(
                field_name, value, "Cannot start or end with whitespace"
            )

        if len(value) > MAX_ACCOUNT_ID_LENGTH:
            _raise_validation_error(
                field_name,
                value,
                f"Cannot exceed {MAX_ACCOUNT_ID_LENGTH} characters",
            )

        return value

    @staticmethod
    def validate_game_id(value: Any, field_name: str = "game_id") -> str:
        """Validate a game slug such as ``flame-of-wisdom``."""
        str_value = InputValidator.validate_string(
            value, field_name, min_length=1, max_length=MAX_GAME_ID_LENGTH
        )
        if not _GAME_ID_PATTERN.match(str_value):
            _raise_validation_error(
                field_name,
                value,
                "Must contain only lowercase letters, digits, '-' or '_'",
            )
        return str_value

    # =========================================================================
    # STRING VALIDATION
    # =========================================================================

    @staticmethod
    def validate_string(
        value: Any,
        field_name: str,
        min_length: Optional[int] = None,
        max_length: Optional[int] = None,
    ) -> str:
        if value is None:
            _raise_validation_error(field_name, value, "Value is required")

        if not isinstance(value, str):
            _raise_validation_error(field_name, value, "Must be a string")

        str_value = value.strip()

        if min_length is not None and len(str_value) < min_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Must be at least {min_length} characters",
            )

        if max_length is not None and len(str_value) > max_length:
            _raise_validation_error(
                field_name,
                str_value,
                f"Cannot exceed {max_length} characters",
            )

        return str_value

    # =========================================================================
    # CHOICE VALIDATION
    # =========================================================================

    @staticmethod
    def validate_choice(
        value: Any,
        field_name: str,
        valid_choices: Sequence[str],
    ) -> str:
        """Validate that value is one of the allowed choices (case-insensitive)."""
        str_value = str(value).lower().strip()
        normalized_choices = {choice.lower() for choice in valid_choices}

        if str_value not in normalized_choices:
            choices_str = ", ".join(sorted(valid_choices))
            _raise_validation_error(
                field_name,
                value,
                f"Invalid choice '{value}'. Must be one of: {choices_str}",
            )

        return str_value

    @staticmethod
    def validate_params(value: Any, field_name: str = "params") -> dict:
        """Validate an optional event parameter mapping with string keys."""
        if value is None:
            return {}
        if not isinstance(value, dict):
            _raise_validation_error(field_name, value, "Must be a mapping")
        for key in value:
            if not isinstance(key, str):
                _raise_validation_error(field_name, key, "Keys must be strings")
        return dict(value)
