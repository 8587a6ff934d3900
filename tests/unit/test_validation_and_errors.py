"""
Unit tests for InputValidator and the exception hierarchies.
"""

import logging

import pytest

from golden_credits.core.exceptions import (
    AccountLockTimeoutError,
    DatabaseError,
    InvalidConfigurationError,
    is_transient_error,
    should_alert,
)
from golden_credits.core.validation.input_validator import InputValidator
from golden_credits.modules.shared.base_service import BaseService
from golden_credits.modules.shared.exceptions import (
    AlreadyClaimedError,
    ErrorSeverity,
    GameAlreadyUnlockedError,
    InsufficientFundsError,
    InvalidOperationError,
    MilestoneNotReachedError,
    NoSpinAvailableError,
    NotFoundError,
    ValidationError,
    is_expected_outcome,
)


class TestIntegerValidation:
    """Quantities and amounts."""

    def test_accepts_integral_values(self):
        assert InputValidator.validate_positive_integer(3, "quantity") == 3
        assert InputValidator.validate_positive_integer(4.0, "quantity") == 4
        assert InputValidator.validate_positive_integer("5", "quantity") == 5

    @pytest.mark.parametrize("value", [0, -1, 1.5, True, None, "many"])
    def test_rejects_non_positive_or_non_integral(self, value):
        with pytest.raises(ValidationError) as exc_info:
            InputValidator.validate_positive_integer(value, "quantity")

        assert exc_info.value.field == "quantity"

    def test_upper_bound(self):
        with pytest.raises(ValidationError):
            InputValidator.validate_positive_integer(101, "quantity", max_value=100)

    def test_non_zero_signed_integer(self):
        assert InputValidator.validate_integer(-25, "amount", allow_zero=False) == -25
        with pytest.raises(ValidationError):
            InputValidator.validate_integer(0, "amount", allow_zero=False)


class TestIdentifierValidation:
    """Account ids, game slugs, choices and params."""

    def test_account_id_opaque_string(self):
        assert InputValidator.validate_account_id("tg:123456") == "tg:123456"

    @pytest.mark.parametrize("value", ["", "   ", " tg:1", 42, None, "x" * 65])
    def test_account_id_rejected(self, value):
        with pytest.raises(ValidationError):
            InputValidator.validate_account_id(value)

    def test_game_id_slug(self):
        assert InputValidator.validate_game_id("flame-of-wisdom") == "flame-of-wisdom"
        with pytest.raises(ValidationError):
            InputValidator.validate_game_id("Flame Of Wisdom")

    def test_choice_normalized(self):
        assert InputValidator.validate_choice("PAID", "spin_type", ["free", "paid"]) == "paid"
        with pytest.raises(ValidationError):
            InputValidator.validate_choice("bonus", "spin_type", ["free", "paid"])

    def test_params(self):
        assert InputValidator.validate_params(None) == {}
        assert InputValidator.validate_params({"level": 5}) == {"level": 5}
        with pytest.raises(ValidationError):
            InputValidator.validate_params(["level", 5])


class TestDomainExceptions:
    """Business rejections carry structured details."""

    def test_insufficient_funds_details(self):
        exc = InsufficientFundsError(required=200, current=150)

        assert exc.details == {"required": 200, "current": 150, "deficit": 50}
        assert exc.error_code == "INSUFFICIENT_FUNDS"
        assert "200" in str(exc)

    def test_expected_outcomes_not_alerted(self):
        for exc in (
            InsufficientFundsError(10, 0),
            AlreadyClaimedError("daily_login", "2025-03-10"),
            NoSpinAvailableError("free"),
            NotFoundError("Spin", "abc"),
            ValidationError("amount", "bad"),
        ):
            assert is_expected_outcome(exc)
            assert not should_alert(exc)

    def test_subclass_relationships(self):
        assert isinstance(MilestoneNotReachedError(7, 3), InvalidOperationError)
        assert isinstance(GameAlreadyUnlockedError("g"), InvalidOperationError)
        assert MilestoneNotReachedError(7, 3).details["threshold_days"] == 7

    def test_not_found_code(self):
        assert NotFoundError("Spin").error_code == "SPIN_NOT_FOUND"

    def test_to_dict(self):
        payload = AlreadyClaimedError("spin_reward", "s-1").to_dict()

        assert payload["error_type"] == "AlreadyClaimedError"
        assert payload["severity"] == ErrorSeverity.DEBUG.value
        assert payload["is_retryable"] is False


class TestInfrastructureExceptions:
    """Engineering failures."""

    def test_lock_timeout_is_retryable(self):
        exc = AccountLockTimeoutError("tg:1", 5.0, "spin_wheel")

        assert is_transient_error(exc)
        assert exc.severity is ErrorSeverity.WARNING

    def test_database_error_wraps_original(self):
        original = RuntimeError("connection reset")
        exc = DatabaseError("award_game_event", original)

        assert exc.original_error is original
        assert exc.details["error_type"] == "RuntimeError"
        assert should_alert(exc)

    def test_invalid_configuration_is_critical(self):
        exc = InvalidConfigurationError("wheel.segments", "weights must sum to 1.0")

        assert exc.config_key == "wheel.segments"
        assert exc.severity is ErrorSeverity.CRITICAL
        assert not is_transient_error(exc)


class TestServiceErrorLogging:
    """BaseService.log_error logs at the failure's severity."""

    @pytest.fixture
    def service(self, mocker):
        return BaseService(mocker.Mock(), mocker.Mock(), mocker.Mock())

    def test_lock_timeout_logged_as_warning(self, service):
        exc = AccountLockTimeoutError("tg:1", 5.0, "spin_wheel")

        service.log_error("spin_wheel", exc, account_id="tg:1")

        level, message = service.log.log.call_args.args
        assert level == logging.WARNING
        assert message.startswith("Service error during spin_wheel")
        assert service.log.log.call_args.kwargs["extra"]["account_id"] == "tg:1"

    def test_unclassified_error_logged_as_error(self, service):
        service.log_error("get_history", RuntimeError("connection reset"))

        assert service.log.log.call_args.args[0] == logging.ERROR

    def test_invalid_configuration_logged_as_critical(self, service):
        service.log_error("spin_wheel", InvalidConfigurationError("wheel.segments", "empty"))

        assert service.log.log.call_args.args[0] == logging.CRITICAL
