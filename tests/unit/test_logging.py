"""
Unit tests for the structured logging helpers.
"""

import json
import logging

import pytest

from golden_credits.core.logging.logger import (
    AccountContextFilter,
    JSONFormatter,
    LogContext,
    clear_log_context,
    get_log_context,
)


def make_record(message="Wallet credited", **extra):
    record = logging.LogRecord("golden_credits.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestLogContext:
    """ContextVar-bound account context."""

    def test_binds_and_restores(self):
        with LogContext(account_id="tg:1", operation="claim_daily_login") as ctx:
            assert get_log_context()["account_id"] == "tg:1"
            assert len(ctx.context["correlation_id"]) == 8

        assert get_log_context() == {}

    def test_nested_context_keeps_correlation_id(self):
        with LogContext(account_id="tg:1", correlation_id="abc12345"):
            with LogContext(operation="spin_wheel"):
                context = get_log_context()

        assert context == {
            "account_id": "tg:1",
            "operation": "spin_wheel",
            "correlation_id": "abc12345",
        }

    @pytest.mark.asyncio
    async def test_async_usage(self):
        async with LogContext(account_id="tg:2"):
            assert get_log_context()["account_id"] == "tg:2"
        clear_log_context()
        assert get_log_context() == {}


class TestFormatting:
    """Filter and JSON rendering."""

    def test_filter_copies_context_onto_record(self):
        record = make_record()

        with LogContext(account_id="tg:9", operation="purchase_spins"):
            AccountContextFilter().filter(record)

        assert record.account_id == "tg:9"
        assert record.operation == "purchase_spins"

    def test_filter_fills_placeholders(self):
        record = make_record()
        AccountContextFilter().filter(record)
        assert record.account_id == "-"

    def test_json_output(self):
        record = make_record(amount=15, source="daily-login")
        with LogContext(account_id="tg:3"):
            AccountContextFilter().filter(record)

        payload = json.loads(JSONFormatter().format(record))

        assert payload["message"] == "Wallet credited"
        assert payload["level"] == "INFO"
        assert payload["account_id"] == "tg:3"
        assert "operation" not in payload
        assert payload["extra"] == {"amount": 15, "source": "daily-login"}
