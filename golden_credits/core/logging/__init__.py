"""
Golden Credits Logging Infrastructure

Exports the structured logging subsystem and log context helpers.
"""

from golden_credits.core.logging.logger import (
    JSONFormatter,
    LogContext,
    clear_log_context,
    dropped_record_count,
    get_log_context,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "dropped_record_count",
    "JSONFormatter",
    "LogContext",
    "get_log_context",
    "clear_log_context",
]
