"""
Golden Credits Logging Subsystem

Purpose
-------
Structured, async-safe logging for the reward engine:

- JSON records (console in production, optional daily rotating file)
- Account and operation context carried through ContextVars, so every
  record emitted while handling one wallet operation shares the same
  account_id, operation and correlation_id
- Records are handed to a bounded queue and written by a QueueListener
  thread; a full queue drops the record instead of blocking the event loop

Usage
-----
>>> logger = get_logger(__name__)
>>> async with LogContext(account_id="tg:42", operation="spin_wheel"):
...     logger.info("Wheel spun", extra={"segment_id": 4})

Configuration (Config):
    LOG_LEVEL, LOG_JSON, LOG_FILE_ENABLED, LOGS_DIR, LOG_AUTOCONFIGURE
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Optional

from golden_credits.core.config.config import Config

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-32s | %(account_id)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_NAME = "golden_credits.json.log"
QUEUE_MAX_SIZE = 10_000

# Keys the engine binds per operation; rendered at the top level of JSON records
CONTEXT_KEYS = ("account_id", "operation", "correlation_id")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("golden_credits_log_context", default={})

_listener: Optional[QueueListener] = None
_dropped_records = 0

# LogRecord attributes that never belong in the "extra" section
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


def _level() -> int:
    return getattr(logging, str(Config.LOG_LEVEL).upper(), logging.INFO)


def _use_json() -> bool:
    if Config.LOG_JSON is None:
        return Config.is_production()
    return bool(Config.LOG_JSON)


# ============================================================================
# Filters & Formatters
# ============================================================================


class AccountContextFilter(logging.Filter):
    """Copy the bound account context onto each record (producer side)."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        context = _log_context.get()
        for key in CONTEXT_KEYS:
            if not hasattr(record, key):
                setattr(record, key, context.get(key, "-"))
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record; `extra={...}` fields go under "extra"."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key in CONTEXT_KEYS:
            value = getattr(record, key, "-")
            if value != "-":
                payload[key] = value

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRS and key not in CONTEXT_KEYS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


class _DroppingQueueHandler(QueueHandler):
    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        global _dropped_records
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            _dropped_records += 1


# ============================================================================
# Setup / Teardown
# ============================================================================


def _handlers() -> List[logging.Handler]:
    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(
        JSONFormatter() if _use_json() else logging.Formatter(CONSOLE_FORMAT, DATE_FORMAT)
    )
    handlers: List[logging.Handler] = [console]

    if Config.LOG_FILE_ENABLED:
        logs_dir = Path(Config.LOGS_DIR).resolve()
        logs_dir.mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            filename=str(logs_dir / LOG_FILE_NAME),
            when="midnight",
            backupCount=7,
            encoding="utf-8",
            utc=True,
        )
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    return handlers


def setup_logging() -> None:
    """Install the queue handler on the root logger. Idempotent."""
    global _listener, _dropped_records

    if _listener is not None:
        return

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_MAX_SIZE)
    _listener = QueueListener(log_queue, *_handlers(), respect_handler_level=True)
    _listener.start()
    _dropped_records = 0

    queue_handler = _DroppingQueueHandler(log_queue)
    queue_handler.addFilter(AccountContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(_level())
    root.addHandler(queue_handler)

    for noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging initialized",
        extra={
            "environment": Config.ENVIRONMENT,
            "log_level": logging.getLevelName(_level()),
            "json": _use_json(),
            "file_enabled": Config.LOG_FILE_ENABLED,
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and detach all root handlers."""
    global _listener

    if _listener is None:
        return

    _listener.stop()
    _listener = None

    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)

    if _dropped_records:
        sys.stderr.write(f"Golden Credits logging dropped {_dropped_records} record(s)\n")


def dropped_record_count() -> int:
    return _dropped_records


# ============================================================================
# Public API
# ============================================================================


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Bind account/operation context for the duration of a block.

    Nested contexts inherit the outer correlation id unless one is given.
    """

    def __init__(
        self,
        account_id: Optional[str] = None,
        operation: Optional[str] = None,
        correlation_id: Optional[str] = None,
        **extra: Any,
    ) -> None:
        outer = _log_context.get()
        self.context: Dict[str, Any] = {**outer, **extra}
        if account_id is not None:
            self.context["account_id"] = account_id
        if operation is not None:
            self.context["operation"] = operation
        self.context["correlation_id"] = (
            correlation_id or outer.get("correlation_id") or uuid.uuid4().hex[:8]
        )
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set(self.context)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)


def get_log_context() -> Dict[str, Any]:
    return dict(_log_context.get())


def clear_log_context() -> None:
    _log_context.set({})


if Config.LOG_AUTOCONFIGURE:
    setup_logging()
