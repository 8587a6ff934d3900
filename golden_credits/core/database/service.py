"""
Database Service - Core Infrastructure Layer

Purpose
-------
Own the process-wide AsyncEngine and hand out sessions. Every wallet
mutation runs inside exactly one `get_transaction()` block, so a ledger row,
its streak/wheel side effects and its claim record commit or roll back
together.

Responsibilities
----------------
- Build the engine from Config (PostgreSQL via asyncpg, SQLite via aiosqlite)
- `get_transaction()`: commit on success, rollback on any exception
- `get_session()`: reads with no implicit commit
- Per-transaction statement timeout on PostgreSQL
- Schema bootstrap for development and tests (`create_schema`, `drop_schema`)

Non-Responsibilities
--------------------
- Migrations
- Retries: callers decide, based on `is_transient_error`

Pooling
-------
AsyncAdaptedQueuePool for PostgreSQL; NullPool under ENVIRONMENT=testing and
for SQLite files.

>>> async with DatabaseService.get_transaction() as session:
...     await ledger.append(session, "tg:1", 10, TransactionSource.DAILY_LOGIN, now)
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from golden_credits.core.config.config import Config
from golden_credits.core.database.base import Base
from golden_credits.core.logging.logger import get_logger
from golden_credits.modules.shared.exceptions import is_expected_outcome

logger = get_logger(__name__)


class DatabaseInitializationError(RuntimeError):
    """DATABASE_URL missing/invalid, or the engine could not be created."""


class DatabaseNotInitializedError(RuntimeError):
    """A session was requested before initialize() or after shutdown()."""


def _scheme(url: str) -> str:
    return url.split(":", 1)[0] if ":" in url else "unknown"


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class DatabaseService:
    """Class-level singleton; never instantiated."""

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _statement_timeout_ms: Optional[int] = None
    _init_lock: Optional[asyncio.Lock] = None
    _init_lock_loop: Optional[asyncio.AbstractEventLoop] = None

    # ========================================================================
    # Lifecycle
    # ========================================================================

    @classmethod
    def _lifecycle_lock(cls) -> asyncio.Lock:
        """Lock guarding initialize/shutdown, created per running event loop."""
        loop = asyncio.get_running_loop()
        if cls._init_lock is None or cls._init_lock_loop is not loop:
            cls._init_lock = asyncio.Lock()
            cls._init_lock_loop = loop
        return cls._init_lock

    @staticmethod
    def _engine_options(url: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": bool(Config.DATABASE_ECHO)}
        if Config.is_testing() or url.startswith("sqlite"):
            options["poolclass"] = NullPool
        else:
            options.update(
                pool_size=Config.DATABASE_POOL_SIZE,
                max_overflow=Config.DATABASE_MAX_OVERFLOW,
                pool_recycle=Config.DATABASE_POOL_RECYCLE,
                pool_timeout=Config.DATABASE_POOL_TIMEOUT,
                pool_pre_ping=True,
            )
        return options

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Create the engine and session factory. Idempotent.

        Parameters
        ----------
        url:
            Overrides `Config.DATABASE_URL` (tests pass a temporary SQLite file).

        Raises
        ------
        DatabaseInitializationError
        """
        async with cls._lifecycle_lock():
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return

            database_url = url or Config.DATABASE_URL
            if not isinstance(database_url, str) or not database_url:
                raise DatabaseInitializationError("DATABASE_URL must be a non-empty string")

            try:
                engine = create_async_engine(database_url, **cls._engine_options(database_url))
            except (SQLAlchemyError, ImportError, ValueError) as exc:
                logger.error(
                    "DatabaseService initialization failed",
                    extra={"url_scheme": _scheme(database_url), "error_type": type(exc).__name__},
                    exc_info=True,
                )
                raise DatabaseInitializationError(f"Database initialization failed: {exc}") from exc

            if database_url.startswith("sqlite"):
                event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            cls._engine = engine
            cls._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )
            cls._statement_timeout_ms = (
                Config.DATABASE_STATEMENT_TIMEOUT_MS
                if database_url.startswith("postgresql")
                else None
            )

            logger.info(
                "DatabaseService initialized",
                extra={
                    "url_scheme": _scheme(database_url),
                    "pool_class": type(engine.pool).__name__,
                },
            )

    @classmethod
    async def shutdown(cls) -> None:
        """Dispose the engine. Safe to call more than once."""
        async with cls._lifecycle_lock():
            engine = cls._engine
            cls._engine = None
            cls._session_factory = None
            cls._statement_timeout_ms = None
            if engine is None:
                return
            await engine.dispose()
            logger.info("DatabaseService shutdown complete")

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    def _require_engine(cls) -> AsyncEngine:
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )
        return cls._engine

    @classmethod
    async def create_schema(cls) -> None:
        """Create every table on `Base.metadata` (development and tests)."""
        engine = cls._require_engine()

        # Importing the models registers them on the metadata
        import golden_credits.database.models  # noqa: F401

        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        logger.info("Database schema ensured", extra={"table_count": len(Base.metadata.tables)})

    @classmethod
    async def drop_schema(cls) -> None:
        engine = cls._require_engine()
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database schema dropped")

    @classmethod
    async def health_check(cls) -> bool:
        """`SELECT 1`; returns False instead of raising."""
        if cls._engine is None:
            return False
        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except SQLAlchemyError as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False
        return True

    # ========================================================================
    # Sessions
    # ========================================================================

    @classmethod
    async def _open(cls) -> AsyncSession:
        cls._require_engine()
        factory = cls._session_factory
        if factory is None:
            raise DatabaseNotInitializedError("DatabaseService has no session factory")
        session = factory()
        if cls._statement_timeout_ms is not None:
            await session.execute(text(f"SET LOCAL statement_timeout = {int(cls._statement_timeout_ms)}"))
        return session

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """Session for reads; nothing is committed on exit."""
        session = await cls._open()
        try:
            yield session
        finally:
            await session.close()

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Atomic unit of work: commit on success, rollback and re-raise otherwise.

        Business rejections (insufficient funds, already claimed, ...) roll
        back at debug level; anything else is logged as an error.
        """
        start = time.perf_counter()
        session = await cls._open()
        try:
            yield session
            await session.commit()
            logger.debug(
                "Database transaction committed",
                extra={"duration_ms": round((time.perf_counter() - start) * 1000.0, 2)},
            )
        except BaseException as exc:
            await session.rollback()
            duration_ms = round((time.perf_counter() - start) * 1000.0, 2)
            if is_expected_outcome(exc) or not isinstance(exc, Exception):
                logger.debug(
                    "Database transaction rolled back",
                    extra={"reason": type(exc).__name__, "duration_ms": duration_ms},
                )
            else:
                logger.error(
                    "Error in transaction; rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": duration_ms,
                    },
                    exc_info=isinstance(exc, SQLAlchemyError),
                )
            raise
        finally:
            await session.close()
