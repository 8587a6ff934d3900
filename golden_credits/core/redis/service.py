"""
RedisService: async Redis client and distributed account locks.

Purpose
-------
Provide cross-process mutual exclusion for account mutations when several
engine processes share one database. In-process exclusion is handled by
`AccountLockManager`; Redis is only consulted when
`Config.REDIS_LOCKS_ENABLED` is set.

Responsibilities
----------------
- Initialize and manage a singleton `redis.asyncio` client
- Provide token-based locks via SET NX + Lua compare-and-delete release
- Health check via PING

Configuration Keys
------------------
- engine.locks.redis.lease_seconds        : int (default 30)
- engine.locks.redis.retry_interval_sec   : float (default 0.05)
- engine.locks.redis.max_connections      : int (default 50)

Architecture Notes
------------------
- Lock safety relies on unique UUID tokens and an atomic Lua release, so an
  expired lease never deletes another holder's lock
- Initialization is idempotent and guarded by an asyncio.Lock
"""

from __future__ import annotations

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from redis.asyncio.client import Redis as AsyncRedis
from redis.exceptions import RedisError

from golden_credits.core.config.config import Config
from golden_credits.core.config.manager import ConfigManager
from golden_credits.core.exceptions import RedisConnectionError
from golden_credits.core.logging.logger import get_logger

logger = get_logger(__name__)


class RedisService:
    """Singleton async Redis client with distributed locking."""

    _client: Optional[AsyncRedis] = None
    _init_lock: asyncio.Lock = asyncio.Lock()

    _LUA_UNLOCK_SCRIPT = """
    if redis.call("GET", KEYS[1]) == ARGV[1] then
        return redis.call("DEL", KEYS[1])
    else
        return 0
    end
    """

    # ═══════════════════════════════════════════════════════════════════════
    # LIFECYCLE MANAGEMENT
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    async def initialize(cls, url: Optional[str] = None) -> None:
        """
        Initialize the singleton client and verify connectivity.

        Raises
        ------
        RedisConnectionError
            If Redis is unreachable.
        """
        if cls._client is not None:
            logger.debug("RedisService already initialized, skipping")
            return

        async with cls._init_lock:
            if cls._client is not None:
                return

            url = url or Config.REDIS_URL
            max_connections = int(
                ConfigManager.get("engine.locks.redis.max_connections", 50)
            )
            start_time = time.monotonic()

            client: AsyncRedis = AsyncRedis.from_url(
                url,
                socket_timeout=Config.REDIS_SOCKET_TIMEOUT,
                decode_responses=True,
                max_connections=max_connections,
                retry_on_timeout=False,
            )
            try:
                await client.ping()
            except RedisError as exc:
                await client.aclose()
                logger.critical(
                    "Failed to initialize RedisService",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                    },
                    exc_info=True,
                )
                raise RedisConnectionError("initialize", exc) from exc

            cls._client = client
            logger.info(
                "RedisService initialized successfully",
                extra={
                    "url_scheme": url.split("://")[0] if "://" in url else "unknown",
                    "max_connections": max_connections,
                    "initialization_time_ms": round(
                        (time.monotonic() - start_time) * 1000, 2
                    ),
                },
            )

    @classmethod
    async def shutdown(cls) -> None:
        client = cls._client
        cls._client = None
        if client is None:
            logger.debug("RedisService not initialized, nothing to shutdown")
            return

        try:
            await client.aclose()
            logger.info("RedisService shutdown complete")
        except RedisError as exc:
            logger.error(
                "Error during RedisService shutdown",
                extra={"error": str(exc), "error_type": type(exc).__name__},
                exc_info=True,
            )

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._client is not None

    @classmethod
    def client(cls) -> AsyncRedis:
        if cls._client is None:
            raise RuntimeError(
                "RedisService not initialized. "
                "Call `await RedisService.initialize()` first."
            )
        return cls._client

    @classmethod
    async def health_check(cls) -> bool:
        if cls._client is None:
            logger.warning("Health check failed: RedisService not initialized")
            return False
        try:
            return bool(await cls._client.ping())
        except RedisError as exc:
            logger.warning(
                "Redis health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    # ═══════════════════════════════════════════════════════════════════════
    # DISTRIBUTED LOCKING
    # ═══════════════════════════════════════════════════════════════════════

    @classmethod
    @asynccontextmanager
    async def acquire_lock(
        cls,
        key: str,
        wait_timeout: float,
        lease_seconds: Optional[int] = None,
        retry_interval: Optional[float] = None,
        operation: Optional[str] = None,
    ) -> AsyncGenerator[None, None]:
        """
        Acquire a distributed lock using SET NX with a unique token.

        The lease expires on its own if the holder crashes.

        Raises
        ------
        TimeoutError
            If the lock cannot be acquired within `wait_timeout` seconds.

        Example
        -------
        >>> async with RedisService.acquire_lock("gc:lock:account:tg:1", wait_timeout=5):
        >>>     ...
        """
        client = cls.client()

        if lease_seconds is None:
            lease_seconds = int(ConfigManager.get("engine.locks.redis.lease_seconds", 30))
        if retry_interval is None:
            retry_interval = float(
                ConfigManager.get("engine.locks.redis.retry_interval_sec", 0.05)
            )

        token = str(uuid.uuid4())
        start = time.monotonic()
        deadline = start + max(0.0, wait_timeout)
        acquired = False

        try:
            while True:
                try:
                    acquired = bool(
                        await client.set(name=key, value=token, nx=True, ex=lease_seconds)
                    )
                except RedisError as exc:
                    logger.error(
                        "Redis lock acquisition error",
                        extra={
                            "lock_key": key,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                        exc_info=True,
                    )

                if acquired:
                    logger.debug(
                        "Redis lock acquired",
                        extra={
                            "lock_key": key,
                            "lease_seconds": lease_seconds,
                            "wait_ms": round((time.monotonic() - start) * 1000, 2),
                            "operation": operation,
                        },
                    )
                    break

                if time.monotonic() >= deadline:
                    logger.warning(
                        "Failed to acquire Redis lock within timeout",
                        extra={"lock_key": key, "wait_timeout_seconds": wait_timeout},
                    )
                    raise TimeoutError(
                        f"Failed to acquire Redis lock '{key}' within {wait_timeout}s"
                    )

                await asyncio.sleep(retry_interval)

            yield

        finally:
            if acquired:
                try:
                    released = await client.eval(cls._LUA_UNLOCK_SCRIPT, 1, key, token)
                    if released:
                        logger.debug("Redis lock released", extra={"lock_key": key})
                    else:
                        logger.warning(
                            "Redis lock already expired or stolen",
                            extra={"lock_key": key, "lease_seconds": lease_seconds},
                        )
                except RedisError as exc:
                    logger.warning(
                        "Failed to release Redis lock (will expire automatically)",
                        extra={
                            "lock_key": key,
                            "error": str(exc),
                            "error_type": type(exc).__name__,
                        },
                    )
