"""
Per-account exclusive scopes for wallet mutations.

Purpose
-------
Serialize every state-changing operation on one account while letting
different accounts proceed in parallel.

Responsibilities
----------------
- Keep a registry of per-account `asyncio.Lock`s, created on demand and
  dropped once no task holds or waits on them
- Bound lock acquisition by a configurable wait timeout and raise the
  retryable `AccountLockTimeoutError` when it elapses
- Optionally add a Redis token lock for exclusion across processes
- Run critical sections to completion: a caller cancelled after the section
  started still sees the work finish (and the lock released) before its
  `CancelledError` surfaces

Lock key format: ``gc:lock:account:{account_id}``.
"""

from __future__ import annotations

import asyncio
import time
from contextlib import AsyncExitStack, asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncGenerator, Awaitable, Callable, Dict, Optional, TypeVar

from golden_credits.core.exceptions import AccountLockTimeoutError
from golden_credits.core.logging.logger import get_logger
from golden_credits.core.redis.service import RedisService

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class _LockEntry:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    refs: int = 0


async def run_to_completion(work: Awaitable[T]) -> T:
    """
    Await `work` in its own task, shielding it from caller cancellation.

    If the caller is cancelled while the task runs, the task keeps running;
    once it finishes, `CancelledError` is raised to the caller.
    """
    task = asyncio.ensure_future(work)
    cancelled = False

    while True:
        try:
            result = await asyncio.shield(task)
            break
        except asyncio.CancelledError:
            if task.done():
                raise
            cancelled = True

    if cancelled:
        raise asyncio.CancelledError()
    return result


class AccountLockManager:
    """
    Registry of per-account exclusive scopes.

    Usage
    -----
    >>> locks = AccountLockManager(wait_timeout=5.0)
    >>> async with locks.hold("tg:42", operation="claim_daily_login"):
    ...     ...
    >>> await locks.run_exclusive("tg:42", "spin_wheel", lambda: service.spin(...))
    """

    KEY_PREFIX = "gc:lock:account:"

    def __init__(self, wait_timeout: float = 5.0, use_redis: bool = False) -> None:
        if wait_timeout <= 0:
            raise ValueError("wait_timeout must be positive")
        self.wait_timeout = float(wait_timeout)
        self.use_redis = use_redis
        self._locks: Dict[str, _LockEntry] = {}

    def _checkout(self, account_id: str) -> _LockEntry:
        entry = self._locks.get(account_id)
        if entry is None:
            entry = _LockEntry()
            self._locks[account_id] = entry
        entry.refs += 1
        return entry

    def _checkin(self, account_id: str, entry: _LockEntry) -> None:
        entry.refs -= 1
        if entry.refs <= 0 and self._locks.get(account_id) is entry:
            del self._locks[account_id]

    def is_locked(self, account_id: str) -> bool:
        entry = self._locks.get(account_id)
        return entry is not None and entry.lock.locked()

    @property
    def tracked_accounts(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(
        self,
        account_id: str,
        operation: Optional[str] = None,
    ) -> AsyncGenerator[None, None]:
        """
        Hold the exclusive scope for `account_id`.

        Raises
        ------
        AccountLockTimeoutError
            If the scope is not acquired within `wait_timeout` seconds.
        """
        entry = self._checkout(account_id)
        start = time.monotonic()

        try:
            try:
                await asyncio.wait_for(entry.lock.acquire(), timeout=self.wait_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    "Account lock wait timed out",
                    extra={
                        "account_id": account_id,
                        "operation": operation,
                        "wait_timeout_seconds": self.wait_timeout,
                    },
                )
                raise AccountLockTimeoutError(
                    account_id, self.wait_timeout, operation
                ) from None

            try:
                async with AsyncExitStack() as stack:
                    if self.use_redis:
                        remaining = self.wait_timeout - (time.monotonic() - start)
                        try:
                            await stack.enter_async_context(
                                RedisService.acquire_lock(
                                    f"{self.KEY_PREFIX}{account_id}",
                                    wait_timeout=max(0.0, remaining),
                                    operation=operation,
                                )
                            )
                        except TimeoutError:
                            raise AccountLockTimeoutError(
                                account_id, self.wait_timeout, operation
                            ) from None

                    logger.debug(
                        "Account lock acquired",
                        extra={
                            "account_id": account_id,
                            "operation": operation,
                            "wait_ms": round((time.monotonic() - start) * 1000, 2),
                        },
                    )
                    yield
            finally:
                entry.lock.release()
        finally:
            self._checkin(account_id, entry)

    async def run_exclusive(
        self,
        account_id: str,
        operation: str,
        work: Callable[[], Awaitable[T]],
    ) -> T:
        """Hold the account scope and run `work()` to completion inside it."""
        async with self.hold(account_id, operation=operation):
            return await run_to_completion(work())
