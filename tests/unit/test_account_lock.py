"""
Unit tests for AccountLockManager.

Tests per-account exclusion, parallelism across accounts, wait timeouts,
run-to-completion under cancellation and registry cleanup.
"""

import asyncio

import pytest

from golden_credits.core.exceptions import AccountLockTimeoutError
from golden_credits.core.locking.account_lock import AccountLockManager, run_to_completion


@pytest.mark.asyncio
class TestExclusion:
    """One holder per account at a time."""

    async def test_same_account_serialized(self):
        locks = AccountLockManager(wait_timeout=2.0)
        active = 0
        peak = 0

        async def work():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.01)
            active -= 1

        await asyncio.gather(*(locks.run_exclusive("tg:1", "op", work) for _ in range(5)))

        assert peak == 1

    async def test_different_accounts_run_in_parallel(self):
        locks = AccountLockManager(wait_timeout=2.0)
        both_inside = asyncio.Event()
        inside = set()

        async def work(account_id):
            inside.add(account_id)
            if len(inside) == 2:
                both_inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1.0)

        await asyncio.gather(
            locks.run_exclusive("tg:1", "op", lambda: work("tg:1")),
            locks.run_exclusive("tg:2", "op", lambda: work("tg:2")),
        )

        assert both_inside.is_set()

    async def test_wait_timeout_raises_retryable_error(self):
        locks = AccountLockManager(wait_timeout=0.05)
        acquired = asyncio.Event()
        release = asyncio.Event()

        async def hold():
            async with locks.hold("tg:1", operation="holder"):
                acquired.set()
                await release.wait()

        holder = asyncio.create_task(hold())
        await acquired.wait()

        with pytest.raises(AccountLockTimeoutError) as exc_info:
            async with locks.hold("tg:1", operation="claim_daily_login"):
                pass

        assert exc_info.value.is_retryable is True
        assert exc_info.value.details["operation"] == "claim_daily_login"

        release.set()
        await holder

    async def test_registry_cleaned_up(self):
        locks = AccountLockManager(wait_timeout=1.0)

        async with locks.hold("tg:1"):
            assert locks.is_locked("tg:1")
            assert locks.tracked_accounts == 1

        assert locks.tracked_accounts == 0
        assert not locks.is_locked("tg:1")

    async def test_lock_released_after_failure(self):
        locks = AccountLockManager(wait_timeout=0.5)

        async def boom():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await locks.run_exclusive("tg:1", "op", boom)

        assert locks.tracked_accounts == 0
        assert await locks.run_exclusive("tg:1", "op", lambda: asyncio.sleep(0, result=7)) == 7


@pytest.mark.asyncio
class TestRunToCompletion:
    """Cancellation is deferred until the critical section finishes."""

    async def test_work_finishes_before_cancellation_surfaces(self):
        finished = []
        started = asyncio.Event()

        async def work():
            started.set()
            await asyncio.sleep(0.05)
            finished.append(True)
            return "done"

        task = asyncio.create_task(run_to_completion(work()))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert finished == [True]

    async def test_cancelled_holder_releases_lock(self):
        locks = AccountLockManager(wait_timeout=1.0)
        started = asyncio.Event()
        committed = []

        async def work():
            started.set()
            await asyncio.sleep(0.05)
            committed.append("tx")

        task = asyncio.create_task(locks.run_exclusive("tg:1", "op", work))
        await started.wait()
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        assert committed == ["tx"]
        assert not locks.is_locked("tg:1")

    async def test_returns_result(self):
        async def work():
            return 42

        assert await run_to_completion(work()) == 42


class TestConstruction:
    """Constructor validation."""

    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValueError):
            AccountLockManager(wait_timeout=0)

    def test_key_prefix(self):
        assert AccountLockManager.KEY_PREFIX == "gc:lock:account:"
