"""
Unit tests for DatabaseService lifecycle guards.
"""

import asyncio

import pytest

from golden_credits.core.database.service import (
    DatabaseNotInitializedError,
    DatabaseService,
)


async def initialize_while_lock_held(url):
    """Make initialize() wait on the lifecycle lock, then let it through."""
    async with DatabaseService._lifecycle_lock():
        pending = asyncio.ensure_future(DatabaseService.initialize(url))
        await asyncio.sleep(0)
        assert not pending.done()
    await pending
    assert DatabaseService.is_initialized()
    await DatabaseService.shutdown()


@pytest.mark.database
class TestLifecycleLock:
    """initialize/shutdown across separate event loops."""

    def test_contended_initialize_on_two_loops(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'lifecycle.db'}"

        asyncio.run(initialize_while_lock_held(url))
        asyncio.run(initialize_while_lock_held(url))

        assert not DatabaseService.is_initialized()

    def test_lock_reused_within_one_loop(self):
        async def both():
            return DatabaseService._lifecycle_lock(), DatabaseService._lifecycle_lock()

        first, second = asyncio.run(both())

        assert first is second


@pytest.mark.asyncio
class TestUninitialized:
    """Sessions require initialize()."""

    async def test_session_before_initialize_raises(self):
        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_session():
                pass

    async def test_transaction_before_initialize_raises(self):
        with pytest.raises(DatabaseNotInitializedError):
            async with DatabaseService.get_transaction():
                pass

    async def test_health_check_false_before_initialize(self):
        assert await DatabaseService.health_check() is False
