"""
Service tests for LedgerService against SQLite.

Tests append/overdraft rules, balance reads, filtered and paginated
history, statistics, CSV export and reconciliation.
"""

from datetime import timedelta

import pytest

from golden_credits.core.database.service import DatabaseService
from golden_credits.core.logging.logger import get_logger
from golden_credits.database.models.enums import HistoryDirection, TransactionSource
from golden_credits.modules.ledger.schemas import HistoryFilter
from golden_credits.modules.shared.account_repository import AccountRepository
from golden_credits.modules.shared.exceptions import InsufficientFundsError, ValidationError

ACCOUNT = "tg:1001"

accounts = AccountRepository(get_logger("tests.ledger"))


async def append(ledger, clock, amount, source=TransactionSource.GAME_REWARD, **kwargs):
    async with DatabaseService.get_transaction() as session:
        await accounts.lock_or_create(session, ACCOUNT, clock())
        return await ledger.append(session, ACCOUNT, amount, source, clock(), **kwargs)


@pytest.fixture
def ledger(container):
    return container.ledger


@pytest.mark.asyncio
@pytest.mark.database
class TestAppend:
    """Signed movements and the non-negative balance rule."""

    async def test_unseen_account_has_zero_balance(self, ledger):
        assert await ledger.get_balance("tg:unknown") == 0

    async def test_balance_after_chains(self, ledger, clock):
        first = await append(ledger, clock, 30)
        clock.advance(minutes=1)
        second = await append(ledger, clock, -12, TransactionSource.WHEEL_PURCHASE)

        assert first.balance_after == 30
        assert second.balance_after == 18
        assert await ledger.get_balance(ACCOUNT) == 18

    async def test_overdraft_rejected_without_row(self, ledger, clock):
        await append(ledger, clock, 150)

        with pytest.raises(InsufficientFundsError) as exc_info:
            await append(ledger, clock, -200, TransactionSource.WHEEL_PURCHASE)

        assert exc_info.value.required == 200
        assert exc_info.value.current == 150
        assert await ledger.get_balance(ACCOUNT) == 150
        assert len(await ledger.history(ACCOUNT).to_list()) == 1

    async def test_debit_to_exactly_zero_allowed(self, ledger, clock):
        await append(ledger, clock, 100)
        row = await append(ledger, clock, -100, TransactionSource.GAME_UNLOCK)

        assert row.balance_after == 0

    async def test_zero_amount_rejected(self, ledger, clock):
        with pytest.raises(ValidationError):
            await append(ledger, clock, 0)

    async def test_description_truncated(self, ledger, clock):
        row = await append(ledger, clock, 5, description="x" * 400)
        assert len(row.description) == 255

    async def test_timestamps_never_go_backwards(self, ledger, clock):
        await append(ledger, clock, 10)
        later = clock()
        clock.advance(minutes=-5)

        row = await append(ledger, clock, 10)

        assert row.timestamp == later
        assert await ledger.get_balance(ACCOUNT) == 20


@pytest.mark.asyncio
@pytest.mark.database
class TestHistory:
    """Filters, ordering and pagination."""

    async def _seed(self, ledger, clock):
        await append(ledger, clock, 10, TransactionSource.DAILY_LOGIN)
        clock.advance(hours=1)
        await append(ledger, clock, 25, TransactionSource.GAME_REWARD, game_id="flame-of-wisdom")
        clock.advance(hours=1)
        await append(ledger, clock, -20, TransactionSource.WHEEL_PURCHASE)
        clock.advance(hours=1)
        await append(ledger, clock, 50, TransactionSource.REFERRAL)

    async def test_newest_first_by_default(self, ledger, clock):
        await self._seed(ledger, clock)

        history = await ledger.history(ACCOUNT).to_list()

        assert [tx.amount for tx in history] == [50, -20, 25, 10]
        assert [tx.balance_after for tx in history] == [65, 15, 35, 10]

    async def test_oldest_first(self, ledger, clock):
        await self._seed(ledger, clock)

        history = await ledger.history(ACCOUNT, HistoryFilter(newest_first=False)).to_list()

        assert [tx.amount for tx in history] == [10, 25, -20, 50]

    async def test_filters_combine(self, ledger, clock):
        start = clock()
        await self._seed(ledger, clock)

        earned = await ledger.history(
            ACCOUNT, HistoryFilter(direction=HistoryDirection.EARNED)
        ).to_list()
        spent = await ledger.history(ACCOUNT, HistoryFilter(direction="spent")).to_list()
        by_source = await ledger.history(
            ACCOUNT, HistoryFilter(source=TransactionSource.GAME_REWARD)
        ).to_list()
        window = await ledger.history(
            ACCOUNT,
            HistoryFilter(start=start + timedelta(hours=1), end=start + timedelta(hours=3)),
        ).to_list()

        assert [tx.amount for tx in earned] == [50, 25, 10]
        assert [tx.amount for tx in spent] == [-20]
        assert [tx.game_id for tx in by_source] == ["flame-of-wisdom"]
        assert [tx.amount for tx in window] == [-20, 25]

    async def test_limit_and_pagination(self, ledger, clock):
        ledger._page_size = 2
        for _ in range(5):
            await append(ledger, clock, 1)
            clock.advance(seconds=1)

        everything = await ledger.history(ACCOUNT).to_list()
        limited = await ledger.history(ACCOUNT, HistoryFilter(limit=3)).to_list()

        assert len(everything) == 5
        assert len({tx.id for tx in everything}) == 5
        assert [tx.id for tx in limited] == [tx.id for tx in everything[:3]]

    async def test_history_is_restartable(self, ledger, clock):
        await self._seed(ledger, clock)
        history = ledger.history(ACCOUNT)

        first = [tx.id async for tx in history]
        second = [tx.id async for tx in history]

        assert first == second

    async def test_inverted_range_rejected(self, ledger, clock):
        with pytest.raises(ValidationError):
            ledger.history(ACCOUNT, HistoryFilter(start=clock(), end=clock() - timedelta(days=1)))


@pytest.mark.asyncio
@pytest.mark.database
class TestReporting:
    """Stats, CSV and reconciliation."""

    async def test_stats(self, ledger, clock):
        await append(ledger, clock, 40)
        await append(ledger, clock, 15)
        await append(ledger, clock, -30, TransactionSource.GAME_UNLOCK)

        stats = await ledger.get_stats(ACCOUNT)

        assert stats.balance == 25
        assert stats.total_earned == 55
        assert stats.total_spent == 30
        assert stats.transaction_count == 3
        assert stats.highest_credit == 40
        assert stats.last_transaction.amount == -30

    async def test_csv_export(self, ledger, clock):
        await append(ledger, clock, 10, TransactionSource.DAILY_LOGIN, description="Daily login reward (day 1)")

        lines = (await ledger.export_csv(ACCOUNT)).strip().split("\n")

        assert lines[0] == "Date,Time,Source,Amount,Balance,Description"
        assert lines[1] == "2025-03-10,12:00:00,daily-login,10,10,Daily login reward (day 1)"

    async def test_reconcile(self, ledger, clock):
        await append(ledger, clock, 10)
        await append(ledger, clock, -4, TransactionSource.WHEEL_PURCHASE)

        report = await ledger.reconcile(ACCOUNT)

        assert report.consistent
        assert report.ledger_sum == report.recorded_balance == 6
        assert report.transaction_count == 2
