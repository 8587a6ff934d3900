"""
Ledger Service - append-only Golden Credits ledger

Purpose
-------
Own every balance change. Rows are immutable; corrections are new
offsetting rows. The balance is never stored separately: each row carries
`balance_after`, and the latest row (by timestamp, then id) is the balance.

Responsibilities
----------------
- `append`: validate and write one signed movement inside the caller's
  transaction, rejecting overdrafts with InsufficientFundsError
- `get_balance`: O(1) read of the latest `balance_after` (0 when unseen)
- `history`: lazy, restartable async iterable with keyset pagination
- `get_stats`, `export_csv`, `reconcile`: read-side reporting

Locking Contract
----------------
`append` must be called by a holder of the account's exclusive scope, with
the account row already locked in the same session. The ledger never takes
locks itself.
"""

from __future__ import annotations

import csv
import io
from datetime import datetime
from typing import TYPE_CHECKING, AsyncIterator, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from golden_credits.core.database.service import DatabaseService
from golden_credits.core.validation.input_validator import (
    MAX_DESCRIPTION_LENGTH,
    InputValidator,
)
from golden_credits.database.models.economy.ledger_transaction import LedgerTransaction
from golden_credits.database.models.enums import TransactionSource
from golden_credits.modules.ledger.repository import LedgerRepository
from golden_credits.modules.ledger.schemas import (
    HistoryFilter,
    ReconciliationReport,
    TransactionView,
    WalletStats,
)
from golden_credits.modules.shared.base_service import BaseService
from golden_credits.modules.shared.exceptions import (
    InsufficientFundsError,
    ValidationError,
)

if TYPE_CHECKING:
    from logging import Logger

    from golden_credits.core.config.manager import ConfigManager
    from golden_credits.core.event.bus import EventBus

CSV_HEADER = ("Date", "Time", "Source", "Amount", "Balance", "Description")


class TransactionHistory:
    """
    Lazy, finite, restartable view over an account's transactions.

    Each `async for` starts a fresh scan; rows are fetched page by page in
    short read sessions, so no connection is held between pages.

    >>> async for tx in ledger.history("tg:1", HistoryFilter(limit=20)):
    ...     print(tx.amount)
    """

    def __init__(
        self,
        repository: LedgerRepository,
        account_id: str,
        criteria: HistoryFilter,
        page_size: int,
    ) -> None:
        self._repository = repository
        self.account_id = account_id
        self.criteria = criteria
        self._page_size = max(1, page_size)

    def __aiter__(self) -> AsyncIterator[TransactionView]:
        return self._scan()

    async def _scan(self) -> AsyncIterator[TransactionView]:
        remaining = self.criteria.limit
        cursor: Optional[Tuple[datetime, int]] = None

        while remaining is None or remaining > 0:
            size = self._page_size if remaining is None else min(self._page_size, remaining)
            async with DatabaseService.get_session() as session:
                rows = await self._repository.page(
                    session, self.account_id, self.criteria, cursor, size
                )
                views = [TransactionView.from_model(row) for row in rows]

            for view in views:
                yield view

            if remaining is not None:
                remaining -= len(views)
            if len(views) < size:
                return
            cursor = (views[-1].timestamp, views[-1].id)

    async def to_list(self) -> List[TransactionView]:
        return [view async for view in self]


class LedgerService(BaseService):
    """
    Append-only transaction ledger.

    Configuration:
        engine.ledger.history_page_size: rows per history page (default 100)
    """

    def __init__(
        self,
        config_manager: ConfigManager,
        event_bus: EventBus,
        logger: Logger,
    ) -> None:
        super().__init__(config_manager, event_bus, logger)
        self._repo = LedgerRepository(logger)
        self._page_size = int(self.get_config("engine.ledger.history_page_size", 100))

    # =========================================================================
    # WRITE PATH
    # =========================================================================

    async def append(
        self,
        session: AsyncSession,
        account_id: str,
        amount: int,
        source: TransactionSource,
        now: datetime,
        game_id: Optional[str] = None,
        description: str = "",
    ) -> LedgerTransaction:
        """
        Append one movement and return the flushed row (id assigned).

        Timestamps never go backwards within an account: a row stamped
        earlier than the current latest row takes the latest row's time, so
        (timestamp, id) order always equals append order.

        Raises:
            ValidationError: amount is zero or not an integer
            InsufficientFundsError: a debit would leave the balance below zero
        """
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise ValidationError("amount", f"Must be an integer, got {amount!r}")
        if amount == 0:
            raise ValidationError("amount", "Ledger movements cannot be zero")
        source = TransactionSource(source)
        description = (description or "")[:MAX_DESCRIPTION_LENGTH]

        latest = await self._repo.latest(session, account_id)
        balance = latest.balance_after if latest is not None else 0

        if amount < 0 and balance + amount < 0:
            raise InsufficientFundsError(required=-amount, current=balance)

        timestamp = now
        if latest is not None and latest.timestamp > now:
            timestamp = latest.timestamp

        row = self._repo.add(
            session,
            LedgerTransaction(
                account_id=account_id,
                timestamp=timestamp,
                amount=amount,
                source=source.value,
                game_id=game_id,
                description=description,
                balance_after=balance + amount,
            ),
        )
        await self._repo.flush(session)

        self.log.info(
            "Ledger transaction appended",
            extra={
                "account_id": account_id,
                "transaction_id": row.id,
                "amount": amount,
                "source": source.value,
                "game_id": game_id,
                "balance_after": row.balance_after,
            },
        )
        return row

    # =========================================================================
    # READ PATH
    # =========================================================================

    async def get_balance(self, account_id: str, session: Optional[AsyncSession] = None) -> int:
        """Current balance; 0 for an account that has never transacted."""
        if session is not None:
            latest = await self._repo.latest(session, account_id)
            return latest.balance_after if latest is not None else 0

        async with DatabaseService.get_session() as read_session:
            return await self.get_balance(account_id, session=read_session)

    def history(self, account_id: str, criteria: Optional[HistoryFilter] = None) -> TransactionHistory:
        criteria = criteria or HistoryFilter()
        if criteria.limit is not None:
            InputValidator.validate_non_negative_integer(criteria.limit, "limit")
        if criteria.start is not None and criteria.end is not None and criteria.start > criteria.end:
            raise ValidationError("start", "start must not be after end")
        return TransactionHistory(self._repo, account_id, criteria, self._page_size)

    async def get_stats(self, account_id: str) -> WalletStats:
        async with DatabaseService.get_session() as session:
            total, earned, spent, count, highest = await self._repo.aggregates(session, account_id)
            latest = await self._repo.latest(session, account_id)

        return WalletStats(
            account_id=account_id,
            balance=latest.balance_after if latest is not None else 0,
            total_earned=earned,
            total_spent=spent,
            transaction_count=count,
            highest_credit=highest,
            last_transaction=TransactionView.from_model(latest) if latest is not None else None,
        )

    async def export_csv(self, account_id: str, criteria: Optional[HistoryFilter] = None) -> str:
        """
        Render history as CSV with columns Date, Time, Source, Amount,
        Balance, Description. Times are UTC.
        """
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)

        rows = 0
        async for tx in self.history(account_id, criteria):
            writer.writerow(
                (
                    tx.timestamp.strftime("%Y-%m-%d"),
                    tx.timestamp.strftime("%H:%M:%S"),
                    tx.source.value,
                    tx.amount,
                    tx.balance_after,
                    tx.description,
                )
            )
            rows += 1

        self.log.debug(
            "Ledger CSV exported",
            extra={"account_id": account_id, "row_count": rows},
        )
        return buffer.getvalue()

    async def reconcile(self, account_id: str) -> ReconciliationReport:
        """Compare sum(amount) with the recorded latest balance."""
        async with DatabaseService.get_session() as session:
            total, _, _, count, _ = await self._repo.aggregates(session, account_id)
            latest = await self._repo.latest(session, account_id)

        report = ReconciliationReport(
            account_id=account_id,
            ledger_sum=total,
            recorded_balance=latest.balance_after if latest is not None else 0,
            transaction_count=count,
        )

        if not report.consistent:
            self.log.error(
                "Ledger reconciliation mismatch",
                extra={
                    "account_id": account_id,
                    "ledger_sum": report.ledger_sum,
                    "recorded_balance": report.recorded_balance,
                    "transaction_count": count,
                },
            )
        return report
