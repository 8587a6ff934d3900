"""
Ledger data access: latest balance, keyset-paginated history, aggregates.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select

from golden_credits.database.models.economy.ledger_transaction import LedgerTransaction
from golden_credits.database.models.enums import HistoryDirection
from golden_credits.modules.ledger.schemas import HistoryFilter
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class LedgerRepository(BaseRepository[LedgerTransaction]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(LedgerTransaction, logger)

    async def latest(self, session: AsyncSession, account_id: str) -> Optional[LedgerTransaction]:
        rows = await self.find_many_where(
            session,
            LedgerTransaction.account_id == account_id,
            order_by=[LedgerTransaction.timestamp.desc(), LedgerTransaction.id.desc()],
            limit=1,
        )
        return rows[0] if rows else None

    async def page(
        self,
        session: AsyncSession,
        account_id: str,
        criteria: HistoryFilter,
        after: Optional[Tuple[datetime, int]],
        page_size: int,
    ) -> List[LedgerTransaction]:
        """
        One page of history, strictly after the `(timestamp, id)` cursor in
        the requested order.
        """
        conditions: List[Any] = [LedgerTransaction.account_id == account_id]

        if criteria.source is not None:
            conditions.append(LedgerTransaction.source == criteria.source.value)
        if criteria.direction is HistoryDirection.EARNED:
            conditions.append(LedgerTransaction.amount > 0)
        elif criteria.direction is HistoryDirection.SPENT:
            conditions.append(LedgerTransaction.amount < 0)
        if criteria.start is not None:
            conditions.append(LedgerTransaction.timestamp >= criteria.start)
        if criteria.end is not None:
            conditions.append(LedgerTransaction.timestamp < criteria.end)

        if after is not None:
            cursor_ts, cursor_id = after
            if criteria.newest_first:
                conditions.append(
                    or_(
                        LedgerTransaction.timestamp < cursor_ts,
                        and_(
                            LedgerTransaction.timestamp == cursor_ts,
                            LedgerTransaction.id < cursor_id,
                        ),
                    )
                )
            else:
                conditions.append(
                    or_(
                        LedgerTransaction.timestamp > cursor_ts,
                        and_(
                            LedgerTransaction.timestamp == cursor_ts,
                            LedgerTransaction.id > cursor_id,
                        ),
                    )
                )

        if criteria.newest_first:
            order_by = [LedgerTransaction.timestamp.desc(), LedgerTransaction.id.desc()]
        else:
            order_by = [LedgerTransaction.timestamp.asc(), LedgerTransaction.id.asc()]

        return await self.find_many_where(
            session, *conditions, order_by=order_by, limit=page_size
        )

    async def aggregates(self, session: AsyncSession, account_id: str) -> Tuple[int, int, int, int, int]:
        """(sum, total_earned, total_spent, count, highest_credit)."""
        amount = LedgerTransaction.amount
        stmt = select(
            func.coalesce(func.sum(amount), 0),
            func.coalesce(func.sum(case((amount > 0, amount), else_=0)), 0),
            func.coalesce(func.sum(case((amount < 0, -amount), else_=0)), 0),
            func.count(LedgerTransaction.id),
            func.coalesce(func.max(case((amount > 0, amount), else_=None)), 0),
        ).where(LedgerTransaction.account_id == account_id)

        row = (await session.execute(stmt)).one()

        self.log.debug(
            "Repository.aggregates: LedgerTransaction",
            extra={"account_id": account_id, "count": row[3]},
        )
        return int(row[0]), int(row[1]), int(row[2]), int(row[3]), int(row[4])
