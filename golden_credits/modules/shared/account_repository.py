"""
Account anchor rows: lazy creation and per-transaction row locks.

Every mutating operation calls `lock_or_create` first inside its
transaction. On PostgreSQL this takes `SELECT ... FOR UPDATE` on the
account row; concurrent first-time creators are resolved with
`INSERT ... ON CONFLICT DO NOTHING` and a re-select.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError

from golden_credits.database.models.economy.account import Account
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession

_UPSERT_DIALECTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class AccountRepository(BaseRepository[Account]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(Account, logger)

    async def lock_or_create(
        self,
        session: AsyncSession,
        account_id: str,
        now: datetime,
    ) -> Account:
        """Return the locked account row, inserting it on first use."""
        account = await self.get_for_update(session, account_id)
        if account is not None:
            return account

        dialect_name = session.bind.dialect.name if session.bind is not None else ""
        insert_factory = _UPSERT_DIALECTS.get(dialect_name)

        if insert_factory is not None:
            stmt = (
                insert_factory(Account)
                .values(account_id=account_id, created_at=now)
                .on_conflict_do_nothing(index_elements=["account_id"])
            )
            await session.execute(stmt)
        else:
            try:
                async with session.begin_nested():
                    session.add(Account(account_id=account_id, created_at=now))
            except IntegrityError:
                self.log.debug(
                    "Account created concurrently; re-selecting",
                    extra={"account_id": account_id},
                )

        account = await self.get_for_update(session, account_id)
        if account is None:
            raise RuntimeError(f"account row for {account_id!r} missing after insert")

        self.log.info(
            "Account created",
            extra={"account_id": account_id},
        )
        return account
