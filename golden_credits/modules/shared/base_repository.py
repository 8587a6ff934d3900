"""
Base Repository Pattern

Generic SQLAlchemy 2.0 async data access shared by the economy modules.
Repositories never commit: the orchestrator owns the transaction, and a
repository only reads, adds and flushes inside the session it is given.

Usage
-----
    class SpinRecordRepository(BaseRepository[SpinRecord]):
        def __init__(self, logger):
            super().__init__(SpinRecord, logger)

        async def unclaimed(self, session, account_id):
            return await self.find_many_where(
                session,
                SpinRecord.account_id == account_id,
                SpinRecord.claimed.is_(False),
                order_by=[SpinRecord.timestamp],
            )
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, List, Optional, Sequence, Type, TypeVar

from sqlalchemy import func, select

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


class BaseRepository(Generic[T]):
    """
    Type Parameters:
        T: the mapped model class
    """

    def __init__(self, model_class: Type[T], logger: Logger) -> None:
        self.model_class = model_class
        self.log = logger

    def _trace(self, call: str, **fields: Any) -> None:
        self.log.debug(
            f"{type(self).__name__}.{call}",
            extra={"model": self.model_class.__name__, **fields},
        )

    # =========================================================================
    # Primary-key access
    # =========================================================================

    async def get(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        instance = await session.get(self.model_class, id_value)
        self._trace("get", id=id_value, found=instance is not None)
        return instance

    async def get_for_update(self, session: AsyncSession, id_value: Any) -> Optional[T]:
        """
        Primary-key lookup with SELECT FOR UPDATE.

        `populate_existing` forces the round trip even when the row is
        already in the identity map, so the lock is really taken.
        """
        instance = await session.get(
            self.model_class,
            id_value,
            with_for_update=True,
            populate_existing=True,
        )
        self._trace("get_for_update", id=id_value, found=instance is not None)
        return instance

    # =========================================================================
    # Conditional queries
    # =========================================================================

    def _select(
        self,
        conditions: Sequence[ColumnElement[bool]],
        for_update: bool,
    ) -> Select:
        stmt = select(self.model_class).where(*conditions)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        return stmt

    async def find_one_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        for_update: bool = False,
    ) -> Optional[T]:
        result = await session.execute(self._select(conditions, for_update))
        instance = result.scalar_one_or_none()
        self._trace("find_one_where", found=instance is not None, locked=for_update)
        return instance

    async def find_many_where(
        self,
        session: AsyncSession,
        *conditions: ColumnElement[bool],
        order_by: Optional[Sequence[Any]] = None,
        limit: Optional[int] = None,
        for_update: bool = False,
    ) -> List[T]:
        stmt = self._select(conditions, for_update)
        if order_by:
            stmt = stmt.order_by(*order_by)
        if limit is not None:
            stmt = stmt.limit(limit)

        instances = list((await session.execute(stmt)).scalars().all())
        self._trace("find_many_where", found_count=len(instances), limit=limit)
        return instances

    async def count(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> int:
        stmt = select(func.count()).select_from(self.model_class).where(*conditions)
        total = (await session.execute(stmt)).scalar_one()
        self._trace("count", count=total)
        return total

    async def exists(self, session: AsyncSession, *conditions: ColumnElement[bool]) -> bool:
        stmt = select(select(self.model_class).where(*conditions).exists())
        return bool((await session.execute(stmt)).scalar())

    # =========================================================================
    # Writes (flushed, never committed)
    # =========================================================================

    def add(self, session: AsyncSession, instance: T) -> T:
        session.add(instance)
        self._trace("add")
        return instance

    async def flush(self, session: AsyncSession) -> None:
        await session.flush()
