from __future__ import annotations

from typing import TYPE_CHECKING, List

from golden_credits.database.models.progression.wheel import SpinRecord, WheelState
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class WheelStateRepository(BaseRepository[WheelState]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(WheelState, logger)

    async def get_or_create(self, session: AsyncSession, account_id: str) -> WheelState:
        state = await self.get(session, account_id)
        if state is None:
            state = self.add(
                session,
                WheelState(account_id=account_id, paid_spins_available=0),
            )
            await self.flush(session)
        return state


class SpinRecordRepository(BaseRepository[SpinRecord]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(SpinRecord, logger)

    async def has_history(self, session: AsyncSession, account_id: str) -> bool:
        return await self.exists(session, SpinRecord.account_id == account_id)

    async def unclaimed(self, session: AsyncSession, account_id: str) -> List[SpinRecord]:
        return await self.find_many_where(
            session,
            SpinRecord.account_id == account_id,
            SpinRecord.claimed.is_(False),
            order_by=[SpinRecord.timestamp.asc()],
        )
