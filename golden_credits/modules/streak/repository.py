from __future__ import annotations

from typing import TYPE_CHECKING

from golden_credits.database.models.progression.daily_login_state import DailyLoginState
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class DailyLoginStateRepository(BaseRepository[DailyLoginState]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(DailyLoginState, logger)

    async def get_or_create(self, session: AsyncSession, account_id: str) -> DailyLoginState:
        """Load the state row, adding a zeroed one on first use."""
        state = await self.get(session, account_id)
        if state is None:
            state = self.add(
                session,
                DailyLoginState(
                    account_id=account_id,
                    current_streak=0,
                    longest_streak=0,
                    total_claims=0,
                ),
            )
            await self.flush(session)
        return state
