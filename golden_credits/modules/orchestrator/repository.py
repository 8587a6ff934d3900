from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from golden_credits.database.models.economy.game_unlock import GameUnlock
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class GameUnlockRepository(BaseRepository[GameUnlock]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(GameUnlock, logger)

    async def find(self, session: AsyncSession, account_id: str, game_id: str) -> Optional[GameUnlock]:
        return await self.find_one_where(
            session,
            GameUnlock.account_id == account_id,
            GameUnlock.game_id == game_id,
        )

    async def unlocked_games(self, session: AsyncSession, account_id: str) -> List[GameUnlock]:
        return await self.find_many_where(
            session,
            GameUnlock.account_id == account_id,
            order_by=[GameUnlock.unlocked_at.asc(), GameUnlock.id.asc()],
        )
