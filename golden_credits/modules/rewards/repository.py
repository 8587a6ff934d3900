from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Optional

from golden_credits.database.models.economy.daily_reward_summary import DailyRewardSummary
from golden_credits.modules.shared.base_repository import BaseRepository

if TYPE_CHECKING:
    from logging import Logger

    from sqlalchemy.ext.asyncio import AsyncSession


class DailyRewardSummaryRepository(BaseRepository[DailyRewardSummary]):
    def __init__(self, logger: Logger) -> None:
        super().__init__(DailyRewardSummary, logger)

    async def for_day(
        self,
        session: AsyncSession,
        account_id: str,
        day: date,
    ) -> Optional[DailyRewardSummary]:
        return await self.find_one_where(
            session,
            DailyRewardSummary.account_id == account_id,
            DailyRewardSummary.summary_date == day,
        )

    async def record_award(
        self,
        session: AsyncSession,
        account_id: str,
        day: date,
        game_id: str,
        amount: int,
        first_win_rule: Optional[str] = None,
    ) -> DailyRewardSummary:
        """Add one credited award to the day's totals, creating the row if needed."""
        summary = await self.for_day(session, account_id, day)
        if summary is None:
            summary = self.add(
                session,
                DailyRewardSummary(
                    account_id=account_id,
                    summary_date=day,
                    total_issued=0,
                    per_game={},
                ),
            )

        # JSON columns only persist on reassignment
        per_game: Dict[str, Any] = dict(summary.per_game or {})
        entry = dict(per_game.get(game_id) or {})
        entry["plays"] = int(entry.get("plays", 0)) + 1
        entry["amount"] = int(entry.get("amount", 0)) + amount
        first_wins = list(entry.get("first_win", []))
        if first_win_rule is not None and first_win_rule not in first_wins:
            first_wins.append(first_win_rule)
        entry["first_win"] = first_wins
        per_game[game_id] = entry

        summary.per_game = per_game
        summary.total_issued = int(summary.total_issued or 0) + amount
        await self.flush(session)
        return summary
