"""
DailyRewardSummary - game-reward totals per account per reference day.
Schema only.

`per_game` maps game_id to {"plays": int, "amount": int, "first_win": [rule keys]}.
Rows for past days are kept for auditing.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Dict

from sqlalchemy import JSON, BigInteger, Date, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, IdMixin, TimestampMixin


class DailyRewardSummary(Base, IdMixin, TimestampMixin):
    """
    One row per account per reference day.
    """

    __tablename__ = "daily_reward_summaries"
    __table_args__ = (
        UniqueConstraint(
            "account_id",
            "summary_date",
            name="uq_daily_reward_summaries_account_date",
        ),
    )

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    summary_date: Mapped[date] = mapped_column(Date, nullable=False)

    total_issued: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    per_game: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )
