"""
GameUnlock - games an account has purchased.
Schema only.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, IdMixin, UTCDateTime, utcnow


class GameUnlock(Base, IdMixin):
    __tablename__ = "game_unlocks"
    __table_args__ = (
        UniqueConstraint("account_id", "game_id", name="uq_game_unlocks_account_game"),
    )

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    game_id: Mapped[str] = mapped_column(String(64), nullable=False)

    cost: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)

    unlocked_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )
