"""
DailyLoginState - login streak state for each account.
Schema only.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, TimestampMixin, UTCDateTime


class DailyLoginState(Base, TimestampMixin):
    """
    One row per account. `current_streak` is the stored streak; it counts as
    broken once `last_claim_at` is older than the continuation window.
    """

    __tablename__ = "daily_login_states"

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        primary_key=True,
    )

    current_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    longest_streak: Mapped[int] = mapped_column(nullable=False, default=0)
    total_claims: Mapped[int] = mapped_column(nullable=False, default=0)

    last_claim_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
