"""
Account - per-account anchor row.
Schema only.

Created lazily on the first mutating operation. Every mutation locks this
row (SELECT ... FOR UPDATE) inside its transaction, so it doubles as the
database-level exclusion point for the account.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, UTCDateTime, utcnow


class Account(Base):
    __tablename__ = "accounts"

    account_id: Mapped[str] = mapped_column(
        String(64),
        primary_key=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return f"<Account(account_id='{self.account_id}')>"
