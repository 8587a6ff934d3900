"""
LedgerTransaction - immutable Golden Credits movement.
Pure schema only.

Rows are append-only. `balance_after` is the running balance including
this row; the latest row per account is the balance read path. Order is
(timestamp, id): id breaks ties in insertion order.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, IdMixin, UTCDateTime, utcnow


class LedgerTransaction(Base, IdMixin):
    """
    One signed wallet movement.

    Schema-only:
    - account_id
    - amount (signed; never zero)
    - source (TransactionSource value)
    - game_id (optional)
    - description
    - balance_after
    - timestamp
    """

    __tablename__ = "ledger_transactions"
    __table_args__ = (
        Index("ix_ledger_transactions_account_time", "account_id", "timestamp", "id"),
        Index("ix_ledger_transactions_source", "source"),
    )

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        nullable=False,
    )

    timestamp: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)

    source: Mapped[str] = mapped_column(String(32), nullable=False)

    game_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)

    description: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)

    def __repr__(self) -> str:
        return (
            f"<LedgerTransaction("
            f"id={self.id}, "
            f"account_id='{self.account_id}', "
            f"amount={self.amount}, "
            f"source='{self.source}', "
            f"balance_after={self.balance_after}"
            f")>"
        )
