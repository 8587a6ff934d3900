"""
Wheel persistence - per-account wheel state and the spin audit trail.
Schema only.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import BigInteger, Boolean, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, TimestampMixin, UTCDateTime, utcnow


class WheelState(Base, TimestampMixin):
    """
    One row per account.

    `free_spin_available` is derived: true when `last_free_spin_at` is not
    on the current reference day.
    """

    __tablename__ = "wheel_states"

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        primary_key=True,
    )

    last_free_spin_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )

    paid_spins_available: Mapped[int] = mapped_column(nullable=False, default=0)


class SpinRecord(Base):
    """One wheel spin; reward credited separately on claim."""

    __tablename__ = "spin_records"
    __table_args__ = (
        Index("ix_spin_records_account_time", "account_id", "timestamp"),
    )

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=lambda: str(uuid.uuid4()),
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

    spin_type: Mapped[str] = mapped_column(String(16), nullable=False)
    segment_id: Mapped[int] = mapped_column(nullable=False)
    segment_label: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    reward_amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    guaranteed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    claimed_at: Mapped[Optional[datetime]] = mapped_column(
        UTCDateTime(),
        nullable=True,
    )
