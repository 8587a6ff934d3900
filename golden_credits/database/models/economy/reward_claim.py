"""
RewardClaim Model - Idempotency Guard for One-Time Rewards
==========================================================

Purpose
-------
Prevents double-claiming of one-time rewards by recording every claim under
a composite primary key (account_id, claim_type, claim_key).

Used for:
- Streak milestones (claim_type "streak_milestone", claim_key = threshold days)
- Referral bonus (claim_type "referral_bonus", claim_key = "referral")

Schema Design
-------------
- Composite primary key rejects duplicate claims at the database level
- `details` keeps what was granted (GC, spins, cosmetic rewards)
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from golden_credits.core.database.base import Base, UTCDateTime, utcnow


class RewardClaim(Base):
    """
    Tracks one-time reward claims.

    Composite Primary Key: (account_id, claim_type, claim_key)
    """

    __tablename__ = "reward_claims"
    __table_args__ = (
        Index("ix_reward_claims_type_time", "claim_type", "claimed_at"),
    )

    account_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("accounts.account_id", ondelete="RESTRICT"),
        primary_key=True,
    )

    claim_type: Mapped[str] = mapped_column(
        String(50),
        primary_key=True,
        comment="Type of claim (streak_milestone, referral_bonus)",
    )

    claim_key: Mapped[str] = mapped_column(
        String(100),
        primary_key=True,
        comment="Unique identifier of the claim within its type",
    )

    details: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
    )

    claimed_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        default=utcnow,
    )

    def __repr__(self) -> str:
        return (
            f"<RewardClaim("
            f"account_id='{self.account_id}', "
            f"claim_type='{self.claim_type}', "
            f"claim_key='{self.claim_key}', "
            f"claimed_at={self.claimed_at}"
            f")>"
        )
