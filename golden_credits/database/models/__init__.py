"""
Database Models Package
========================

All SQLAlchemy ORM models of the reward engine, organized by domain:

- economy: accounts, ledger, daily summaries, one-time claims, game unlocks
- progression: login streaks, wheel state and spins
- enums: shared type-safe enumerations

Models are schema only: `Mapped[]` with `mapped_column()`, timezone-aware
UTC timestamps, explicit foreign keys to `accounts`.
"""

from golden_credits.core.database.base import Base

from .economy import (
    Account,
    DailyRewardSummary,
    GameUnlock,
    LedgerTransaction,
    RewardClaim,
)
from .enums import ClaimType, HistoryDirection, SpinType, TransactionSource
from .progression import DailyLoginState, SpinRecord, WheelState

__all__ = [
    "Base",
    "Account",
    "DailyRewardSummary",
    "GameUnlock",
    "LedgerTransaction",
    "RewardClaim",
    "DailyLoginState",
    "SpinRecord",
    "WheelState",
    "ClaimType",
    "HistoryDirection",
    "SpinType",
    "TransactionSource",
]
