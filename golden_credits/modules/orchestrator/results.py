"""
Result types returned by the RewardOrchestrator.

Per-feature results live beside their services and are re-exported here so
callers have a single import point.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from golden_credits.modules.ledger.schemas import (
    ReconciliationReport,
    TransactionView,
    WalletStats,
)
from golden_credits.modules.streak.schemas import (
    DailyLoginResult,
    LoginStateView,
    MilestoneResult,
)
from golden_credits.modules.wheel.schemas import (
    SpinClaimResult,
    SpinPurchaseResult,
    SpinResult,
    WheelStateView,
)


@dataclass(frozen=True)
class GameRewardResult:
    """
    Outcome of award_game_event.

    `amount_credited` of 0 is a success: the daily cap or diminishing
    returns absorbed the reward, and no ledger row was written.
    """

    amount_credited: int
    base_amount: float
    multiplier: float
    capped: bool
    transaction_id: Optional[int]
    balance: int
    first_of_day_bonus_applied: bool = False


@dataclass(frozen=True)
class GamePurchaseResult:
    game_id: str
    cost: int
    transaction_id: Optional[int]
    balance: int
    unlocked_at: datetime


@dataclass(frozen=True)
class ReferralResult:
    amount_credited: int
    referrer_id: Optional[str]
    transaction_id: int
    balance: int


@dataclass(frozen=True)
class AdjustmentResult:
    amount: int
    reason: str
    transaction_id: int
    balance: int


__all__ = [
    "GameRewardResult",
    "GamePurchaseResult",
    "ReferralResult",
    "AdjustmentResult",
    "DailyLoginResult",
    "LoginStateView",
    "MilestoneResult",
    "SpinClaimResult",
    "SpinPurchaseResult",
    "SpinResult",
    "WheelStateView",
    "ReconciliationReport",
    "TransactionView",
    "WalletStats",
]
