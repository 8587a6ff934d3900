from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from golden_credits.database.models.enums import SpinType


@dataclass(frozen=True)
class SpinResult:
    """An unclaimed spin outcome; credit it with claim_spin_reward."""

    spin_id: str
    spin_type: SpinType
    segment_id: int
    segment_label: str
    reward_amount: int
    guaranteed: bool
    paid_spins_remaining: int
    timestamp: datetime


@dataclass(frozen=True)
class SpinClaimResult:
    spin_id: str
    amount_credited: int
    transaction_id: Optional[int]
    balance: int


@dataclass(frozen=True)
class SpinPurchaseResult:
    quantity: int
    cost: int
    new_spin_count: int
    transaction_id: int
    balance: int


@dataclass(frozen=True)
class WheelStateView:
    free_spin_available: bool
    paid_spins_available: int
    last_free_spin_at: Optional[datetime]
    total_spins: int
    unclaimed_spin_ids: tuple
