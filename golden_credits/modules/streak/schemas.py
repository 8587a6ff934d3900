from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional


@dataclass(frozen=True)
class DailyLoginResult:
    amount_credited: int
    new_streak: int
    longest_streak: int
    wheel_spins_granted: int
    streak_continued: bool
    transaction_id: int
    balance: int


@dataclass(frozen=True)
class MilestoneResult:
    threshold_days: int
    amount_credited: int
    wheel_spins_granted: int
    cosmetic_rewards: Dict[str, str]
    transaction_id: Optional[int]
    balance: int


@dataclass(frozen=True)
class LoginStateView:
    """Read model for the login calendar."""

    current_streak: int
    effective_streak: int
    longest_streak: int
    last_claim_at: Optional[datetime]
    claimed_today: bool
    next_reward: int
    streak_multiplier: float
    claimed_milestones: List[int] = field(default_factory=list)
    claimable_milestones: List[int] = field(default_factory=list)
