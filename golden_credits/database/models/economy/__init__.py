"""
Economy domain ORM models.

Exports:
- Account
- DailyRewardSummary
- GameUnlock
- LedgerTransaction
- RewardClaim
"""

from golden_credits.core.database.base import Base

from .account import Account
from .daily_reward_summary import DailyRewardSummary
from .game_unlock import GameUnlock
from .ledger_transaction import LedgerTransaction
from .reward_claim import RewardClaim

__all__ = [
    "Base",
    "Account",
    "DailyRewardSummary",
    "GameUnlock",
    "LedgerTransaction",
    "RewardClaim",
]
