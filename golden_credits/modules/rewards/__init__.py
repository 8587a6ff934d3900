"""
Reward rules: policy table, mastery multipliers, daily cap.
"""

from golden_credits.modules.rewards.daily_cap import (
    CapDecision,
    DailyCapPolicy,
    UsageSnapshot,
)
from golden_credits.modules.rewards.mastery import (
    MasteryCalculator,
    MasteryInfo,
    mastery_info,
    mastery_multiplier,
)
from golden_credits.modules.rewards.policy import RewardPolicyTable, RewardRule
from golden_credits.modules.rewards.repository import DailyRewardSummaryRepository
from golden_credits.modules.rewards.stats import GamesPlayedReader, InMemoryGamesPlayed

__all__ = [
    "CapDecision",
    "DailyCapPolicy",
    "UsageSnapshot",
    "MasteryCalculator",
    "MasteryInfo",
    "mastery_info",
    "mastery_multiplier",
    "RewardPolicyTable",
    "RewardRule",
    "DailyRewardSummaryRepository",
    "GamesPlayedReader",
    "InMemoryGamesPlayed",
]
