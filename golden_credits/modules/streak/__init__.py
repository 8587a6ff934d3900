from golden_credits.modules.streak.logic import LoginDecision, Milestone, StreakTracker
from golden_credits.modules.streak.schemas import (
    DailyLoginResult,
    LoginStateView,
    MilestoneResult,
)
from golden_credits.modules.streak.service import StreakService

__all__ = [
    "LoginDecision",
    "Milestone",
    "StreakTracker",
    "DailyLoginResult",
    "LoginStateView",
    "MilestoneResult",
    "StreakService",
]
