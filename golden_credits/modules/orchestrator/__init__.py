from golden_credits.modules.orchestrator.results import (
    AdjustmentResult,
    GamePurchaseResult,
    GameRewardResult,
    ReferralResult,
)
from golden_credits.modules.orchestrator.service import RewardOrchestrator, round_half_up

__all__ = [
    "AdjustmentResult",
    "GamePurchaseResult",
    "GameRewardResult",
    "ReferralResult",
    "RewardOrchestrator",
    "round_half_up",
]
