from golden_credits.modules.wheel.logic import DEFAULT_SEGMENTS, ProbabilityWheel, WheelSegment
from golden_credits.modules.wheel.schemas import (
    SpinClaimResult,
    SpinPurchaseResult,
    SpinResult,
    WheelStateView,
)
from golden_credits.modules.wheel.service import WheelService

__all__ = [
    "DEFAULT_SEGMENTS",
    "ProbabilityWheel",
    "WheelSegment",
    "SpinClaimResult",
    "SpinPurchaseResult",
    "SpinResult",
    "WheelStateView",
    "WheelService",
]
