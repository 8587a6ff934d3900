"""
Daily cap and diminishing returns for game rewards.

Two rules, applied in order to a proposed (already multiplied) amount:

1. Daily cap: ``final = max(0, min(proposed, limit - total_issued))``.
2. Diminishing returns: once a game has been credited ``threshold`` times
   on the reference day, each further award is scaled by
   ``max(floor, 1 - (plays - threshold + 1) * step)`` and truncated.

The policy is pure; the caller reads and updates the DailyRewardSummary in
the same transaction as the ledger append.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Protocol

from golden_credits.core.exceptions import InvalidConfigurationError


class DailyUsage(Protocol):
    total_issued: int
    per_game: Dict[str, Any]


@dataclass
class UsageSnapshot:
    """In-memory DailyUsage, handy for previews and tests."""

    total_issued: int = 0
    per_game: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CapDecision:
    final: int
    capped: bool
    reduction_factor: float
    remaining_before: int


def plays_for(usage: Optional[DailyUsage], game_id: str) -> int:
    if usage is None:
        return 0
    entry = (usage.per_game or {}).get(game_id) or {}
    return int(entry.get("plays", 0))


class DailyCapPolicy:
    def __init__(
        self,
        limit: int = 200,
        threshold: int = 10,
        step: float = 0.1,
        floor: float = 0.1,
    ) -> None:
        if limit < 0:
            raise InvalidConfigurationError("rewards.daily_cap.limit", "must be >= 0")
        if threshold < 1:
            raise InvalidConfigurationError(
                "rewards.daily_cap.diminishing_threshold", "must be >= 1"
            )
        if not 0 < step <= 1:
            raise InvalidConfigurationError(
                "rewards.daily_cap.diminishing_step", "must be in (0, 1]"
            )
        if not 0 <= floor <= 1:
            raise InvalidConfigurationError(
                "rewards.daily_cap.diminishing_floor", "must be in [0, 1]"
            )
        self.limit = int(limit)
        self.threshold = int(threshold)
        self.step = float(step)
        self.floor = float(floor)

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "DailyCapPolicy":
        raw = raw or {}
        try:
            return cls(
                limit=int(raw.get("limit", 200)),
                threshold=int(raw.get("diminishing_threshold", 10)),
                step=float(raw.get("diminishing_step", 0.1)),
                floor=float(raw.get("diminishing_floor", 0.1)),
            )
        except (TypeError, ValueError) as exc:
            raise InvalidConfigurationError("rewards.daily_cap", str(exc)) from exc

    def reduction_factor(self, plays: int) -> float:
        """1.0 below the threshold, then shrinking by `step` per play down to `floor`."""
        if plays < self.threshold:
            return 1.0
        return max(self.floor, round(1.0 - (plays - self.threshold + 1) * self.step, 6))

    def remaining(self, usage: Optional[DailyUsage]) -> int:
        issued = int(usage.total_issued) if usage is not None else 0
        return max(0, self.limit - issued)

    def adjust(self, usage: Optional[DailyUsage], game_id: str, proposed: int) -> CapDecision:
        remaining = self.remaining(usage)
        final = max(0, min(int(proposed), remaining))

        factor = self.reduction_factor(plays_for(usage, game_id))
        if factor < 1.0:
            final = int(round(final * factor, 9))

        return CapDecision(
            final=final,
            capped=final < proposed,
            reduction_factor=factor,
            remaining_before=remaining,
        )
