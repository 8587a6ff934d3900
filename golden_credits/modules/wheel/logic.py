"""
Probability wheel: weighted segment selection with a first-spin guarantee.

Selection walks the segments in configured order, accumulating weights,
and returns the first segment whose running sum reaches ``r ~ U[0, 1)``.
Zero-weight segments are never selected; if floating-point rounding leaves
``r`` above the final sum, the last positive-weight segment wins.

An account's very first spin skips the weighted draw and picks uniformly
among segments whose reward lies in the attractive band (inclusive).
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Sequence, Tuple

from golden_credits.core.exceptions import InvalidConfigurationError

WEIGHT_TOLERANCE = 1e-9


@dataclass(frozen=True)
class WheelSegment:
    id: int
    label: str
    reward_amount: int
    weight: float


DEFAULT_SEGMENTS: Tuple[WheelSegment, ...] = (
    WheelSegment(1, "5 GC", 5, 0.30),
    WheelSegment(2, "10 GC", 10, 0.25),
    WheelSegment(3, "20 GC", 20, 0.20),
    WheelSegment(4, "50 GC", 50, 0.15),
    WheelSegment(5, "100 GC", 100, 0.06),
    WheelSegment(6, "250 GC", 250, 0.03),
    WheelSegment(7, "500 GC", 500, 0.01),
    WheelSegment(8, "Try Again", 0, 0.0),
)


class ProbabilityWheel:
    def __init__(
        self,
        segments: Sequence[WheelSegment] = DEFAULT_SEGMENTS,
        attractive_min: int = 50,
        attractive_max: int = 250,
    ) -> None:
        self._validate(segments, attractive_min, attractive_max)
        self.segments: Tuple[WheelSegment, ...] = tuple(segments)
        self.attractive_min = attractive_min
        self.attractive_max = attractive_max
        self.attractive: Tuple[WheelSegment, ...] = tuple(
            s for s in self.segments if attractive_min <= s.reward_amount <= attractive_max
        )

    @staticmethod
    def _validate(segments: Sequence[WheelSegment], low: int, high: int) -> None:
        if not segments:
            raise InvalidConfigurationError("wheel.segments", "at least one segment is required")

        ids = [s.id for s in segments]
        if len(ids) != len(set(ids)):
            raise InvalidConfigurationError("wheel.segments", "segment ids must be unique")

        for segment in segments:
            if segment.weight < 0:
                raise InvalidConfigurationError(
                    "wheel.segments", f"segment {segment.id} has a negative weight"
                )
            if segment.reward_amount < 0:
                raise InvalidConfigurationError(
                    "wheel.segments", f"segment {segment.id} has a negative reward"
                )

        total = sum(s.weight for s in segments)
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise InvalidConfigurationError(
                "wheel.segments", f"weights must sum to 1.0, got {total!r}"
            )

        if low > high:
            raise InvalidConfigurationError(
                "wheel.attractive_band", f"min {low} is greater than max {high}"
            )
        if not any(low <= s.reward_amount <= high for s in segments):
            raise InvalidConfigurationError(
                "wheel.attractive_band",
                f"no segment rewards fall within [{low}, {high}]",
            )

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]]) -> "ProbabilityWheel":
        raw = raw or {}
        band = raw.get("attractive_band") or {}
        raw_segments: Optional[Iterable[Any]] = raw.get("segments")

        try:
            segments: Sequence[WheelSegment] = (
                [
                    WheelSegment(
                        id=int(item["id"]),
                        label=str(item.get("label") or f"{int(item['reward'])} GC"),
                        reward_amount=int(item["reward"]),
                        weight=float(item["weight"]),
                    )
                    for item in raw_segments
                ]
                if raw_segments
                else DEFAULT_SEGMENTS
            )
            low = int(band.get("min", 50))
            high = int(band.get("max", 250))
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidConfigurationError(
                "wheel.segments", f"each segment needs id, reward and weight ({exc})"
            ) from exc

        return cls(segments, low, high)

    def segment(self, segment_id: int) -> WheelSegment:
        for segment in self.segments:
            if segment.id == segment_id:
                return segment
        raise KeyError(segment_id)

    def select_weighted(self, rng: random.Random) -> WheelSegment:
        r = rng.random()
        running = 0.0
        last_positive: Optional[WheelSegment] = None

        for segment in self.segments:
            if segment.weight <= 0:
                continue
            running += segment.weight
            last_positive = segment
            if running >= r:
                return segment

        if last_positive is None:
            raise InvalidConfigurationError("wheel.segments", "no segment has a positive weight")
        return last_positive

    def select_guaranteed(self, rng: random.Random) -> WheelSegment:
        return rng.choice(self.attractive)

    def spin(self, rng: random.Random, first_spin: bool) -> Tuple[WheelSegment, bool]:
        """Return (segment, guaranteed)."""
        if first_spin:
            return self.select_guaranteed(rng), True
        return self.select_weighted(rng), False
