"""
Mastery calculator: per-game skill multiplier from games played.

The level table is ordered by `min_games`; the highest level whose
threshold is <= games played applies. Defaults:

    games played   0    26    51    101   201
    multiplier    1.0  1.05  1.1   1.15  1.2
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from golden_credits.core.exceptions import InvalidConfigurationError

DEFAULT_MASTERY_LEVELS: Tuple[Tuple[int, float], ...] = (
    (0, 1.0),
    (26, 1.05),
    (51, 1.1),
    (101, 1.15),
    (201, 1.2),
)


@dataclass(frozen=True)
class MasteryInfo:
    level: int
    multiplier: float
    games_played: int
    progress_percent: float
    next_level_at: Optional[int]
    games_to_next_level: Optional[int]


class MasteryCalculator:
    """Pure, stateless mapping from games played to a reward multiplier."""

    def __init__(self, levels: Sequence[Tuple[int, float]] = DEFAULT_MASTERY_LEVELS) -> None:
        ordered = sorted((int(games), float(mult)) for games, mult in levels)
        if not ordered or ordered[0][0] != 0:
            raise InvalidConfigurationError(
                "rewards.mastery.levels", "the first mastery level must start at 0 games"
            )
        if any(mult < 1.0 for _, mult in ordered):
            raise InvalidConfigurationError(
                "rewards.mastery.levels", "multipliers must be >= 1.0"
            )
        if any(a[1] > b[1] for a, b in zip(ordered, ordered[1:])):
            raise InvalidConfigurationError(
                "rewards.mastery.levels", "multipliers must not decrease with games played"
            )
        self._levels: List[Tuple[int, float]] = ordered

    @classmethod
    def from_config(cls, raw_levels: Optional[Iterable[Any]]) -> "MasteryCalculator":
        if not raw_levels:
            return cls()
        try:
            levels = [(int(item["min_games"]), float(item["multiplier"])) for item in raw_levels]
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidConfigurationError(
                "rewards.mastery.levels",
                f"each level needs numeric 'min_games' and 'multiplier' ({exc})",
            ) from exc
        return cls(levels)

    def _level_index(self, games_played: int) -> int:
        games = max(0, int(games_played))
        index = 0
        for position, (threshold, _) in enumerate(self._levels):
            if games >= threshold:
                index = position
        return index

    def multiplier(self, games_played: int) -> float:
        """Negative input is treated as 0."""
        return self._levels[self._level_index(games_played)][1]

    def info(self, games_played: int) -> MasteryInfo:
        games = max(0, int(games_played))
        index = self._level_index(games)
        threshold, multiplier = self._levels[index]

        if index + 1 < len(self._levels):
            next_at = self._levels[index + 1][0]
            span = next_at - threshold
            progress = round((games - threshold) / span * 100, 1) if span else 100.0
            remaining: Optional[int] = next_at - games
        else:
            next_at = None
            progress = 100.0
            remaining = None

        return MasteryInfo(
            level=index + 1,
            multiplier=multiplier,
            games_played=games,
            progress_percent=progress,
            next_level_at=next_at,
            games_to_next_level=remaining,
        )


_default_calculator = MasteryCalculator()


def mastery_multiplier(games_played: int) -> float:
    return _default_calculator.multiplier(games_played)


def mastery_info(games_played: int) -> MasteryInfo:
    return _default_calculator.info(games_played)
