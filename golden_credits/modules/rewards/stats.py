"""
Games-played collaborator.

The engine does not track gameplay itself; mastery multipliers read the
games-played count from whatever owns that data (game servers, analytics).
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, Protocol, Tuple, runtime_checkable


@runtime_checkable
class GamesPlayedReader(Protocol):
    async def games_played(self, account_id: str, game_id: str) -> int:
        ...


class InMemoryGamesPlayed:
    """Dictionary-backed reader for embedding and tests."""

    def __init__(self) -> None:
        self._counts: Dict[Tuple[str, str], int] = defaultdict(int)

    async def games_played(self, account_id: str, game_id: str) -> int:
        return self._counts[(account_id, game_id)]

    def set(self, account_id: str, game_id: str, count: int) -> None:
        self._counts[(account_id, game_id)] = max(0, int(count))

    def record_play(self, account_id: str, game_id: str, count: int = 1) -> int:
        self._counts[(account_id, game_id)] += max(0, int(count))
        return self._counts[(account_id, game_id)]
