"""
Streak rules: daily-login continuation, rewards, milestones, multipliers.

Pure logic over (current_streak, last_claim_at, now); persistence lives in
`StreakService`. All "same day" questions use the reference calendar.

Continuation law
----------------
- claimed on the current reference day      -> AlreadyClaimedError
- never claimed                              -> streak 1
- ``now - last_claim_at <= window`` (48h)    -> streak + 1
- otherwise                                  -> streak 1

A stored streak whose last claim is older than the window is "broken":
it counts as 0 for game-reward multipliers and milestone eligibility.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from golden_credits.core.clock import ReferenceCalendar
from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.modules.shared.exceptions import AlreadyClaimedError, NotFoundError

DEFAULT_REWARD_TIERS: Tuple[Tuple[int, int], ...] = (
    (0, 10),
    (5, 15),
    (10, 20),
    (20, 25),
    (30, 30),
)

DEFAULT_MULTIPLIERS: Tuple[Tuple[int, float], ...] = (
    (3, 1.1),
    (7, 1.15),
    (14, 1.2),
    (30, 1.25),
)


@dataclass(frozen=True)
class Milestone:
    days: int
    golden_credits: int
    wheel_spins: int = 0
    cosmetics: Mapping[str, str] = field(default_factory=dict)


DEFAULT_MILESTONES: Tuple[Milestone, ...] = (
    Milestone(3, 50),
    Milestone(7, 100, 1),
    Milestone(14, 200, 2),
    Milestone(30, 500, 3, {"badge": "Monthly Master"}),
    Milestone(60, 1000, 5, {"title": "Golden Guardian"}),
    Milestone(90, 2000, 10, {"profile_frame": "golden"}),
)


@dataclass(frozen=True)
class LoginDecision:
    amount: int
    new_streak: int
    continued: bool
    wheel_spins: int


class StreakTracker:
    def __init__(
        self,
        calendar: Optional[ReferenceCalendar] = None,
        window_hours: float = 48,
        reward_tiers: Sequence[Tuple[int, int]] = DEFAULT_REWARD_TIERS,
        wheel_spin_every_days: int = 7,
        multipliers: Sequence[Tuple[int, float]] = DEFAULT_MULTIPLIERS,
        milestones: Iterable[Milestone] = DEFAULT_MILESTONES,
    ) -> None:
        if window_hours <= 0:
            raise InvalidConfigurationError("streak.continuation_window_hours", "must be positive")
        if wheel_spin_every_days < 1:
            raise InvalidConfigurationError("streak.wheel_spin_every_days", "must be >= 1")

        tiers = sorted((int(days), int(amount)) for days, amount in reward_tiers)
        if not tiers or tiers[0][0] > 1:
            raise InvalidConfigurationError(
                "streak.daily_rewards", "a reward tier must cover a 1-day streak"
            )
        if any(amount <= 0 for _, amount in tiers):
            raise InvalidConfigurationError("streak.daily_rewards", "amounts must be positive")

        catalogue: Dict[int, Milestone] = {}
        for milestone in milestones:
            if milestone.days < 1 or milestone.golden_credits < 0 or milestone.wheel_spins < 0:
                raise InvalidConfigurationError(
                    f"streak.milestones.{milestone.days}", "days must be >= 1 and rewards >= 0"
                )
            catalogue[milestone.days] = milestone

        self.calendar = calendar or ReferenceCalendar()
        self.window = timedelta(hours=window_hours)
        self.wheel_spin_every_days = int(wheel_spin_every_days)
        self._tiers: List[Tuple[int, int]] = tiers
        self._multipliers: List[Tuple[int, float]] = sorted(
            (int(days), float(mult)) for days, mult in multipliers
        )
        self._milestones = dict(sorted(catalogue.items()))

    @classmethod
    def from_config(cls, raw: Optional[Mapping[str, Any]], calendar: ReferenceCalendar) -> "StreakTracker":
        raw = raw or {}
        try:
            tiers = [
                (int(item["min_streak"]), int(item["amount"]))
                for item in raw.get("daily_rewards") or []
            ] or DEFAULT_REWARD_TIERS
            multipliers = [
                (int(item["min_streak"]), float(item["multiplier"]))
                for item in raw.get("multipliers") or []
            ] or DEFAULT_MULTIPLIERS
            milestones = [
                Milestone(
                    days=int(days),
                    golden_credits=int(definition.get("golden_credits", 0)),
                    wheel_spins=int(definition.get("wheel_spins", 0)),
                    cosmetics={str(k): str(v) for k, v in (definition.get("cosmetics") or {}).items()},
                )
                for days, definition in (raw.get("milestones") or {}).items()
            ] or DEFAULT_MILESTONES
            window = float(raw.get("continuation_window_hours", 48))
            every = int(raw.get("wheel_spin_every_days", 7))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise InvalidConfigurationError("streak", f"malformed streak configuration ({exc})") from exc

        return cls(
            calendar=calendar,
            window_hours=window,
            reward_tiers=tiers,
            wheel_spin_every_days=every,
            multipliers=multipliers,
            milestones=milestones,
        )

    # ------------------------------------------------------------------ #
    # Daily login
    # ------------------------------------------------------------------ #

    def claimed_today(self, last_claim_at: Optional[datetime], now: datetime) -> bool:
        return last_claim_at is not None and self.calendar.same_day(last_claim_at, now)

    def is_broken(self, last_claim_at: Optional[datetime], now: datetime) -> bool:
        return last_claim_at is None or now - last_claim_at > self.window

    def effective_streak(self, current_streak: int, last_claim_at: Optional[datetime], now: datetime) -> int:
        if self.is_broken(last_claim_at, now):
            return 0
        return max(0, current_streak)

    def daily_reward(self, streak: int) -> int:
        reward = self._tiers[0][1]
        for min_streak, amount in self._tiers:
            if streak >= min_streak:
                reward = amount
        return reward

    def wheel_spins_for(self, streak: int) -> int:
        return 1 if streak > 0 and streak % self.wheel_spin_every_days == 0 else 0

    def evaluate_claim(
        self,
        current_streak: int,
        last_claim_at: Optional[datetime],
        now: datetime,
    ) -> LoginDecision:
        """
        Raises:
            AlreadyClaimedError: a claim already happened on this reference day
        """
        if self.claimed_today(last_claim_at, now):
            raise AlreadyClaimedError("daily_login", self.calendar.day_of(now).isoformat())

        continued = not self.is_broken(last_claim_at, now) and current_streak > 0
        new_streak = current_streak + 1 if continued else 1

        return LoginDecision(
            amount=self.daily_reward(new_streak),
            new_streak=new_streak,
            continued=continued,
            wheel_spins=self.wheel_spins_for(new_streak),
        )

    # ------------------------------------------------------------------ #
    # Multipliers & milestones
    # ------------------------------------------------------------------ #

    def multiplier(self, effective_streak: int) -> float:
        result = 1.0
        for min_streak, mult in self._multipliers:
            if effective_streak >= min_streak:
                result = mult
        return result

    def milestone(self, days: int) -> Milestone:
        milestone = self._milestones.get(days)
        if milestone is None:
            raise NotFoundError("Milestone", days)
        return milestone

    def milestones(self) -> List[Milestone]:
        return list(self._milestones.values())
