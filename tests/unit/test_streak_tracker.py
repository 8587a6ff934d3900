"""
Unit tests for StreakTracker.

Tests the continuation law, reward tiers, wheel-spin grants, streak
multipliers and milestone lookup.
"""

from datetime import datetime, timedelta, timezone

import pytest

from golden_credits.core.clock import ReferenceCalendar
from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.modules.shared.exceptions import AlreadyClaimedError, NotFoundError
from golden_credits.modules.streak.logic import StreakTracker

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tracker():
    return StreakTracker(calendar=ReferenceCalendar("UTC"))


class TestContinuation:
    """Claims within 48 hours continue the streak."""

    def test_first_claim_starts_streak(self, tracker):
        decision = tracker.evaluate_claim(0, None, NOW)

        assert decision.new_streak == 1
        assert decision.continued is False
        assert decision.amount == 10

    def test_next_day_continues(self, tracker):
        decision = tracker.evaluate_claim(4, NOW - timedelta(hours=24), NOW)

        assert decision.new_streak == 5
        assert decision.continued is True
        assert decision.amount == 15

    def test_exactly_48_hours_continues(self, tracker):
        decision = tracker.evaluate_claim(9, NOW - timedelta(hours=48), NOW)
        assert decision.new_streak == 10

    def test_gap_over_window_resets(self, tracker):
        decision = tracker.evaluate_claim(29, NOW - timedelta(hours=48, seconds=1), NOW)

        assert decision.new_streak == 1
        assert decision.continued is False
        assert decision.amount == 10

    def test_same_day_rejected(self, tracker):
        with pytest.raises(AlreadyClaimedError) as exc_info:
            tracker.evaluate_claim(3, NOW.replace(hour=0, minute=5), NOW)

        assert exc_info.value.claim_type == "daily_login"

    def test_just_after_midnight_is_a_new_day(self, tracker):
        last = datetime(2025, 3, 9, 23, 59, tzinfo=timezone.utc)
        decision = tracker.evaluate_claim(2, last, last + timedelta(minutes=2))
        assert decision.new_streak == 3

    def test_reference_timezone_moves_day_boundary(self):
        tokyo = StreakTracker(calendar=ReferenceCalendar("Asia/Tokyo"))
        # 14:00 UTC and 16:00 UTC fall on different Tokyo days (23:00 / 01:00)
        last = datetime(2025, 3, 10, 14, 0, tzinfo=timezone.utc)

        decision = tokyo.evaluate_claim(1, last, last + timedelta(hours=2))

        assert decision.new_streak == 2


class TestRewardTiers:
    """10/15/20/25/30 GC and a spin every 7th day."""

    @pytest.mark.parametrize(
        "streak, amount",
        [(1, 10), (4, 10), (5, 15), (9, 15), (10, 20), (19, 20), (20, 25), (30, 30), (365, 30)],
    )
    def test_daily_reward(self, tracker, streak, amount):
        assert tracker.daily_reward(streak) == amount

    @pytest.mark.parametrize("streak, spins", [(6, 0), (7, 1), (13, 0), (14, 1), (70, 1)])
    def test_weekly_spin(self, tracker, streak, spins):
        assert tracker.wheel_spins_for(streak) == spins

    def test_day_seven_claim(self, tracker):
        decision = tracker.evaluate_claim(6, NOW - timedelta(hours=23), NOW)

        assert decision.new_streak == 7
        assert decision.amount == 15
        assert decision.wheel_spins == 1


class TestMultipliersAndMilestones:
    """Effective streak drives multipliers and milestone eligibility."""

    @pytest.mark.parametrize(
        "streak, multiplier",
        [(0, 1.0), (2, 1.0), (3, 1.1), (7, 1.15), (14, 1.2), (29, 1.2), (30, 1.25)],
    )
    def test_multiplier(self, tracker, streak, multiplier):
        assert tracker.multiplier(streak) == multiplier

    def test_broken_streak_is_zero(self, tracker):
        assert tracker.effective_streak(12, NOW - timedelta(hours=49), NOW) == 0
        assert tracker.effective_streak(12, NOW - timedelta(hours=47), NOW) == 12
        assert tracker.effective_streak(0, None, NOW) == 0

    def test_milestone_catalogue(self, tracker):
        month = tracker.milestone(30)

        assert month.golden_credits == 500
        assert month.wheel_spins == 3
        assert month.cosmetics == {"badge": "Monthly Master"}
        assert [m.days for m in tracker.milestones()] == [3, 7, 14, 30, 60, 90]

    def test_unknown_milestone(self, tracker):
        with pytest.raises(NotFoundError):
            tracker.milestone(5)

    def test_from_config(self, config_manager):
        tracker = StreakTracker.from_config(config_manager.get("streak"), ReferenceCalendar())

        assert tracker.milestone(90).cosmetics == {"profile_frame": "golden"}
        assert tracker.daily_reward(20) == 25

    def test_rejects_non_positive_window(self):
        with pytest.raises(InvalidConfigurationError):
            StreakTracker(window_hours=0)
