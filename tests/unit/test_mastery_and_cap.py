"""
Unit tests for MasteryCalculator and DailyCapPolicy.
"""

import pytest

from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.modules.rewards.daily_cap import DailyCapPolicy, UsageSnapshot
from golden_credits.modules.rewards.mastery import MasteryCalculator, mastery_multiplier


class TestMasteryMultiplier:
    """Level thresholds at 26, 51, 101 and 201 games."""

    @pytest.mark.parametrize(
        "games, expected",
        [
            (0, 1.0),
            (25, 1.0),
            (26, 1.05),
            (50, 1.05),
            (51, 1.1),
            (101, 1.15),
            (200, 1.15),
            (201, 1.2),
            (10_000, 1.2),
        ],
    )
    def test_thresholds(self, games, expected):
        assert mastery_multiplier(games) == expected

    def test_negative_games_treated_as_zero(self):
        assert MasteryCalculator().multiplier(-7) == 1.0

    def test_monotonic(self):
        calculator = MasteryCalculator()
        values = [calculator.multiplier(games) for games in range(0, 300)]
        assert values == sorted(values)

    def test_info_reports_progress(self):
        info = MasteryCalculator().info(38)

        assert info.level == 2
        assert info.next_level_at == 51
        assert info.games_to_next_level == 13
        assert 0 < info.progress_percent < 100

    def test_info_at_top_level(self):
        info = MasteryCalculator().info(500)

        assert info.level == 5
        assert info.next_level_at is None
        assert info.progress_percent == 100.0

    def test_from_config_matches_defaults(self, config_manager):
        calculator = MasteryCalculator.from_config(config_manager.get("rewards.mastery.levels"))
        assert calculator.multiplier(101) == 1.15

    def test_rejects_table_without_zero_level(self):
        with pytest.raises(InvalidConfigurationError):
            MasteryCalculator([(10, 1.0)])

    def test_rejects_decreasing_multipliers(self):
        with pytest.raises(InvalidConfigurationError):
            MasteryCalculator([(0, 1.0), (10, 1.5), (20, 1.2)])


class TestDailyCap:
    """200 GC per reference day across all games."""

    def test_below_cap_unchanged(self):
        decision = DailyCapPolicy().adjust(UsageSnapshot(total_issued=50), "g", 20)

        assert decision.final == 20
        assert decision.capped is False

    def test_cap_truncates_to_remaining(self):
        decision = DailyCapPolicy().adjust(UsageSnapshot(total_issued=195), "g", 10)

        assert decision.final == 5
        assert decision.capped is True
        assert decision.remaining_before == 5

    def test_exhausted_cap_gives_zero(self):
        decision = DailyCapPolicy().adjust(UsageSnapshot(total_issued=200), "g", 10)

        assert decision.final == 0
        assert decision.capped is True

    def test_no_usage_yet(self):
        assert DailyCapPolicy().adjust(None, "g", 30).final == 30

    def test_final_never_exceeds_proposed_or_remaining(self):
        policy = DailyCapPolicy()
        for issued in range(0, 201, 7):
            for proposed in range(0, 60, 3):
                decision = policy.adjust(UsageSnapshot(total_issued=issued), "g", proposed)
                assert 0 <= decision.final <= proposed
                assert decision.final <= 200 - issued


class TestDiminishingReturns:
    """Per-game reduction after 10 credited plays."""

    @pytest.mark.parametrize(
        "plays, factor",
        [(0, 1.0), (9, 1.0), (10, 0.9), (11, 0.8), (15, 0.4), (18, 0.1), (40, 0.1)],
    )
    def test_reduction_factor(self, plays, factor):
        assert DailyCapPolicy().reduction_factor(plays) == pytest.approx(factor)

    def test_reduction_truncates(self):
        usage = UsageSnapshot(total_issued=20, per_game={"g": {"plays": 12}})

        decision = DailyCapPolicy().adjust(usage, "g", 5)

        assert decision.reduction_factor == pytest.approx(0.7)
        assert decision.final == 3
        assert decision.capped is True

    def test_other_games_not_reduced(self):
        usage = UsageSnapshot(total_issued=20, per_game={"g": {"plays": 30}})

        assert DailyCapPolicy().adjust(usage, "other", 5).final == 5

    def test_invalid_settings_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            DailyCapPolicy.from_config({"diminishing_step": 0})
