"""
Unit tests for RewardPolicyTable.

Covers every formula kind, additive modifiers, the first-of-day bonus and
load-time validation of malformed tables.
"""

from decimal import Decimal

import pytest

from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.modules.rewards.policy import RewardPolicyTable
from golden_credits.modules.shared.exceptions import (
    UnknownRewardTypeError,
    ValidationError,
)


@pytest.fixture
def table(config_manager):
    return RewardPolicyTable.from_config(config_manager.get("rewards.games"))


class TestFixedRules:
    """Bare integers and kind: fixed."""

    def test_participation_is_fixed(self, table):
        assert table.base_amount("flame-of-wisdom", "participation") == 2
        assert table.base_amount("gates-of-knowledge", "participation") == 3

    def test_fixed_ignores_params(self, table):
        assert table.base_amount("marks-of-destiny", "mastery", {"anything": 99}) == 20


class TestLookupAndThreshold:
    """Tables keyed by a parameter value."""

    def test_tile_lookup_exact_key(self, table):
        assert table.base_amount("path-of-enlightenment", "tile", {"tile": 2048}) == 50
        assert table.base_amount("path-of-enlightenment", "tile", {"tile": "512"}) == 15

    def test_tile_lookup_missing_key_is_zero(self, table):
        assert table.base_amount("path-of-enlightenment", "tile", {"tile": 64}) == 0
        assert table.base_amount("path-of-enlightenment", "tile") == 0

    def test_flame_level_pays_exact_levels_only(self, table):
        assert table.base_amount("flame-of-wisdom", "level", {"level": 5}) == 5
        assert table.base_amount("flame-of-wisdom", "level", {"level": 20}) == 20
        assert table.base_amount("flame-of-wisdom", "level", {"level": 7}) == 0
        assert table.base_amount("flame-of-wisdom", "level", {"level": 250}) == 0

    def test_threshold_picks_highest_reached(self, table):
        assert table.base_amount("sacred-tapping", "combo", {"combo": 24}) == 0
        assert table.base_amount("sacred-tapping", "combo", {"combo": 25}) == 5
        assert table.base_amount("sacred-tapping", "combo", {"combo": 49}) == 5
        assert table.base_amount("sacred-tapping", "combo", {"combo": 300}) == 10


class TestPerUnitAndPerCount:
    """Scaled formulas with optional maximums."""

    def test_score_per_thousand(self, table):
        assert table.base_amount("path-of-enlightenment", "score", {"score": 999}) == 0
        assert table.base_amount("path-of-enlightenment", "score", {"score": 4500}) == 4

    def test_taps_capped_at_max(self, table):
        assert table.base_amount("flame-of-wisdom", "taps", {"taps": 1250}) == 12
        assert table.base_amount("flame-of-wisdom", "taps", {"taps": 100000}) == 25

    def test_per_count_defaults_to_one(self, table):
        assert table.base_amount("gates-of-knowledge", "correct_answer") == 2
        assert table.base_amount("gates-of-knowledge", "correct_answer", {"count": 4}) == 8

    def test_zero_count_counts_as_one(self, table):
        assert table.base_amount("gates-of-knowledge", "correct_answer", {"count": 0}) == 2
        assert table.base_amount("gates-of-knowledge", "speed_bonus", {"count": 0}) == 1
        assert table.base_amount("mystical-tap-journey", "city_visited", {"count": 0}) == 5

    def test_fractional_per_count_keeps_fraction(self, table):
        assert table.base_amount("sacred-tapping", "perfect_taps", {"count": 15}) == Decimal("1.5")
        assert table.base_amount("sacred-tapping", "perfect_taps", {"count": 500}) == 20

    def test_perfect_taps_without_count_pays_nothing(self, table):
        assert table.base_amount("sacred-tapping", "perfect_taps") == 0
        assert table.base_amount("sacred-tapping", "perfect_taps", {"count": 0}) == 0

    def test_negative_parameter_treated_as_zero(self, table):
        assert table.base_amount("path-of-enlightenment", "score", {"score": -5000}) == 0

    def test_non_numeric_parameter_rejected(self, table):
        with pytest.raises(ValidationError):
            table.base_amount("flame-of-wisdom", "taps", {"taps": "lots"})


class TestModifiers:
    """Difficulty and streak bonuses on marks-of-destiny wins."""

    def test_win_with_modifiers(self, table):
        amount = table.base_amount(
            "marks-of-destiny", "win", {"difficulty": "hard", "is_streak": True}
        )
        assert amount == 5 + 10 + 5

    def test_difficulty_is_case_insensitive(self, table):
        assert table.base_amount("marks-of-destiny", "win", {"difficulty": "Medium"}) == 10

    def test_first_of_day_bonus_added_on_request(self, table):
        plain = table.base_amount("marks-of-destiny", "win", {"difficulty": "easy"})
        first = table.base_amount(
            "marks-of-destiny", "win", {"difficulty": "easy"}, first_of_day=True
        )
        assert first - plain == 5


class TestLookupErrors:
    """Unknown pairs are distinguishable from zero rewards."""

    def test_unknown_event_raises(self, table):
        with pytest.raises(UnknownRewardTypeError) as exc_info:
            table.lookup("flame-of-wisdom", "dragon_slain")

        assert exc_info.value.error_code == "UNKNOWN_REWARD_TYPE"

    def test_unknown_game_raises(self, table):
        with pytest.raises(UnknownRewardTypeError):
            table.base_amount("chess", "participation")

    def test_games_and_events_listing(self, table):
        assert "sacred-tapping" in table.games()
        assert "participation" in table.events_for("mystical-tap-journey")
        assert table.has_rule("gates-of-knowledge", "perfect_quiz")


class TestTableValidation:
    """Malformed tables fail at load."""

    @pytest.mark.parametrize(
        "games",
        [
            {},
            {"g": {}},
            {"g": {"e": {"kind": "exponential"}}},
            {"g": {"e": {"kind": "lookup", "table": {1: 1}}}},
            {"g": {"e": {"kind": "threshold", "param": "x", "table": {"a": 1}}}},
            {"g": {"e": {"kind": "per_unit", "param": "x", "unit": 0, "amount": 1}}},
            {"g": {"e": {"kind": "fixed", "base": -1}}},
            {"g": {"e": {"modifiers": [{"kind": "flag_bonus"}]}}},
        ],
    )
    def test_rejects_malformed(self, games):
        with pytest.raises(InvalidConfigurationError):
            RewardPolicyTable.from_config(games)
