"""
Unit tests for ProbabilityWheel.

Tests weighted selection, the first-spin guarantee, the rounding fallback
and configuration validation.
"""

import random
from collections import Counter

import pytest

from golden_credits.core.exceptions import InvalidConfigurationError
from golden_credits.modules.wheel.logic import DEFAULT_SEGMENTS, ProbabilityWheel, WheelSegment


class FixedDraw:
    """Random source whose random() always returns the same value."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


class TestWeightedSelection:
    """Cumulative walk over the configured order."""

    @pytest.mark.parametrize(
        "draw, segment_id",
        [(0.0, 1), (0.29, 1), (0.31, 2), (0.6, 3), (0.8, 4), (0.93, 5), (0.97, 6), (0.995, 7)],
    )
    def test_draw_maps_to_segment(self, draw, segment_id):
        assert ProbabilityWheel().select_weighted(FixedDraw(draw)).id == segment_id

    def test_zero_weight_segment_never_selected(self):
        wheel = ProbabilityWheel()
        rng = random.Random(7)

        picks = Counter(wheel.select_weighted(rng).id for _ in range(5000))

        assert picks[8] == 0

    def test_distribution_roughly_matches_weights(self):
        wheel = ProbabilityWheel()
        rng = random.Random(2024)
        draws = 20000

        picks = Counter(wheel.select_weighted(rng).id for _ in range(draws))

        assert picks[1] / draws == pytest.approx(0.30, abs=0.02)
        assert picks[4] / draws == pytest.approx(0.15, abs=0.02)

    def test_rounding_falls_back_to_last_positive_segment(self):
        segments = [
            WheelSegment(1, "50 GC", 50, 0.5),
            WheelSegment(2, "100 GC", 100, 0.5 - 1e-10),
            WheelSegment(3, "Nothing", 0, 0.0),
        ]
        wheel = ProbabilityWheel(segments)

        assert wheel.select_weighted(FixedDraw(1 - 1e-11)).id == 2

    def test_no_positive_weight_raises(self):
        wheel = ProbabilityWheel()
        wheel.segments = (WheelSegment(8, "Try Again", 0, 0.0),)

        with pytest.raises(InvalidConfigurationError):
            wheel.select_weighted(FixedDraw(0.5))


class TestFirstSpinGuarantee:
    """The first spin lands in the 50..250 band."""

    def test_first_spin_in_band(self):
        wheel = ProbabilityWheel()
        for seed in range(50):
            segment, guaranteed = wheel.spin(random.Random(seed), first_spin=True)

            assert guaranteed is True
            assert 50 <= segment.reward_amount <= 250

    def test_later_spins_use_weights(self):
        segment, guaranteed = ProbabilityWheel().spin(FixedDraw(0.0), first_spin=False)

        assert guaranteed is False
        assert segment.id == 1

    def test_attractive_segments(self):
        assert [s.reward_amount for s in ProbabilityWheel().attractive] == [50, 100, 250]


class TestWheelValidation:
    """Invalid wheels are rejected at construction."""

    def test_weights_must_sum_to_one(self):
        segments = [WheelSegment(1, "50 GC", 50, 0.6), WheelSegment(2, "5 GC", 5, 0.3)]
        with pytest.raises(InvalidConfigurationError):
            ProbabilityWheel(segments)

    def test_negative_weight_rejected(self):
        segments = [WheelSegment(1, "50 GC", 50, 1.2), WheelSegment(2, "5 GC", 5, -0.2)]
        with pytest.raises(InvalidConfigurationError):
            ProbabilityWheel(segments)

    def test_empty_band_rejected(self):
        with pytest.raises(InvalidConfigurationError):
            ProbabilityWheel(DEFAULT_SEGMENTS, attractive_min=600, attractive_max=900)

    def test_duplicate_ids_rejected(self):
        segments = [WheelSegment(1, "50 GC", 50, 0.5), WheelSegment(1, "5 GC", 5, 0.5)]
        with pytest.raises(InvalidConfigurationError):
            ProbabilityWheel(segments)

    def test_from_config(self, config_manager):
        wheel = ProbabilityWheel.from_config(config_manager.get("wheel"))

        assert len(wheel.segments) == 8
        assert wheel.segment(8).label == "Try Again"
