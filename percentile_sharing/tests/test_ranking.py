"""Tests for rank resolution and percentile finishers."""

import math

import numpy as np
import pytest

from percentile_sharing.exceptions import InvalidPercentileError
from percentile_sharing.interpolation import ceiling, floor, half_up, linear
from percentile_sharing.ranking import (
    PercentileFinisher,
    RankedPair,
    RankIndex,
    format_quantile_key,
    percentile,
    rank_pair,
    resolve_rank,
    validate_percentile,
)


class TestValidatePercentile:
    """Test percentile precondition checks."""

    @pytest.mark.parametrize("p", [0, 0.0, 0.5, 1, 1.0, np.float64(0.25)])
    def test_accepts_unit_interval(self, p):
        assert validate_percentile(p) == float(p)

    @pytest.mark.parametrize("p", [-0.01, 1.01, math.nan, math.inf, "0.5", None, True])
    def test_rejects(self, p):
        with pytest.raises(InvalidPercentileError) as exc_info:
            validate_percentile(p)
        assert isinstance(exc_info.value, ValueError)


class TestResolveRank:
    """Test resolve_rank."""

    def test_empty(self):
        assert resolve_rank(0, 0.5) is None

    @pytest.mark.parametrize("p", [0.0, 0.3, 0.5, 1.0])
    def test_single_element(self, p):
        assert resolve_rank(1, p) == RankIndex(0, 0)

    def test_bounds(self):
        assert resolve_rank(10, 0.0) == RankIndex(0, 0)
        assert resolve_rank(10, 1.0) == RankIndex(9, 9)

    def test_midpoint_interpolates(self):
        assert resolve_rank(10, 0.5) == RankIndex(4, 5, 0.5)

    def test_exact_rank(self):
        rank = resolve_rank(10, 0.55)
        assert rank == RankIndex(5, 5)
        assert rank.is_exact

    def test_rounding_suppresses_float_noise(self):
        # 10 * 0.7 == 7.000000000000001 before rounding
        assert resolve_rank(10, 0.7) == RankIndex(6, 7, 0.5)
        assert resolve_rank(10, 0.65) == RankIndex(6, 6)

    def test_fraction(self):
        rank = resolve_rank(4, 0.2)
        assert rank.lower == 0
        assert rank.upper == 1
        assert rank.fraction == pytest.approx(0.3)

    def test_clamps_low_positions_to_first(self):
        assert resolve_rank(10, 0.01) == RankIndex(0, 0)

    def test_clamps_high_positions_to_last(self):
        assert resolve_rank(10, 0.99) == RankIndex(9, 9)

    def test_invalid_percentile(self):
        with pytest.raises(InvalidPercentileError):
            resolve_rank(10, 1.5)

    def test_negative_count(self):
        with pytest.raises(ValueError):
            resolve_rank(-1, 0.5)

    @pytest.mark.parametrize("count", [2, 3, 7, 10, 31])
    def test_monotonic_in_percentile(self, count):
        lowers = [resolve_rank(count, i / 200).lower for i in range(201)]
        assert lowers == sorted(lowers)
        assert lowers[0] == 0
        assert lowers[-1] == count - 1

    @pytest.mark.parametrize("count", [2, 5, 10, 50])
    def test_ranks_within_bounds(self, count):
        for i in range(101):
            rank = resolve_rank(count, i / 100)
            assert 0 <= rank.lower <= rank.upper <= count - 1
            assert 0.0 <= rank.fraction < 1.0


class TestRankedPair:
    """Test RankedPair."""

    def test_equal_elements_skip_policy(self):
        def fail(lower, upper, fraction):
            raise AssertionError("policy must not be called")

        assert RankedPair("a", "a", 0.5).resolve(fail) == "a"

    def test_policy_applied(self):
        assert RankedPair(10.0, 20.0, 0.25).resolve(linear) == 12.5

    def test_rank_pair(self, demo_values):
        assert rank_pair(demo_values, 0.5) == RankedPair(40.0, 50.0, 0.5)
        assert rank_pair(demo_values, 0.55) == RankedPair(50.0, 50.0)
        assert rank_pair([], 0.5) is None


class TestPercentileFinisher:
    """Test percentile finishers over sorted sequences."""

    @pytest.mark.parametrize(
        "policy, expected",
        [(floor, 40.0), (ceiling, 50.0), (half_up, 50.0), (linear, 45.0)],
    )
    def test_median_of_demo_values(self, demo_values, policy, expected):
        assert percentile(0.5, policy)(demo_values) == expected

    def test_first_and_last(self, demo_values):
        for policy in (floor, ceiling, half_up, linear):
            assert percentile(0.0, policy)(demo_values) == demo_values[0]
            assert percentile(1.0, policy)(demo_values) == demo_values[-1]

    @pytest.mark.parametrize("p", [0.0, 0.1, 0.5, 0.9, 1.0])
    def test_single_element(self, p):
        assert percentile(p, linear)([42.0]) == 42.0

    def test_empty_is_absent(self):
        assert percentile(0.5)([]) is None

    def test_default_policy_is_floor(self, demo_values):
        finisher = percentile(0.5)
        assert finisher.policy is floor
        assert finisher(demo_values) == 40.0

    def test_invalid_percentile_fails_at_construction(self):
        with pytest.raises(InvalidPercentileError):
            percentile(-0.5)

    def test_non_numeric_elements(self):
        letters = ["a", "b", "c", "d"]
        assert percentile(0.5, floor)(letters) == "b"
        assert percentile(0.5, ceiling)(letters) == "c"

    def test_numpy_input(self):
        values = np.arange(0.0, 100.0, 10.0)
        assert percentile(0.5, linear)(values) == pytest.approx(45.0)

    def test_matches_numpy_hazen(self):
        rng = np.random.default_rng(7)
        values = np.sort(rng.normal(100.0, 15.0, 37))
        for i in range(1, 100):
            p = i / 100
            expected = np.percentile(values, p * 100, method="hazen")
            assert percentile(p, linear)(values) == pytest.approx(expected, rel=1e-9)

    def test_repr(self):
        assert repr(PercentileFinisher(0.25, half_up)) == (
            "PercentileFinisher(percentile=0.25, policy=half_up)"
        )


class TestFormatQuantileKey:
    """Tests for the format_quantile_key helper."""

    @pytest.mark.parametrize(
        "q, expected",
        [(0.25, "q0250"), (0.5, "q0500"), (0.005, "q0005"), (1.0, "q1000"), (0.0, "q0000")],
    )
    def test_various_quantiles(self, q, expected):
        assert format_quantile_key(q) == expected
