"""Unit tests for src.stats_engine.distributions."""

import math

import numpy as np
import pytest
from scipy import stats

from src.stats_engine.distributions import (
    chi_squared_p_value,
    erf,
    f_p_value,
    normal_cdf,
    t_cdf,
    t_two_tailed_p_value,
)

# ─────────────────────────────────────────────────────────────────────────────
# Normal CDF
# ─────────────────────────────────────────────────────────────────────────────


class TestNormalCdf:
    def test_half_at_zero(self):
        assert normal_cdf(0.0) == pytest.approx(0.5, abs=1e-7)

    @pytest.mark.parametrize("z", np.linspace(-6, 6, 49))
    def test_matches_scipy(self, z):
        assert normal_cdf(z) == pytest.approx(stats.norm.cdf(z), abs=2e-7)

    @pytest.mark.parametrize("z", [0.1, 0.5, 1.0, 1.96, 2.5, 4.0])
    def test_symmetry(self, z):
        assert normal_cdf(-z) == pytest.approx(1 - normal_cdf(z), abs=1e-12)

    def test_monotonically_non_decreasing(self):
        values = [normal_cdf(z) for z in np.linspace(-4, 4, 801)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_infinite_inputs(self):
        assert normal_cdf(math.inf) == 1.0
        assert normal_cdf(-math.inf) == 0.0

    def test_nan_is_uninformative(self):
        assert normal_cdf(math.nan) == 0.5

    def test_erf_is_odd(self):
        assert erf(-0.7) == -erf(0.7)


# ─────────────────────────────────────────────────────────────────────────────
# Student t
# ─────────────────────────────────────────────────────────────────────────────


class TestTCdf:
    @pytest.mark.parametrize("df", [1, 2, 5, 30])
    def test_half_at_zero(self, df):
        assert t_cdf(0.0, df) == pytest.approx(0.5, abs=1e-9)

    @pytest.mark.parametrize("df", [2, 5, 30])
    def test_monotonic_in_t(self, df):
        values = [t_cdf(t, df) for t in np.linspace(-10, 10, 201)]
        assert all(b >= a for a, b in zip(values, values[1:]))

    def test_tails_reach_bounds(self):
        assert t_cdf(math.inf, 5) == 1.0
        assert t_cdf(-math.inf, 5) == 0.0

    def test_degenerate_df(self):
        assert t_cdf(3.0, 0) == 0.5
        assert t_two_tailed_p_value(3.0, 0) == 1.0

    def test_large_statistic_is_significant(self):
        # Biased approximation: only the order of magnitude is checked
        assert t_two_tailed_p_value(-6.12, 4) < 0.01
        assert stats.t.sf(6.12, 4) * 2 < 0.01

    def test_zero_statistic_gives_p_one(self):
        assert t_two_tailed_p_value(0.0, 10) == pytest.approx(1.0, abs=1e-9)

    def test_two_tailed_is_symmetric(self):
        assert t_two_tailed_p_value(2.5, 8) == t_two_tailed_p_value(-2.5, 8)

    @pytest.mark.parametrize(
        "t,df,expected",
        [(1.96, 1000, 0.0296), (2.228, 10, 0.0207), (1.0, 20, 0.6444)],
    )
    def test_bias_against_scipy_is_pinned(self, t, df, expected):
        # The truncated Gaussian never converges to the Beta tail, so the
        # error does not shrink with df: too small near |t| = 2, too large near |t| = 1
        p = t_two_tailed_p_value(t, df)
        exact = 2 * stats.t.sf(t, df)
        assert p == pytest.approx(expected, abs=2e-3)
        assert abs(p - exact) > 0.015

    @pytest.mark.parametrize("df", [5, 10, 30, 1000])
    def test_critical_value_is_flagged_significant(self, df):
        # At the exact 5% critical value the approximate p already sits below
        # alpha, so ``significant`` is anti-conservative near the threshold
        t = stats.t.ppf(0.975, df)
        assert 0.01 <= t_two_tailed_p_value(t, df) < 0.05


# ─────────────────────────────────────────────────────────────────────────────
# Chi-squared and F
# ─────────────────────────────────────────────────────────────────────────────


class TestChiSquaredPValue:
    @pytest.mark.parametrize(
        "x2,df",
        [(3.84, 1), (5.99, 2), (7.81, 3), (2.0, 4), (18.31, 10), (30.0, 20)],
    )
    def test_close_to_scipy(self, x2, df):
        assert chi_squared_p_value(x2, df) == pytest.approx(stats.chi2.sf(x2, df), abs=0.01)

    @pytest.mark.parametrize("x2,df", [(0.0, 3), (-1.0, 3), (5.0, 0), (5.0, -2), (math.nan, 2)])
    def test_degenerate_returns_one(self, x2, df):
        assert chi_squared_p_value(x2, df) == 1.0

    def test_infinite_statistic(self):
        assert chi_squared_p_value(math.inf, 2) == 0.0

    def test_decreasing_in_statistic(self):
        values = [chi_squared_p_value(x, 4) for x in np.linspace(0.1, 40, 200)]
        assert all(b <= a for a, b in zip(values, values[1:]))


class TestFPValue:
    @pytest.mark.parametrize(
        "f,df1,df2",
        [(4.26, 2, 9), (3.0, 3, 20), (1.0, 2, 30), (10.0, 1, 10), (2.5, 4, 60)],
    )
    def test_close_to_scipy(self, f, df1, df2):
        assert f_p_value(f, df1, df2) == pytest.approx(stats.f.sf(f, df1, df2), abs=0.02)

    @pytest.mark.parametrize(
        "f,df1,df2", [(0.0, 2, 9), (-3.0, 2, 9), (3.0, 0, 9), (3.0, 2, 0), (math.nan, 2, 9)]
    )
    def test_degenerate_returns_one(self, f, df1, df2):
        assert f_p_value(f, df1, df2) == 1.0

    def test_infinite_statistic(self):
        assert f_p_value(math.inf, 2, 6) == 0.0

    @pytest.mark.parametrize(
        "func,args",
        [
            (normal_cdf, (50.0,)),
            (t_cdf, (1e6, 3)),
            (chi_squared_p_value, (1e9, 1)),
            (f_p_value, (1e9, 1, 1)),
        ],
    )
    def test_outputs_clamped(self, func, args):
        assert 0.0 <= func(*args) <= 1.0
