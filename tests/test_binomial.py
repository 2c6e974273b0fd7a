import math

import pytest
from scipy.special import comb
from scipy.stats import binom

from twostage.core.errors import DomainError
from twostage.stats.common.binomial import (
    FIXED_WIDTH_MAX_N,
    beta_quantile,
    binomial_cdf,
    binomial_coefficient,
    binomial_pmf,
    check_probability,
    fits_fixed_width,
    weighted_count,
)


def test_fixed_width_tier_is_exact():
    """Every coefficient of the fixed-width tier equals the exact integer."""
    for n in range(FIXED_WIDTH_MAX_N + 1):
        for k in range(n + 1):
            value = binomial_coefficient(n, k)
            assert isinstance(value, float)
            assert value == comb(n, k, exact=True)


def test_bound_selects_arbitrary_precision_tier():
    assert fits_fixed_width(FIXED_WIDTH_MAX_N)
    assert not fits_fixed_width(FIXED_WIDTH_MAX_N + 1)
    value = binomial_coefficient(2000, 1000)
    assert isinstance(value, int)
    assert value == comb(2000, 1000, exact=True)


def test_coefficient_outside_support_is_zero():
    assert binomial_coefficient(5, -1) == 0
    assert binomial_coefficient(5, 6) == 0
    assert binomial_coefficient(500, 501) == 0


def test_weighted_count_tiers_agree():
    p = 0.37
    small = weighted_count(p, 10, 20, binomial_coefficient(30, 10))
    assert small == pytest.approx(binom.pmf(10, 30, p), rel=1e-12)

    large = weighted_count(p, 400, 800, binomial_coefficient(1200, 400))
    assert math.isfinite(large)
    assert large == pytest.approx(binom.pmf(400, 1200, p), rel=1e-9)


def test_weighted_count_handles_degenerate_p():
    assert weighted_count(0.0, 0, 70, binomial_coefficient(70, 0)) == 1.0
    assert weighted_count(1.0, 70, 0, binomial_coefficient(70, 70)) == 1.0
    assert weighted_count(0.0, 3, 67, binomial_coefficient(70, 3)) == 0.0


@pytest.mark.parametrize("p", [-0.1, 1.0001, float("nan")])
def test_check_probability_rejects(p):
    with pytest.raises(DomainError):
        check_probability(p)


def test_check_probability_accepts_bounds():
    check_probability(0)
    check_probability(1)


def test_scipy_wrappers():
    assert binomial_pmf(2, 4, 0.5) == pytest.approx(6 / 16)
    assert binomial_cdf(1, 3, 0.5) == pytest.approx(0.5)
    assert beta_quantile(0.5, 1, 1) == pytest.approx(0.5)
