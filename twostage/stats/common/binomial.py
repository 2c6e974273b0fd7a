"""
twostage.stats.common.binomial
==============================

Binomial and Beta primitives.

The densities of a two-stage design multiply two binomial coefficients whose
values leave the range of fixed-width numbers quickly (``C(1030, 515)`` is
already larger than the largest double). Coefficients are therefore evaluated
with a two-tier strategy chosen up front by a bound test:

- **fixed-width tier**: for ``n <= FIXED_WIDTH_MAX_N`` every ``C(n, k)`` is
  below ``2**53`` and hence represented exactly by a double;
- **arbitrary-precision tier**: otherwise the coefficient is an exact Python
  integer and the density is assembled with high-precision decimals before the
  final conversion to float.

Examples
--------
>>> binomial_coefficient(56, 28) < 2**53
True
>>> isinstance(binomial_coefficient(57, 28), int)
True
>>> weighted_count(0.5, 1, 1, binomial_coefficient(2, 1))
0.5
"""

from __future__ import annotations
import math
from decimal import Decimal, localcontext
from functools import lru_cache
from typing import Tuple, Union

from scipy.special import comb
from scipy.stats import beta, binom

from twostage.core.errors import DomainError

Coefficient = Union[int, float]

# C(56, 28) = 7_648_690_600_760_440 < 2**53 < C(57, 28)
FIXED_WIDTH_MAX_N = 56

# significant digits used when assembling arbitrary-precision densities
DECIMAL_PRECISION = 60


def check_probability(p: float, name: str = "p") -> None:
    """Raise `DomainError` unless ``0 <= p <= 1``."""
    value = float(p)
    if math.isnan(value) or not (0.0 <= value <= 1.0):
        raise DomainError(f"{name} must be in [0, 1], got {p}")


def fits_fixed_width(n: int) -> bool:
    """Whether every ``C(n, k)`` is exactly representable as a double."""
    return n <= FIXED_WIDTH_MAX_N


@lru_cache(maxsize=None)
def _pascal_row(n: int) -> Tuple[float, ...]:
    """Row ``n`` of Pascal's triangle in doubles (exact for the fixed-width tier)."""
    if n == 0:
        return (1.0,)
    prev = _pascal_row(n - 1)
    return (1.0,) + tuple(prev[i] + prev[i + 1] for i in range(n - 1)) + (1.0,)


def binomial_coefficient(n: int, k: int) -> Coefficient:
    """Return ``C(n, k)``; 0 outside ``0 <= k <= n``.

    A float for ``n <= FIXED_WIDTH_MAX_N`` (exact there), an exact int otherwise.
    """
    if k < 0 or k > n or n < 0:
        return 0.0
    if fits_fixed_width(n):
        return _pascal_row(n)[k]
    return int(comb(n, k, exact=True))


def _decimal_power(base: Decimal, exponent: int) -> Decimal:
    if exponent == 0:
        return Decimal(1)
    return base**exponent


def weighted_count(
    p: float, successes: int, failures: int, *coefficients: Coefficient
) -> float:
    """Return ``p**successes * (1 - p)**failures * prod(coefficients)``.

    Uses plain floating point when all coefficients come from the fixed-width
    tier and high-precision decimals as soon as one of them is an exact int.
    """
    if all(isinstance(c, float) for c in coefficients):
        value = p**successes * (1.0 - p) ** failures
        for c in coefficients:
            value *= c
        return float(value)

    with localcontext() as ctx:
        ctx.prec = DECIMAL_PRECISION
        dp = Decimal(float(p))
        value = _decimal_power(dp, successes) * _decimal_power(
            Decimal(1) - dp, failures
        )
        for c in coefficients:
            value *= Decimal(int(c))
        return float(value)


def binomial_pmf(k: int, n: int, p: float) -> float:
    """P(X = k) for X ~ Binomial(n, p)."""
    return float(binom.pmf(k, n, p))


def binomial_cdf(k: int, n: int, p: float) -> float:
    """P(X <= k) for X ~ Binomial(n, p)."""
    return float(binom.cdf(k, n, p))


def beta_quantile(q: float, a: float, b: float) -> float:
    """Quantile function of the Beta(a, b) distribution."""
    return float(beta.ppf(q, a, b))
