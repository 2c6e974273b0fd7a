"""
twostage.stats.schemes.binary_two_stage.design
==============================================

The two-stage binary design and its exact probability engine.

A design observes ``n1`` subjects in stage one. For ``x1`` stage-one responses
it continues to an overall sample size ``n(x1)`` (``n(x1) == n1`` means the
trial stops) and rejects the null hypothesis iff ``x1 + x2 > c(x1)``, where
``x2`` is the number of stage-two responses.

Mathematical Background
-----------------------
For a response probability ``p`` the joint density of ``(x1, x2)`` is

    f(x1, x2; p) = p^(x1+x2) (1-p)^(n-x1-x2) C(n1, x1) C(n-n1, x2),  n = n(x1)

and the conditional probability to reject given ``x1`` is

    P(reject | x1) = 1                                if x1 > c(x1)
                   = 0                                if n - n1 + x1 <= c(x1)
                   = 1 - F_{Bin(n-n1, p)}(floor(c(x1) - x1))   otherwise.

The overall power averages the conditional power over ``x1 ~ Bin(n1, p)``.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage.design import Design
>>> from twostage.stats.schemes.binary_two_stage.critical_values import NEVER_REJECT
>>> d = Design([3, 6, 6, 6], [NEVER_REJECT, 2, 2, 2])
>>> d.interimsamplesize()
3
>>> d.samplesize(1), d.criticalvalue(1).value
(6, 2.0)
>>> d.test(1, 2)
True
>>> d.pdf(0, 1, 0.3)  # stopped for futility, no stage-two responses possible
0.0
>>> d.power(1, 0.5)
0.5
"""

from __future__ import annotations
import math
import operator
from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import polars as pl

from twostage.core.errors import ConstructionError, OutOfRangeError
from twostage.stats.common.binomial import (
    binomial_cdf,
    binomial_coefficient,
    binomial_pmf,
    check_probability,
    weighted_count,
)
from twostage.stats.schemes.binary_two_stage.critical_values import (
    CriticalLike,
    CriticalValue,
)


def conditional_rejection_probability(
    x1: int, n1: int, n: int, c: CriticalValue, p: float
) -> float:
    """Probability to reject given ``x1`` stage-one responses (no checks)."""
    if c.is_always_reject:
        return 1.0
    if c.is_never_reject:
        return 0.0
    if x1 > c.value:
        return 1.0
    if n - n1 + x1 <= c.value:
        return 0.0
    return 1.0 - binomial_cdf(math.floor(c.value - x1), n - n1, p)


def _as_int(value: object, what: str) -> int:
    try:
        return operator.index(value)  # type: ignore[arg-type]
    except TypeError:
        as_float = float(value)  # type: ignore[arg-type]
        if not as_float.is_integer():
            raise ConstructionError(f"{what} must be integer, got {value}")
        return int(as_float)


@dataclass(frozen=True, init=False)
class Design:
    """
    Binary two-stage design in canonical ``(n(x1), c(x1))`` form.

    Parameters
    ----------
    n : sequence of int
        ``n[x1]`` is the overall sample size after ``x1`` stage-one responses;
        its length defines ``n1 = len(n) - 1``.
    c : sequence of CriticalValue or numbers
        Critical values, same length as ``n``. Numbers are coerced with
        `CriticalValue.coerce` (``+inf`` never reject, ``-inf`` always reject).
    label : str, optional
        Free-form name used in reports.

    Raises
    ------
    ConstructionError
        If the lengths differ, ``n`` is empty or a stage-two size would be
        negative.
    """

    n: Tuple[int, ...]
    c: Tuple[CriticalValue, ...]
    label: Optional[str] = field(default=None, compare=False)

    def __init__(
        self,
        n: Sequence[int],
        c: Sequence[CriticalLike],
        label: Optional[str] = None,
    ) -> None:
        n_tuple = tuple(_as_int(v, "sample size") for v in n)
        c_tuple = tuple(CriticalValue.coerce(v) for v in c)
        if len(n_tuple) == 0:
            raise ConstructionError("a design needs at least one stage-one outcome")
        if len(n_tuple) != len(c_tuple):
            raise ConstructionError(
                f"n and c must have equal length, got {len(n_tuple)} and {len(c_tuple)}"
            )
        n1 = len(n_tuple) - 1
        short = [x1 for x1, nx in enumerate(n_tuple) if nx < n1]
        if short:
            raise ConstructionError(
                f"overall sample size must be >= n1 = {n1}; violated for x1 in {short}"
            )
        object.__setattr__(self, "n", n_tuple)
        object.__setattr__(self, "c", c_tuple)
        object.__setattr__(self, "label", label)

    # ---- structure ----

    def interimsamplesize(self) -> int:
        return len(self.n) - 1

    def samplesize(self, x1: Optional[int] = None):
        """Overall sample size ``n(x1)``; the whole tuple when ``x1`` is None."""
        if x1 is None:
            return self.n
        self._check_x1(x1)
        return self.n[x1]

    def criticalvalue(self, x1: Optional[int] = None):
        """Critical value ``c(x1)``; the whole tuple when ``x1`` is None."""
        if x1 is None:
            return self.c
        self._check_x1(x1)
        return self.c[x1]

    def is_possible(self, x1: int, x2: int) -> bool:
        """Whether ``(x1, x2)`` can be observed under this design."""
        n1 = self.interimsamplesize()
        if not 0 <= x1 <= n1:
            return False
        return 0 <= x2 <= self.n[x1] - n1

    def _check_x1(self, x1: int) -> None:
        n1 = self.interimsamplesize()
        if x1 < 0:
            raise OutOfRangeError(f"x1 must be non-negative, got {x1}")
        if x1 > n1:
            raise OutOfRangeError(f"x1 must be <= n1 = {n1}, got {x1}")

    def _check_x1x2(self, x1: int, x2: int) -> None:
        self._check_x1(x1)
        n2 = self.n[x1] - self.interimsamplesize()
        if x2 < 0:
            raise OutOfRangeError(f"x2 must be non-negative, got {x2}")
        if x2 > n2:
            raise OutOfRangeError(f"x2 must be <= n2 = {n2} at x1 = {x1}, got {x2}")

    # ---- probabilities ----

    def pdf(self, x1: int, x2: int, p: float) -> float:
        """Joint probability of ``(x1, x2)``; 0 for impossible outcomes."""
        check_probability(p)
        if not self.is_possible(x1, x2):
            return 0.0
        n1 = self.interimsamplesize()
        n = self.n[x1]
        return weighted_count(
            p,
            x1 + x2,
            n - x1 - x2,
            binomial_coefficient(n1, x1),
            binomial_coefficient(n - n1, x2),
        )

    def conditional_power(self, x1: int, p: float) -> float:
        """Probability to reject given ``x1`` stage-one responses."""
        check_probability(p)
        self._check_x1(x1)
        return conditional_rejection_probability(
            x1, self.interimsamplesize(), self.n[x1], self.c[x1], p
        )

    def power(self, *args: float) -> float:
        """
        ``power(p)``: overall rejection probability;
        ``power(x1, p)``: rejection probability conditional on ``x1``.
        """
        if len(args) == 2:
            x1, p = args
            return self.conditional_power(int(x1), p)
        if len(args) != 1:
            raise TypeError("power() takes (p) or (x1, p)")
        (p,) = args
        check_probability(p)
        n1 = self.interimsamplesize()
        total = sum(
            binomial_pmf(x1, n1, p)
            * conditional_rejection_probability(x1, n1, self.n[x1], self.c[x1], p)
            for x1 in range(n1 + 1)
        )
        return min(max(total, 0.0), 1.0)

    def expected_samplesize(self, p: float) -> float:
        """Expected overall sample size under response probability ``p``."""
        check_probability(p)
        n1 = self.interimsamplesize()
        return float(sum(binomial_pmf(x1, n1, p) * self.n[x1] for x1 in range(n1 + 1)))

    def test(self, x1: int, x2: int) -> bool:
        """Test decision: reject iff ``x1 + x2 > c(x1)``."""
        self._check_x1x2(x1, x2)
        return self.c[x1].rejects(x1 + x2)

    def simulate(
        self, p: float, nsim: int, seed: Optional[int] = None, workers: int = 1
    ) -> pl.DataFrame:
        """Monte-Carlo replicates; see `simulation.simulate`."""
        from twostage.stats.schemes.binary_two_stage.simulation import simulate

        return simulate(self, p, nsim, seed=seed, workers=workers)

    # ---- tabular view ----

    def to_frame(self) -> pl.DataFrame:
        """One row per ``x1`` with columns ``x1``, ``n`` and ``c`` (inf sentinels)."""
        return pl.DataFrame(
            {
                "x1": list(range(self.interimsamplesize() + 1)),
                "n": list(self.n),
                "c": [cv.as_float() for cv in self.c],
            },
            schema={"x1": pl.Int64, "n": pl.Int64, "c": pl.Float64},
        )

    def __str__(self) -> str:
        name = f" '{self.label}'" if self.label else ""
        return (
            f"Binary two-stage design{name} (n1={self.interimsamplesize()}, "
            f"max n={max(self.n)})"
        )
