"""
twostage.stats.schemes.binary_two_stage.intervals
=================================================

Confidence intervals for the response probability after a two-stage trial.

`ClopperPearsonInterval` treats the outcome through an `OutcomeOrdering`. With
the default `SumOrdering` the summary ``x = x1 + x2`` is handled as a single
binomial count of size ``n = n(x1)`` and the limits are the classical
Clopper-Pearson Beta quantiles:

    x == 0 :  [0, 1 - (alpha/2)^(1/n)]
    x == n :  [(alpha/2)^(1/n), 1]
    else   :  [Beta^{-1}(alpha/2; x, n-x+1), Beta^{-1}(1-alpha/2; x+1, n-x)]

This ignores the rejection geometry of the design, so the interval is not
guaranteed to be compatible with `Design.test`. Orderings without a binomial
summary are handled by inverting the exact tail probabilities of the ranking
over the whole outcome grid at ``alpha/2``.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage.design import Design
>>> d = Design([2, 5, 5], [float("inf"), 2, 2])
>>> ci = ClopperPearsonInterval(d, confidence=0.9)
>>> lo, hi = ci.limits(1, 0)
>>> 0 <= lo <= 1 / 5 <= hi <= 1
True
>>> ci.limits(0, 0)[0]
0.0
"""

from __future__ import annotations
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Tuple

from scipy.optimize import brentq

from twostage.core.errors import DomainError, IncompatibleObservationError
from twostage.stats.common.binomial import beta_quantile
from twostage.stats.schemes.binary_two_stage.design import Design
from twostage.stats.schemes.binary_two_stage.orderings import (
    OutcomeOrdering,
    SumOrdering,
    outcomes,
)


def clopper_pearson(x: int, n: int, alpha: float) -> Tuple[float, float]:
    """Two-sided Clopper-Pearson limits for ``x`` successes out of ``n``."""
    if n == 0:
        return 0.0, 1.0
    if x == 0:
        return 0.0, 1.0 - (alpha / 2) ** (1 / n)
    if x == n:
        return (alpha / 2) ** (1 / n), 1.0
    return (
        beta_quantile(alpha / 2, x, n - x + 1),
        beta_quantile(1 - alpha / 2, x + 1, n - x),
    )


class ConfidenceInterval(ABC):
    """Maps an observed outcome ``(x1, x2)`` to confidence limits."""

    design: Design
    confidence: float

    @abstractmethod
    def limits(self, x1: int, x2: int) -> Tuple[float, float]:
        """Return ``(lower, upper)`` for the observation ``(x1, x2)``."""

    def contains(self, x1: int, x2: int, p: float) -> bool:
        lower, upper = self.limits(x1, x2)
        return lower <= p <= upper


@dataclass(frozen=True)
class ClopperPearsonInterval(ConfidenceInterval):
    """
    Clopper-Pearson interval under a given outcome ordering.

    Parameters
    ----------
    design : Design
        Design the data were collected under.
    confidence : float, default=0.9
        Confidence level in (0, 1).
    ordering : OutcomeOrdering, default=SumOrdering()
        Ranking of the outcome grid.

    Raises
    ------
    DomainError
        If ``confidence`` is not in (0, 1).
    """

    design: Design
    confidence: float = 0.9
    ordering: OutcomeOrdering = field(default_factory=SumOrdering)

    def __post_init__(self) -> None:
        value = float(self.confidence)
        if math.isnan(value) or not (0.0 < value < 1.0):
            raise DomainError(f"confidence must be in (0, 1), got {self.confidence}")

    @property
    def alpha(self) -> float:
        return 1.0 - self.confidence

    def limits(self, x1: int, x2: int) -> Tuple[float, float]:
        if not self.design.is_possible(x1, x2):
            raise IncompatibleObservationError(
                f"(x1, x2) = ({x1}, {x2}) not compatible with the design"
            )
        summary = self.ordering.binomial_summary(self.design, x1, x2)
        if summary is not None:
            x, n = summary
            return clopper_pearson(x, n, self.alpha)
        return self._invert_tails(x1, x2)

    def _invert_tails(self, x1: int, x2: int) -> Tuple[float, float]:
        ranked = [
            (a, b, self.ordering.rank(self.design, a, b))
            for a, b in outcomes(self.design)
        ]
        r = self.ordering.rank(self.design, x1, x2)
        ranks = [rank for _, _, rank in ranked]
        at_least: List[Tuple[int, int]] = [(a, b) for a, b, rank in ranked if rank >= r]
        at_most: List[Tuple[int, int]] = [(a, b) for a, b, rank in ranked if rank <= r]
        half = self.alpha / 2

        def upper_tail(p: float) -> float:
            return sum(self.design.pdf(a, b, p) for a, b in at_least) - half

        def lower_tail(p: float) -> float:
            return sum(self.design.pdf(a, b, p) for a, b in at_most) - half

        if r <= min(ranks) or upper_tail(0.0) >= 0:
            lower = 0.0
        elif upper_tail(1.0) < 0:
            lower = 1.0
        else:
            lower = float(brentq(upper_tail, 0.0, 1.0, xtol=1e-12))

        if r >= max(ranks) or lower_tail(1.0) >= 0:
            upper = 1.0
        elif lower_tail(0.0) < 0:
            upper = 0.0
        else:
            upper = float(brentq(lower_tail, 0.0, 1.0, xtol=1e-12))
        return lower, upper
