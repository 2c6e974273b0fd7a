"""
twostage.stats.schemes.binary_two_stage.orderings
=================================================

Total orderings of the outcome grid ``{(x1, x2)}`` of a two-stage design.

Ordering-based inference ranks every possible outcome by how strongly it
speaks against the null hypothesis and derives tail probabilities, p-values
and confidence limits from that ranking. The interval algorithm only talks to
the `OutcomeOrdering` interface, so design-compatible orderings can be plugged
in without touching it.

`SumOrdering` is the canonical choice: outcomes are ranked by the total number
of responses ``x1 + x2``. It also exposes a *binomial summary* ``(x1 + x2,
n(x1))`` which lets interval constructions fall back to closed forms. Note that
the plain sum ignores the rejection geometry of the design, so limits derived
from it are not guaranteed to agree with `Design.test`.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage.design import Design
>>> d = Design([2, 5, 5], [float("inf"), 2, 2])
>>> o = SumOrdering()
>>> o.rank(d, 1, 3)
4
>>> o.binomial_summary(d, 1, 3)
(4, 5)
>>> len(list(outcomes(d)))
9
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from twostage.stats.schemes.binary_two_stage.design import Design


def outcomes(design: "Design") -> Iterator[Tuple[int, int]]:
    """Iterate every feasible ``(x1, x2)`` of ``design``."""
    n1 = design.interimsamplesize()
    for x1 in range(n1 + 1):
        for x2 in range(design.samplesize(x1) - n1 + 1):
            yield x1, x2


class OutcomeOrdering(ABC):
    """Ranks outcomes; larger ranks are more extreme against the null."""

    @abstractmethod
    def rank(self, design: "Design", x1: int, x2: int) -> float:
        """Rank of the outcome ``(x1, x2)`` under ``design``."""

    def binomial_summary(
        self, design: "Design", x1: int, x2: int
    ) -> Optional[Tuple[int, int]]:
        """``(count, size)`` if the ordering reduces to a single binomial count."""
        return None


class SumOrdering(OutcomeOrdering):
    """Order outcomes by the total response count ``x1 + x2``."""

    def rank(self, design: "Design", x1: int, x2: int) -> int:
        return x1 + x2

    def binomial_summary(self, design: "Design", x1: int, x2: int) -> Tuple[int, int]:
        return x1 + x2, design.samplesize(x1)

    def __repr__(self) -> str:
        return "SumOrdering()"
