"""
twostage.stats.schemes.binary_two_stage.sample_space
====================================================

Restrictions on the sample space of two-stage designs searched by an external
optimizer.

An optimizer models one decision per ``(n1, n, c)`` triple. Without
discretization that lattice is intractably large, so for every admissible
``n1`` the sample space hands out thinned candidate sets for ``n`` and ``c``
(`getnvals`, `getcvals`) and a feasibility predicate (`possible`).

The thinning stride for a grid of width ``w`` is ``w / sqrt(maxvariables / n1)``
(no thinning when that is <= 1), which keeps the number of candidate triples
per ``n1`` roughly at ``maxvariables / n1``. The density is only approximate;
operationally mandated values (policy minimums, the maximal sample size and
all registered special values) are re-inserted after thinning and are never
lost.

Whenever a grid is actually thinned a ``ThinningNotice`` event is written to
the optional diagnostics ledger and logged at INFO level.

Examples
--------
>>> ss = SampleSpace(range(10, 21), 60, n2min=5, nmincont=15, maxvariables=1000)
>>> ss.maxsamplesize(10)
60
>>> vals = ss.getnvals(10)
>>> {10, 15, 25, 60} <= set(vals)
True
>>> ss.possible(10, 20, 5)
True
>>> ss.possible(10, 12, 5)  # stage two shorter than n2min
False
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from twostage.core.errors import ConstructionError, OutOfRangeError
from twostage.core.ledger import Ledger
from twostage.core.names import Grid, Namespace, THINNING_TAG
from twostage.stats.schemes.binary_two_stage.critical_values import (
    CriticalLike,
    CriticalValue,
)

logger = logging.getLogger(__name__)

# absorbs rounding in maxnfact * n1 (e.g. 7 * (50 / 7))
_TOL = 1e-9


@dataclass(frozen=True)
class Discretization:
    """Candidate values for one grid and interim size."""

    grid: Grid
    n1: int
    values: Tuple[int, ...]
    stride: float

    @property
    def thinned(self) -> bool:
        return self.stride > 1

    @property
    def thinning_factor(self) -> float:
        return 1.0 / self.stride


def _thinned_grid(start: int, stop: int, stride: float) -> List[int]:
    """``round(start + k * stride)`` for every ``start + k * stride <= stop``."""
    if stop < start:
        return []
    steps = math.floor((stop - start) / stride + _TOL)
    return [int(round(start + k * stride)) for k in range(steps + 1)]


@dataclass(frozen=True)
class SampleSpace:
    """
    Defines restrictions on the sample space of a two-stage design.

    Parameters
    ----------
    n1range : iterable of int
        Admissible stage-one sample sizes.
    nmax : int
        Maximal overall sample size (stage one and two combined).
    n2min : int, default=1
        Minimal stage-two sample size upon continuation.
    maxnfact : float, default=inf
        The overall sample size must not exceed ``maxnfact * n1``; when left at
        ``inf`` it resolves to ``nmax / min(n1range)``.
    nmincont : int, default=0
        Minimal overall sample size whenever the trial does not stop for
        futility.
    maxvariables : int, default=500000
        Approximate maximal number of candidate triples for the optimizer.
    group_sequential : bool, default=False
        Restrict to designs with a constant stage-two size upon continuation.
    special_n_values, special_c_values : iterable of int
        Values every discretization must retain.
    ledger : Ledger, optional
        Receives ``ThinningNotice`` events.

    Raises
    ------
    ConstructionError
        If ``n1range`` is empty, ``min(n1range) < 1``, ``max(n1range) > nmax``
        or ``maxvariables < 100``.
    """

    n1range: Tuple[int, ...]
    nmax: int
    n2min: int = 1
    maxnfact: float = math.inf
    nmincont: int = 0
    maxvariables: int = 500000
    group_sequential: bool = False
    special_n_values: Tuple[int, ...] = ()
    special_c_values: Tuple[int, ...] = ()
    ledger: Optional[Ledger] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        n1range = tuple(sorted(set(int(v) for v in self.n1range)))
        if not n1range:
            raise ConstructionError("n1range must not be empty")
        if n1range[0] < 1:
            raise ConstructionError("minimal n1 must be >= 1")
        if n1range[-1] > self.nmax:
            raise ConstructionError("maximal n1 must be <= nmax")
        if self.maxvariables < 100:
            raise ConstructionError("maxvariables must be >= 100")
        object.__setattr__(self, "n1range", n1range)
        if self.maxnfact == math.inf:
            object.__setattr__(self, "maxnfact", self.nmax / n1range[0])
        object.__setattr__(
            self, "special_n_values", tuple(int(v) for v in self.special_n_values)
        )
        object.__setattr__(
            self, "special_c_values", tuple(int(v) for v in self.special_c_values)
        )

    @classmethod
    def from_dict(
        cls, config: Mapping[str, Any], ledger: Optional[Ledger] = None
    ) -> "SampleSpace":
        """
        Build a sample space from a plain mapping (e.g. a parsed config file).

        ``n1range`` may be a list of sizes or a ``{"min": a, "max": b}`` mapping.
        Unknown keys raise `ConstructionError`.

        Examples
        --------
        >>> ss = SampleSpace.from_dict({"n1range": {"min": 5, "max": 8}, "nmax": 30})
        >>> ss.interimsamplesizerange()
        (5, 6, 7, 8)
        """
        known = {
            "n1range",
            "nmax",
            "n2min",
            "maxnfact",
            "nmincont",
            "maxvariables",
            "group_sequential",
            "special_n_values",
            "special_c_values",
        }
        unknown = set(config) - known
        if unknown:
            raise ConstructionError(f"unknown sample space keys: {sorted(unknown)}")
        if "n1range" not in config or "nmax" not in config:
            raise ConstructionError("n1range and nmax are required")
        kwargs = dict(config)
        n1range = kwargs.pop("n1range")
        if isinstance(n1range, Mapping):
            n1range = range(int(n1range["min"]), int(n1range["max"]) + 1)
        kwargs["maxnfact"] = float(kwargs.get("maxnfact", math.inf))
        return cls(tuple(n1range), ledger=ledger, **kwargs)

    # ---- simple queries ----

    def interimsamplesizerange(self) -> Tuple[int, ...]:
        return self.n1range

    def isgroupsequential(self) -> bool:
        return self.group_sequential

    def maxsamplesize(self, n1: Optional[int] = None) -> int:
        """``nmax``, or the maximal overall sample size given ``n1``."""
        if n1 is None:
            return self.nmax
        self._check_n1(n1)
        return int(min(self.nmax, math.floor(n1 * self.maxnfact + _TOL)))

    def _check_n1(self, n1: int) -> None:
        if n1 not in self.n1range:
            raise OutOfRangeError(f"n1 = {n1} is not admissible under this sample space")

    def possible(
        self, n1: int, n: Optional[int] = None, c: Optional[CriticalLike] = None
    ) -> bool:
        """
        ``possible(n1)``: whether ``n1`` is admissible;
        ``possible(n1, n, c)``: whether the triple is feasible.

        Only a futility stop may fall below ``nmincont``; an early-efficacy
        stop (``c`` always reject with ``n == n1``) is exempt from ``n2min``
        provided ``n1 >= nmincont``.
        """
        if n is None and c is None:
            return n1 in self.n1range
        if n is None or c is None:
            raise TypeError("possible() takes (n1) or (n1, n, c)")
        cv = CriticalValue.coerce(c)
        res = n1 in self.n1range
        res = res and n <= self.nmax
        res = res and n1 <= n
        res = res and n <= self.maxnfact * n1 + _TOL
        if n - n1 < self.n2min and not cv.is_never_reject:
            if not (cv.is_always_reject and n1 == n and n1 >= self.nmincont):
                res = False
        if n < self.nmincont and not cv.is_never_reject:
            res = False
        return res

    # ---- discretization ----

    def _stride(self, width: float, n1: int) -> float:
        return width / math.sqrt(self.maxvariables / n1)

    def _notify(self, grid: Grid, n1: int, stride: float, candidates: int) -> None:
        logger.info(
            "thinning %svals for n1=%d by factor %.3f", grid.value, n1, 1 / stride
        )
        if self.ledger is not None:
            self.ledger.write_event(
                namespace=Namespace.DIAGNOSTICS,
                kind="thinned",
                entity=f"samplespace#n1={n1}",
                payload_type="ThinningNotice",
                payload={
                    "n1": n1,
                    "grid": grid.value,
                    "stride": stride,
                    "factor": 1 / stride,
                    "candidates": candidates,
                },
                tag=THINNING_TAG,
            )

    def discretize_n(self, n1: int) -> Discretization:
        """Candidate overall sample sizes for ``n1``, with thinning details."""
        nmax = self.maxsamplesize(n1)
        stride = self._stride(nmax - n1 + 1, n1)
        if stride <= 1:
            stride = 1.0
        nvals = set(_thinned_grid(n1, nmax, stride))
        mandatory: Iterable[int] = (
            n1 + self.nmincont,
            n1 + self.n2min,
            nmax,
            *self.special_n_values,
        )
        nvals.update(v for v in mandatory if n1 <= v <= nmax)
        values = tuple(sorted(nvals))
        if stride > 1:
            self._notify(Grid.N, n1, stride, len(values))
        return Discretization(Grid.N, n1, values, stride)

    def discretize_c(self, n1: int) -> Discretization:
        """Candidate finite critical values for ``n1``, with thinning details."""
        nmax = self.maxsamplesize(n1)
        stride = self._stride(nmax, n1)
        if stride <= 1:
            stride = 1.0
        cvals = set(_thinned_grid(0, nmax - 1, stride))
        cvals.update(v for v in self.special_c_values if 0 <= v <= nmax - 1)
        values = tuple(sorted(cvals))
        if stride > 1:
            self._notify(Grid.C, n1, stride, len(values))
        return Discretization(Grid.C, n1, values, stride)

    def getnvals(self, n1: int) -> List[int]:
        return list(self.discretize_n(n1).values)

    def getcvals(self, n1: int) -> List[int]:
        return list(self.discretize_c(n1).values)

    def __str__(self) -> str:
        return (
            f"SampleSpace(n1 in [{self.n1range[0]}, {self.n1range[-1]}], "
            f"nmax={self.nmax})"
        )
