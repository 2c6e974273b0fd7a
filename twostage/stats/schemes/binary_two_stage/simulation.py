"""
twostage.stats.schemes.binary_two_stage.simulation
==================================================

Monte-Carlo replication of a two-stage design.

Each replicate draws ``x1 ~ Bin(n1, p)``, looks up ``n(x1)`` and ``c(x1)``,
draws ``x2 ~ Bin(n(x1) - n1, p)`` and records the test decision. Replicates
are independent, so the index range is split into contiguous blocks, one per
worker thread. Every worker owns a numpy generator spawned from a single
``SeedSequence`` and writes only to its own block of the output arrays; no
other state is shared. All arguments are validated on the calling thread
before the executor starts.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage.design import Design
>>> d = Design([2, 4, 4], [float("inf"), 2, 2])
>>> df = simulate(d, 0.4, 1000, seed=7, workers=2)
>>> df.columns
['x1', 'n', 'c', 'x2', 'rejected_h0']
>>> df.height
1000
"""

from __future__ import annotations
import logging
import operator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Optional, TYPE_CHECKING

import numpy as np
import polars as pl

from twostage.core.errors import DomainError
from twostage.stats.common.binomial import check_probability

if TYPE_CHECKING:
    from twostage.stats.schemes.binary_two_stage.design import Design

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _DesignArrays:
    """Per-x1 lookup tables used by the vectorized replicate blocks."""

    n1: int
    n: np.ndarray
    c: np.ndarray
    always: np.ndarray
    never: np.ndarray
    finite: np.ndarray

    @classmethod
    def from_design(cls, design: "Design") -> "_DesignArrays":
        c = design.criticalvalue()
        return cls(
            n1=design.interimsamplesize(),
            n=np.asarray(design.samplesize(), dtype=np.int64),
            c=np.asarray([cv.as_float() for cv in c], dtype=np.float64),
            always=np.asarray([cv.is_always_reject for cv in c], dtype=bool),
            never=np.asarray([cv.is_never_reject for cv in c], dtype=bool),
            finite=np.asarray(
                [cv.value if cv.is_finite else 0.0 for cv in c], dtype=np.float64
            ),
        )


@dataclass
class _Output:
    x1: np.ndarray
    n: np.ndarray
    c: np.ndarray
    x2: np.ndarray
    rejected: np.ndarray

    @classmethod
    def empty(cls, nsim: int) -> "_Output":
        return cls(
            x1=np.zeros(nsim, dtype=np.int64),
            n=np.zeros(nsim, dtype=np.int64),
            c=np.zeros(nsim, dtype=np.float64),
            x2=np.zeros(nsim, dtype=np.int64),
            rejected=np.zeros(nsim, dtype=bool),
        )

    def to_frame(self) -> pl.DataFrame:
        return pl.DataFrame(
            {
                "x1": self.x1,
                "n": self.n,
                "c": self.c,
                "x2": self.x2,
                "rejected_h0": self.rejected,
            }
        )


def _run_block(
    arrays: _DesignArrays,
    p: float,
    seed: np.random.SeedSequence,
    start: int,
    stop: int,
    out: _Output,
) -> None:
    rng = np.random.default_rng(seed)
    size = stop - start
    x1 = rng.binomial(arrays.n1, p, size=size)
    n = arrays.n[x1]
    x2 = rng.binomial(n - arrays.n1, p)
    rejected = np.where(
        arrays.always[x1],
        True,
        np.where(arrays.never[x1], False, (x1 + x2) > arrays.finite[x1]),
    )
    out.x1[start:stop] = x1
    out.n[start:stop] = n
    out.c[start:stop] = arrays.c[x1]
    out.x2[start:stop] = x2
    out.rejected[start:stop] = rejected


def simulate(
    design: "Design",
    p: float,
    nsim: int,
    seed: Optional[int] = None,
    workers: int = 1,
) -> pl.DataFrame:
    """
    Simulate ``nsim`` independent trials under response probability ``p``.

    Parameters
    ----------
    design : Design
        The design to replicate.
    p : float
        Response probability in [0, 1].
    nsim : int
        Number of replicates (>= 0).
    seed : int, optional
        Seed of the root ``SeedSequence``; results are reproducible for a fixed
        ``(seed, workers)`` pair.
    workers : int, default=1
        Number of worker threads the replicate range is partitioned across.

    Returns
    -------
    pl.DataFrame
        Columns ``x1``, ``n``, ``c`` (float, ``+inf``/``-inf`` for the
        never/always-reject sentinels), ``x2`` and ``rejected_h0``.
    """
    check_probability(p)
    try:
        nsim = operator.index(nsim)
        workers = operator.index(workers)
    except TypeError as exc:
        raise DomainError("nsim and workers must be integers") from exc
    if nsim < 0:
        raise DomainError(f"nsim must be non-negative, got {nsim}")
    if workers < 1:
        raise DomainError(f"workers must be >= 1, got {workers}")

    arrays = _DesignArrays.from_design(design)
    out = _Output.empty(nsim)
    workers = max(1, min(workers, nsim))
    seeds = np.random.SeedSequence(seed).spawn(workers)
    bounds = np.linspace(0, nsim, workers + 1).astype(np.int64)

    logger.debug("simulating %d replicates at p=%s on %d worker(s)", nsim, p, workers)
    if workers == 1:
        _run_block(arrays, float(p), seeds[0], 0, nsim, out)
    else:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = [
                pool.submit(
                    _run_block,
                    arrays,
                    float(p),
                    seeds[i],
                    int(bounds[i]),
                    int(bounds[i + 1]),
                    out,
                )
                for i in range(workers)
            ]
            for future in futures:
                future.result()
    logger.debug("simulation finished: %d rejections", int(out.rejected.sum()))
    return out.to_frame()
