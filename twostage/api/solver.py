"""
twostage.api.solver
===================

Interface between a `SampleSpace` and an external design optimizer.

The optimizer itself (model building, objective, search) lives outside this
package. Per candidate ``n1`` it reads the feasible ``(n1, n, c)`` triples from
`candidate_grid`, attaches its own score to each, and eventually returns an
assignment ``x1 -> (n, c)`` for ``x1 = 0..n1`` which `design_from_assignment`
(or `design_from_frame`) validates and wraps into a `Design`.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage import SampleSpace, NEVER_REJECT
>>> ss = SampleSpace([2], 6, n2min=2)
>>> grid = candidate_grid(ss, 2)
>>> grid.columns
['n1', 'n', 'c']
>>> d = design_from_assignment(2, {0: (2, NEVER_REJECT), 1: (6, 3), 2: (6, 3)}, ss)
>>> d.samplesize()
(2, 6, 6)
"""

from __future__ import annotations
from typing import Mapping, Optional, Tuple

import polars as pl

from twostage.core.errors import ConstructionError
from twostage.stats.schemes.binary_two_stage.critical_values import (
    ALWAYS_REJECT,
    NEVER_REJECT,
    CriticalLike,
    CriticalValue,
)
from twostage.stats.schemes.binary_two_stage.design import Design
from twostage.stats.schemes.binary_two_stage.sample_space import SampleSpace


def candidate_grid(sample_space: SampleSpace, n1: int) -> pl.DataFrame:
    """
    All feasible ``(n1, n, c)`` triples over the discretized candidate sets.

    The critical value column is a float with ``-inf`` for always reject and
    ``+inf`` for never reject.
    """
    nvals = sample_space.getnvals(n1)
    cvals = [CriticalValue.finite(c) for c in sample_space.getcvals(n1)]
    cvals += [ALWAYS_REJECT, NEVER_REJECT]
    rows = [
        (n1, n, c.as_float())
        for n in nvals
        for c in cvals
        if sample_space.possible(n1, n, c)
    ]
    return pl.DataFrame(
        rows,
        schema={"n1": pl.Int64, "n": pl.Int64, "c": pl.Float64},
        orient="row",
    )


def design_from_assignment(
    n1: int,
    assignment: Mapping[int, Tuple[int, CriticalLike]],
    sample_space: Optional[SampleSpace] = None,
    label: Optional[str] = None,
) -> Design:
    """
    Wrap an optimizer assignment ``x1 -> (n, c)`` into a `Design`.

    Raises
    ------
    ConstructionError
        If some ``x1`` in ``0..n1`` is missing or extra, or (given a sample
        space) a triple is infeasible or a group-sequential sample space sees
        more than one continuation size.
    """
    expected = set(range(n1 + 1))
    if set(assignment) != expected:
        missing = sorted(expected - set(assignment))
        extra = sorted(set(assignment) - expected)
        raise ConstructionError(
            f"assignment must cover x1 = 0..{n1}; missing {missing}, extra {extra}"
        )
    n = [int(assignment[x1][0]) for x1 in range(n1 + 1)]
    c = [CriticalValue.coerce(assignment[x1][1]) for x1 in range(n1 + 1)]

    if sample_space is not None:
        if not sample_space.possible(n1):
            raise ConstructionError(f"n1 = {n1} is not admissible")
        infeasible = [
            x1
            for x1 in range(n1 + 1)
            if not sample_space.possible(n1, n[x1], c[x1])
        ]
        if infeasible:
            raise ConstructionError(f"infeasible (n, c) for x1 in {infeasible}")
        if sample_space.isgroupsequential():
            continuation = {n[x1] for x1 in range(n1 + 1) if c[x1].is_finite}
            if len(continuation) > 1:
                raise ConstructionError(
                    "group-sequential sample space requires a single continuation "
                    f"sample size, got {sorted(continuation)}"
                )
    return Design(n, c, label=label)


def design_from_frame(
    frame: pl.DataFrame,
    sample_space: Optional[SampleSpace] = None,
    label: Optional[str] = None,
) -> Design:
    """Inverse of `Design.to_frame`: rows ``x1, n, c`` (inf sentinels)."""
    missing = {"x1", "n", "c"} - set(frame.columns)
    if missing:
        raise ConstructionError(f"frame lacks columns {sorted(missing)}")
    assignment = {
        int(row["x1"]): (int(row["n"]), float(row["c"]))
        for row in frame.iter_rows(named=True)
    }
    if not assignment:
        raise ConstructionError("frame has no rows")
    n1 = max(assignment)
    return design_from_assignment(n1, assignment, sample_space, label=label)
