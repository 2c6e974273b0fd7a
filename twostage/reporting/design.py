"""
twostage.reporting.design
=========================

Design reporter producing Polars tables.

- `operating_characteristics()`: power and expected sample size over a grid
  of response probabilities.
- `simulation_summary()`: compares a `Design.simulate` frame with the exact
  power, reporting the Monte-Carlo standard error.

Examples
--------
>>> from twostage.stats.schemes.binary_two_stage import Design, NEVER_REJECT
>>> from twostage.reporting.design import DesignReporter
>>> d = Design([3, 3, 8, 8], [NEVER_REJECT, NEVER_REJECT, 4, 4])
>>> rep = DesignReporter(d)
>>> oc = rep.operating_characteristics([0.2, 0.5])
>>> oc.columns
['p', 'power', 'expected_n']
>>> rep.design_table().height
4
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Iterable

import polars as pl

from twostage.core.errors import ConstructionError
from twostage.stats.schemes.binary_two_stage.design import Design


@dataclass(frozen=True)
class DesignReporter:
    """Polars views over one design."""

    design: Design

    def design_table(self) -> pl.DataFrame:
        """One row per ``x1``: ``x1``, ``n``, ``c`` and ``n2``."""
        n1 = self.design.interimsamplesize()
        return self.design.to_frame().with_columns(
            (pl.col("n") - n1).alias("n2")
        )

    def operating_characteristics(self, p_values: Iterable[float]) -> pl.DataFrame:
        """Exact power and expected sample size for each ``p``."""
        ps = [float(p) for p in p_values]
        return pl.DataFrame(
            {
                "p": ps,
                "power": [self.design.power(p) for p in ps],
                "expected_n": [self.design.expected_samplesize(p) for p in ps],
            },
            schema={"p": pl.Float64, "power": pl.Float64, "expected_n": pl.Float64},
        )

    def simulation_summary(self, simulated: pl.DataFrame, p: float) -> pl.DataFrame:
        """
        Summarize a `Design.simulate` frame generated at ``p``.

        Columns: ``nsim``, ``empirical_power``, ``exact_power``, ``mc_se``
        (binomial standard error of the empirical power), ``mean_n`` and
        ``expected_n``.
        """
        missing = {"n", "rejected_h0"} - set(simulated.columns)
        if missing:
            raise ConstructionError(f"simulation frame lacks {sorted(missing)}")
        nsim = simulated.height
        exact = self.design.power(p)
        if nsim == 0:
            empirical = mean_n = math.nan
        else:
            empirical = float(simulated["rejected_h0"].cast(pl.Float64).mean())
            mean_n = float(simulated["n"].cast(pl.Float64).mean())
        mc_se = math.sqrt(exact * (1 - exact) / nsim) if nsim else math.nan
        return pl.DataFrame(
            {
                "nsim": [nsim],
                "empirical_power": [empirical],
                "exact_power": [exact],
                "mc_se": [mc_se],
                "mean_n": [mean_n],
                "expected_n": [self.design.expected_samplesize(p)],
            }
        )
