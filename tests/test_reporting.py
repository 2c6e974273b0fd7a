import math

import polars as pl
import pytest

from twostage.core.errors import ConstructionError
from twostage.reporting.design import DesignReporter


def test_design_table(small_design):
    table = DesignReporter(small_design).design_table()
    assert table.columns == ["x1", "n", "c", "n2"]
    assert table["n2"].to_list() == [0, 0, 5, 7, 0]


def test_operating_characteristics(scenario_design):
    ps = [0.1, 0.3, 0.5]
    oc = DesignReporter(scenario_design).operating_characteristics(ps)
    assert oc["p"].to_list() == ps
    assert oc["power"].to_list() == [scenario_design.power(p) for p in ps]
    assert oc["expected_n"].to_list() == pytest.approx(
        [scenario_design.expected_samplesize(p) for p in ps]
    )
    powers = oc["power"].to_list()
    assert powers == sorted(powers)


def test_simulation_summary(scenario_design):
    p = 0.35
    sims = scenario_design.simulate(p, 20_000, seed=9, workers=2)
    summary = DesignReporter(scenario_design).simulation_summary(sims, p)
    row = summary.row(0, named=True)
    assert row["nsim"] == 20_000
    assert row["exact_power"] == pytest.approx(scenario_design.power(p))
    assert abs(row["empirical_power"] - row["exact_power"]) < 5 * row["mc_se"]
    assert row["mean_n"] == pytest.approx(row["expected_n"], abs=0.5)


def test_simulation_summary_empty(small_design):
    sims = small_design.simulate(0.5, 0, seed=1)
    row = DesignReporter(small_design).simulation_summary(sims, 0.5).row(0, named=True)
    assert row["nsim"] == 0
    assert math.isnan(row["empirical_power"])
    assert math.isnan(row["mc_se"])


def test_simulation_summary_requires_columns(small_design):
    with pytest.raises(ConstructionError):
        DesignReporter(small_design).simulation_summary(pl.DataFrame({"n": [4]}), 0.5)
