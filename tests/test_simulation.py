import math

import numpy as np
import polars as pl
import pytest

from twostage.core.errors import DomainError
from twostage.stats.schemes.binary_two_stage.simulation import simulate


def test_columns_and_size(small_design):
    df = simulate(small_design, 0.4, 500, seed=1)
    assert df.columns == ["x1", "n", "c", "x2", "rejected_h0"]
    assert df.height == 500


def test_reproducible_for_fixed_seed(scenario_design):
    a = scenario_design.simulate(0.3, 2000, seed=42, workers=3)
    b = scenario_design.simulate(0.3, 2000, seed=42, workers=3)
    assert a.equals(b)


def test_rows_are_consistent_with_design(scenario_design):
    d = scenario_design
    df = d.simulate(0.45, 3000, seed=3, workers=4)
    n1 = d.interimsamplesize()
    for x1, n, c, x2, rejected in df.iter_rows():
        assert n == d.samplesize(x1)
        assert c == d.criticalvalue(x1).as_float()
        assert 0 <= x2 <= n - n1
        assert rejected == d.test(x1, x2)


@pytest.mark.parametrize("workers", [1, 4])
def test_empirical_power_close_to_exact(scenario_design, workers):
    p = 0.4
    nsim = 100_000
    df = scenario_design.simulate(p, nsim, seed=2024, workers=workers)
    empirical = df["rejected_h0"].cast(pl.Float64).mean()
    assert abs(empirical - scenario_design.power(p)) < 4 / math.sqrt(nsim)


def test_mean_samplesize_close_to_expected(small_design):
    p = 0.6
    df = small_design.simulate(p, 50_000, seed=11, workers=2)
    assert df["n"].mean() == pytest.approx(small_design.expected_samplesize(p), abs=0.1)


def test_degenerate_probabilities(small_design):
    df = small_design.simulate(1.0, 50, seed=0)
    assert (df["x1"] == 4).all()
    assert df["rejected_h0"].all()
    df = small_design.simulate(0.0, 50, seed=0)
    assert (df["x1"] == 0).all()
    assert not df["rejected_h0"].any()


def test_zero_replicates(small_design):
    df = simulate(small_design, 0.5, 0, seed=1, workers=4)
    assert df.height == 0
    assert df.columns == ["x1", "n", "c", "x2", "rejected_h0"]


def test_more_workers_than_replicates(small_design):
    df = simulate(small_design, 0.5, 3, seed=1, workers=8)
    assert df.height == 3


@pytest.mark.parametrize(
    "kwargs",
    [
        {"p": 1.5, "nsim": 10},
        {"p": float("nan"), "nsim": 10},
        {"p": 0.5, "nsim": -1},
        {"p": 0.5, "nsim": 10, "workers": 0},
        {"p": 0.5, "nsim": 2.5},
    ],
)
def test_invalid_arguments(small_design, kwargs):
    with pytest.raises(DomainError):
        simulate(small_design, **kwargs)


def test_numpy_integer_arguments_accepted(small_design):
    df = simulate(small_design, 0.5, np.int64(20), seed=5, workers=np.int32(2))
    assert df.height == 20
