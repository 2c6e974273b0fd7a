import logging
import math

import pytest

from twostage.core.errors import ConstructionError, OutOfRangeError
from twostage.core.ledger import Ledger
from twostage.core.names import Namespace, THINNING_TAG
from twostage.stats.schemes.binary_two_stage import (
    ALWAYS_REJECT,
    NEVER_REJECT,
    SampleSpace,
)


@pytest.fixture
def thinned_space():
    """Coarse enough that every grid for n1 = 10 gets thinned."""
    return SampleSpace(range(10, 21), 200, maxvariables=100, ledger=Ledger())


# --- construction ---


@pytest.mark.parametrize(
    "args, kwargs",
    [
        (([], 10), {}),
        (([0, 1], 10), {}),
        (([5, 20], 10), {}),
        (([5], 10), {"maxvariables": 99}),
    ],
)
def test_construction_errors(args, kwargs):
    with pytest.raises(ConstructionError):
        SampleSpace(*args, **kwargs)


def test_defaults():
    ss = SampleSpace(range(10, 21), 100)
    assert ss.interimsamplesizerange() == tuple(range(10, 21))
    assert ss.maxnfact == 10.0
    assert ss.maxsamplesize() == 100
    assert ss.maxsamplesize(10) == 100
    assert ss.maxsamplesize(20) == 100
    assert ss.isgroupsequential() is False


def test_maxsamplesize_respects_maxnfact():
    ss = SampleSpace([10, 15], 100, maxnfact=3)
    assert ss.maxsamplesize(10) == 30
    assert ss.maxsamplesize(15) == 45


def test_maxsamplesize_absorbs_rounding():
    ss = SampleSpace([7], 100, maxnfact=50 / 7)
    assert ss.maxsamplesize(7) == 50
    assert ss.possible(7, 50, 20)


def test_unadmissible_n1_is_out_of_range():
    ss = SampleSpace([10, 12], 50)
    with pytest.raises(OutOfRangeError):
        ss.maxsamplesize(11)
    with pytest.raises(OutOfRangeError):
        ss.getnvals(9)
    with pytest.raises(OutOfRangeError):
        ss.getcvals(13)


def test_is_immutable():
    ss = SampleSpace([10], 40)
    with pytest.raises(AttributeError):
        ss.nmax = 50


# --- feasibility ---


def test_possible_n1():
    ss = SampleSpace([10, 12], 50)
    assert ss.possible(10)
    assert not ss.possible(11)


def test_possible_requires_both_n_and_c():
    ss = SampleSpace([10], 40)
    with pytest.raises(TypeError):
        ss.possible(10, 20)


def test_possible_basic_bounds():
    ss = SampleSpace([10], 40, n2min=5, nmincont=10)
    assert ss.possible(10, 15, 3)
    assert not ss.possible(10, 41, 3)  # above nmax
    assert not ss.possible(10, 9, NEVER_REJECT)  # below n1
    assert not ss.possible(11, 20, 3)  # n1 not admissible
    assert not ss.possible(10, 12, 3)  # stage two below n2min


def test_possible_respects_maxnfact():
    ss = SampleSpace([10], 40, maxnfact=2)
    assert ss.possible(10, 20, 5)
    assert not ss.possible(10, 25, 5)


def test_futility_stop_exempt_from_minimums():
    ss = SampleSpace([10], 40, n2min=5, nmincont=30)
    assert ss.possible(10, 10, NEVER_REJECT)
    assert ss.possible(10, 12, float("inf"))
    assert not ss.possible(10, 20, 5)  # continuation below nmincont


def test_early_efficacy_stop_exemption():
    exempt = SampleSpace([10], 40, n2min=5, nmincont=10)
    assert exempt.possible(10, 10, ALWAYS_REJECT)
    assert exempt.possible(10, 10, float("-inf"))
    # a finite threshold at n == n1 is not an efficacy stop
    assert not exempt.possible(10, 10, 8)

    strict = SampleSpace([10], 40, n2min=5, nmincont=11)
    assert not strict.possible(10, 10, ALWAYS_REJECT)
    assert strict.possible(10, 10, NEVER_REJECT)


def test_always_reject_with_short_stage_two_is_not_exempt():
    ss = SampleSpace([10], 40, n2min=5)
    assert not ss.possible(10, 12, ALWAYS_REJECT)
    assert ss.possible(10, 15, ALWAYS_REJECT)


# --- discretization ---


def test_no_thinning_without_pressure():
    ledger = Ledger()
    ss = SampleSpace([10], 40, ledger=ledger)
    assert ss.getnvals(10) == list(range(10, 41))
    assert ss.getcvals(10) == list(range(0, 40))
    assert len(ledger) == 0
    assert not ss.discretize_n(10).thinned


def test_thinned_nvals_keep_mandatory_values():
    ss = SampleSpace(range(10, 21), 200, n2min=7, nmincont=25, maxvariables=100)
    nvals = ss.getnvals(10)
    assert nvals == sorted(set(nvals))
    assert {10, 17, 35, 200} <= set(nvals)
    assert len(nvals) < 200 - 10 + 1
    assert all(10 <= v <= 200 for v in nvals)


def test_thinned_cvals_are_sorted_and_bounded(thinned_space):
    cvals = thinned_space.getcvals(10)
    assert cvals == sorted(set(cvals))
    assert cvals[0] == 0
    assert all(0 <= v <= 199 for v in cvals)
    assert len(cvals) < 200


def test_thinning_writes_ledger_event(thinned_space):
    ledger = thinned_space.ledger
    nvals = thinned_space.getnvals(10)
    reader = ledger.reader()
    assert reader.count(tag=THINNING_TAG) == 1
    row = reader.latest(namespace=Namespace.DIAGNOSTICS, tag=THINNING_TAG)
    assert row.kind == "thinned"
    assert row.entity == "samplespace#n1=10"
    assert row.payload_type == "ThinningNotice"
    assert row.payload["n1"] == 10
    assert row.payload["grid"] == "n"
    assert row.payload["candidates"] == len(nvals)
    assert row.payload["factor"] == pytest.approx(1 / row.payload["stride"])

    thinned_space.getcvals(10)
    assert ledger.reader().count(tag=THINNING_TAG) == 2
    assert ledger.reader().latest(tag=THINNING_TAG).payload["grid"] == "c"


def test_discretization_reports_stride(thinned_space):
    disc = thinned_space.discretize_n(10)
    assert disc.thinned
    assert disc.stride == pytest.approx(191 / math.sqrt(10))
    assert disc.thinning_factor == pytest.approx(1 / disc.stride)


def test_thinning_logged_at_info(thinned_space, caplog):
    with caplog.at_level(logging.INFO, logger="twostage"):
        thinned_space.getnvals(10)
    assert "thinning nvals for n1=10" in caplog.text


def test_special_values_survive_thinning():
    ss = SampleSpace(
        range(10, 21),
        200,
        maxvariables=100,
        special_n_values=[77, 5, 500],
        special_c_values=[50, 250],
    )
    nvals = ss.getnvals(10)
    assert 77 in nvals
    assert 5 not in nvals
    assert 500 not in nvals
    cvals = ss.getcvals(10)
    assert 50 in cvals
    assert 250 not in cvals


# --- configuration ---


def test_from_dict_with_list():
    ss = SampleSpace.from_dict({"n1range": [10, 12], "nmax": 50, "n2min": 3})
    assert ss.interimsamplesizerange() == (10, 12)
    assert ss.n2min == 3
    assert ss.maxnfact == 5.0


def test_from_dict_with_bounds_and_ledger():
    ledger = Ledger()
    ss = SampleSpace.from_dict(
        {"n1range": {"min": 5, "max": 8}, "nmax": 30, "group_sequential": True},
        ledger=ledger,
    )
    assert ss.interimsamplesizerange() == (5, 6, 7, 8)
    assert ss.isgroupsequential()
    assert ss.ledger is ledger


@pytest.mark.parametrize(
    "config",
    [
        {"n1range": [10], "nmax": 40, "nmaxx": 3},
        {"n1range": [10]},
        {"nmax": 40},
    ],
)
def test_from_dict_rejects_bad_config(config):
    with pytest.raises(ConstructionError):
        SampleSpace.from_dict(config)


def test_str():
    assert str(SampleSpace(range(10, 21), 100)) == "SampleSpace(n1 in [10, 20], nmax=100)"
