import pytest

from workflow.calculator import (
    cbm_for_dims,
    cbm_per_unit,
    dims_to_cm,
    is_valid_unit,
    normalize_to_cm,
    total_cbm,
)

FACTORS = {"mm": 0.1, "cm": 1.0, "m": 100.0, "in": 2.54}


@pytest.mark.parametrize("unit", sorted(FACTORS))
@pytest.mark.parametrize("value", [1, 2.5, 24, 1000])
def test_normalize_to_cm_uses_fixed_factor(unit, value):
    assert normalize_to_cm(value, unit) == pytest.approx(value * FACTORS[unit])


@pytest.mark.parametrize("unit", sorted(FACTORS))
def test_normalize_zero_is_none(unit):
    assert normalize_to_cm(0, unit) is None


@pytest.mark.parametrize("value,unit", [
    (None, "cm"),
    ("", "cm"),
    ("abc", "in"),
    (-5, "cm"),
    (10, "ft"),
    (10, None),
])
def test_normalize_rejects_bad_input(value, unit):
    assert normalize_to_cm(value, unit) is None


def test_normalize_accepts_numeric_strings():
    assert normalize_to_cm("100", "mm") == pytest.approx(10.0)


def test_cbm_per_unit_for_inch_chair():
    # 24 x 18 x 30 inches
    assert cbm_per_unit(60.96, 45.72, 76.2) == pytest.approx(0.212)


def test_cbm_per_unit_missing_dimension():
    assert cbm_per_unit(60.96, None, 76.2) is None
    assert cbm_per_unit(0, 45.72, 76.2) is None


def test_total_cbm():
    assert total_cbm(0.212, 5) == pytest.approx(1.06)
    assert total_cbm(0.212, 0) is None
    assert total_cbm(None, 5) is None
    assert total_cbm(0.212, None) is None
    assert total_cbm(0.212, True) is None
    assert total_cbm(0.212, 2.5) is None


def test_dims_helpers():
    dims = {"w": 24, "d": 18, "h": 30, "unit": "in"}
    assert dims_to_cm(dims) == {"w": 60.96, "d": 45.72, "h": 76.2}
    assert cbm_for_dims(dims) == pytest.approx(0.212)
    assert dims_to_cm({"w": 24, "d": 18, "unit": "in"}) is None
    assert cbm_for_dims(None) is None


def test_is_valid_unit():
    for unit in ("mm", "cm", "m", "in", None, ""):
        assert is_valid_unit(unit)
    assert not is_valid_unit("invalid")


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), "inf", float("nan"), 1e308])
def test_normalize_rejects_non_finite(value):
    assert normalize_to_cm(value, "m") is None


@pytest.mark.parametrize("w,d,h", [
    (float("inf"), 10, 10),
    ("inf", 10, 10),
    (1e12, 1e12, 1e12),
    (1e200, 1e200, 1e200),
])
def test_cbm_per_unit_out_of_range_is_none(w, d, h):
    assert cbm_per_unit(w, d, h) is None


@pytest.mark.parametrize("cbm", [1e30, "inf", float("inf")])
def test_total_cbm_out_of_range_is_none(cbm):
    assert total_cbm(cbm, 5) is None


def test_huge_dims_have_no_volume():
    assert cbm_for_dims({"w": 1e12, "d": 1e12, "h": 1e12, "unit": "cm"}) is None
