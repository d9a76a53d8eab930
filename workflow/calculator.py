# calculator.py
# Dimension normalization and shipping volume (CBM). Pure functions; bad input -> None.

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

SUPPORTED_UNITS = ("mm", "cm", "m", "in")

_TO_CM = {
    "mm": 0.1,
    "cm": 1.0,
    "m": 100.0,
    "in": 2.54,
}


def _round3(value: float) -> Optional[float]:
    try:
        return float(Decimal(str(value)).quantize(Decimal("0.001"), rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # infinite, or too many digits for the context precision
        return None


def _as_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def is_valid_unit(unit: Optional[str]) -> bool:
    # empty means "not set yet", which is allowed
    if not unit:
        return True
    return unit in SUPPORTED_UNITS


def normalize_to_cm(value: Any, unit: Optional[str]) -> Optional[float]:
    """Convert a single dimension to centimeters.

    Returns None for a missing, zero, negative or non-numeric value and for an
    unsupported unit.
    """
    if unit not in _TO_CM:
        return None
    num = _as_number(value)
    if not num or num < 0:
        return None
    cm = num / 10 if unit == "mm" else num * _TO_CM[unit]
    return cm if math.isfinite(cm) else None


def cbm_per_unit(w_cm: Any, d_cm: Any, h_cm: Any) -> Optional[float]:
    w, d, h = _as_number(w_cm), _as_number(d_cm), _as_number(h_cm)
    if not w or not d or not h:
        return None
    if w < 0 or d < 0 or h < 0:
        return None
    return _round3((w / 100) * (d / 100) * (h / 100))


def total_cbm(item_cbm: Any, quantity: Any) -> Optional[float]:
    cbm = _as_number(item_cbm)
    if cbm is None:
        return None
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return None
    return _round3(cbm * quantity)


def dims_to_cm(dims: Optional[Dict[str, Any]]) -> Optional[Dict[str, float]]:
    """{w, d, h, unit} -> {w, d, h} in cm, or None unless all three convert."""
    if not dims:
        return None
    unit = dims.get("unit")
    out = {}
    for key in ("w", "d", "h"):
        cm = normalize_to_cm(dims.get(key), unit)
        if cm is None:
            return None
        out[key] = round(cm, 2)
    return out


def cbm_for_dims(dims: Optional[Dict[str, Any]]) -> Optional[float]:
    cm = dims_to_cm(dims)
    if cm is None:
        return None
    return cbm_per_unit(cm["w"], cm["d"], cm["h"])
