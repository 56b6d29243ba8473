from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional


Q6 = Decimal("0.000001")


def norm_unit_identifier(v: Optional[str]) -> Optional[str]:
    c = (v or "").strip().lower()
    return c or None


def q6(v: Decimal) -> Decimal:
    # Same precision as the quantity/value columns (numeric(18,6)).
    return v.quantize(Q6, rounding=ROUND_HALF_UP)


def _factor(unit: Optional[Mapping[str, Any]]) -> Optional[Decimal]:
    if not unit:
        return None
    try:
        f = Decimal(str(unit.get("value") or 0))
    except Exception:
        return None
    return f if f > 0 else None


def convert(value, units_by_id: Mapping[str, Mapping[str, Any]], from_unit: str, to_unit: str) -> Decimal:
    """
    Convert through the base unit: value * from.value / to.value.

    Unknown units (or a non-positive factor) leave the value unchanged.
    """
    v = Decimal(str(value))
    f_from = _factor(units_by_id.get(str(from_unit)))
    f_to = _factor(units_by_id.get(str(to_unit)))
    if f_from is None or f_to is None:
        return v
    return q6(v * f_from / f_to)
