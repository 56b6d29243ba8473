from decimal import Decimal

from backend.app.routers.taxes import calculate_tax
from backend.app.uom import convert, norm_unit_identifier


UNITS = {
    "pcs": {"id": "pcs", "value": Decimal("1")},
    "box": {"id": "box", "value": Decimal("12")},
    "half": {"id": "half", "value": Decimal("0.5")},
}


def test_convert_goes_through_base_unit():
    assert convert(Decimal("2"), UNITS, "box", "pcs") == Decimal("24.000000")
    assert convert(Decimal("6"), UNITS, "pcs", "box") == Decimal("0.500000")
    assert convert(1, UNITS, "half", "pcs") == Decimal("0.500000")


def test_convert_rounds_to_six_places():
    assert convert(Decimal("1"), UNITS, "pcs", "box") == Decimal("0.083333")


def test_convert_unknown_unit_returns_value_unchanged():
    assert convert(Decimal("7"), UNITS, "crate", "pcs") == Decimal("7")
    assert convert(Decimal("7"), UNITS, "pcs", "crate") == Decimal("7")


def test_unit_identifier_is_lowercased():
    assert norm_unit_identifier(" KG ") == "kg"
    assert norm_unit_identifier("  ") is None


def test_percentage_tax():
    assert calculate_tax(Decimal("200"), {"rate": Decimal("11"), "type": "percentage"}) == Decimal("22")


def test_flat_tax_ignores_amount():
    assert calculate_tax(Decimal("200"), {"rate": Decimal("500"), "type": "flat"}) == Decimal("500")


def test_missing_tax_or_rate_is_zero():
    assert calculate_tax(Decimal("200"), None) == Decimal("0")
    assert calculate_tax(Decimal("200"), {"rate": None, "type": "percentage"}) == Decimal("0")
