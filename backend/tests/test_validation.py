import pytest
from pydantic import BaseModel, ValidationError

from backend.app.validation import Code, Language, Namespace, NotificationType, Pin, TaxType, uuid_or_none


class _M(BaseModel):
    language: Language
    tax_type: TaxType
    kind: NotificationType
    namespace: Namespace


def test_validation_types_normalize_case():
    m = _M(language=" EN", tax_type="Percentage", kind="WARNING", namespace=" Orders ")
    assert m.language == "en"
    assert m.tax_type == "percentage"
    assert m.kind == "warning"
    assert m.namespace == "orders"


def test_unknown_language_is_rejected():
    with pytest.raises(ValidationError):
        _M(language="fr", tax_type="flat", kind="info", namespace="pos")


class _Sku(BaseModel):
    code: Code


def test_code_is_uppercased():
    assert _Sku(code=" shirt-01 ").code == "SHIRT-01"


def test_code_rejects_spaces_and_leading_dash():
    with pytest.raises(ValidationError):
        _Sku(code="shirt 01")
    with pytest.raises(ValidationError):
        _Sku(code="-A")


class _P(BaseModel):
    pin: Pin


def test_pin_must_be_digits():
    assert _P(pin=" 123456 ").pin == "123456"
    with pytest.raises(ValidationError):
        _P(pin="12a4")
    with pytest.raises(ValidationError):
        _P(pin="123")


def test_namespace_is_a_single_word():
    with pytest.raises(ValidationError):
        _M(language="id", tax_type="flat", kind="info", namespace="orders.delete")
    assert _M(language="id", tax_type="flat", kind="info", namespace="stock_opname").namespace == "stock_opname"


def test_uuid_or_none():
    assert uuid_or_none(" 0B7A6A0E-3C2D-4D5F-9A51-6F1F4F3E2A10 ") == "0b7a6a0e-3c2d-4d5f-9a51-6f1f4f3e2a10"
    assert uuid_or_none("kg") is None
    assert uuid_or_none("") is None
    assert uuid_or_none(None) is None
