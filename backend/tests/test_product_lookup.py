import json

import pytest

from backend.app.lookup import firecrawl, product_lookup
from backend.app.lookup.product_lookup import (
    extract_product,
    format_url,
    identify_and_fetch,
    is_valid_url,
    lookup_barcode,
)
from backend.app.routers import functions


@pytest.fixture
def no_key(monkeypatch):
    monkeypatch.setattr(product_lookup.settings, "firecrawl_api_key", "")


@pytest.fixture
def with_key(monkeypatch):
    monkeypatch.setattr(product_lookup.settings, "firecrawl_api_key", "fc-test")


def test_json_label_is_parsed():
    code = json.dumps({"product_name": "Kopi Bubuk", "cat": "Minuman", "sku": "KB-1"})
    info = identify_and_fetch(code)
    assert info["name"] == "Kopi Bubuk"
    assert info["category"] == "Minuman"
    assert info["barcode"] == "KB-1"
    assert info["images"] == []


def test_json_without_name_is_not_a_product():
    assert identify_and_fetch('{"sku": "X"}') is None


def test_pipe_label_is_parsed():
    info = identify_and_fetch("8991002|Teh Botol|Minuman|Teh manis")
    assert info == {
        "barcode": "8991002",
        "name": "Teh Botol",
        "category": "Minuman",
        "description": "Teh manis",
        "brand": None,
        "images": [],
    }


def test_digits_trigger_remote_lookup(monkeypatch):
    seen = []

    def _fake_lookup(code):
        seen.append(code)
        return {"name": "Indomie", "brand": "Indofood", "category": "Food", "description": "Noodles"}

    monkeypatch.setattr(product_lookup, "lookup_barcode", _fake_lookup)
    info = identify_and_fetch(" 089686010947 ")
    assert seen == ["089686010947"]
    assert info["name"] == "Indomie"
    assert info["barcode"] == "089686010947"
    assert info["brand"] == "Indofood"


def test_other_text_is_unrecognised():
    assert identify_and_fetch("hello world") is None
    assert identify_and_fetch("") is None


def test_lookup_without_key_returns_mock(no_key):
    out = lookup_barcode("123")
    assert out["name"] == "Product 123"
    assert out["brand"] == "Mock Brand"
    assert out["category"] == "General"
    assert out["sourceUrl"] == "mock://fallback"


def test_lookup_requires_barcode(no_key):
    with pytest.raises(ValueError):
        lookup_barcode("  ")


def test_lookup_normalizes_first_search_result(with_key, monkeypatch):
    monkeypatch.setattr(
        firecrawl,
        "search_barcode",
        lambda code: {
            "success": True,
            "data": [
                {
                    "title": "Page title",
                    "url": "https://shop.example/p/1",
                    "metadata": {"json": {"name": "Susu UHT", "brand": "Ultra"}},
                }
            ],
        },
    )
    out = lookup_barcode("8998009010231")
    assert out == {
        "name": "Susu UHT",
        "description": "",
        "category": "General",
        "brand": "Ultra",
        "sourceUrl": "https://shop.example/p/1",
    }


def test_extract_reports_filled_fields(with_key, monkeypatch):
    calls = []

    def _fake_scrape(url):
        calls.append(url)
        return {
            "success": True,
            "data": {
                "extract": {"name": "Sabun", "selling_price": 5000, "brand": "", "sku": None},
                "markdown": "# Sabun",
                "metadata": {"title": "Sabun"},
            },
        }

    monkeypatch.setattr(firecrawl, "scrape_product", _fake_scrape)
    out = extract_product("shop.example/sabun")
    assert calls == ["https://shop.example/sabun"]
    meta = out["metadata"]
    assert meta["sourceUrl"] == "https://shop.example/sabun"
    assert meta["fieldsExtracted"] == 2
    assert meta["filledFields"] == ["name", "selling_price"]
    assert meta["totalFields"] == len(firecrawl.PRODUCT_EXTRACTION_SCHEMA["properties"])
    assert meta["title"] == "Sabun"
    assert out["markdown"] == "# Sabun"


def test_url_helpers():
    assert is_valid_url("https://a.b")
    assert is_valid_url("www.tokopedia.com/item")
    assert not is_valid_url("not a url")
    assert format_url("shop.example") == "https://shop.example"
    assert format_url("http://shop.example") == "http://shop.example"


def test_product_lookup_endpoint_requires_barcode():
    resp = functions.product_lookup(functions.BarcodeIn(barcode=" "))
    assert resp.status_code == 400
    assert json.loads(resp.body) == {"success": False, "error": "Barcode is required"}


def test_product_lookup_endpoint_success(no_key):
    out = functions.product_lookup(functions.BarcodeIn(barcode="42"))
    assert out["success"] is True
    assert out["data"]["name"] == "Product 42"


def test_extract_endpoint_errors(no_key, monkeypatch):
    monkeypatch.setattr(functions, "json_log", lambda *a, **k: None)
    resp = functions.firecrawl_product_extract(functions.ExtractIn(url=None))
    assert resp.status_code == 400
    resp = functions.firecrawl_product_extract(functions.ExtractIn(url="shop.example"))
    assert resp.status_code == 500
    assert json.loads(resp.body)["success"] is False
