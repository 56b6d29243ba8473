from backend.app import i18n
from backend.app.i18n import catalogue, normalize_language, translate
from backend.app.routers import i18n as i18n_router


def test_translate_uses_active_language():
    assert translate("dashboard.weeklySales", "id") == "Penjualan Mingguan"
    assert translate("dashboard.weeklySales", "en") == "Weekly Sales"


def test_missing_key_falls_back_to_english():
    assert translate("dashboard.last30DaysSales", "id") == "Last 30 Days Sales"


def test_unknown_key_returns_raw_key():
    assert translate("nope.not.here", "id") == "nope.not.here"


def test_key_resolving_to_section_returns_raw_key():
    assert translate("dashboard", "en") == "dashboard"


def test_normalize_language_defaults_to_configured_language(monkeypatch):
    assert normalize_language("EN ") == "en"
    monkeypatch.setattr(i18n.settings, "default_language", "id")
    assert normalize_language("fr") == "id"
    assert normalize_language(None) == "id"
    monkeypatch.setattr(i18n.settings, "default_language", "xx")
    assert normalize_language(None) == "id"


def test_catalogue_endpoint_normalizes_language():
    out = i18n_router.get_catalogue("EN")
    assert out["language"] == "en"
    assert out["messages"] is catalogue("en")


def test_translate_endpoint():
    out = i18n_router.translate_key("dashboard.last30DaysSales", "id")
    assert out == {"key": "dashboard.last30DaysSales", "language": "id", "text": "Last 30 Days Sales"}
