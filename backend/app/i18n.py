from typing import Any, Optional

from .config import settings
from .translations import TRANSLATIONS

LANGUAGES = ("id", "en")
FALLBACK_LANGUAGE = "en"
# Browser storage key the dashboard keeps the preference under.
LANGUAGE_STORAGE_KEY = "urasi-language"
LANGUAGE_SETTING_KEY = "language"


def normalize_language(raw: Optional[str]) -> str:
    lang = (raw or "").strip().lower()
    if lang in LANGUAGES:
        return lang
    default = (settings.default_language or "").strip().lower()
    return default if default in LANGUAGES else "id"


def _lookup(catalogue: Any, parts: list[str]) -> Optional[Any]:
    value = catalogue
    for k in parts:
        if isinstance(value, dict) and k in value:
            value = value[k]
        else:
            return None
    return value


def translate(key: str, language: Optional[str] = None) -> str:
    """
    Dotted-key lookup (`dashboard.weeklySales`).

    Falls back to English when the key is missing in the active language, and to
    the raw key when English does not have a string for it either.
    """
    parts = (key or "").split(".")
    value = _lookup(TRANSLATIONS.get(normalize_language(language)), parts)
    if value is None:
        value = _lookup(TRANSLATIONS[FALLBACK_LANGUAGE], parts)
    return value if isinstance(value, str) else key


def catalogue(language: Optional[str] = None) -> dict[str, Any]:
    return TRANSLATIONS[normalize_language(language)]
