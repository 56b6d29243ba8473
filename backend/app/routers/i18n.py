from fastapi import APIRouter
from typing import Optional

from ..i18n import FALLBACK_LANGUAGE, LANGUAGES, catalogue, normalize_language, translate

router = APIRouter(prefix="/i18n", tags=["i18n"])


@router.get("/languages")
def list_languages():
    return {"languages": list(LANGUAGES), "default": normalize_language(None), "fallback": FALLBACK_LANGUAGE}


@router.get("/translate")
def translate_key(key: str, language: Optional[str] = None):
    lang = normalize_language(language)
    return {"key": key, "language": lang, "text": translate(key, lang)}


@router.get("/{language}")
def get_catalogue(language: str):
    lang = normalize_language(language)
    return {"language": lang, "messages": catalogue(lang)}
