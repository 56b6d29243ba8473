from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Any, List, Optional
import json

from ..db import get_conn
from ..deps import require_permission
from ..i18n import LANGUAGE_SETTING_KEY, LANGUAGE_STORAGE_KEY, normalize_language
from ..validation import Language

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingIn(BaseModel):
    value: Any = None
    category: Optional[str] = None


class BulkSettingLine(BaseModel):
    key: str
    value: Any = None
    category: Optional[str] = None


class BulkSettingsIn(BaseModel):
    settings: List[BulkSettingLine]


class LanguageIn(BaseModel):
    language: Language


def upsert_setting(cur, key: str, value: Any, category: Optional[str] = None) -> dict:
    key = (key or "").strip()
    if not key:
        raise HTTPException(status_code=422, detail="key is required")
    cur.execute(
        """
        INSERT INTO settings (id, key, value, category)
        VALUES (gen_random_uuid(), %s, %s::jsonb, %s)
        ON CONFLICT (key) DO UPDATE
          SET value = EXCLUDED.value,
              category = COALESCE(EXCLUDED.category, settings.category),
              updated_at = now()
        RETURNING key, value, category, updated_at
        """,
        (key, json.dumps(value), (category or "").strip() or None),
    )
    return cur.fetchone()


def get_setting_value(cur, key: str, default: Any = None) -> Any:
    cur.execute("SELECT value FROM settings WHERE key = %s", (key,))
    row = cur.fetchone()
    if not row or row.get("value") is None:
        return default
    return row["value"]


@router.get("", dependencies=[Depends(require_permission("settings.read"))])
def list_settings(category: Optional[str] = None):
    sql = """
        SELECT key, value, category, updated_at
        FROM settings
    """
    params: list = []
    if category:
        sql += " WHERE category = %s"
        params.append(category.strip())
    sql += " ORDER BY key"
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(sql, params)
            rows = cur.fetchall()
    return {"settings": {r["key"]: r["value"] for r in rows}, "rows": rows}


@router.get("/language")
def get_language():
    # Readable before sign-in so the login screen renders in the saved language.
    with get_conn() as conn:
        with conn.cursor() as cur:
            stored = get_setting_value(cur, LANGUAGE_SETTING_KEY)
    return {"language": normalize_language(stored), "storage_key": LANGUAGE_STORAGE_KEY}


@router.put("/language", dependencies=[Depends(require_permission("settings.update"))])
def set_language(data: LanguageIn):
    with get_conn() as conn:
        with conn.cursor() as cur:
            upsert_setting(cur, LANGUAGE_SETTING_KEY, data.language, "general")
    return {"language": data.language, "storage_key": LANGUAGE_STORAGE_KEY}


@router.post("/bulk", dependencies=[Depends(require_permission("settings.update"))])
def bulk_upsert(data: BulkSettingsIn):
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                rows = [upsert_setting(cur, s.key, s.value, s.category) for s in data.settings]
    return {"settings": rows}


@router.get("/{key}", dependencies=[Depends(require_permission("settings.read"))])
def get_setting(key: str, default: Optional[str] = None):
    with get_conn() as conn:
        with conn.cursor() as cur:
            return {"key": key, "value": get_setting_value(cur, key, default)}


@router.put("/{key}", dependencies=[Depends(require_permission("settings.update"))])
def put_setting(key: str, data: SettingIn):
    with get_conn() as conn:
        with conn.cursor() as cur:
            return {"setting": upsert_setting(cur, key, data.value, data.category)}


@router.delete("/{key}", dependencies=[Depends(require_permission("settings.update"))])
def delete_setting(key: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM settings WHERE key = %s", (key,))
    return {"ok": True}
