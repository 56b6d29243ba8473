from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from ..config import settings
from ..db import get_conn
from ..deps import require_permission
from ..sales_windows import WINDOW_DAYS, compare_windows

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/sales", dependencies=[Depends(require_permission("dashboard.read"))])
def sales_window(window: str = "day"):
    now = datetime.now(timezone.utc)
    with get_conn() as conn:
        with conn.cursor() as cur:
            return compare_windows(cur, window, now, settings.timezone)


@router.get("/cards", dependencies=[Depends(require_permission("dashboard.read"))])
def sales_cards():
    # One clock reading so the three cards agree on "today".
    now = datetime.now(timezone.utc)
    with get_conn() as conn:
        with conn.cursor() as cur:
            return {"cards": {w: compare_windows(cur, w, now, settings.timezone) for w in WINDOW_DAYS}}
