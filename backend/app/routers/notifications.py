from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional

from ..db import get_conn
from ..deps import get_current_user
from ..notifications import create_system_notification
from ..validation import NotificationType
from .stock_adjustments import low_stock_notification

router = APIRouter(prefix="/notifications", tags=["notifications"])


class NotificationIn(BaseModel):
    title: str
    description: Optional[str] = None
    type: NotificationType = "info"
    url: Optional[str] = None
    source: Optional[str] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    identifier: Optional[str] = None


@router.get("")
def list_notifications(limit: int = 50, user=Depends(get_current_user)):
    limit = max(1, min(int(limit or 50), 200))
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, title, description, type, read, url, source, identifier,
                       entity_type, entity_id, created_at
                FROM notifications
                WHERE user_id = %s
                ORDER BY created_at DESC
                LIMIT %s
                """,
                (user["user_id"], limit),
            )
            rows = cur.fetchall()
            cur.execute(
                "SELECT COUNT(*)::int AS n FROM notifications WHERE user_id = %s AND read = false",
                (user["user_id"],),
            )
            unread = int((cur.fetchone() or {}).get("n") or 0)
    return {"notifications": rows, "unread_count": unread}


@router.post("")
def create_notification(data: NotificationIn, user=Depends(get_current_user)):
    title = (data.title or "").strip()
    if not title:
        raise HTTPException(status_code=422, detail="title is required")
    with get_conn() as conn:
        with conn.cursor() as cur:
            row = create_system_notification(
                cur,
                user["user_id"],
                title,
                description=data.description,
                type=data.type,
                url=data.url,
                source=data.source,
                entity_type=data.entity_type,
                entity_id=data.entity_id,
                identifier=(data.identifier or "").strip() or None,
            )
    if not row:
        raise HTTPException(status_code=500, detail="failed to create notification")
    return {"notification": row}


@router.post("/check-low-stock")
def check_low_stock(user=Depends(get_current_user)):
    """
    Raise low/out-of-stock notifications for the caller; repeated runs are de-duplicated.
    """
    created = []
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT q.product_id, q.unit_id, q.quantity, q.low_quantity, q.stock_alert_enabled,
                       p.name AS product_name, u.identifier AS unit_identifier
                FROM product_unit_quantities q
                JOIN products p ON p.id = q.product_id
                LEFT JOIN units u ON u.id = q.unit_id
                WHERE q.stock_alert_enabled = true
                  AND q.quantity <= q.low_quantity
                LIMIT 100
                """
            )
            for row in cur.fetchall():
                payload = low_stock_notification(row)
                if not payload:
                    continue
                n = create_system_notification(cur, user["user_id"], **payload)
                if n:
                    created.append(n)
    return {"notifications": created}


@router.post("/read-all")
def mark_all_read(user=Depends(get_current_user)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE notifications SET read = true WHERE user_id = %s AND read = false",
                (user["user_id"],),
            )
    return {"ok": True}


@router.post("/{notification_id}/read")
def mark_read(notification_id: str, user=Depends(get_current_user)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE notifications
                SET read = true
                WHERE id = %s AND user_id = %s
                RETURNING id
                """,
                (notification_id, user["user_id"]),
            )
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="notification not found")
    return {"ok": True}


@router.delete("/{notification_id}")
def delete_notification(notification_id: str, user=Depends(get_current_user)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "DELETE FROM notifications WHERE id = %s AND user_id = %s",
                (notification_id, user["user_id"]),
            )
    return {"ok": True}


@router.delete("")
def clear_notifications(user=Depends(get_current_user)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM notifications WHERE user_id = %s", (user["user_id"],))
    return {"ok": True}
