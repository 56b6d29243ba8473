from typing import Any, Iterable, Optional

from .logs import json_log

# Event -> notification type shown by the dashboard bell.
NOTIFICATION_TYPES = {
    # Stock & inventory
    "LOW_STOCK": "warning",
    "OUT_OF_STOCK": "error",
    "EXPIRING_SOON": "warning",
    "EXPIRED": "error",
    # Orders & payments
    "INSTALLMENT_DUE": "warning",
    "INSTALLMENT_OVERDUE": "error",
    "NEW_ORDER": "success",
    "ORDER_REFUND": "info",
    # Register & cash
    "REGISTER_OPENED": "info",
    "REGISTER_CLOSED": "info",
    "CASH_ALERT": "warning",
    # Security & auth
    "LOGIN_SUCCESS": "info",
    "LOGIN_NEW_DEVICE": "warning",
    "PASSWORD_CHANGED": "info",
    # System
    "SYSTEM_ALERT": "warning",
    "BACKUP_REMINDER": "info",
}


def _find_or_insert(cur, user_id, title, description, type, url, source, entity_type, entity_id, identifier):
    if identifier:
        cur.execute(
            """
            SELECT id
            FROM notifications
            WHERE user_id = %s AND identifier = %s
            LIMIT 1
            """,
            (user_id, identifier),
        )
        existing = cur.fetchone()
        if existing:
            return existing

    cur.execute(
        """
        INSERT INTO notifications
          (id, user_id, title, description, type, url, source, entity_type, entity_id, identifier, read)
        VALUES
          (gen_random_uuid(), %s, %s, %s, %s, %s, %s, %s, %s, %s, false)
        RETURNING id, user_id, title, description, type, url, source, entity_type, entity_id,
                  identifier, read, created_at
        """,
        (
            user_id,
            title,
            description,
            type or "info",
            url,
            source or "system",
            entity_type,
            entity_id,
            identifier,
        ),
    )
    return cur.fetchone()


def create_system_notification(
    cur,
    user_id: str,
    title: str,
    description: Optional[str] = None,
    type: Optional[str] = None,
    url: Optional[str] = None,
    source: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    identifier: Optional[str] = None,
) -> Optional[dict[str, Any]]:
    """
    Insert a notification unless one with the same (user_id, identifier) exists.

    The existence check and the insert are separate statements, so two concurrent
    callers can still both insert. Failures are logged and return None. The work runs
    in a savepoint so a failed insert leaves the caller's transaction usable.
    """
    try:
        with cur.connection.transaction():
            return _find_or_insert(
                cur, user_id, title, description, type, url, source, entity_type, entity_id, identifier
            )
    except Exception as exc:
        json_log("error", "notifications.create_failed", user_id=str(user_id), identifier=identifier, error=str(exc))
        return None


def create_bulk_notifications(cur, items: Iterable[dict[str, Any]]) -> list[dict[str, Any]]:
    out = []
    for item in items:
        row = create_system_notification(cur, **item)
        if row:
            out.append(row)
    return out
