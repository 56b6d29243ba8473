from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from ..config import settings
from ..db import get_conn
from ..deps import get_current_user
from ..logs import json_log
from ..permissions import resolve_access
from ..security import verify_pin
from ..validation import Pin

router = APIRouter(prefix="/pos", tags=["pos"])


class ManagerOverrideIn(BaseModel):
    pin: Pin
    # e.g. action="delete", resource="orders" checks `orders.delete`
    action: str
    resource: str


def find_pin_owner(cur, pin: str):
    """
    Active user whose manager PIN matches, else None.

    PIN hashes are salted, so every candidate has to be verified in turn.
    """
    cur.execute(
        """
        SELECT id, username, full_name, pos_pin_hash
        FROM profiles
        WHERE active = true
          AND pos_pin_hash IS NOT NULL
        ORDER BY created_at
        """
    )
    for row in cur.fetchall():
        if verify_pin(pin, row.get("pos_pin_hash")):
            return row
    return None


def recent_failures(cur, user_id: str) -> int:
    cur.execute(
        """
        SELECT COUNT(*)::int AS n
        FROM pos_override_attempts
        WHERE requested_by = %s
          AND success = false
          AND created_at > now() - make_interval(mins => %s)
        """,
        (user_id, settings.pos_pin_lockout_minutes),
    )
    row = cur.fetchone()
    return int((row or {}).get("n") or 0)


def record_attempt(cur, user_id: str, action: str, resource: str, success: bool):
    cur.execute(
        """
        INSERT INTO pos_override_attempts (id, requested_by, action, resource, success)
        VALUES (gen_random_uuid(), %s, %s, %s, %s)
        """,
        (user_id, action, resource, success),
    )


@router.post("/authorize")
def authorize_override(data: ManagerOverrideIn, user=Depends(get_current_user)):
    action = (data.action or "").strip().lower()
    resource = (data.resource or "").strip().lower()
    if not action or not resource:
        raise HTTPException(status_code=422, detail="action and resource are required")
    requested_by = str(user["user_id"])
    access = None
    with get_conn() as conn:
        with conn.cursor() as cur:
            failures = recent_failures(cur, requested_by)
            if failures >= settings.pos_pin_max_failures:
                json_log(
                    "warn",
                    "pos.override.locked",
                    requested_by=requested_by,
                    failures=failures,
                    action=action,
                    resource=resource,
                )
                raise HTTPException(status_code=429, detail="too many failed pin attempts")
            owner = find_pin_owner(cur, data.pin)
            # Committed before any 403 below so failures keep counting.
            record_attempt(cur, requested_by, action, resource, owner is not None)
            if owner:
                access = resolve_access(cur, str(owner["id"]))
    if not owner:
        json_log(
            "warn",
            "pos.override.bad_pin",
            requested_by=requested_by,
            failures=failures + 1,
            action=action,
            resource=resource,
        )
        raise HTTPException(status_code=403, detail="invalid pin")
    if not access.can(action, resource):
        json_log(
            "warn",
            "pos.override.denied",
            requested_by=requested_by,
            approver=str(owner["id"]),
            action=action,
            resource=resource,
        )
        raise HTTPException(status_code=403, detail="approver lacks permission")
    json_log(
        "info",
        "pos.override.granted",
        requested_by=requested_by,
        approver=str(owner["id"]),
        action=action,
        resource=resource,
    )
    return {
        "authorized": True,
        "approver": {"id": owner["id"], "username": owner.get("username"), "full_name": owner.get("full_name")},
        "permission": f"{resource}.{action}",
    }
