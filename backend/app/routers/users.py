from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional
from ..db import get_conn
from ..deps import require_permission
from ..security import hash_pin
from ..validation import Pin

router = APIRouter(prefix="/users", tags=["users"])

PROFILE_FIELDS = ("username", "full_name", "avatar_url", "role", "active")


class UserUpdate(BaseModel):
    username: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    # Simple role column (admin/cashier/customer); many-to-many roles are managed below.
    role: Optional[str] = None
    active: Optional[bool] = None


class RoleAssignIn(BaseModel):
    role_id: str


class PinIn(BaseModel):
    pin: Pin


def _attach_roles(profiles: list[dict], user_roles: list[dict]) -> list[dict]:
    by_user: dict[str, list[dict]] = {}
    for ur in user_roles:
        by_user.setdefault(str(ur["user_id"]), []).append({"id": ur["role_id"], "name": ur["role_name"]})
    return [{**p, "roles": by_user.get(str(p["id"]), [])} for p in profiles]


@router.get("", dependencies=[Depends(require_permission("users.read"))])
def list_users():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, email, username, full_name, avatar_url, role, active,
                       (pos_pin_hash IS NOT NULL) AS has_pin, created_at
                FROM profiles
                ORDER BY created_at DESC
                """
            )
            profiles = cur.fetchall()
            cur.execute(
                """
                SELECT ur.user_id, r.id AS role_id, r.name AS role_name
                FROM users_roles ur
                JOIN roles r ON r.id = ur.role_id
                ORDER BY r.name
                """
            )
            return {"users": _attach_roles(profiles, cur.fetchall())}


@router.patch("/{user_id}", dependencies=[Depends(require_permission("users.update"))])
def update_user(user_id: str, data: UserUpdate):
    patch = {k: getattr(data, k) for k in getattr(data, "model_fields_set", set()) if k in PROFILE_FIELDS}
    for k in ("username", "full_name", "avatar_url", "role"):
        if k in patch:
            patch[k] = (patch.get(k) or "").strip() or None
    if "role" in patch and patch["role"] is None:
        raise HTTPException(status_code=422, detail="role cannot be empty")
    if "active" in patch and patch["active"] is None:
        raise HTTPException(status_code=422, detail="active cannot be null")
    if not patch:
        return {"ok": True}

    fields = []
    params = []
    for k, v in patch.items():
        fields.append(f"{k} = %s")
        params.append(v)
    params.append(user_id)
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                UPDATE profiles
                SET {', '.join(fields)}, updated_at = now()
                WHERE id = %s
                RETURNING id
                """,
                params,
            )
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="user not found")
            if patch.get("active") is False:
                # Deactivated users lose their sessions immediately.
                cur.execute("UPDATE auth_sessions SET is_active = false WHERE user_id = %s", (user_id,))
    return {"ok": True}


@router.post("/{user_id}/roles", dependencies=[Depends(require_permission("users.update"))])
def assign_role(user_id: str, data: RoleAssignIn):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM profiles WHERE id = %s", (user_id,))
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="user not found")
            cur.execute("SELECT 1 FROM roles WHERE id = %s", (data.role_id,))
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="role not found")
            # Assigning twice is a no-op.
            cur.execute(
                """
                INSERT INTO users_roles (user_id, role_id)
                VALUES (%s, %s)
                ON CONFLICT (user_id, role_id) DO NOTHING
                """,
                (user_id, data.role_id),
            )
    return {"ok": True}


@router.delete("/{user_id}/roles/{role_id}", dependencies=[Depends(require_permission("users.update"))])
def remove_role(user_id: str, role_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                DELETE FROM users_roles
                WHERE user_id = %s AND role_id = %s
                """,
                (user_id, role_id),
            )
    return {"ok": True}


@router.put("/{user_id}/pin", dependencies=[Depends(require_permission("users.update"))])
def set_pin(user_id: str, data: PinIn):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE profiles
                SET pos_pin_hash = %s, updated_at = now()
                WHERE id = %s
                RETURNING id
                """,
                (hash_pin(data.pin), user_id),
            )
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="user not found")
    return {"ok": True}


@router.delete("/{user_id}/pin", dependencies=[Depends(require_permission("users.update"))])
def clear_pin(user_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "UPDATE profiles SET pos_pin_hash = NULL, updated_at = now() WHERE id = %s",
                (user_id,),
            )
    return {"ok": True}
