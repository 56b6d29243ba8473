from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional
from ..db import get_conn
from ..deps import require_permission
from ..validation import Namespace

router = APIRouter(prefix="/roles", tags=["roles"])


class RoleIn(BaseModel):
    name: str
    namespace: Namespace = "pos"
    description: Optional[str] = None


class RoleUpdate(BaseModel):
    name: Optional[str] = None
    namespace: Optional[Namespace] = None
    description: Optional[str] = None


class RolePermissionToggle(BaseModel):
    permission_id: str
    granted: bool


def _role_permission_map(rows: list[dict]) -> dict[str, list[str]]:
    out: dict[str, list[str]] = {}
    for rp in rows:
        out.setdefault(str(rp["role_id"]), []).append(str(rp["permission_id"]))
    return out


def _get_role_for_write(cur, role_id: str) -> dict:
    cur.execute("SELECT id, name, locked FROM roles WHERE id = %s", (role_id,))
    role = cur.fetchone()
    if not role:
        raise HTTPException(status_code=404, detail="role not found")
    if role.get("locked"):
        raise HTTPException(status_code=409, detail="role is locked")
    return role


@router.get("", dependencies=[Depends(require_permission("roles.read"))])
def list_roles():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, name, namespace, description, locked, created_at
                FROM roles
                ORDER BY name
                """
            )
            roles = cur.fetchall()
            cur.execute(
                """
                SELECT id, namespace, name, description
                FROM permissions
                ORDER BY namespace, name
                """
            )
            permissions = cur.fetchall()
            cur.execute("SELECT role_id, permission_id FROM role_permissions")
            return {
                "roles": roles,
                "permissions": permissions,
                "role_permissions": _role_permission_map(cur.fetchall()),
            }


@router.post("", dependencies=[Depends(require_permission("roles.create"))])
def create_role(data: RoleIn):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="name is required")
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO roles (id, name, namespace, description, locked)
                VALUES (gen_random_uuid(), %s, %s, %s, false)
                RETURNING id, name, namespace, description, locked, created_at
                """,
                (name, data.namespace, (data.description or "").strip() or None),
            )
            return {"role": cur.fetchone()}


@router.patch("/{role_id}", dependencies=[Depends(require_permission("roles.update"))])
def update_role(role_id: str, data: RoleUpdate):
    patch = {k: getattr(data, k) for k in getattr(data, "model_fields_set", set())}
    if "namespace" in patch and patch["namespace"] is None:
        raise HTTPException(status_code=422, detail="namespace cannot be null")
    if "name" in patch:
        patch["name"] = (patch.get("name") or "").strip()
        if not patch["name"]:
            raise HTTPException(status_code=422, detail="name cannot be empty")
    if "description" in patch:
        patch["description"] = (patch.get("description") or "").strip() or None
    if not patch:
        return {"ok": True}

    fields = []
    params = []
    for k, v in patch.items():
        fields.append(f"{k} = %s")
        params.append(v)
    params.append(role_id)
    with get_conn() as conn:
        with conn.cursor() as cur:
            _get_role_for_write(cur, role_id)
            cur.execute(
                f"""
                UPDATE roles
                SET {', '.join(fields)}
                WHERE id = %s
                """,
                params,
            )
    return {"ok": True}


@router.delete("/{role_id}", dependencies=[Depends(require_permission("roles.delete"))])
def delete_role(role_id: str):
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                _get_role_for_write(cur, role_id)
                cur.execute("DELETE FROM role_permissions WHERE role_id = %s", (role_id,))
                cur.execute("DELETE FROM users_roles WHERE role_id = %s", (role_id,))
                cur.execute("DELETE FROM roles WHERE id = %s", (role_id,))
    return {"ok": True}


@router.post("/{role_id}/permissions", dependencies=[Depends(require_permission("roles.update"))])
def toggle_permission(role_id: str, data: RolePermissionToggle):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1 FROM roles WHERE id = %s", (role_id,))
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="role not found")
            if data.granted:
                cur.execute(
                    """
                    INSERT INTO role_permissions (role_id, permission_id)
                    VALUES (%s, %s)
                    ON CONFLICT (role_id, permission_id) DO NOTHING
                    """,
                    (role_id, data.permission_id),
                )
            else:
                cur.execute(
                    """
                    DELETE FROM role_permissions
                    WHERE role_id = %s AND permission_id = %s
                    """,
                    (role_id, data.permission_id),
                )
            cur.execute("SELECT permission_id FROM role_permissions WHERE role_id = %s", (role_id,))
            return {"role_id": role_id, "permission_ids": [str(r["permission_id"]) for r in cur.fetchall()]}
