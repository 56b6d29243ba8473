from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from typing import Optional
from psycopg.errors import UniqueViolation  # type: ignore

from ..db import get_conn
from ..deps import get_current_user, require_permission
from ..validation import Code

router = APIRouter(prefix="/sku-parents", tags=["sku-parents"])


class SkuParentIn(BaseModel):
    code: Code
    name: str
    description: Optional[str] = None


class SkuParentUpdate(BaseModel):
    code: Optional[Code] = None
    name: Optional[str] = None
    description: Optional[str] = None


@router.get("", dependencies=[Depends(require_permission("sku_parents.read"))])
def list_sku_parents():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, code, name, description, author, created_at, updated_at
                FROM sku_parents
                ORDER BY code
                """
            )
            return {"sku_parents": cur.fetchall()}


@router.post("", dependencies=[Depends(require_permission("sku_parents.create"))])
def create_sku_parent(data: SkuParentIn, user=Depends(get_current_user)):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="name is required")
    with get_conn() as conn:
        with conn.cursor() as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO sku_parents (id, code, name, description, author)
                    VALUES (gen_random_uuid(), %s, %s, %s, %s)
                    RETURNING id, code, name, description, author, created_at, updated_at
                    """,
                    (data.code, name, (data.description or "").strip() or None, user["user_id"]),
                )
            except UniqueViolation:
                raise HTTPException(status_code=409, detail="code already exists")
            return {"sku_parent": cur.fetchone()}


@router.patch("/{sku_parent_id}", dependencies=[Depends(require_permission("sku_parents.update"))])
def update_sku_parent(sku_parent_id: str, data: SkuParentUpdate):
    patch = {k: getattr(data, k) for k in getattr(data, "model_fields_set", set())}
    if "code" in patch and not patch["code"]:
        raise HTTPException(status_code=422, detail="code cannot be empty")
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
    params.append(sku_parent_id)
    with get_conn() as conn:
        with conn.cursor() as cur:
            try:
                cur.execute(
                    f"""
                    UPDATE sku_parents
                    SET {', '.join(fields)}, updated_at = now()
                    WHERE id = %s
                    RETURNING id
                    """,
                    params,
                )
            except UniqueViolation:
                raise HTTPException(status_code=409, detail="code already exists")
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="sku parent not found")
    return {"ok": True}


@router.delete("/{sku_parent_id}", dependencies=[Depends(require_permission("sku_parents.delete"))])
def delete_sku_parent(sku_parent_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT COUNT(*)::int AS n
                FROM products
                WHERE sku_parent_id = %s
                """,
                (sku_parent_id,),
            )
            n = int((cur.fetchone() or {}).get("n") or 0)
            if n:
                raise HTTPException(status_code=409, detail=f"sku parent is used by {n} product(s)")
            cur.execute("DELETE FROM sku_parents WHERE id = %s", (sku_parent_id,))
    return {"ok": True}
