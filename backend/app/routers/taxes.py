from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from decimal import Decimal
from typing import Any, Mapping, Optional

from ..db import get_conn
from ..deps import get_current_user, require_permission
from ..validation import TaxType, uuid_or_none

router = APIRouter(prefix="/taxes", tags=["taxes"])


class TaxIn(BaseModel):
    name: str
    rate: Optional[Decimal] = None
    type: TaxType = "percentage"
    description: Optional[str] = None


class TaxUpdate(BaseModel):
    name: Optional[str] = None
    rate: Optional[Decimal] = None
    type: Optional[TaxType] = None
    description: Optional[str] = None


class TaxGroupIn(BaseModel):
    name: str
    description: Optional[str] = None
    tax_ids: list[str] = []


class TaxGroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tax_ids: Optional[list[str]] = None


class CalculateIn(BaseModel):
    amount: Decimal
    tax_id: str


def calculate_tax(amount, tax: Optional[Mapping[str, Any]]) -> Decimal:
    if not tax or tax.get("rate") is None:
        return Decimal("0")
    rate = Decimal(str(tax["rate"]))
    if (tax.get("type") or "").strip().lower() == "percentage":
        return Decimal(str(amount)) * rate / Decimal("100")
    return rate


def _patch(data: BaseModel) -> dict:
    patch = {k: getattr(data, k) for k in getattr(data, "model_fields_set", set())}
    if "type" in patch and patch["type"] is None:
        raise HTTPException(status_code=422, detail="type cannot be null")
    if "name" in patch:
        patch["name"] = (patch.get("name") or "").strip()
        if not patch["name"]:
            raise HTTPException(status_code=422, detail="name cannot be empty")
    if "description" in patch:
        patch["description"] = (patch.get("description") or "").strip() or None
    if patch.get("rate") is not None and patch["rate"] < 0:
        raise HTTPException(status_code=422, detail="rate must be >= 0")
    return patch


@router.get("", dependencies=[Depends(require_permission("taxes.read"))])
def list_taxes():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, name, rate, type, description, author, created_at, updated_at
                FROM taxes
                ORDER BY name
                """
            )
            return {"taxes": cur.fetchall()}


@router.post("", dependencies=[Depends(require_permission("taxes.create"))])
def create_tax(data: TaxIn, user=Depends(get_current_user)):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="name is required")
    if data.rate is not None and data.rate < 0:
        raise HTTPException(status_code=422, detail="rate must be >= 0")
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO taxes (id, name, rate, type, description, author)
                VALUES (gen_random_uuid(), %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (name, data.rate, data.type, (data.description or "").strip() or None, user["user_id"]),
            )
            return {"id": cur.fetchone()["id"]}


@router.patch("/{tax_id}", dependencies=[Depends(require_permission("taxes.update"))])
def update_tax(tax_id: str, data: TaxUpdate):
    patch = _patch(data)
    if not patch:
        return {"ok": True}
    fields = []
    params = []
    for k, v in patch.items():
        fields.append(f"{k} = %s")
        params.append(v)
    params.append(tax_id)
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                UPDATE taxes
                SET {', '.join(fields)}, updated_at = now()
                WHERE id = %s
                RETURNING id
                """,
                params,
            )
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="tax not found")
    return {"ok": True}


@router.delete("/{tax_id}", dependencies=[Depends(require_permission("taxes.delete"))])
def delete_tax(tax_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM taxes WHERE id = %s", (tax_id,))
    return {"ok": True}


@router.post("/calculate", dependencies=[Depends(require_permission("taxes.read"))])
def calculate(data: CalculateIn):
    tax_id = uuid_or_none(data.tax_id)
    tax = None
    if tax_id:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT id, rate, type FROM taxes WHERE id = %s::uuid", (tax_id,))
                tax = cur.fetchone()
    return {"amount": data.amount, "tax": calculate_tax(data.amount, tax)}


@router.get("/groups", dependencies=[Depends(require_permission("taxes.read"))])
def list_groups():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT g.id, g.name, g.description, g.author, g.created_at,
                       COALESCE(
                         json_agg(json_build_object('id', t.id, 'name', t.name, 'rate', t.rate, 'type', t.type)
                                  ORDER BY t.name) FILTER (WHERE t.id IS NOT NULL),
                         '[]'::json
                       ) AS taxes
                FROM taxes_groups g
                LEFT JOIN taxes_groups_taxes gt ON gt.group_id = g.id
                LEFT JOIN taxes t ON t.id = gt.tax_id
                GROUP BY g.id
                ORDER BY g.name
                """
            )
            return {"groups": cur.fetchall()}


def _set_group_taxes(cur, group_id: str, tax_ids: list[str]):
    cur.execute("DELETE FROM taxes_groups_taxes WHERE group_id = %s", (group_id,))
    for tax_id in dict.fromkeys(tax_ids):
        cur.execute(
            """
            INSERT INTO taxes_groups_taxes (group_id, tax_id)
            VALUES (%s, %s)
            """,
            (group_id, tax_id),
        )


@router.post("/groups", dependencies=[Depends(require_permission("taxes.create"))])
def create_group(data: TaxGroupIn, user=Depends(get_current_user)):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="name is required")
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO taxes_groups (id, name, description, author)
                    VALUES (gen_random_uuid(), %s, %s, %s)
                    RETURNING id
                    """,
                    (name, (data.description or "").strip() or None, user["user_id"]),
                )
                group_id = cur.fetchone()["id"]
                _set_group_taxes(cur, group_id, data.tax_ids)
                return {"id": group_id}


@router.patch("/groups/{group_id}", dependencies=[Depends(require_permission("taxes.update"))])
def update_group(group_id: str, data: TaxGroupUpdate):
    patch = _patch(data)
    tax_ids = patch.pop("tax_ids", None)
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                cur.execute("SELECT 1 FROM taxes_groups WHERE id = %s", (group_id,))
                if not cur.fetchone():
                    raise HTTPException(status_code=404, detail="tax group not found")
                if patch:
                    fields = [f"{k} = %s" for k in patch]
                    cur.execute(
                        f"UPDATE taxes_groups SET {', '.join(fields)} WHERE id = %s",
                        [*patch.values(), group_id],
                    )
                if tax_ids is not None:
                    _set_group_taxes(cur, group_id, tax_ids)
    return {"ok": True}


@router.delete("/groups/{group_id}", dependencies=[Depends(require_permission("taxes.delete"))])
def delete_group(group_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM taxes_groups WHERE id = %s", (group_id,))
    return {"ok": True}
