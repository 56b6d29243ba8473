from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from decimal import Decimal
from typing import Optional

from ..db import get_conn
from ..deps import get_current_user, require_permission
from ..uom import convert, norm_unit_identifier
from ..validation import uuid_or_none

router = APIRouter(prefix="/units", tags=["units"])


class UnitIn(BaseModel):
    name: str
    identifier: str
    description: Optional[str] = None
    value: Decimal = Decimal("1")
    base_unit: bool = False
    group_id: Optional[str] = None


class UnitUpdate(BaseModel):
    name: Optional[str] = None
    identifier: Optional[str] = None
    description: Optional[str] = None
    value: Optional[Decimal] = None
    base_unit: Optional[bool] = None
    group_id: Optional[str] = None


class UnitGroupIn(BaseModel):
    name: str
    description: Optional[str] = None


class UnitGroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class ConvertIn(BaseModel):
    value: Decimal
    from_unit: str
    to_unit: str


def _clean_patch(data: BaseModel) -> dict:
    patch = {k: getattr(data, k) for k in getattr(data, "model_fields_set", set())}
    if "base_unit" in patch and patch["base_unit"] is None:
        raise HTTPException(status_code=422, detail="base_unit cannot be null")
    if "name" in patch:
        patch["name"] = (patch.get("name") or "").strip()
        if not patch["name"]:
            raise HTTPException(status_code=422, detail="name cannot be empty")
    if "identifier" in patch:
        patch["identifier"] = norm_unit_identifier(patch.get("identifier"))
        if not patch["identifier"]:
            raise HTTPException(status_code=422, detail="identifier cannot be empty")
    if "value" in patch and (patch["value"] is None or patch["value"] <= 0):
        raise HTTPException(status_code=422, detail="value must be > 0")
    if "description" in patch:
        patch["description"] = (patch.get("description") or "").strip() or None
    return patch


def _update(table: str, row_id: str, patch: dict):
    if not patch:
        return {"ok": True}
    fields = []
    params = []
    for k, v in patch.items():
        fields.append(f"{k} = %s")
        params.append(v)
    params.append(row_id)
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                f"""
                UPDATE {table}
                SET {', '.join(fields)}
                WHERE id = %s
                RETURNING id
                """,
                params,
            )
            if not cur.fetchone():
                raise HTTPException(status_code=404, detail="not found")
    return {"ok": True}


@router.get("", dependencies=[Depends(require_permission("units.read"))])
def list_units():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT u.id, u.name, u.identifier, u.description, u.value, u.base_unit,
                       u.group_id, u.author, u.created_at,
                       CASE WHEN g.id IS NULL THEN NULL
                            ELSE json_build_object('id', g.id, 'name', g.name, 'description', g.description)
                       END AS "group"
                FROM units u
                LEFT JOIN units_groups g ON g.id = u.group_id
                ORDER BY u.name
                """
            )
            return {"units": cur.fetchall()}


@router.post("", dependencies=[Depends(require_permission("units.create"))])
def create_unit(data: UnitIn, user=Depends(get_current_user)):
    name = (data.name or "").strip()
    identifier = norm_unit_identifier(data.identifier)
    if not name or not identifier:
        raise HTTPException(status_code=422, detail="name and identifier are required")
    if data.value <= 0:
        raise HTTPException(status_code=422, detail="value must be > 0")
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO units (id, name, identifier, description, value, base_unit, group_id, author)
                VALUES (gen_random_uuid(), %s, %s, %s, %s, %s, %s, %s)
                RETURNING id
                """,
                (
                    name,
                    identifier,
                    (data.description or "").strip() or None,
                    data.value,
                    data.base_unit,
                    data.group_id,
                    user["user_id"],
                ),
            )
            return {"id": cur.fetchone()["id"]}


@router.patch("/{unit_id}", dependencies=[Depends(require_permission("units.update"))])
def update_unit(unit_id: str, data: UnitUpdate):
    return _update("units", unit_id, _clean_patch(data))


@router.delete("/{unit_id}", dependencies=[Depends(require_permission("units.delete"))])
def delete_unit(unit_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM units WHERE id = %s", (unit_id,))
    return {"ok": True}


@router.post("/convert", dependencies=[Depends(require_permission("units.read"))])
def convert_value(data: ConvertIn):
    from_id = uuid_or_none(data.from_unit)
    to_id = uuid_or_none(data.to_unit)
    # An id that isn't a uuid can never name a unit row.
    if not from_id or not to_id:
        return {"value": convert(data.value, {}, data.from_unit, data.to_unit)}
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                "SELECT id, value FROM units WHERE id = ANY(%s::uuid[])",
                ([from_id, to_id],),
            )
            units_by_id = {str(r["id"]): r for r in cur.fetchall()}
    return {"value": convert(data.value, units_by_id, from_id, to_id)}


@router.get("/groups", dependencies=[Depends(require_permission("units.read"))])
def list_groups():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, name, description, author, created_at
                FROM units_groups
                ORDER BY name
                """
            )
            return {"groups": cur.fetchall()}


@router.post("/groups", dependencies=[Depends(require_permission("units.create"))])
def create_group(data: UnitGroupIn, user=Depends(get_current_user)):
    name = (data.name or "").strip()
    if not name:
        raise HTTPException(status_code=422, detail="name is required")
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                INSERT INTO units_groups (id, name, description, author)
                VALUES (gen_random_uuid(), %s, %s, %s)
                RETURNING id
                """,
                (name, (data.description or "").strip() or None, user["user_id"]),
            )
            return {"id": cur.fetchone()["id"]}


@router.patch("/groups/{group_id}", dependencies=[Depends(require_permission("units.update"))])
def update_group(group_id: str, data: UnitGroupUpdate):
    return _update("units_groups", group_id, _clean_patch(data))


@router.delete("/groups/{group_id}", dependencies=[Depends(require_permission("units.delete"))])
def delete_group(group_id: str):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute("DELETE FROM units_groups WHERE id = %s", (group_id,))
    return {"ok": True}
