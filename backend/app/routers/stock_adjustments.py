from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from decimal import Decimal
from typing import List, Optional

from ..db import get_conn
from ..deps import get_current_user, require_permission
from ..notifications import NOTIFICATION_TYPES, create_system_notification

router = APIRouter(prefix="/stock-adjustments", tags=["stock"])

HISTORY_LIMIT = 200


class StockAdjustIn(BaseModel):
    product_id: str
    unit_id: str
    new_quantity: Decimal
    reason: str
    description: Optional[str] = None


class BulkAdjustLine(BaseModel):
    product_id: str
    unit_id: str
    new_quantity: Decimal


class BulkAdjustIn(BaseModel):
    reason: str
    lines: List[BulkAdjustLine]


def low_stock_notification(row: dict) -> Optional[dict]:
    """
    Notification payload for a stock row at or below its alert threshold, else None.
    """
    if not row.get("stock_alert_enabled"):
        return None
    qty = Decimal(str(row.get("quantity") or 0))
    low = Decimal(str(row.get("low_quantity") or 0))
    if qty > low:
        return None
    out_of_stock = qty <= 0
    product_name = row.get("product_name") or "Unknown"
    unit = row.get("unit_identifier") or "pcs"
    return {
        "title": "Product Out of Stock!" if out_of_stock else "Low Stock Warning",
        "description": f"{product_name} ({unit}) - Only {qty} left. Min: {low}",
        "type": NOTIFICATION_TYPES["OUT_OF_STOCK" if out_of_stock else "LOW_STOCK"],
        "url": "/products/stock-adjustment",
        "source": "stock",
        "entity_type": "product",
        "entity_id": str(row["product_id"]),
        "identifier": f"low_stock_{row['product_id']}_{row['unit_id']}",
    }


def adjust_stock(cur, user_id: str, product_id: str, unit_id: str, new_quantity: Decimal, reason: str, description: Optional[str] = None) -> dict:
    """
    Set the on-hand quantity of one product/unit and record the change in products_history.
    """
    if new_quantity < 0:
        raise HTTPException(status_code=400, detail="new_quantity must be >= 0")
    cur.execute(
        """
        SELECT quantity
        FROM product_unit_quantities
        WHERE product_id = %s AND unit_id = %s
        FOR UPDATE
        """,
        (product_id, unit_id),
    )
    row = cur.fetchone()
    before = Decimal(str((row or {}).get("quantity") or 0))

    cur.execute(
        """
        INSERT INTO product_unit_quantities (id, product_id, unit_id, quantity)
        VALUES (gen_random_uuid(), %s, %s, %s)
        ON CONFLICT (product_id, unit_id) DO UPDATE SET quantity = EXCLUDED.quantity, updated_at = now()
        RETURNING product_id, unit_id, quantity, low_quantity, stock_alert_enabled
        """,
        (product_id, unit_id, new_quantity),
    )
    stock = cur.fetchone()

    cur.execute(
        """
        INSERT INTO products_history
          (id, product_id, unit_id, operation_type, before_quantity, quantity, after_quantity, description, author)
        VALUES
          (gen_random_uuid(), %s, %s, 'adjustment', %s, %s, %s, %s, %s)
        RETURNING id, product_id, unit_id, operation_type, before_quantity, quantity, after_quantity,
                  description, author, created_at
        """,
        (
            product_id,
            unit_id,
            before,
            new_quantity - before,
            new_quantity,
            (description or "").strip() or reason,
            user_id,
        ),
    )
    history = cur.fetchone()

    cur.execute(
        """
        SELECT p.name AS product_name, u.identifier AS unit_identifier
        FROM products p
        LEFT JOIN units u ON u.id = %s
        WHERE p.id = %s
        """,
        (unit_id, product_id),
    )
    names = cur.fetchone() or {}
    payload = low_stock_notification({**(stock or {}), **names})
    if payload:
        create_system_notification(cur, user_id, **payload)
    return history


@router.get("", dependencies=[Depends(require_permission("stock.read"))])
def list_adjustments():
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT h.id, h.product_id, h.unit_id, h.before_quantity, h.quantity, h.after_quantity,
                       h.description, h.author, h.created_at,
                       json_build_object('id', p.id, 'name', p.name, 'sku', p.sku) AS product,
                       CASE WHEN u.id IS NULL THEN NULL
                            ELSE json_build_object('id', u.id, 'identifier', u.identifier)
                       END AS unit
                FROM products_history h
                JOIN products p ON p.id = h.product_id
                LEFT JOIN units u ON u.id = h.unit_id
                WHERE h.operation_type = 'adjustment'
                ORDER BY h.created_at DESC
                LIMIT %s
                """,
                (HISTORY_LIMIT,),
            )
            return {"adjustments": cur.fetchall()}


@router.post("", dependencies=[Depends(require_permission("stock.adjust"))])
def create_adjustment(data: StockAdjustIn, user=Depends(get_current_user)):
    reason = (data.reason or "").strip()
    if not reason:
        raise HTTPException(status_code=422, detail="reason is required")
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                history = adjust_stock(
                    cur, user["user_id"], data.product_id, data.unit_id, data.new_quantity, reason, data.description
                )
    return {"adjustment": history}


@router.post("/bulk", dependencies=[Depends(require_permission("stock.adjust"))])
def bulk_adjust(data: BulkAdjustIn, user=Depends(get_current_user)):
    reason = (data.reason or "").strip()
    if not reason:
        raise HTTPException(status_code=422, detail="reason is required")
    if not data.lines:
        raise HTTPException(status_code=400, detail="lines is required")
    # All lines commit together or not at all.
    with get_conn() as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                out = [
                    adjust_stock(cur, user["user_id"], line.product_id, line.unit_id, line.new_quantity, reason)
                    for line in data.lines
                ]
    return {"adjustments": out}
