from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Optional
from zoneinfo import ZoneInfo

from fastapi import HTTPException

# Window size in calendar days, today included.
WINDOW_DAYS = {
    "day": 1,
    "week": 7,
    "month": 30,
}


@dataclass(frozen=True)
class WindowBounds:
    current_start: datetime
    current_end: datetime
    previous_start: datetime
    previous_end: datetime


@dataclass(frozen=True)
class WindowTotal:
    total: Decimal
    order_count: int


def window_bounds(window: str, now: datetime, tz: Optional[str] = None) -> WindowBounds:
    """
    Half-open [start, end) ranges for the current window and the one right before it.

    `week` means the last 7 calendar days including today, not the calendar week.
    """
    days = WINDOW_DAYS.get((window or "").strip().lower())
    if not days:
        raise HTTPException(status_code=400, detail=f"unknown window: {window}")
    zone = ZoneInfo(tz) if tz else None
    if zone is not None:
        local_now = now.astimezone(zone) if now.tzinfo else now.replace(tzinfo=zone)
    else:
        local_now = now
    today: date = local_now.date()
    end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=local_now.tzinfo)
    start = end - timedelta(days=days)
    return WindowBounds(
        current_start=start,
        current_end=end,
        previous_start=start - timedelta(days=days),
        previous_end=start,
    )


def percentage_change(current: Decimal, previous: Decimal) -> float:
    if not previous:
        return 0.0
    return float((Decimal(current) - Decimal(previous)) / Decimal(previous) * 100)


def sum_payments(cur, start: datetime, end: datetime) -> WindowTotal:
    cur.execute(
        """
        SELECT id
        FROM orders
        WHERE created_at >= %s
          AND created_at < %s
          AND payment_status <> 'void'
        """,
        (start, end),
    )
    order_ids = [r["id"] for r in cur.fetchall()]
    if not order_ids:
        return WindowTotal(total=Decimal("0"), order_count=0)

    cur.execute(
        """
        SELECT value
        FROM orders_payments
        WHERE order_id = ANY(%s)
        """,
        (order_ids,),
    )
    total = sum((Decimal(str(r.get("value") or 0)) for r in cur.fetchall()), Decimal("0"))
    return WindowTotal(total=total, order_count=len(order_ids))


def compare_windows(cur, window: str, now: datetime, tz: Optional[str] = None) -> dict:
    b = window_bounds(window, now, tz)
    current = sum_payments(cur, b.current_start, b.current_end)
    previous = sum_payments(cur, b.previous_start, b.previous_end)
    return {
        "window": window,
        "current": current.total,
        "previous": previous.total,
        "percentage_change": percentage_change(current.total, previous.total),
        "current_orders": current.order_count,
        "previous_orders": previous.order_count,
        "current_start": b.current_start.isoformat(),
        "current_end": b.current_end.isoformat(),
        "previous_start": b.previous_start.isoformat(),
        "previous_end": b.previous_end.isoformat(),
    }
