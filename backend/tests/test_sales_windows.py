from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from fastapi import HTTPException

from backend.app.sales_windows import compare_windows, percentage_change, sum_payments, window_bounds


class _ScriptedCursor:
    def __init__(self, results):
        self._results = list(results)
        self._current = []
        self.executed: list[tuple[str, tuple]] = []

    def execute(self, sql, params=None):
        self.executed.append((sql, tuple(params or ())))
        self._current = self._results.pop(0) if self._results else []

    def fetchone(self):
        return self._current[0] if self._current else None

    def fetchall(self):
        return list(self._current)


NOW = datetime(2026, 3, 10, 15, 0, tzinfo=timezone.utc)


def test_week_window_covers_last_seven_days_including_today():
    b = window_bounds("week", NOW, "UTC")
    assert b.current_end.isoformat() == "2026-03-11T00:00:00+00:00"
    assert b.current_start.isoformat() == "2026-03-04T00:00:00+00:00"
    assert b.previous_end == b.current_start
    assert b.previous_start.isoformat() == "2026-02-25T00:00:00+00:00"


def test_day_window_is_cut_on_local_calendar_day():
    # 20:00 UTC is already the next day in Jakarta (UTC+7).
    b = window_bounds("day", datetime(2026, 3, 10, 20, 0, tzinfo=timezone.utc), "Asia/Jakarta")
    assert b.current_start.isoformat() == "2026-03-11T00:00:00+07:00"
    assert b.current_end - b.current_start == timedelta(days=1)
    assert b.previous_start.isoformat() == "2026-03-10T00:00:00+07:00"


def test_month_window_is_thirty_days():
    b = window_bounds("month", NOW, "UTC")
    assert b.current_end - b.current_start == timedelta(days=30)
    assert b.previous_end - b.previous_start == timedelta(days=30)


def test_unknown_window_is_rejected():
    with pytest.raises(HTTPException) as exc_info:
        window_bounds("year", NOW, "UTC")
    assert exc_info.value.status_code == 400


def test_percentage_change_is_zero_when_previous_is_zero():
    assert percentage_change(Decimal("150"), Decimal("0")) == 0.0
    assert percentage_change(Decimal("0"), Decimal("0")) == 0.0


def test_percentage_change_handles_decrease():
    assert percentage_change(Decimal("50"), Decimal("100")) == -50.0


def test_sum_payments_without_orders_skips_payment_query():
    cur = _ScriptedCursor([[]])
    out = sum_payments(cur, NOW - timedelta(days=1), NOW)
    assert out.total == Decimal("0")
    assert out.order_count == 0
    assert len(cur.executed) == 1
    assert "payment_status <> 'void'" in cur.executed[0][0]


def test_compare_windows_week_example():
    cur = _ScriptedCursor(
        [
            [{"id": "o1"}, {"id": "o2"}],
            [{"value": Decimal("100")}, {"value": Decimal("50")}],
            [{"id": "o3"}],
            [{"value": Decimal("120")}],
        ]
    )
    out = compare_windows(cur, "week", NOW, "UTC")
    assert out["current"] == Decimal("150")
    assert out["previous"] == Decimal("120")
    assert out["percentage_change"] == 25.0
    assert out["current_orders"] == 2
    assert out["previous_orders"] == 1
    # Payments are looked up only for the orders found in each window.
    assert cur.executed[1][1] == (["o1", "o2"],)
    assert cur.executed[3][1] == (["o3"],)
