from datetime import datetime, timedelta, timezone

import pytest
from fastapi import HTTPException
from psycopg.errors import UniqueViolation

from backend.app import deps
from backend.app.routers import auth as auth_router
from backend.app.security import hash_session_token


class _DummyCursor:
    def __init__(self, row=None, raise_on_execute=None):
        self._row = row
        self._raise = raise_on_execute
        self.executed: list[tuple[str, tuple]] = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def execute(self, sql, params=None):
        self.executed.append((sql, tuple(params or ())))
        if self._raise is not None:
            raise self._raise

    def fetchone(self):
        return self._row


class _DummyConn:
    def __init__(self, cursor):
        self._cursor = cursor

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False

    def cursor(self):
        return self._cursor


def _patch_db(monkeypatch, module, cur):
    conn = _DummyConn(cur)
    monkeypatch.setattr(module, "get_conn", lambda: conn)
    return cur


def _session_row(**overrides):
    row = {
        "session_id": "s1",
        "user_id": "u1",
        "email": "kasir@urasi.local",
        "active": True,
        "is_active": True,
        "expires_at": datetime.now(timezone.utc) + timedelta(days=1),
    }
    row.update(overrides)
    return row


def test_session_lookup_uses_hashed_token(monkeypatch):
    cur = _patch_db(monkeypatch, deps, _DummyCursor(_session_row()))
    out = deps.get_session(authorization="Bearer tok", cookie_token=None)
    assert out["user_id"] == "u1"
    assert cur.executed[0][1] == (hash_session_token("tok"),)


def test_expired_session_is_401(monkeypatch):
    _patch_db(monkeypatch, deps, _DummyCursor(_session_row(expires_at=datetime.now(timezone.utc) - timedelta(seconds=1))))
    with pytest.raises(HTTPException) as exc_info:
        deps.get_session(authorization=None, cookie_token="tok")
    assert exc_info.value.status_code == 401


def test_disabled_account_is_401(monkeypatch):
    _patch_db(monkeypatch, deps, _DummyCursor(_session_row(active=False)))
    with pytest.raises(HTTPException) as exc_info:
        deps.get_session(authorization="Bearer tok", cookie_token=None)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "account disabled"


def test_login_with_unknown_email_is_401(monkeypatch):
    _patch_db(monkeypatch, auth_router, _DummyCursor(None))
    with pytest.raises(HTTPException) as exc_info:
        auth_router.login(auth_router.LoginIn(email="X@Y.Z", password="pw"))
    assert exc_info.value.status_code == 401


def test_register_creates_cashier(monkeypatch):
    cur = _patch_db(
        monkeypatch,
        auth_router,
        _DummyCursor({"id": "u9", "email": "baru@urasi.local", "username": "baru", "role": "cashier", "active": True}),
    )
    out = auth_router.register(auth_router.RegisterIn(email=" Baru@Urasi.local ", password="pw", username="baru"))
    assert out["profile"]["role"] == "cashier"
    _, params = cur.executed[0]
    assert params[0] == "baru@urasi.local"
    assert params[3] == "cashier"


def test_register_duplicate_email_is_409(monkeypatch):
    _patch_db(monkeypatch, auth_router, _DummyCursor(raise_on_execute=UniqueViolation("duplicate key")))
    with pytest.raises(HTTPException) as exc_info:
        auth_router.register(auth_router.RegisterIn(email="a@b.c", password="pw", username="a"))
    assert exc_info.value.status_code == 409


def test_role_flags():
    assert auth_router._role_flags("Admin") == {"is_admin": True, "is_cashier": False, "is_customer": False}
    assert auth_router._role_flags(None) == {"is_admin": False, "is_cashier": False, "is_customer": False}
