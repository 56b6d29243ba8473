import pytest
from fastapi import HTTPException

from backend.app import deps
from backend.app.permissions import AccessContext, resolve_access


class _ScriptedCursor:
    """Returns one canned result set per execute() call, in order."""

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


CASHIER_PERMS = [
    {"id": "p1", "namespace": "orders", "name": "create"},
    {"id": "p2", "namespace": "orders", "name": "read"},
]


def _cashier():
    return AccessContext.build(
        "u1",
        "cashier",
        [{"id": "r1", "name": "cashier", "namespace": "pos"}],
        CASHIER_PERMS,
    )


def test_cashier_can_create_orders_but_not_delete_products():
    access = _cashier()
    assert access.can("create", "orders") is True
    assert access.can("delete", "products") is False
    assert access.has_permission("orders.read") is True
    assert access.has_permission("create") is True
    assert access.is_admin is False


def test_admin_profile_short_circuits_every_check():
    access = AccessContext.build("u2", "admin", [], [])
    assert access.is_admin is True
    assert access.has_permission("anything.at_all") is True
    assert access.can("delete", "products") is True


def test_assigned_admin_role_counts_as_admin():
    access = AccessContext.build("u3", "cashier", [{"id": "r9", "name": "admin"}], [])
    assert access.is_admin is True
    assert access.has_role("admin") is True


def test_permissions_from_several_roles_are_deduplicated():
    access = AccessContext.build(
        "u4",
        "cashier",
        [{"id": "r1", "name": "cashier"}, {"id": "r2", "name": "stock"}],
        CASHIER_PERMS + [CASHIER_PERMS[0], {"id": "p3", "namespace": "stock", "name": "adjust"}],
    )
    assert access.permission_names == ["orders.create", "orders.read", "stock.adjust"]


def test_check_many_maps_keys_to_results():
    out = _cashier().check_many({"canCreate": "orders.create", "canDelete": "products.delete"})
    assert out == {"canCreate": True, "canDelete": False}


def test_resolve_access_loads_profile_roles_and_permissions():
    cur = _ScriptedCursor(
        [
            [{"id": "u1", "role": "cashier"}],
            [{"id": "r1", "name": "cashier", "namespace": "pos"}],
            CASHIER_PERMS,
        ]
    )
    access = resolve_access(cur, "u1")
    assert access.role_names == ["cashier"]
    assert access.can("create", "orders") is True
    assert len(cur.executed) == 3
    _, params = cur.executed[2]
    assert params == (["r1"],)


def test_resolve_access_without_roles_skips_permission_query():
    cur = _ScriptedCursor([[{"id": "u1", "role": "customer"}], []])
    access = resolve_access(cur, "u1")
    assert access.permissions == ()
    assert len(cur.executed) == 2
    assert access.has_permission("orders.read") is False


def test_require_permission_denies_with_403():
    dep = deps.require_permission("products.delete")
    with pytest.raises(HTTPException) as exc_info:
        dep(access=_cashier())
    assert exc_info.value.status_code == 403


def test_require_permission_allows_granted_permission():
    dep = deps.require_permission("orders.create")
    assert dep(access=_cashier()) is True


def test_require_role_and_admin_guards():
    assert deps.require_role("cashier")(access=_cashier()) is True
    with pytest.raises(HTTPException) as exc_info:
        deps.require_role("manager")(access=_cashier())
    assert exc_info.value.status_code == 403
    with pytest.raises(HTTPException) as exc_info:
        deps.require_admin()(access=_cashier())
    assert exc_info.value.status_code == 403
    admin = AccessContext.build("u2", "admin", [], [])
    assert deps.require_admin()(access=admin) is True
    assert deps.require_role("manager")(access=admin) is True


def test_missing_token_is_401():
    with pytest.raises(HTTPException) as exc_info:
        deps._extract_session_token(None, None)
    assert exc_info.value.status_code == 401


def test_bearer_header_wins_over_cookie():
    assert deps._extract_session_token("Bearer abc", "cookie") == "abc"
    assert deps._extract_session_token(None, "cookie") == "cookie"
