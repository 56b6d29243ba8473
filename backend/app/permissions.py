"""
Role -> permission resolution.

A user is granted the union of the permissions attached to every role assigned
through `users_roles`. Admins (profile role `admin`, or an assigned role named
`admin`) pass every check.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

ADMIN_ROLE = "admin"


@dataclass(frozen=True)
class AccessContext:
    user_id: str
    profile_role: Optional[str] = None
    roles: tuple[dict[str, Any], ...] = ()
    permissions: tuple[dict[str, Any], ...] = ()
    _names: frozenset[str] = field(default=frozenset(), repr=False, compare=False)

    @classmethod
    def build(
        cls,
        user_id: str,
        profile_role: Optional[str],
        roles: Iterable[Mapping[str, Any]],
        permissions: Iterable[Mapping[str, Any]],
    ) -> "AccessContext":
        role_list = tuple(dict(r) for r in roles if r)
        perm_list = tuple(_dedupe_permissions(permissions))
        names: set[str] = set()
        for p in perm_list:
            name = str(p.get("name") or "").strip()
            ns = str(p.get("namespace") or "").strip()
            if name:
                names.add(name)
                if ns:
                    names.add(f"{ns}.{name}")
        return cls(
            user_id=str(user_id),
            profile_role=(profile_role or None),
            roles=role_list,
            permissions=perm_list,
            _names=frozenset(names),
        )

    @property
    def is_admin(self) -> bool:
        if (self.profile_role or "").strip().lower() == ADMIN_ROLE:
            return True
        return self.has_role(ADMIN_ROLE)

    @property
    def role_names(self) -> list[str]:
        return [str(r.get("name")) for r in self.roles if r.get("name")]

    @property
    def permission_names(self) -> list[str]:
        out = []
        for p in self.permissions:
            ns = str(p.get("namespace") or "").strip()
            name = str(p.get("name") or "").strip()
            if name:
                out.append(f"{ns}.{name}" if ns else name)
        return sorted(out)

    def has_role(self, role: str) -> bool:
        return any(r.get("name") == role for r in self.roles)

    def has_permission(self, permission: str) -> bool:
        if self.is_admin:
            return True
        return permission in self._names

    def can(self, action: str, resource: str) -> bool:
        return self.has_permission(f"{resource}.{action}") or self.is_admin

    def check_many(self, checks: Mapping[str, str]) -> dict[str, bool]:
        return {key: self.has_permission(perm) for key, perm in checks.items()}

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "role": self.profile_role,
            "is_admin": self.is_admin,
            "roles": [{"id": r.get("id"), "name": r.get("name"), "namespace": r.get("namespace")} for r in self.roles],
            "permissions": self.permission_names,
        }


def _dedupe_permissions(permissions: Iterable[Mapping[str, Any]]) -> list[dict[str, Any]]:
    # Same permission can arrive through several roles; keep the first by id.
    seen: dict[str, dict[str, Any]] = {}
    for p in permissions:
        if not p:
            continue
        key = str(p.get("id") or f"{p.get('namespace')}.{p.get('name')}")
        if key not in seen:
            seen[key] = dict(p)
    return list(seen.values())


def resolve_access(cur, user_id: str) -> AccessContext:
    cur.execute("SELECT id, role FROM profiles WHERE id = %s", (user_id,))
    profile = cur.fetchone()
    profile_role = (profile or {}).get("role")

    cur.execute(
        """
        SELECT r.id, r.name, r.namespace, r.description, r.locked
        FROM users_roles ur
        JOIN roles r ON r.id = ur.role_id
        WHERE ur.user_id = %s
        ORDER BY r.name
        """,
        (user_id,),
    )
    roles = cur.fetchall()

    permissions: list[dict[str, Any]] = []
    if roles:
        cur.execute(
            """
            SELECT p.id, p.namespace, p.name, p.description
            FROM role_permissions rp
            JOIN permissions p ON p.id = rp.permission_id
            WHERE rp.role_id = ANY(%s)
            ORDER BY p.namespace, p.name
            """,
            ([r["id"] for r in roles],),
        )
        permissions = cur.fetchall()

    return AccessContext.build(user_id, profile_role, roles, permissions)
