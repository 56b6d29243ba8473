from __future__ import annotations

from typing import Annotated, Literal, Optional
from uuid import UUID

from pydantic import BeforeValidator, StringConstraints


def _to_lower_str(v):
    if v is None:
        return v
    return str(v).strip().lower()


def _to_upper_str(v):
    if v is None:
        return v
    return str(v).strip().upper()


def _strip_str(v):
    if v is None:
        return v
    return str(v).strip()


# Canonical values mirror the CHECK constraints in `backend/db/migrations/001_init.sql`.
Language = Annotated[Literal["id", "en"], BeforeValidator(_to_lower_str)]
TaxType = Annotated[Literal["percentage", "flat"], BeforeValidator(_to_lower_str)]
NotificationType = Annotated[Literal["info", "success", "warning", "error"], BeforeValidator(_to_lower_str)]


# SKU parent codes are printed on labels; keep them short and shouty.
Code = Annotated[
    str,
    BeforeValidator(_to_upper_str),
    StringConstraints(min_length=1, max_length=32, pattern=r"^[A-Z0-9][A-Z0-9_-]*$"),
]


# Permission and role namespaces are single lowercase words such as `orders` or `pos`;
# the full permission name is `<namespace>.<name>`.
Namespace = Annotated[
    str,
    BeforeValidator(_to_lower_str),
    StringConstraints(min_length=1, max_length=64, pattern=r"^[a-z][a-z0-9_]*$"),
]


Pin = Annotated[str, BeforeValidator(_strip_str), StringConstraints(min_length=4, max_length=12, pattern=r"^[0-9]+$")]


def uuid_or_none(value: Optional[str]) -> Optional[str]:
    """Canonical uuid text for `value`, or None when it isn't one."""
    raw = (value or "").strip()
    if not raw:
        return None
    try:
        return str(UUID(raw))
    except ValueError:
        return None
