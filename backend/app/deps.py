from fastapi import Header, HTTPException, Depends, Cookie
from .db import get_conn
from .permissions import AccessContext, resolve_access
from .security import hash_session_token
from datetime import datetime, timezone
from typing import Optional


SESSION_COOKIE_NAME = "urasi_session"


def _extract_session_token(authorization: Optional[str], cookie_token: Optional[str]) -> str:
    if authorization and authorization.lower().startswith("bearer "):
        return authorization.split(" ", 1)[1]
    if cookie_token:
        return cookie_token
    raise HTTPException(status_code=401, detail="missing token")


def get_session(
    authorization: Optional[str] = Header(None),
    cookie_token: Optional[str] = Cookie(None, alias=SESSION_COOKIE_NAME),
):
    token = _extract_session_token(authorization, cookie_token)
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT s.id AS session_id, s.user_id, p.email, p.active, s.expires_at, s.is_active
                FROM auth_sessions s
                JOIN profiles p ON p.id = s.user_id
                WHERE s.token = %s
                """,
                (hash_session_token(token),),
            )
            row = cur.fetchone()
            now = datetime.now(timezone.utc)
            if not row or not row["is_active"] or row["expires_at"] < now:
                raise HTTPException(status_code=401, detail="invalid token")
            if not row["active"]:
                raise HTTPException(status_code=401, detail="account disabled")
            return {
                "session_id": row["session_id"],
                "user_id": row["user_id"],
                "email": row["email"],
                "token": token,
            }


def get_current_user(session=Depends(get_session)):
    return {"user_id": session["user_id"], "email": session["email"]}


def get_access(user=Depends(get_current_user)) -> AccessContext:
    # Re-resolved on every request; there is no cache to invalidate.
    with get_conn() as conn:
        with conn.cursor() as cur:
            return resolve_access(cur, str(user["user_id"]))


def require_permission(code: str):
    def _dep(access: AccessContext = Depends(get_access)):
        if not access.has_permission(code):
            raise HTTPException(status_code=403, detail="permission denied")
        return True
    return _dep


def require_role(name: str):
    def _dep(access: AccessContext = Depends(get_access)):
        if not (access.is_admin or access.has_role(name)):
            raise HTTPException(status_code=403, detail="role required")
        return True
    return _dep


def require_admin():
    def _dep(access: AccessContext = Depends(get_access)):
        if not access.is_admin:
            raise HTTPException(status_code=403, detail="admin required")
        return True
    return _dep
