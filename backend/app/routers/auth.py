from fastapi import APIRouter, HTTPException, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from typing import Optional
from psycopg.errors import UniqueViolation  # type: ignore
from ..config import settings
from ..db import get_conn
from ..deps import get_session, get_access, SESSION_COOKIE_NAME
from ..permissions import AccessContext, resolve_access
from ..security import hash_password, verify_password, needs_rehash, issue_session

router = APIRouter(prefix="/auth", tags=["auth"])
DEFAULT_SIGNUP_ROLE = "cashier"


class LoginIn(BaseModel):
    email: str
    password: str


class RegisterIn(BaseModel):
    email: str
    password: str
    username: str


class AccessCheckIn(BaseModel):
    # UI key -> permission name, e.g. {"canDelete": "products.delete"}
    checks: dict[str, str]


def _role_flags(role: Optional[str]) -> dict:
    r = (role or "").strip().lower()
    return {
        "is_admin": r == "admin",
        "is_cashier": r == "cashier",
        "is_customer": r == "customer",
    }


@router.post("/login")
def login(data: LoginIn):
    email = (data.email or "").strip().lower()
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, email, hashed_password, active
                FROM profiles
                WHERE email = %s
                """,
                (email,),
            )
            user = cur.fetchone()
            if not user or not user["active"]:
                raise HTTPException(status_code=401, detail="invalid credentials")
            if not verify_password(data.password, user["hashed_password"]):
                raise HTTPException(status_code=401, detail="invalid credentials")

            if needs_rehash(user["hashed_password"]):
                cur.execute(
                    """
                    UPDATE profiles
                    SET hashed_password = %s
                    WHERE id = %s
                    """,
                    (hash_password(data.password), user["id"]),
                )

            issued = issue_session(settings.session_days)
            cur.execute(
                """
                INSERT INTO auth_sessions (id, user_id, token, expires_at)
                VALUES (gen_random_uuid(), %s, %s, %s)
                """,
                (user["id"], issued.token_hash, issued.expires_at),
            )

    resp = JSONResponse({"token": issued.token, "user_id": str(user["id"])})
    secure = settings.env not in {"local", "dev"}
    resp.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=issued.token,
        httponly=True,
        samesite="lax",
        secure=secure,
        max_age=settings.session_days * 24 * 60 * 60,
        path="/",
    )
    return resp


@router.post("/register")
def register(data: RegisterIn):
    email = (data.email or "").strip().lower()
    username = (data.username or "").strip()
    if not email:
        raise HTTPException(status_code=422, detail="email is required")
    if not data.password:
        raise HTTPException(status_code=422, detail="password is required")
    if not username:
        raise HTTPException(status_code=422, detail="username is required")
    with get_conn() as conn:
        with conn.cursor() as cur:
            try:
                cur.execute(
                    """
                    INSERT INTO profiles (id, email, username, hashed_password, role, active)
                    VALUES (gen_random_uuid(), %s, %s, %s, %s, true)
                    RETURNING id, email, username, role, active, created_at
                    """,
                    (email, username, hash_password(data.password), DEFAULT_SIGNUP_ROLE),
                )
            except UniqueViolation:
                raise HTTPException(status_code=409, detail="email already exists")
            return {"profile": cur.fetchone()}


@router.get("/me")
def me(session=Depends(get_session)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                SELECT id, email, username, full_name, avatar_url, role, active, created_at, updated_at
                FROM profiles
                WHERE id = %s
                """,
                (session["user_id"],),
            )
            profile = cur.fetchone()
            if not profile:
                raise HTTPException(status_code=404, detail="user not found")
            access = resolve_access(cur, str(session["user_id"]))
    return {
        "user": {"id": session["user_id"], "email": session["email"]},
        "profile": profile,
        **_role_flags(profile.get("role")),
        # An assigned `admin` role counts too, not only the profile column.
        "is_admin": access.is_admin,
        "roles": access.to_dict()["roles"],
        "permissions": access.permission_names,
    }


@router.get("/access")
def my_access(access: AccessContext = Depends(get_access)):
    return access.to_dict()


@router.post("/access/check")
def check_access(data: AccessCheckIn, access: AccessContext = Depends(get_access)):
    return {"results": access.check_many(data.checks)}


@router.post("/logout")
def logout(session=Depends(get_session)):
    with get_conn() as conn:
        with conn.cursor() as cur:
            cur.execute(
                """
                UPDATE auth_sessions
                SET is_active = false
                WHERE id = %s
                """,
                (session["session_id"],),
            )
    resp = JSONResponse({"ok": True})
    resp.delete_cookie(key=SESSION_COOKIE_NAME, path="/")
    return resp
