import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import NamedTuple, Optional
from passlib.context import CryptContext

# Staff passwords and POS manager PINs share one bcrypt policy; older hashes are
# upgraded on the next successful login.
_crypt = CryptContext(schemes=["bcrypt"], deprecated="auto")

SESSION_TOKEN_PREFIX = "sha256:"


class IssuedSession(NamedTuple):
    token: str
    token_hash: str
    expires_at: datetime


def _verify(secret: str, hashed: Optional[str]) -> bool:
    if not secret or not hashed:
        return False
    try:
        return _crypt.verify(secret, hashed)
    except ValueError:
        # Unrecognised hash format in the profile row.
        return False


def hash_password(password: str) -> str:
    return _crypt.hash(password)


def verify_password(password: str, hashed: Optional[str]) -> bool:
    return _verify(password, hashed)


def needs_rehash(hashed: Optional[str]) -> bool:
    if not hashed:
        return False
    return _crypt.needs_update(hashed)


def hash_session_token(token: str) -> str:
    return SESSION_TOKEN_PREFIX + hashlib.sha256(token.encode("utf-8")).hexdigest()


def issue_session(days: int, now: Optional[datetime] = None) -> IssuedSession:
    """
    New opaque session token for the dashboard.

    Only `token_hash` goes into auth_sessions; the raw token is returned to the
    client once (body + cookie) and never stored.
    """
    token = secrets.token_urlsafe(32)
    started = now or datetime.now(timezone.utc)
    return IssuedSession(token, hash_session_token(token), started + timedelta(days=max(1, days)))


def hash_pin(pin: str) -> str:
    return _crypt.hash(pin)


def verify_pin(pin: str, hashed: Optional[str]) -> bool:
    # PINs are digits only; anything else can never match a stored PIN.
    if not (pin or "").isdigit():
        return False
    return _verify(pin, hashed)
