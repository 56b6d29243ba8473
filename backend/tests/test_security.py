from datetime import datetime, timedelta, timezone

from backend.app.security import (
    hash_password,
    hash_pin,
    hash_session_token,
    issue_session,
    needs_rehash,
    verify_password,
    verify_pin,
)


def test_session_token_is_hashed_with_prefix():
    h = hash_session_token("abc")
    assert h.startswith("sha256:")
    assert h == hash_session_token("abc")
    assert h != hash_session_token("abd")


def test_password_hash_roundtrip():
    h = hash_password("s3cret")
    assert verify_password("s3cret", h) is True
    assert verify_password("wrong", h) is False
    assert verify_password("s3cret", None) is False


def test_pin_hash_roundtrip():
    h = hash_pin("4321")
    assert h != "4321"
    assert verify_pin("4321", h) is True
    assert verify_pin("1234", h) is False
    assert verify_pin("4321", None) is False


def test_pin_with_non_digits_never_matches():
    h = hash_pin("4321")
    assert verify_pin("43a1", h) is False
    assert verify_pin("", h) is False


def test_malformed_stored_hash_is_a_mismatch():
    assert verify_password("s3cret", "not-a-bcrypt-hash") is False
    assert needs_rehash(None) is False


def test_issued_session_stores_only_the_hash():
    now = datetime(2026, 1, 1, 8, 0, tzinfo=timezone.utc)
    issued = issue_session(7, now=now)
    assert issued.expires_at == now + timedelta(days=7)
    assert issued.token_hash == hash_session_token(issued.token)
    assert issued.token not in issued.token_hash
    assert issue_session(7, now=now).token != issued.token


def test_issued_session_lasts_at_least_a_day():
    now = datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert issue_session(0, now=now).expires_at == now + timedelta(days=1)
