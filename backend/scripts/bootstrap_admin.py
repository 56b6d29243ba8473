#!/usr/bin/env python3
import os
import secrets
import sys

import psycopg
from psycopg.rows import dict_row

from backend.app.security import hash_password


ADMIN_ROLE_NAME = "admin"


def _truthy(v: str) -> bool:
    return (v or "").strip().lower() in {"1", "true", "yes", "y", "on"}


def _generate_password() -> str:
    # URL-safe and copy/paste friendly.
    return secrets.token_urlsafe(16)


def ensure_admin_role(cur) -> str:
    cur.execute("SELECT id FROM roles WHERE name = %s ORDER BY created_at ASC LIMIT 1", (ADMIN_ROLE_NAME,))
    r = cur.fetchone()
    if r:
        role_id = r["id"]
    else:
        cur.execute(
            """
            INSERT INTO roles (id, name, namespace, description, locked)
            VALUES (gen_random_uuid(), %s, 'system', 'Full access', true)
            RETURNING id
            """,
            (ADMIN_ROLE_NAME,),
        )
        role_id = cur.fetchone()["id"]

    # Admin short-circuits checks anyway; the grants keep the roles screen honest.
    cur.execute(
        """
        INSERT INTO role_permissions (role_id, permission_id)
        SELECT %s, p.id
        FROM permissions p
        ON CONFLICT DO NOTHING
        """,
        (role_id,),
    )
    return role_id


def main() -> int:
    if not _truthy(os.getenv("BOOTSTRAP_ADMIN", "")):
        return 0

    db_url = os.getenv("DATABASE_URL")
    if not db_url:
        print("bootstrap_admin: missing DATABASE_URL", file=sys.stderr)
        return 2

    email = os.getenv("BOOTSTRAP_ADMIN_EMAIL", "admin@urasi.local").strip().lower()
    if not email:
        print("bootstrap_admin: BOOTSTRAP_ADMIN_EMAIL is empty", file=sys.stderr)
        return 2
    username = os.getenv("BOOTSTRAP_ADMIN_USERNAME", "admin").strip() or "admin"

    password = os.getenv("BOOTSTRAP_ADMIN_PASSWORD")
    generated_password = False
    if not password:
        password = _generate_password()
        generated_password = True

    with psycopg.connect(db_url, row_factory=dict_row) as conn:
        with conn.transaction():
            with conn.cursor() as cur:
                cur.execute("SELECT id FROM profiles WHERE email = %s", (email,))
                if cur.fetchone():
                    # Idempotent: don't create duplicate users.
                    return 0

                cur.execute(
                    """
                    INSERT INTO profiles (id, email, username, full_name, hashed_password, role, active)
                    VALUES (gen_random_uuid(), %s, %s, 'Administrator', %s, 'admin', true)
                    RETURNING id
                    """,
                    (email, username, hash_password(password)),
                )
                user_id = cur.fetchone()["id"]
                role_id = ensure_admin_role(cur)
                cur.execute(
                    """
                    INSERT INTO users_roles (user_id, role_id)
                    VALUES (%s, %s)
                    ON CONFLICT DO NOTHING
                    """,
                    (user_id, role_id),
                )

    print("BOOTSTRAP_ADMIN_CREATED")
    print(f"email: {email}")
    if generated_password:
        print(f"password: {password}")
    else:
        print("password: (provided via BOOTSTRAP_ADMIN_PASSWORD)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
