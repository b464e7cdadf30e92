import os
import sqlite3
import time
from typing import Optional

from fastapi import HTTPException, Request

# Single-user ledger: every request acts as this seeded account.
DEFAULT_USERNAME = os.environ.get("DEFAULT_USERNAME", "default").strip().lower() or "default"


def ensure_default_user(conn: sqlite3.Connection) -> int:
    row = conn.execute("SELECT id FROM users WHERE username=?", (DEFAULT_USERNAME,)).fetchone()
    if row:
        return int(row["id"])
    cur = conn.execute(
        "INSERT INTO users (username,handle,created_at) VALUES (?,?,?)",
        (DEFAULT_USERNAME, "", time.time()),
    )
    return int(cur.lastrowid)


def get_default_user(conn: sqlite3.Connection) -> Optional[sqlite3.Row]:
    return conn.execute(
        "SELECT id,username,handle FROM users WHERE username=?",
        (DEFAULT_USERNAME,),
    ).fetchone()


def get_current_user(conn: sqlite3.Connection, request: Request) -> Optional[sqlite3.Row]:
    return get_default_user(conn)


def require_user(conn: sqlite3.Connection, request: Request) -> sqlite3.Row:
    user = get_current_user(conn, request)
    if not user:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user
