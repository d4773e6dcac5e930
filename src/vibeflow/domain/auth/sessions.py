"""
Cookie sessions backed by the `sessions` table.

The cookie carries an opaque random token; the user id never leaves the
server.
"""

import secrets
import sqlite3
import time
from typing import Any, Optional

from loguru import logger

from vibeflow.domain.library.storage import get_user

SESSION_COOKIE = "vibeflow_session"
SECONDS_PER_DAY = 24 * 60 * 60


def create_session(conn: sqlite3.Connection, user_id: int, days: int = 30) -> str:
    """Issue a new session token for a user."""
    token = secrets.token_urlsafe(32)
    now = time.time()
    conn.execute(
        "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
        (token, user_id, now, now + days * SECONDS_PER_DAY),
    )
    conn.commit()
    logger.debug(f"Issued session for user #{user_id}")
    return token


def get_session_user(
    conn: sqlite3.Connection, token: Optional[str]
) -> Optional[dict[str, Any]]:
    """Resolve a session token to its user; expired tokens are purged."""
    if not token:
        return None

    row = conn.execute(
        "SELECT user_id, expires_at FROM sessions WHERE token = ?", (token,)
    ).fetchone()
    if not row:
        return None

    if row["expires_at"] <= time.time():
        revoke_session(conn, token)
        return None

    return get_user(conn, row["user_id"])


def revoke_session(conn: sqlite3.Connection, token: Optional[str]) -> None:
    if not token:
        return
    conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
    conn.commit()


def purge_expired_sessions(conn: sqlite3.Connection) -> int:
    cursor = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (time.time(),))
    conn.commit()
    if cursor.rowcount:
        logger.info(f"Purged {cursor.rowcount} expired sessions")
    return cursor.rowcount
