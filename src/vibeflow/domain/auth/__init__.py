"""Auth domain - password hashing and cookie sessions."""

from .passwords import hash_password, verify_password
from .sessions import (
    SESSION_COOKIE,
    create_session,
    get_session_user,
    purge_expired_sessions,
    revoke_session,
)

__all__ = [
    "SESSION_COOKIE",
    "hash_password",
    "verify_password",
    "create_session",
    "get_session_user",
    "revoke_session",
    "purge_expired_sessions",
]
