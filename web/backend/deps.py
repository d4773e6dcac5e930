from typing import Any, AsyncGenerator

from fastapi import Depends, HTTPException, Request

from vibeflow.core.config import Config, load_config
from vibeflow.core.database import get_db_connection
from vibeflow.domain.auth import SESSION_COOKIE, get_session_user


async def get_db() -> AsyncGenerator:
    """FastAPI dependency for database connections."""
    with get_db_connection() as conn:
        yield conn


def get_config() -> Config:
    """FastAPI dependency for configuration."""
    return load_config()


def require_user(request: Request, db=Depends(get_db)) -> dict[str, Any]:
    """FastAPI dependency resolving the session cookie to a user, else 401."""
    user = get_session_user(db, request.cookies.get(SESSION_COOKIE))
    if not user:
        raise HTTPException(401, "Unauthorized")
    return user
