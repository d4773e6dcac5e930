"""Account endpoints: signup, login, logout and the current user."""

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from loguru import logger

from vibeflow.core.config import Config
from vibeflow.domain.auth import (
    SESSION_COOKIE,
    create_session,
    get_session_user,
    hash_password,
    revoke_session,
    verify_password,
)
from vibeflow.domain.library.exceptions import ValidationFailedError
from vibeflow.domain.library.storage import create_user, get_user_by_email, public_user

from ..deps import get_config, get_db
from ..schemas import AuthResponse, LoginRequest, SignupRequest, SuccessResponse

router = APIRouter()


def _set_session_cookie(response: Response, token: str, config: Config) -> None:
    response.set_cookie(
        SESSION_COOKIE,
        token,
        max_age=config.server.session_days * 24 * 60 * 60,
        httponly=True,
        samesite="lax",
        secure=config.server.cookie_secure,
    )


@router.post("/auth/signup", response_model=AuthResponse)
def signup(
    request: SignupRequest,
    response: Response,
    db=Depends(get_db),
    config: Config = Depends(get_config),
):
    if not request.email or not request.password or not request.display_name:
        raise HTTPException(400, "All fields are required")

    if get_user_by_email(db, request.email):
        raise HTTPException(400, "Email already registered")

    try:
        user = create_user(
            db, request.email, hash_password(request.password), request.display_name
        )
    except ValidationFailedError as e:
        raise HTTPException(400, str(e))

    token = create_session(db, user["id"], config.server.session_days)
    _set_session_cookie(response, token, config)
    return {"user": public_user(user)}


@router.post("/auth/login", response_model=AuthResponse)
def login(
    request: LoginRequest,
    response: Response,
    db=Depends(get_db),
    config: Config = Depends(get_config),
):
    user = get_user_by_email(db, request.email)
    if not user or not verify_password(request.password, user["password"]):
        logger.info("Rejected login attempt")
        raise HTTPException(401, "Invalid credentials")

    token = create_session(db, user["id"], config.server.session_days)
    _set_session_cookie(response, token, config)
    logger.info(f"User #{user['id']} logged in")
    return {"user": public_user(user)}


@router.post("/auth/logout", response_model=SuccessResponse)
def logout(request: Request, response: Response, db=Depends(get_db)):
    revoke_session(db, request.cookies.get(SESSION_COOKIE))
    response.delete_cookie(SESSION_COOKIE)
    return {"success": True}


@router.get("/auth/me", response_model=AuthResponse)
def me(request: Request, db=Depends(get_db)):
    user = get_session_user(db, request.cookies.get(SESSION_COOKIE))
    return {"user": public_user(user) if user else None}
