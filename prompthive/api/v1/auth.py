from datetime import datetime, timezone
import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from fastapi.security import OAuth2PasswordRequestForm
from jose import JWTError
from sqlalchemy.orm import Session

from prompthive.api.dependencies import (
    client_info,
    enforce_login_attempt_limit,
    get_current_user,
    get_refresh_token_from_cookie,
    is_refresh_token_active,
    reset_login_attempts,
    revoke_refresh_token,
    store_refresh_token,
)
from prompthive.core.config import settings
from prompthive.core.database import get_db
from prompthive.core.messages import (
    AUTH_INVALID_CREDENTIALS,
    AUTH_LOGOUT_SUCCESS,
    AUTH_REFRESH_TOKEN_INVALID,
    AUTH_REFRESH_TOKEN_PAYLOAD_INVALID,
    AUTH_REFRESH_TOKEN_REVOKED,
    AUTH_SESSION_INVALID,
    AUTH_USER_INACTIVE,
    REG_SUCCESS,
    USER_PASSWORD_RESET,
    USER_RESET_REQUESTED,
)
from prompthive.core.security import (
    create_access_token,
    create_refresh_token,
    decode_token,
    verify_password,
)
from prompthive.models.user import User
from prompthive.schemas.user import PasswordResetConfirm, PasswordResetRequest, RegisterRequest
from prompthive.services import user_service
from prompthive.services.audit_service import log_auth_event

logger = logging.getLogger("prompthive.auth")

router = APIRouter(prefix="/auth", tags=["auth"])


def _refresh_ttl_seconds() -> int:
    return settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 60 * 60


def _parse_user_id(value: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REFRESH_TOKEN_PAYLOAD_INVALID,
        )


def _set_refresh_cookie(response: Response, refresh_token: str) -> None:
    # Plain HTTP is fine for local development only
    is_secure = settings.ENVIRONMENT.lower() not in ("development", "dev", "local", "test")
    response.set_cookie(
        "refresh_token",
        refresh_token,
        httponly=True,
        secure=is_secure,
        samesite="lax",
        max_age=_refresh_ttl_seconds(),
    )


def _issue_tokens(response: Response, user_id: str) -> dict:
    access_token = create_access_token(subject=user_id)
    refresh_token = create_refresh_token(subject=user_id)
    jti = decode_token(refresh_token, expected_type="refresh")["jti"]
    store_refresh_token(user_id, jti, _refresh_ttl_seconds())
    _set_refresh_cookie(response, refresh_token)
    return {
        "access_token": access_token,
        "refresh_token": refresh_token,
        "token_type": "bearer",
    }


@router.post("/login")
def login(
    request: Request,
    response: Response,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
):
    """Sign in with username or email."""
    enforce_login_attempt_limit(form_data.username)

    user = user_service.get_user_by_login(db, form_data.username)
    if not user or not verify_password(form_data.password, user.password_hash):
        log_auth_event(
            db,
            user_id=user.id if user else None,
            action_type="AUTH_LOGIN",
            success=False,
            details={"username": form_data.username},
            **client_info(request),
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_INVALID_CREDENTIALS,
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=AUTH_USER_INACTIVE,
        )

    reset_login_attempts(form_data.username)
    user.last_login = datetime.now(timezone.utc)
    db.commit()

    tokens = _issue_tokens(response, str(user.id))
    log_auth_event(
        db,
        user_id=user.id,
        action_type="AUTH_LOGIN",
        success=True,
        **client_info(request),
    )

    return {
        **tokens,
        "user": {
            "id": str(user.id),
            "username": user.username,
            "email": user.email,
            "role": user.role,
            "language": user.language,
        },
    }


@router.post("/refresh")
def refresh_token(
    request: Request,
    response: Response,
    refresh_token: str = Depends(get_refresh_token_from_cookie),
    db: Session = Depends(get_db),
):
    try:
        payload = decode_token(refresh_token, expected_type="refresh")
    except JWTError as exc:
        logger.warning("Invalid refresh token: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REFRESH_TOKEN_INVALID,
        )

    user_id: str | None = payload.get("sub")
    jti: str | None = payload.get("jti")
    if not user_id or not jti:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REFRESH_TOKEN_PAYLOAD_INVALID,
        )

    if not is_refresh_token_active(user_id, jti):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REFRESH_TOKEN_REVOKED,
        )

    user = db.query(User).filter(User.id == _parse_user_id(user_id)).first()
    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_SESSION_INVALID,
        )

    # Rotate: the presented token is spent
    revoke_refresh_token(user_id, jti)
    tokens = _issue_tokens(response, user_id)

    log_auth_event(
        db,
        user_id=user.id,
        action_type="AUTH_REFRESH",
        success=True,
        **client_info(request),
    )
    return tokens


@router.post("/logout")
def logout(
    request: Request,
    response: Response,
    refresh_token: str = Depends(get_refresh_token_from_cookie),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        jti = decode_token(refresh_token, expected_type="refresh").get("jti")
    except JWTError as exc:
        logger.info("Logout with unusable refresh token: %s", exc)
        jti = None
    if jti:
        revoke_refresh_token(str(current_user.id), jti)

    response.delete_cookie("refresh_token")

    log_auth_event(
        db,
        user_id=current_user.id,
        action_type="AUTH_LOGOUT",
        success=True,
        **client_info(request),
    )
    return {"detail": AUTH_LOGOUT_SUCCESS}


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    request: Request,
    register_data: RegisterRequest,
    db: Session = Depends(get_db),
):
    """Create a USER account, when registration is open."""
    user = user_service.register_user(
        db,
        register_data.username or "",
        register_data.email or "",
        register_data.password or "",
    )

    log_auth_event(
        db,
        user_id=user.id,
        action_type="AUTH_REGISTER",
        success=True,
        details={"email": user.email},
        **client_info(request),
    )

    return {
        "message": REG_SUCCESS,
        "user_id": str(user.id),
        "email": user.email,
    }


@router.post("/password-reset/request")
def request_password_reset(payload: PasswordResetRequest, db: Session = Depends(get_db)):
    # Same answer whether or not the account exists
    user_service.generate_reset_token(db, payload.email)
    return {"message": USER_RESET_REQUESTED}


@router.post("/password-reset/confirm")
def confirm_password_reset(payload: PasswordResetConfirm, db: Session = Depends(get_db)):
    user_service.reset_password(db, payload.token, payload.new_password)
    return {"message": USER_PASSWORD_RESET}
