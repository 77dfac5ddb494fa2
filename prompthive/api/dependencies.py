from __future__ import annotations

import logging
import uuid
from typing import Annotated, Callable, Iterable

from fastapi import Cookie, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from prompthive.core.config import settings
from prompthive.core.database import get_db
from prompthive.core.messages import (
    AUTH_COULD_NOT_VALIDATE,
    AUTH_GUEST_READ_ONLY,
    AUTH_INSUFFICIENT_PERMISSIONS,
    AUTH_REFRESH_TOKEN_MISSING,
    AUTH_SESSION_INVALID,
    AUTH_TOO_MANY_ATTEMPTS,
)
from prompthive.core.permissions import DOWNLOAD, EXPORT, IMPORT, ROLE_ADMIN, has_permission, is_guest
from prompthive.core.redis import get_redis_client, is_redis_available
from prompthive.core.security import decode_token
from prompthive.models.user import User

logger = logging.getLogger("prompthive.dependencies")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_V1_PREFIX}/auth/login")

LOGIN_ATTEMPT_LIMIT = 5
LOGIN_ATTEMPT_WINDOW = 15 * 60


def get_current_user(
    token: Annotated[str, Depends(oauth2_scheme)],
    db: Session = Depends(get_db),
) -> User:
    try:
        payload = decode_token(token, expected_type="access")
    except JWTError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_COULD_NOT_VALIDATE,
        )

    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except (ValueError, TypeError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_COULD_NOT_VALIDATE,
        )

    # Token outlived its account, e.g. after a data reset
    user: User | None = db.query(User).filter(User.id == user_id, User.is_active.is_(True)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_SESSION_INVALID,
        )
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def require_roles(allowed_roles: Iterable[str]) -> Callable[[User], User]:
    allowed = tuple(allowed_roles)

    def dependency(current_user: CurrentUser) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=AUTH_INSUFFICIENT_PERMISSIONS,
            )
        return current_user

    return dependency


def require_writer(current_user: CurrentUser) -> User:
    """Any signed-in account except the read-only guest."""
    if is_guest(current_user):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=AUTH_GUEST_READ_ONLY,
        )
    return current_user


def require_permission(action: str) -> Callable[[User], User]:
    def dependency(current_user: CurrentUser) -> User:
        if not has_permission(current_user, action):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=AUTH_GUEST_READ_ONLY if is_guest(current_user) else AUTH_INSUFFICIENT_PERMISSIONS,
            )
        return current_user

    return dependency


require_admin = require_roles([ROLE_ADMIN])

WriterUser = Annotated[User, Depends(require_writer)]
AdminUser = Annotated[User, Depends(require_admin)]
ExportUser = Annotated[User, Depends(require_permission(EXPORT))]
ImportUser = Annotated[User, Depends(require_permission(IMPORT))]
DownloadUser = Annotated[User, Depends(require_permission(DOWNLOAD))]


def get_refresh_token_from_cookie(
    request: Request,
    refresh_token: str | None = Cookie(default=None, alias="refresh_token"),
) -> str:
    if not refresh_token:
        logger.warning("Refresh token cookie missing. Available cookies: %s", list(request.cookies.keys()))
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AUTH_REFRESH_TOKEN_MISSING,
        )
    return refresh_token


def client_info(request: Request) -> dict[str, str | None]:
    return {
        "ip_address": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
    }


def enforce_login_attempt_limit(username: str) -> None:
    """Limit login attempts: 5 attempts over rolling 15 minutes."""
    if not is_redis_available():
        return
    r = get_redis_client()
    if r is None:
        return
    key = f"auth:login_attempts:{username}"
    attempts = r.incr(key)
    if attempts == 1:
        r.expire(key, LOGIN_ATTEMPT_WINDOW)
    if attempts > LOGIN_ATTEMPT_LIMIT:
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=AUTH_TOO_MANY_ATTEMPTS,
        )


def reset_login_attempts(username: str) -> None:
    if not is_redis_available():
        return
    r = get_redis_client()
    if r is None:
        return
    r.delete(f"auth:login_attempts:{username}")


def store_refresh_token(user_id: str, jti: str, ttl_seconds: int) -> None:
    """Remember an issued refresh token. No-op without Redis."""
    if not is_redis_available():
        return
    r = get_redis_client()
    if r is None:
        return
    r.set(f"auth:refresh:{user_id}:{jti}", "1", ex=ttl_seconds)


def revoke_refresh_token(user_id: str, jti: str) -> None:
    if not is_redis_available():
        return
    r = get_redis_client()
    if r is None:
        return
    r.delete(f"auth:refresh:{user_id}:{jti}")


def is_refresh_token_active(user_id: str, jti: str) -> bool:
    """Without Redis every well-formed refresh token counts as active."""
    if not is_redis_available():
        return True
    r = get_redis_client()
    if r is None:
        return True
    return r.exists(f"auth:refresh:{user_id}:{jti}") == 1
