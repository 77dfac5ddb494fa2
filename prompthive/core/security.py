from datetime import datetime, timedelta, timezone
from typing import Any, Optional
import logging
import uuid

import bcrypt
from jose import JWTError, jwt
from passlib.context import CryptContext

from .config import settings

logger = logging.getLogger("prompthive.security")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# bcrypt only looks at the first 72 bytes of a secret
BCRYPT_MAX_BYTES = 72


def _truncate(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, AttributeError) as exc:
        # Newer bcrypt releases break passlib's backend probing
        logger.debug("passlib verify unavailable (%s), using bcrypt directly", exc)

    try:
        return bcrypt.checkpw(_truncate(plain_password), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def get_password_hash(password: str) -> str:
    try:
        return pwd_context.hash(_truncate(password).decode("utf-8", errors="ignore"))
    except (ValueError, AttributeError) as exc:
        logger.debug("passlib hash unavailable (%s), using bcrypt directly", exc)

    hashed = bcrypt.hashpw(_truncate(password), bcrypt.gensalt())
    return hashed.decode("utf-8")


def create_token(
    subject: str | Any,
    expires_delta: Optional[timedelta],
    token_type: str,
    jti: Optional[str] = None,
) -> str:
    sub = subject if isinstance(subject, str) else str(subject)

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=15))
    payload: dict[str, Any] = {
        "sub": sub,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
        "type": token_type,
        "jti": jti or uuid.uuid4().hex,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_access_token(subject: str | Any) -> str:
    expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    return create_token(subject, expires, token_type="access")


def create_refresh_token(subject: str | Any) -> str:
    expires = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    return create_token(subject, expires, token_type="refresh")


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
        if payload.get("type") != expected_type:
            raise JWTError("Invalid token type")
        return payload
    except JWTError as exc:
        raise JWTError("Invalid or expired token") from exc
