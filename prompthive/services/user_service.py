"""Accounts: registration, passwords, profile and admin management."""

from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from prompthive.core.config import settings
from prompthive.core.exceptions import (
    ConflictError,
    InvalidParameterError,
    NotFoundError,
    PermissionDeniedError,
)
from prompthive.core.messages import (
    ADMIN_CONFIG_MISSING,
    ADMIN_INCORRECT_CODE,
    ADMIN_INVALID_CODE_FORMAT,
    REG_DISABLED,
    REG_EMAIL_EXISTS,
    REG_MISSING_FIELDS,
    REG_USERNAME_EXISTS,
    USER_ALREADY_EXISTS,
    USER_CANNOT_DELETE_SELF,
    USER_INCORRECT_PASSWORD,
    USER_INVALID_LANGUAGE,
    USER_INVALID_RESET_TOKEN,
    USER_INVALID_ROLE,
    USER_NOT_FOUND,
)
from prompthive.core.permissions import ROLE_ADMIN, ROLE_USER, ROLES
from prompthive.core.security import get_password_hash, verify_password
from prompthive.models.base import as_utc
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt
from prompthive.models.settings import settings_hidden_users
from prompthive.models.user import User
from prompthive.models.workflow import Workflow
from prompthive.services import prompt_service, settings_service, tag_service
from prompthive.services.email_service import email_service

logger = logging.getLogger("prompthive.services.users")

LANGUAGES = ("en", "nl", "fr")
RESET_TOKEN_EXPIRY = timedelta(hours=1)
_ADMIN_CODE_FORMAT = re.compile(r"^[A-Za-z0-9]{6}$")
_ADMIN_CODE_PROPERTY = re.compile(r"^\s*admin\.code\s*=\s*(\S{6})\s*$", re.MULTILINE)


def get_user(db: Session, user_id: uuid.UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


def get_user_by_login(db: Session, login: str) -> Optional[User]:
    """Look a user up by username or email."""
    return db.query(User).filter(or_(User.username == login, User.email == login)).first()


def register_user(db: Session, username: str, email: str, password: str) -> User:
    username = (username or "").strip()
    email = (email or "").strip()
    if not username or not email or not password:
        raise InvalidParameterError(REG_MISSING_FIELDS)

    if not settings_service.get_global_configuration(db).registration_enabled:
        raise PermissionDeniedError(REG_DISABLED)

    existing = db.query(User).filter(or_(User.email == email, User.username == username)).first()
    if existing is not None:
        if existing.email == email:
            raise ConflictError(REG_EMAIL_EXISTS)
        raise ConflictError(REG_USERNAME_EXISTS)

    user = User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        role=ROLE_USER,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info("User registered: %s", user.username)
    email_service.send_welcome_email(user.email)
    return user


def change_password(db: Session, user_id: uuid.UUID, old_password: str, new_password: str) -> User:
    user = get_user(db, user_id)
    if not verify_password(old_password, user.password_hash):
        raise InvalidParameterError(USER_INCORRECT_PASSWORD)
    user.password_hash = get_password_hash(new_password)
    db.commit()
    db.refresh(user)
    return user


def generate_reset_token(db: Session, email: str) -> Optional[str]:
    """Store a fresh reset token and mail the link. None for unknown emails."""
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        return None

    token = str(uuid.uuid4())
    user.reset_token = token
    user.reset_token_expiry = datetime.now(timezone.utc) + RESET_TOKEN_EXPIRY
    db.commit()

    email_service.send_password_reset_email(user.email, token)
    return token


def reset_password(db: Session, token: str, new_password: str) -> User:
    user = db.query(User).filter(User.reset_token == token).first() if token else None
    if (
        user is None
        or user.reset_token_expiry is None
        or as_utc(user.reset_token_expiry) < datetime.now(timezone.utc)
    ):
        raise InvalidParameterError(USER_INVALID_RESET_TOKEN)

    user.password_hash = get_password_hash(new_password)
    user.reset_token = None
    user.reset_token_expiry = None
    db.commit()
    db.refresh(user)
    return user


def update_avatar(db: Session, user_id: uuid.UUID, avatar_url: Optional[str]) -> User:
    user = get_user(db, user_id)
    user.avatar_url = avatar_url or None
    db.commit()
    db.refresh(user)
    return user


def update_language(db: Session, user_id: uuid.UUID, language: str) -> User:
    if language not in LANGUAGES:
        raise InvalidParameterError(USER_INVALID_LANGUAGE)
    user = get_user(db, user_id)
    user.language = language
    db.commit()
    db.refresh(user)
    return user


def read_admin_code(path: Optional[str] = None) -> Optional[str]:
    """``admin.code`` from the properties file, None when the key is absent."""
    properties = Path(path or settings.ADMIN_PROPERTIES_FILE)
    if not properties.is_file():
        raise NotFoundError(ADMIN_CONFIG_MISSING)
    match = _ADMIN_CODE_PROPERTY.search(properties.read_text(encoding="utf-8"))
    return match.group(1) if match else None


def promote_to_admin(db: Session, user: User, code: str) -> User:
    if not code or not _ADMIN_CODE_FORMAT.match(code):
        raise InvalidParameterError(ADMIN_INVALID_CODE_FORMAT)

    server_code = read_admin_code()
    if server_code is None or code != server_code:
        raise PermissionDeniedError(ADMIN_INCORRECT_CODE)

    user.role = ROLE_ADMIN
    db.commit()
    db.refresh(user)
    logger.info("User %s promoted to administrator", user.username)
    return user


# Admin operations

def list_users(db: Session) -> list[User]:
    return db.query(User).order_by(User.created_at.desc()).all()


def update_user_role(db: Session, user_id: uuid.UUID, role: str) -> User:
    if role not in ROLES:
        raise InvalidParameterError(USER_INVALID_ROLE)
    user = get_user(db, user_id)
    user.role = role
    db.commit()
    db.refresh(user)
    return user


def create_user(db: Session, username: str, email: str, password: str, role: str = ROLE_USER) -> User:
    if not username or not email or not password:
        raise InvalidParameterError(REG_MISSING_FIELDS)
    if role not in ROLES:
        raise InvalidParameterError(USER_INVALID_ROLE)

    existing = db.query(User.id).filter(or_(User.email == email, User.username == username)).first()
    if existing is not None:
        raise ConflictError(USER_ALREADY_EXISTS)

    user = User(
        username=username,
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin created user %s with role %s", user.username, user.role)
    return user


def delete_user(db: Session, acting_user: User, user_id: uuid.UUID) -> None:
    """Remove a user with everything they own."""
    if acting_user.id == user_id:
        raise PermissionDeniedError(USER_CANNOT_DELETE_SELF)
    user = get_user(db, user_id)

    for workflow in db.query(Workflow).filter(Workflow.owner_id == user_id).all():
        db.delete(workflow)
    db.flush()

    for prompt in db.query(Prompt).filter(Prompt.created_by_id == user_id).all():
        prompt_service.remove_prompt(db, prompt)

    # Flatten first so the collections can go in any order
    collections = db.query(Collection).filter(Collection.owner_id == user_id).all()
    for collection in collections:
        collection.parent_id = None
    db.flush()
    for collection in collections:
        db.delete(collection)
    db.flush()

    db.execute(settings_hidden_users.delete().where(settings_hidden_users.c.user_id == user_id))
    db.delete(user)
    tag_service.delete_unused_tags(db, commit=False)
    db.commit()
    logger.info("User %s deleted by %s", user.username, acting_user.username)
