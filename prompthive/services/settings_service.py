from __future__ import annotations

import logging
import uuid
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError
from prompthive.models.collection import Collection
from prompthive.models.settings import (
    BACKUP_FREQUENCIES,
    GLOBAL_CONFIGURATION_ID,
    GlobalConfiguration,
    UserSettings,
)
from prompthive.models.user import User

logger = logging.getLogger("prompthive.services.settings")


def get_settings(db: Session, user_id: uuid.UUID) -> UserSettings:
    """Settings row for the user, created with defaults on first access."""
    user_settings = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if user_settings is None:
        user_settings = UserSettings(
            user_id=user_id,
            auto_backup_enabled=False,
            backup_frequency="DAILY",
            show_prompter_tips=True,
            tag_colors_enabled=True,
            workflow_visible=False,
        )
        db.add(user_settings)
        db.commit()
        db.refresh(user_settings)
    return user_settings


def update_general_settings(
    db: Session,
    user_id: uuid.UUID,
    *,
    show_prompter_tips: bool,
    tag_colors_enabled: bool,
    workflow_visible: bool,
) -> UserSettings:
    user_settings = get_settings(db, user_id)
    user_settings.show_prompter_tips = show_prompter_tips
    user_settings.tag_colors_enabled = tag_colors_enabled
    user_settings.workflow_visible = workflow_visible
    db.commit()
    db.refresh(user_settings)
    return user_settings


def update_backup_settings(
    db: Session,
    user_id: uuid.UUID,
    *,
    auto_backup_enabled: bool,
    backup_path: Optional[str],
    backup_frequency: str,
) -> UserSettings:
    if backup_frequency not in BACKUP_FREQUENCIES:
        raise InvalidParameterError(f"Invalid backup frequency: {backup_frequency}")
    user_settings = get_settings(db, user_id)
    user_settings.auto_backup_enabled = auto_backup_enabled
    user_settings.backup_path = backup_path or None
    user_settings.backup_frequency = backup_frequency
    db.commit()
    db.refresh(user_settings)
    return user_settings


def update_hidden_users(db: Session, user_id: uuid.UUID, hidden_user_ids: Iterable[uuid.UUID]) -> UserSettings:
    user_settings = get_settings(db, user_id)
    ids = list(hidden_user_ids)
    user_settings.hidden_users = db.query(User).filter(User.id.in_(ids)).all() if ids else []
    db.commit()
    db.refresh(user_settings)
    return user_settings


def get_hidden_user_ids(db: Session, user_id: uuid.UUID) -> list[uuid.UUID]:
    return [u.id for u in get_settings(db, user_id).hidden_users]


def update_hidden_collections(
    db: Session, user_id: uuid.UUID, hidden_collection_ids: Iterable[uuid.UUID]
) -> UserSettings:
    user_settings = get_settings(db, user_id)
    ids = list(hidden_collection_ids)
    user_settings.hidden_collections = (
        db.query(Collection).filter(Collection.id.in_(ids)).all() if ids else []
    )
    db.commit()
    db.refresh(user_settings)
    return user_settings


def get_hidden_collection_ids(db: Session, user_id: uuid.UUID) -> list[uuid.UUID]:
    return [c.id for c in get_settings(db, user_id).hidden_collections]


def get_global_configuration(db: Session) -> GlobalConfiguration:
    config = db.get(GlobalConfiguration, GLOBAL_CONFIGURATION_ID)
    if config is None:
        config = GlobalConfiguration(
            id=GLOBAL_CONFIGURATION_ID,
            registration_enabled=True,
            private_prompts_enabled=False,
        )
        db.add(config)
        db.commit()
        db.refresh(config)
    return config


def update_global_settings(
    db: Session,
    *,
    registration_enabled: bool,
    private_prompts_enabled: Optional[bool] = None,
) -> GlobalConfiguration:
    config = get_global_configuration(db)
    config.registration_enabled = registration_enabled
    if private_prompts_enabled is not None:
        config.private_prompts_enabled = private_prompts_enabled
    db.commit()
    db.refresh(config)
    logger.info(
        "Global settings updated: registration_enabled=%s private_prompts_enabled=%s",
        config.registration_enabled,
        config.private_prompts_enabled,
    )
    return config
