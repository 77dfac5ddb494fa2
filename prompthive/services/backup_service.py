"""Per-user backups written to a directory on the server.

A backup is one JSON file named ``<timestamp>_prompthive_autobackup.json``
holding the user's collections, prompts (files inlined), tags and settings.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Optional

from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError, NotFoundError, PermissionDeniedError
from prompthive.core.messages import (
    BACKUP_DIR_INACCESSIBLE,
    BACKUP_NO_FILES,
    BACKUP_NO_PATH,
    BACKUP_UNREADABLE,
    BACKUP_WRONG_USER,
)
from prompthive.models.base import as_utc
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt
from prompthive.models.tag import Tag
from prompthive.models.user import User
from prompthive.models.workflow import Workflow
from prompthive.services import export_service, import_service, prompt_service, settings_service, tag_service

logger = logging.getLogger("prompthive.services.backup")

BACKUP_SUFFIX = "_prompthive_autobackup.json"
BACKUP_INTERVALS = {
    "DAILY": timedelta(days=1),
    "WEEKLY": timedelta(days=7),
    "MONTHLY": timedelta(days=30),
}


def save_backup_settings(
    db: Session,
    user: User,
    *,
    auto_backup_enabled: bool,
    backup_path: Optional[str],
    backup_frequency: str,
):
    return settings_service.update_backup_settings(
        db,
        user.id,
        auto_backup_enabled=auto_backup_enabled,
        backup_path=backup_path,
        backup_frequency=backup_frequency,
    )


def backup_filename(now: Optional[datetime] = None) -> str:
    stamp = (now or datetime.now(timezone.utc)).isoformat().replace(":", "-").replace(".", "-")
    return f"{stamp}{BACKUP_SUFFIX}"


def build_backup(db: Session, user: User) -> dict[str, Any]:
    collections = db.query(Collection).filter(Collection.owner_id == user.id).all()
    prompts = (
        prompt_service.with_relations(db.query(Prompt))
        .filter(Prompt.created_by_id == user.id)
        .all()
    )
    user_settings = settings_service.get_settings(db, user.id)

    backup_prompts = []
    for prompt in prompts:
        record = export_service.export_prompt(prompt)
        current = prompt.current_version
        record["currentVersionNumber"] = current.version_number if current else None
        backup_prompts.append(record)

    return {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "userId": str(user.id),
        "collections": [
            {
                "id": str(c.id),
                "title": c.title,
                "description": c.description,
                "parentId": str(c.parent_id) if c.parent_id else None,
            }
            for c in collections
        ],
        "prompts": backup_prompts,
        "tags": [{"name": t.name, "color": t.color} for t in db.query(Tag).order_by(Tag.name).all()],
        "settings": {
            "autoBackupEnabled": user_settings.auto_backup_enabled,
            "backupPath": user_settings.backup_path,
            "backupFrequency": user_settings.backup_frequency,
            "showPrompterTips": user_settings.show_prompter_tips,
            "tagColorsEnabled": user_settings.tag_colors_enabled,
            "workflowVisible": user_settings.workflow_visible,
        },
    }


def perform_backup(db: Session, user: User, backup_path: str) -> bool:
    """Write a backup file; False when anything goes wrong."""
    try:
        data = build_backup(db, user)
        directory = Path(backup_path).expanduser()
        directory.mkdir(parents=True, exist_ok=True)
        target = directory / backup_filename()
        target.write_text(json.dumps(data, indent=2), encoding="utf-8")
    except (OSError, TypeError, ValueError) as exc:
        logger.error("Backup failed for %s: %s", user.username, exc)
        return False

    logger.info("Backup saved to %s", target)
    return True


def check_and_run_auto_backup(db: Session, user: User) -> bool:
    """Run the scheduled backup when it is due. Returns whether one ran."""
    user_settings = settings_service.get_settings(db, user.id)
    if not user_settings.auto_backup_enabled or not user_settings.backup_path:
        return False

    interval = BACKUP_INTERVALS.get(user_settings.backup_frequency)
    if interval is None:
        return False

    now = datetime.now(timezone.utc)
    last = user_settings.last_backup_at
    if last is not None and now - as_utc(last) <= interval:
        return False

    if not perform_backup(db, user, user_settings.backup_path):
        return False

    user_settings.last_backup_at = now
    db.commit()
    return True


def drop_all_data(db: Session, user: User, commit: bool = True) -> None:
    """Delete the user's workflows, prompts and collections."""
    for workflow in db.query(Workflow).filter(Workflow.owner_id == user.id).all():
        db.delete(workflow)
    db.flush()

    for prompt in db.query(Prompt).filter(Prompt.created_by_id == user.id).all():
        prompt_service.remove_prompt(db, prompt)

    collections = db.query(Collection).filter(Collection.owner_id == user.id).all()
    for collection in collections:
        collection.parent_id = None
    db.flush()
    for collection in collections:
        db.delete(collection)
    db.flush()

    tag_service.delete_unused_tags(db, commit=False)
    if commit:
        db.commit()
    logger.info("Dropped all data of %s", user.username)


def find_latest_backup(backup_path: str) -> Path:
    directory = Path(backup_path).expanduser()
    try:
        # Newest by modification time; the timestamped name breaks ties
        candidates = sorted(
            (p for p in directory.iterdir() if p.name.endswith(BACKUP_SUFFIX)),
            key=lambda p: (p.stat().st_mtime, p.name),
        )
    except OSError as exc:
        raise InvalidParameterError(BACKUP_DIR_INACCESSIBLE) from exc
    if not candidates:
        raise NotFoundError(BACKUP_NO_FILES)
    return candidates[-1]


def restore_latest_backup(db: Session, user: User) -> dict[str, Any]:
    """Replace the user's data with the newest backup in the configured directory."""
    user_settings = settings_service.get_settings(db, user.id)
    if not user_settings.backup_path:
        raise InvalidParameterError(BACKUP_NO_PATH)

    latest = find_latest_backup(user_settings.backup_path)
    try:
        data = json.loads(latest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.warning("Unreadable backup %s: %s", latest, exc)
        raise InvalidParameterError(BACKUP_UNREADABLE) from exc
    if not isinstance(data, dict):
        raise InvalidParameterError(BACKUP_UNREADABLE)
    if data.get("userId") != str(user.id):
        raise PermissionDeniedError(BACKUP_WRONG_USER)

    drop_all_data(db, user, commit=False)

    id_map = import_service.import_structure(db, user, data.get("collections") or [], commit=False)
    result = import_service.import_prompts(db, user, data.get("prompts") or [], id_map)

    tag_service.delete_unused_tags(db)
    logger.info("Restored %s for %s (%d prompts)", latest.name, user.username, result["count"])
    return {"success": True, "message": "Database restored successfully.", "count": result["count"]}
