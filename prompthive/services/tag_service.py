from __future__ import annotations

import logging
from typing import Iterable

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError
from prompthive.core.messages import TAG_NAME_REQUIRED
from prompthive.models.prompt import prompt_tags
from prompthive.models.tag import Tag
from prompthive.utils.colors import generate_color_from_name

logger = logging.getLogger("prompthive.services.tags")


def get_or_create_tag(db: Session, name: str) -> Tag:
    """Tag with this exact name, created on first use. Flushes, does not commit."""
    tag = db.query(Tag).filter(Tag.name == name).first()
    if tag is None:
        tag = Tag(name=name, color=generate_color_from_name(name))
        db.add(tag)
        db.flush()
    return tag


def create_tag(db: Session, name: str) -> Tag:
    name = (name or "").strip()
    if not name:
        raise InvalidParameterError(TAG_NAME_REQUIRED)
    if len(name) > 50:
        raise InvalidParameterError("Tag name must be at most 50 characters")
    tag = get_or_create_tag(db, name)
    db.commit()
    db.refresh(tag)
    return tag


def get_tags_by_ids(db: Session, tag_ids: Iterable) -> list[Tag]:
    ids = list(tag_ids)
    if not ids:
        return []
    return db.query(Tag).filter(Tag.id.in_(ids)).all()


def list_tags_with_counts(db: Session) -> list[dict]:
    rows = (
        db.query(Tag, func.count(prompt_tags.c.prompt_id))
        .outerjoin(prompt_tags, prompt_tags.c.tag_id == Tag.id)
        .group_by(Tag.id)
        .order_by(Tag.name)
        .all()
    )
    return [
        {"id": tag.id, "name": tag.name, "color": tag.color, "prompt_count": count}
        for tag, count in rows
    ]


def delete_unused_tags(db: Session, commit: bool = True) -> int:
    """Delete tags no prompt references. Returns how many went."""
    db.flush()
    used = select(prompt_tags.c.tag_id)
    unused = db.query(Tag).filter(~Tag.id.in_(used)).all()
    for tag in unused:
        db.delete(tag)
    if commit:
        db.commit()
    else:
        db.flush()
    if unused:
        logger.info("Pruned %d unused tags", len(unused))
    return len(unused)
