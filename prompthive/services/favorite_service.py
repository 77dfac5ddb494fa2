from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from prompthive.models.favorite import Favorite
from prompthive.models.prompt import Prompt
from prompthive.models.user import User
from prompthive.services import prompt_service

FAVORITE_SORTS = {
    "date-desc": Favorite.created_at.desc(),
    "date-asc": Favorite.created_at.asc(),
    "alpha-asc": Prompt.title.asc(),
    "alpha-desc": Prompt.title.desc(),
}


def toggle_favorite(db: Session, user: User, prompt_id: uuid.UUID) -> dict[str, bool]:
    prompt_service.get_prompt(db, prompt_id)

    existing = (
        db.query(Favorite)
        .filter(Favorite.user_id == user.id, Favorite.prompt_id == prompt_id)
        .first()
    )
    if existing is not None:
        db.delete(existing)
        db.commit()
        return {"is_favorite": False}

    db.add(Favorite(user_id=user.id, prompt_id=prompt_id))
    db.commit()
    return {"is_favorite": True}


def get_favorites(
    db: Session, user: User, query: Optional[str] = None, sort: Optional[str] = None
) -> list[Prompt]:
    """The user's favourite prompts; unknown sort keys fall back to newest first."""
    q = (
        prompt_service.with_relations(db.query(Prompt))
        .join(Favorite, Favorite.prompt_id == Prompt.id)
        .filter(Favorite.user_id == user.id)
        .filter(prompt_service.visible_prompts_filter(user))
    )
    if query:
        pattern = f"%{query}%"
        q = q.filter(or_(Prompt.title.ilike(pattern), Prompt.description.ilike(pattern)))
    return q.order_by(FAVORITE_SORTS.get(sort or "", FAVORITE_SORTS["date-desc"])).all()


def is_favorite(db: Session, user: User, prompt_id: uuid.UUID) -> bool:
    return (
        db.query(Favorite.id)
        .filter(Favorite.user_id == user.id, Favorite.prompt_id == prompt_id)
        .first()
        is not None
    )
