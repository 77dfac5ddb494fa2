"""Collection hierarchy: creation, moves, recursive deletion and tree views."""

from __future__ import annotations

import logging
import uuid
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from prompthive.core.exceptions import (
    ConflictError,
    InvalidParameterError,
    NotFoundError,
    PermissionDeniedError,
)
from prompthive.core.messages import (
    ACCESS_DENIED,
    COLLECTION_MOVE_DESCENDANT,
    COLLECTION_MOVE_SELF,
    COLLECTION_NAME_EMPTY,
    COLLECTION_NAME_EXISTS,
    COLLECTION_NAME_EXISTS_DESTINATION,
    COLLECTION_NOT_FOUND,
    COLLECTION_USER_PROHIBITED,
)
from prompthive.core.permissions import is_admin, is_guest
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt, prompt_collections
from prompthive.models.user import User
from prompthive.services import prompt_service, settings_service, tag_service
from prompthive.utils.collection_utils import build_tree, filter_hidden_collections

logger = logging.getLogger("prompthive.services.collections")

MAX_ANCESTOR_DEPTH = 100


def get_collection(db: Session, collection_id: uuid.UUID, message: str = COLLECTION_NOT_FOUND) -> Collection:
    collection = db.get(Collection, collection_id)
    if collection is None:
        raise NotFoundError(message)
    return collection


def _ensure_can_modify(user: Optional[User], collection: Collection) -> None:
    if user is None or is_guest(user):
        raise PermissionDeniedError(COLLECTION_USER_PROHIBITED)
    if collection.owner_id != user.id and not is_admin(user):
        raise PermissionDeniedError(ACCESS_DENIED)


def _sibling_exists(
    db: Session,
    title: str,
    parent_id: Optional[uuid.UUID],
    owner_id: Optional[uuid.UUID] = None,
    exclude_id: Optional[uuid.UUID] = None,
) -> bool:
    query = db.query(Collection.id).filter(Collection.title == title)
    if parent_id is None:
        query = query.filter(Collection.parent_id.is_(None))
    else:
        query = query.filter(Collection.parent_id == parent_id)
    if owner_id is not None:
        query = query.filter(Collection.owner_id == owner_id)
    if exclude_id is not None:
        query = query.filter(Collection.id != exclude_id)
    return db.query(query.exists()).scalar()


def create_collection(
    db: Session,
    user: User,
    title: str,
    description: Optional[str] = None,
    parent_id: Optional[uuid.UUID] = None,
) -> Collection:
    title = (title or "").strip()
    if not title:
        raise InvalidParameterError(COLLECTION_NAME_EMPTY)
    if parent_id is not None:
        get_collection(db, parent_id)
    if _sibling_exists(db, title, parent_id, owner_id=user.id):
        raise ConflictError(COLLECTION_NAME_EXISTS)

    collection = Collection(
        title=title,
        description=description or None,
        owner_id=user.id,
        parent_id=parent_id,
    )
    db.add(collection)
    db.commit()
    db.refresh(collection)
    logger.info("Collection %s created by %s", collection.id, user.username)
    return collection


def move_collection(
    db: Session, user: User, collection_id: uuid.UUID, new_parent_id: Optional[uuid.UUID]
) -> Collection:
    if collection_id == new_parent_id:
        raise InvalidParameterError(COLLECTION_MOVE_SELF)

    collection = get_collection(db, collection_id, message=f"{COLLECTION_NOT_FOUND}.")
    _ensure_can_modify(user, collection)

    if _sibling_exists(
        db, collection.title, new_parent_id, owner_id=collection.owner_id, exclude_id=collection_id
    ):
        raise ConflictError(COLLECTION_NAME_EXISTS_DESTINATION)

    # Walk up from the destination; meeting the moved collection means a cycle
    current_id = new_parent_id
    depth = 0
    while current_id is not None and depth < MAX_ANCESTOR_DEPTH:
        if current_id == collection_id:
            raise InvalidParameterError(COLLECTION_MOVE_DESCENDANT)
        current_id = db.query(Collection.parent_id).filter(Collection.id == current_id).scalar()
        depth += 1

    collection.parent_id = new_parent_id
    db.commit()
    db.refresh(collection)
    return collection


def update_collection_details(
    db: Session,
    user: User,
    collection_id: uuid.UUID,
    title: str,
    description: Optional[str] = None,
    *,
    keep_description: bool = False,
) -> Collection:
    title = (title or "").strip()
    if not title:
        raise InvalidParameterError(COLLECTION_NAME_EMPTY)

    collection = get_collection(db, collection_id)
    _ensure_can_modify(user, collection)

    if _sibling_exists(db, title, collection.parent_id, owner_id=collection.owner_id, exclude_id=collection_id):
        raise ConflictError(COLLECTION_NAME_EXISTS)

    collection.title = title
    if not keep_description:
        collection.description = description or None
    db.commit()
    db.refresh(collection)
    return collection


def rename_collection(db: Session, user: User, collection_id: uuid.UUID, new_name: str) -> Collection:
    return update_collection_details(db, user, collection_id, new_name, keep_description=True)


def _child_ids(db: Session, collection_id: uuid.UUID) -> list[uuid.UUID]:
    rows = db.query(Collection.id).filter(Collection.parent_id == collection_id).all()
    return [row[0] for row in rows]


def _direct_prompt_ids(db: Session, collection_id: uuid.UUID) -> list[uuid.UUID]:
    rows = (
        db.query(prompt_collections.c.prompt_id)
        .filter(prompt_collections.c.collection_id == collection_id)
        .all()
    )
    return [row[0] for row in rows]


def get_collection_descendants(db: Session, collection_id: uuid.UUID) -> dict[str, list[uuid.UUID]]:
    """Depth-first walk below a collection.

    ``collection_ids`` lists descendants in discovery order (root excluded);
    ``prompt_ids`` covers the root and every descendant, without duplicates.
    """
    collection_ids: list[uuid.UUID] = []
    prompt_ids: list[uuid.UUID] = []
    seen_prompts: set[uuid.UUID] = set()
    seen_collections = {collection_id}

    def _walk(current_id: uuid.UUID) -> None:
        for prompt_id in _direct_prompt_ids(db, current_id):
            if prompt_id not in seen_prompts:
                seen_prompts.add(prompt_id)
                prompt_ids.append(prompt_id)
        for child_id in _child_ids(db, current_id):
            if child_id in seen_collections:
                continue
            seen_collections.add(child_id)
            collection_ids.append(child_id)
            _walk(child_id)

    _walk(collection_id)
    return {"collection_ids": collection_ids, "prompt_ids": prompt_ids}


def delete_collection(
    db: Session, user: User, collection_id: uuid.UUID, delete_prompts: bool = False
) -> Optional[uuid.UUID]:
    """Delete a collection and its whole subtree. Returns the old parent id.

    Prompts are deleted with ``delete_prompts``; otherwise they only lose the
    removed collections.
    """
    collection = get_collection(db, collection_id)
    _ensure_can_modify(user, collection)
    parent_id = collection.parent_id

    walk = get_collection_descendants(db, collection_id)

    # Without delete_prompts the association rows go with each collection
    if delete_prompts:
        for prompt_id in walk["prompt_ids"]:
            prompt = db.get(Prompt, prompt_id)
            if prompt is not None:
                prompt_service.remove_prompt(db, prompt)

    # Leaf-first: descendants were discovered parent before child
    for descendant_id in reversed(walk["collection_ids"]):
        descendant = db.get(Collection, descendant_id)
        if descendant is not None:
            db.delete(descendant)
            db.flush()
    db.delete(collection)
    db.flush()

    tag_service.delete_unused_tags(db, commit=False)
    db.commit()

    logger.info(
        "Collection %s deleted by %s (%d sub-collections, %d prompts, delete_prompts=%s)",
        collection_id,
        user.username,
        len(walk["collection_ids"]),
        len(walk["prompt_ids"]),
        delete_prompts,
    )
    return parent_id


def empty_collection(db: Session, user: User, collection_id: uuid.UUID) -> int:
    """Delete the prompts placed directly in a collection. Returns how many."""
    collection = get_collection(db, collection_id)
    _ensure_can_modify(user, collection)

    prompt_ids = _direct_prompt_ids(db, collection_id)
    for prompt_id in prompt_ids:
        prompt = db.get(Prompt, prompt_id)
        if prompt is not None:
            prompt_service.remove_prompt(db, prompt)

    tag_service.delete_unused_tags(db, commit=False)
    db.commit()
    return len(prompt_ids)


def list_collection_rows(db: Session, owner_id: uuid.UUID) -> list[dict]:
    """Flat ``{id, title, description, parent_id, prompt_count}`` rows of one owner."""
    rows = (
        db.query(Collection, func.count(prompt_collections.c.prompt_id))
        .outerjoin(prompt_collections, prompt_collections.c.collection_id == Collection.id)
        .filter(Collection.owner_id == owner_id)
        .group_by(Collection.id)
        .order_by(Collection.title)
        .all()
    )
    return [
        {
            "id": collection.id,
            "title": collection.title,
            "description": collection.description,
            "parent_id": collection.parent_id,
            "prompt_count": count,
        }
        for collection, count in rows
    ]


def get_collection_tree(db: Session, user: User, include_hidden: bool = False) -> list[dict]:
    tree = build_tree(list_collection_rows(db, user.id))
    if include_hidden:
        return tree
    return filter_hidden_collections(tree, settings_service.get_hidden_collection_ids(db, user.id))


def get_breadcrumbs(db: Session, collection: Collection) -> list[dict]:
    """Ancestors from the root down to the collection itself."""
    crumbs = [{"id": collection.id, "title": collection.title}]
    current_id = collection.parent_id
    depth = 0
    while current_id is not None and depth < MAX_ANCESTOR_DEPTH:
        row = db.query(Collection.id, Collection.title, Collection.parent_id).filter(
            Collection.id == current_id
        ).first()
        if row is None:
            break
        crumbs.insert(0, {"id": row.id, "title": row.title})
        current_id = row.parent_id
        depth += 1
    return crumbs


def get_collection_detail(db: Session, user: User, collection_id: uuid.UUID) -> dict:
    collection = get_collection(db, collection_id)

    prompts = (
        prompt_service.with_relations(db.query(Prompt))
        .join(prompt_collections, prompt_collections.c.prompt_id == Prompt.id)
        .filter(prompt_collections.c.collection_id == collection_id)
        .filter(prompt_service.visible_prompts_filter(user))
        .order_by(Prompt.title)
        .all()
    )

    counts = {
        row["id"]: row for row in list_collection_rows(db, collection.owner_id)
    }
    children = [
        {
            "id": child.id,
            "title": child.title,
            "description": child.description,
            "prompt_count": counts.get(child.id, {}).get("prompt_count", 0),
        }
        for child in collection.children
    ]

    return {
        "id": collection.id,
        "title": collection.title,
        "description": collection.description,
        "parent_id": collection.parent_id,
        "owner_id": collection.owner_id,
        "created_at": collection.created_at,
        "breadcrumbs": get_breadcrumbs(db, collection),
        "children": children,
        "prompts": prompts,
    }
