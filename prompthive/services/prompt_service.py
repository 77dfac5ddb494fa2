"""Prompt lifecycle: creation, versioning, moves, links and deletion."""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Iterable, Optional

from sqlalchemy import func, or_, true
from sqlalchemy.orm import Session, selectinload

from prompthive.core.exceptions import (
    ConflictError,
    InvalidParameterError,
    NotFoundError,
    PermissionDeniedError,
)
from prompthive.core.messages import (
    ACCESS_DENIED,
    ANALYTICS_MISSING_FIELDS,
    COLLECTION_NOT_FOUND,
    PROMPT_LINK_SELF,
    PROMPT_LOCK_CREATOR_ONLY,
    PROMPT_LOCKED,
    PROMPT_LOCKED_BY_CREATOR,
    PROMPT_NOT_FOUND,
    PROMPT_TITLE_EXISTS,
    PROMPT_VISIBILITY_CREATOR_ONLY,
    VERSION_NOT_FOUND,
)
from prompthive.core.permissions import is_admin
from prompthive.models.collection import Collection
from prompthive.models.favorite import Favorite
from prompthive.models.prompt import (
    ATTACHMENT_ROLE,
    RESULT_ROLE,
    Attachment,
    Prompt,
    PromptVersion,
)
from prompthive.models.tag import Tag
from prompthive.models.user import User
from prompthive.schemas.prompt import PromptCreate, VersionCreate
from prompthive.services import file_service, settings_service, tag_service
from prompthive.services.file_service import IncomingFile
from prompthive.services.id_service import UNASSIGNED, generate_technical_id

logger = logging.getLogger("prompthive.services.prompts")

UNASSIGNED_COLLECTION = "unassigned"
ANALYTICS_EVENTS = ("view", "copy")


def with_relations(query):
    return query.options(
        selectinload(Prompt.versions).selectinload(PromptVersion.attachments),
        selectinload(Prompt.tags),
        selectinload(Prompt.collections),
        selectinload(Prompt.created_by),
    )


def get_prompt(db: Session, prompt_id: uuid.UUID) -> Prompt:
    prompt = db.get(Prompt, prompt_id)
    if prompt is None:
        raise NotFoundError(PROMPT_NOT_FOUND)
    return prompt


def can_view(user: User, prompt: Prompt) -> bool:
    return not prompt.is_private or prompt.created_by_id == user.id or is_admin(user)


def visible_prompts_filter(user: User):
    """SQL condition hiding other people's private prompts."""
    if is_admin(user):
        return true()
    return or_(Prompt.is_private.is_(False), Prompt.created_by_id == user.id)


def get_prompt_detail(db: Session, user: User, prompt_id: uuid.UUID) -> Prompt:
    prompt = (
        with_relations(db.query(Prompt))
        .options(selectinload(Prompt.related_prompts), selectinload(Prompt.related_to_prompts))
        .filter(Prompt.id == prompt_id)
        .first()
    )
    if prompt is None or not can_view(user, prompt):
        raise NotFoundError(PROMPT_NOT_FOUND)
    return prompt


def _ensure_owner_or_admin(user: User, prompt: Prompt) -> None:
    if prompt.created_by_id != user.id and not is_admin(user):
        raise PermissionDeniedError(ACCESS_DENIED)


def _get_collection(db: Session, collection_id: Optional[uuid.UUID]) -> Optional[Collection]:
    if collection_id is None:
        return None
    collection = db.get(Collection, collection_id)
    if collection is None:
        raise NotFoundError(COLLECTION_NOT_FOUND)
    return collection


def _store_uploads(files: Iterable[IncomingFile], role: str, prefix: str = "") -> list[Attachment]:
    attachments = []
    for upload in files:
        if not upload.content:
            continue
        stored = file_service.save_file(upload.content, upload.filename, upload.content_type, prefix=prefix)
        attachments.append(Attachment(role=role, **stored))
    return attachments


def create_prompt(
    db: Session,
    user: User,
    data: PromptCreate,
    attachments: Iterable[IncomingFile] = (),
    result_images: Iterable[IncomingFile] = (),
) -> Prompt:
    existing = (
        db.query(Prompt)
        .filter(Prompt.created_by_id == user.id, Prompt.title == data.title)
        .first()
    )
    if existing:
        raise ConflictError(PROMPT_TITLE_EXISTS)

    collection = _get_collection(db, data.collection_id)
    tags = tag_service.get_tags_by_ids(db, data.tag_ids)

    saved = _store_uploads(attachments, ATTACHMENT_ROLE)
    results = _store_uploads(result_images, RESULT_ROLE, prefix="result-")

    prompt = Prompt(
        title=data.title,
        description=data.description,
        resource=data.resource,
        is_private=data.is_private,
        created_by_id=user.id,
        technical_id=generate_technical_id(db, collection.title if collection else UNASSIGNED),
        tags=tags,
        collections=[collection] if collection else [],
    )
    version = PromptVersion(
        version_number=1,
        content=data.content,
        short_content=data.short_content,
        usage_example=data.usage_example,
        variable_definitions=data.variable_definitions,
        result_text=data.result_text,
        result_image=results[0].file_path if results else None,
        created_by_id=user.id,
        attachments=saved + results,
    )
    prompt.versions.append(version)
    db.add(prompt)
    db.flush()

    prompt.current_version_id = version.id
    db.commit()
    db.refresh(prompt)

    logger.info("Prompt %s (%s) created by %s", prompt.id, prompt.technical_id, user.username)
    return prompt


def _next_version_number(db: Session, prompt_id: uuid.UUID) -> int:
    current = (
        db.query(func.max(PromptVersion.version_number))
        .filter(PromptVersion.prompt_id == prompt_id)
        .scalar()
    )
    return (current or 0) + 1


def _kept_attachments(
    db: Session, prompt_id: uuid.UUID, attachment_ids: list[uuid.UUID], role: Optional[str] = None
) -> list[Attachment]:
    if not attachment_ids:
        return []
    query = (
        db.query(Attachment)
        .join(PromptVersion, Attachment.version_id == PromptVersion.id)
        .filter(Attachment.id.in_(attachment_ids), PromptVersion.prompt_id == prompt_id)
    )
    if role is not None:
        query = query.filter(Attachment.role == role)
    query = query.order_by(Attachment.created_at)
    return [
        Attachment(
            file_path=att.file_path,
            file_type=att.file_type,
            original_name=att.original_name,
            role=role or ATTACHMENT_ROLE,
        )
        for att in query.all()
    ]


def create_version(
    db: Session,
    user: User,
    prompt_id: uuid.UUID,
    data: VersionCreate,
    attachments: Iterable[IncomingFile] = (),
    result_images: Iterable[IncomingFile] = (),
) -> PromptVersion:
    """Append a version and apply metadata changes.

    Locked prompts reject new versions until their creator unlocks them.
    """
    prompt = get_prompt(db, prompt_id)
    if not can_view(user, prompt):
        raise NotFoundError(PROMPT_NOT_FOUND)
    if prompt.is_locked:
        raise PermissionDeniedError(PROMPT_LOCKED)

    saved = _kept_attachments(db, prompt.id, data.keep_attachment_ids)
    saved += _store_uploads(attachments, ATTACHMENT_ROLE)
    saved += _kept_attachments(db, prompt.id, data.keep_result_image_ids, role=RESULT_ROLE)

    primary_result: Optional[str] = None
    if data.existing_result_image_path:
        ext = Path(data.existing_result_image_path).suffix.lower().lstrip(".")
        saved.append(
            Attachment(
                file_path=data.existing_result_image_path,
                file_type=f"image/{ext}" if ext else "image/legacy",
                role=RESULT_ROLE,
            )
        )
        primary_result = data.existing_result_image_path

    new_results = _store_uploads(result_images, RESULT_ROLE, prefix="result-")
    saved += new_results
    if primary_result is None and new_results:
        primary_result = new_results[0].file_path
    if primary_result is None:
        primary_result = next((a.file_path for a in saved if a.role == RESULT_ROLE), None)

    version = PromptVersion(
        prompt_id=prompt.id,
        version_number=_next_version_number(db, prompt.id),
        content=data.content,
        short_content=data.short_content,
        usage_example=data.usage_example,
        variable_definitions=data.variable_definitions,
        result_text=data.result_text,
        result_image=primary_result,
        changelog=data.changelog,
        created_by_id=user.id,
        attachments=saved,
    )
    db.add(version)
    db.flush()

    prompt.current_version_id = version.id
    if data.title:
        prompt.title = data.title
    if data.description is not None:
        prompt.description = data.description
    if data.resource is not None:
        prompt.resource = data.resource
    if data.is_private is not None:
        prompt.is_private = data.is_private

    if data.collection_id:
        if data.collection_id == UNASSIGNED_COLLECTION:
            prompt.collections = []
        else:
            try:
                collection_uuid = uuid.UUID(data.collection_id)
            except ValueError as exc:
                raise InvalidParameterError("Invalid collection ID") from exc
            prompt.collections = [_get_collection(db, collection_uuid)]

    if data.tag_ids is not None:
        prompt.tags = tag_service.get_tags_by_ids(db, data.tag_ids)

    db.commit()
    db.refresh(version)
    logger.info("Prompt %s now at version %d", prompt.id, version.version_number)
    return version


def restore_version(db: Session, user: User, prompt_id: uuid.UUID, version_id: uuid.UUID) -> PromptVersion:
    prompt = get_prompt(db, prompt_id)
    _ensure_owner_or_admin(user, prompt)

    source = db.get(PromptVersion, version_id)
    if source is None or source.prompt_id != prompt.id:
        raise NotFoundError(VERSION_NOT_FOUND)

    attached_paths = {a.file_path for a in source.attachments}
    # Stored values were validated on the way in
    data = VersionCreate.model_construct(
        content=source.content,
        title=prompt.title,
        short_content=source.short_content or "",
        usage_example=source.usage_example or "",
        variable_definitions=source.variable_definitions or None,
        changelog=f"Restored from version {source.version_number}",
        result_text=source.result_text or "",
        keep_attachment_ids=[a.id for a in source.attachments if a.role != RESULT_ROLE],
        keep_result_image_ids=[a.id for a in source.attachments if a.role == RESULT_ROLE],
        existing_result_image_path=source.result_image if source.result_image not in attached_paths else None,
    )
    return create_version(db, user, prompt.id, data)


def cleanup_prompt_assets(prompt: Prompt) -> None:
    """Delete every stored file the prompt's versions reference."""
    for version in prompt.versions:
        attached = set()
        for attachment in version.attachments:
            file_service.delete_file(attachment.file_path)
            attached.add(attachment.file_path)
        if version.result_image and version.result_image not in attached:
            file_service.delete_file(version.result_image)


def remove_prompt(db: Session, prompt: Prompt) -> None:
    """Delete a prompt with its files, favorites and workflow steps. Flushes only."""
    cleanup_prompt_assets(prompt)
    prompt.current_version_id = None
    db.flush()
    db.delete(prompt)
    db.flush()


def delete_prompt(db: Session, user: User, prompt_id: uuid.UUID) -> None:
    prompt = get_prompt(db, prompt_id)
    _ensure_owner_or_admin(user, prompt)

    tag_ids = [t.id for t in prompt.tags]
    remove_prompt(db, prompt)

    if tag_ids:
        orphaned = (
            db.query(Tag)
            .filter(Tag.id.in_(tag_ids), ~Tag.prompts.any())
            .all()
        )
        for tag in orphaned:
            db.delete(tag)

    db.commit()
    logger.info("Prompt %s deleted by %s", prompt_id, user.username)


def bulk_delete_prompts(db: Session, user: User, prompt_ids: Iterable[uuid.UUID]) -> int:
    prompts = db.query(Prompt).filter(Prompt.id.in_(list(prompt_ids))).all()
    for prompt in prompts:
        _ensure_owner_or_admin(user, prompt)
    for prompt in prompts:
        remove_prompt(db, prompt)
    tag_service.delete_unused_tags(db, commit=False)
    db.commit()
    return len(prompts)


def get_all_prompts_simple(db: Session, user: User) -> list[dict]:
    prompts = (
        db.query(Prompt)
        .options(selectinload(Prompt.versions))
        .filter(Prompt.created_by_id == user.id)
        .order_by(Prompt.title.asc())
        .all()
    )
    return [
        {
            "id": p.id,
            "title": p.title,
            "variable_definitions": p.latest_version.variable_definitions if p.latest_version else None,
        }
        for p in prompts
    ]


def _assign_collection(db: Session, prompt: Prompt, collection: Optional[Collection]) -> None:
    prompt.technical_id = generate_technical_id(db, collection.title if collection else UNASSIGNED)
    prompt.collections = [collection] if collection else []


def move_prompt(db: Session, user: User, prompt_id: uuid.UUID, collection_id: Optional[uuid.UUID]) -> Prompt:
    prompt = get_prompt(db, prompt_id)
    if prompt.is_locked and prompt.created_by_id != user.id:
        raise PermissionDeniedError(PROMPT_LOCKED_BY_CREATOR)

    _assign_collection(db, prompt, _get_collection(db, collection_id))
    db.commit()
    db.refresh(prompt)
    return prompt


def bulk_move_prompts(
    db: Session, user: User, prompt_ids: Iterable[uuid.UUID], collection_id: Optional[uuid.UUID]
) -> int:
    prompts = db.query(Prompt).filter(Prompt.id.in_(list(prompt_ids))).all()
    locked = next((p for p in prompts if p.is_locked and p.created_by_id != user.id), None)
    if locked is not None:
        raise PermissionDeniedError(f"Prompt {locked.title} is locked by its creator.")

    collection = _get_collection(db, collection_id)
    for prompt in prompts:
        _assign_collection(db, prompt, collection)
    db.commit()
    return len(prompts)


def bulk_add_tags(db: Session, user: User, prompt_ids: Iterable[uuid.UUID], tag_ids: Iterable[uuid.UUID]) -> int:
    prompts = db.query(Prompt).filter(Prompt.id.in_(list(prompt_ids))).all()
    tags = tag_service.get_tags_by_ids(db, tag_ids)
    if not prompts or not tags:
        return 0

    locked = next((p for p in prompts if p.is_locked and p.created_by_id != user.id), None)
    if locked is not None:
        raise PermissionDeniedError(f"Prompt {locked.title} is locked by its creator.")

    for prompt in prompts:
        for tag in tags:
            if tag not in prompt.tags:
                prompt.tags.append(tag)
    db.commit()
    return len(prompts)


def toggle_lock(db: Session, user: User, prompt_id: uuid.UUID) -> Prompt:
    prompt = get_prompt(db, prompt_id)
    if prompt.created_by_id != user.id:
        raise PermissionDeniedError(PROMPT_LOCK_CREATOR_ONLY)
    prompt.is_locked = not prompt.is_locked
    db.commit()
    db.refresh(prompt)
    return prompt


def toggle_visibility(db: Session, user: User, prompt_id: uuid.UUID) -> Prompt:
    prompt = get_prompt(db, prompt_id)
    if prompt.created_by_id != user.id:
        raise PermissionDeniedError(PROMPT_VISIBILITY_CREATOR_ONLY)
    prompt.is_private = not prompt.is_private
    db.commit()
    db.refresh(prompt)
    return prompt


def search_prompts_for_linking(
    db: Session, user: User, query: str, exclude_id: Optional[uuid.UUID] = None
) -> list[Prompt]:
    if not query or len(query) < 2:
        return []

    excluded: set[uuid.UUID] = set()
    if exclude_id is not None:
        excluded.add(exclude_id)
        current = db.get(Prompt, exclude_id)
        if current is not None:
            excluded.update(p.id for p in current.related_prompts)
            excluded.update(p.id for p in current.related_to_prompts)

    pattern = f"%{query}%"
    q = db.query(Prompt).filter(
        Prompt.created_by_id == user.id,
        or_(Prompt.title.ilike(pattern), Prompt.technical_id.ilike(pattern)),
    )
    if excluded:
        q = q.filter(Prompt.id.notin_(excluded))
    return q.order_by(Prompt.title).limit(10).all()


def link_prompts(db: Session, user: User, prompt_id: uuid.UUID, related_id: uuid.UUID) -> None:
    if prompt_id == related_id:
        raise InvalidParameterError(PROMPT_LINK_SELF)
    prompt = get_prompt(db, prompt_id)
    related = get_prompt(db, related_id)
    if related not in prompt.related_prompts and prompt not in related.related_prompts:
        prompt.related_prompts.append(related)
    db.commit()


def unlink_prompts(db: Session, user: User, prompt_id: uuid.UUID, related_id: uuid.UUID) -> None:
    prompt = get_prompt(db, prompt_id)
    related = get_prompt(db, related_id)
    if related in prompt.related_prompts:
        prompt.related_prompts.remove(related)
    elif prompt in related.related_prompts:
        related.related_prompts.remove(prompt)
    db.commit()


def record_analytics(db: Session, prompt_id: Optional[uuid.UUID], event_type: Optional[str]) -> Prompt:
    if prompt_id is None or not event_type:
        raise InvalidParameterError(ANALYTICS_MISSING_FIELDS)
    if event_type not in ANALYTICS_EVENTS:
        raise InvalidParameterError(f"Invalid event type: {event_type}")

    prompt = get_prompt(db, prompt_id)
    if event_type == "view":
        prompt.view_count = Prompt.view_count + 1
    else:
        prompt.copy_count = Prompt.copy_count + 1
    db.commit()
    db.refresh(prompt)
    return prompt


_SORT_COLUMNS = {
    "date": Prompt.created_at,
    "alpha": Prompt.title,
    "usage": Prompt.copy_count,
}


def search_prompts(
    db: Session,
    user: User,
    *,
    q: Optional[str] = None,
    tags: Optional[str] = None,
    creator: Optional[str] = None,
    sort: str = "date",
    order: str = "desc",
) -> list[Prompt]:
    """Filter visible prompts by free text, tags and creator."""
    query = with_relations(db.query(Prompt)).filter(visible_prompts_filter(user))

    hidden_ids = settings_service.get_hidden_user_ids(db, user.id)
    if hidden_ids:
        query = query.filter(Prompt.created_by_id.notin_(hidden_ids))

    if q:
        pattern = f"%{q}%"
        query = query.filter(
            or_(
                Prompt.title.ilike(pattern),
                Prompt.description.ilike(pattern),
                Prompt.technical_id.ilike(pattern),
                Prompt.created_by.has(or_(User.email.ilike(pattern), User.username.ilike(pattern))),
                Prompt.tags.any(Tag.name.ilike(pattern)),
            )
        )

    if tags:
        names_or_ids = [t.strip() for t in tags.split(",") if t.strip()]
        tag_uuids = []
        for value in names_or_ids:
            try:
                tag_uuids.append(uuid.UUID(value))
            except ValueError:
                continue
        if names_or_ids:
            conditions = [Tag.name.in_(names_or_ids)]
            if tag_uuids:
                conditions.append(Tag.id.in_(tag_uuids))
            query = query.filter(Prompt.tags.any(or_(*conditions)))

    if creator:
        pattern = f"%{creator}%"
        query = query.filter(
            Prompt.created_by.has(or_(User.email.ilike(pattern), User.username.ilike(pattern)))
        )

    column = _SORT_COLUMNS.get(sort, Prompt.created_at)
    query = query.order_by(column.asc() if order == "asc" else column.desc())
    return query.all()


def get_dashboard(db: Session, user: User, limit: int = 4) -> dict:
    hidden_ids = settings_service.get_hidden_user_ids(db, user.id)

    def _visible(query):
        query = query.filter(visible_prompts_filter(user))
        if hidden_ids:
            query = query.filter(Prompt.created_by_id.notin_(hidden_ids))
        return query

    favorites_query = _visible(
        with_relations(db.query(Prompt)).join(Favorite, Favorite.prompt_id == Prompt.id)
    ).filter(Favorite.user_id == user.id)
    favorites = favorites_query.order_by(Favorite.created_at.desc()).all()

    recent = (
        with_relations(db.query(Prompt))
        .filter(Prompt.created_by_id == user.id)
        .order_by(Prompt.updated_at.desc())
        .limit(limit)
        .all()
    )
    newest = _visible(with_relations(db.query(Prompt))).order_by(Prompt.created_at.desc()).limit(limit).all()
    popular = _visible(with_relations(db.query(Prompt))).order_by(Prompt.view_count.desc()).limit(limit).all()

    return {
        "favorites": favorites[:limit],
        "recent": recent,
        "newest": newest,
        "popular": popular,
        "favorite_ids": [p.id for p in favorites],
    }
