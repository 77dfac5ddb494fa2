"""JSON exports: the v2 backup document, batched export and the zero format."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError
from prompthive.core.messages import EXPORT_NO_COLLECTIONS
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt, PromptVersion, prompt_collections
from prompthive.models.user import User
from prompthive.services import prompt_service
from prompthive.services.file_service import read_file_base64

EXPORT_VERSION = 2
ZERO_EXPORT_VERSION = 1


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _descendant_ids(db: Session, owner_id: uuid.UUID, root_ids: Iterable[uuid.UUID]) -> set[uuid.UUID]:
    """The roots plus every collection below them, within one owner's tree."""
    children: dict[uuid.UUID, list[uuid.UUID]] = {}
    for collection_id, parent_id in db.query(Collection.id, Collection.parent_id).filter(
        Collection.owner_id == owner_id
    ):
        if parent_id is not None:
            children.setdefault(parent_id, []).append(collection_id)

    found: set[uuid.UUID] = set()
    stack = list(root_ids)
    while stack:
        current = stack.pop()
        if current in found:
            continue
        found.add(current)
        stack.extend(children.get(current, []))
    return found


def get_export_meta(
    db: Session,
    user: User,
    collection_ids: Optional[list[uuid.UUID]] = None,
    recursive: bool = False,
) -> dict[str, Any]:
    """Prompt ids in scope and the collection structure needed to rebuild them."""
    query = db.query(Prompt).filter(Prompt.created_by_id == user.id)

    target_ids: set[uuid.UUID] = set()
    if collection_ids:
        target_ids = (
            _descendant_ids(db, user.id, collection_ids) if recursive else set(collection_ids)
        )
        query = query.filter(
            Prompt.id.in_(
                db.query(prompt_collections.c.prompt_id).filter(
                    prompt_collections.c.collection_id.in_(target_ids)
                )
            )
        )

    prompts = query.all()
    relevant: set[uuid.UUID] = {c.id for p in prompts for c in p.collections}
    if collection_ids and recursive:
        # Empty folders of the selected trees keep their place
        relevant |= target_ids

    by_id = {
        c.id: c for c in db.query(Collection).filter(Collection.owner_id == user.id).all()
    }
    stack = list(relevant)
    while stack:
        collection = by_id.get(stack.pop())
        if collection is not None and collection.parent_id is not None and collection.parent_id not in relevant:
            relevant.add(collection.parent_id)
            stack.append(collection.parent_id)

    defined = [
        {
            "id": str(c.id),
            "title": c.title,
            "description": c.description,
            "parentId": str(c.parent_id) if c.parent_id else None,
        }
        for c in sorted((by_id[i] for i in relevant if i in by_id), key=lambda c: c.title.lower())
    ]

    return {
        "success": True,
        "totalPrompts": len(prompts),
        "promptIds": [str(p.id) for p in prompts],
        "definedCollections": defined,
    }


def _export_version(version: PromptVersion) -> dict[str, Any]:
    return {
        "versionNumber": version.version_number,
        "content": version.content,
        "shortContent": version.short_content,
        "usageExample": version.usage_example,
        "variableDefinitions": version.variable_definitions,
        "changelog": version.changelog,
        "resultText": version.result_text,
        "resultImage": (
            {"path": version.result_image, "file": read_file_base64(version.result_image)}
            if version.result_image
            else None
        ),
        "attachments": [
            {
                "filePath": a.file_path,
                "fileType": a.file_type,
                "originalName": a.original_name,
                "role": a.role,
                "file": read_file_base64(a.file_path),
            }
            for a in version.attachments
        ],
        "createdAt": _iso(version.created_at),
    }


def export_prompt(prompt: Prompt) -> dict[str, Any]:
    return {
        "id": str(prompt.id),
        "technicalId": prompt.technical_id,
        "title": prompt.title,
        "description": prompt.description,
        "resource": prompt.resource,
        "isPrivate": prompt.is_private,
        "tags": [t.name for t in prompt.tags],
        "collections": [c.title for c in prompt.collections],
        "collectionIds": [str(c.id) for c in prompt.collections],
        "relatedPrompts": [r.technical_id for r in prompt.related_prompts if r.technical_id],
        "viewCount": prompt.view_count,
        "copyCount": prompt.copy_count,
        "createdAt": _iso(prompt.created_at),
        "updatedAt": _iso(prompt.updated_at),
        "versions": [_export_version(v) for v in prompt.versions],
    }


def get_export_batch(db: Session, user: User, ids: Iterable[uuid.UUID]) -> dict[str, Any]:
    ids = list(ids)
    if not ids:
        return {"success": True, "prompts": []}
    prompts = (
        prompt_service.with_relations(db.query(Prompt))
        .filter(Prompt.id.in_(ids), Prompt.created_by_id == user.id)
        .all()
    )
    return {"success": True, "prompts": [export_prompt(p) for p in prompts]}


def get_full_export(db: Session, user: User) -> dict[str, Any]:
    """Every prompt of the user with the collection structure, files inlined."""
    meta = get_export_meta(db, user)
    batch = get_export_batch(db, user, [uuid.UUID(i) for i in meta["promptIds"]])
    return {
        "version": EXPORT_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "definedCollections": meta["definedCollections"],
        "prompts": batch["prompts"],
    }


def export_filename(now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return f"prompthive-backup-{now.strftime('%Y-%m-%d')}.json"


def generate_zero_export(db: Session, user: User, collection_ids: list[uuid.UUID]) -> dict[str, Any]:
    """Flat latest-version export of the selected collection trees."""
    if not collection_ids:
        raise InvalidParameterError(EXPORT_NO_COLLECTIONS)

    scope = _descendant_ids(db, user.id, collection_ids)
    collections = (
        db.query(Collection)
        .filter(Collection.id.in_(scope), Collection.owner_id == user.id)
        .order_by(Collection.title)
        .all()
    )
    prompts = (
        prompt_service.with_relations(db.query(Prompt))
        .filter(Prompt.created_by_id == user.id)
        .filter(
            Prompt.id.in_(
                db.query(prompt_collections.c.prompt_id).filter(
                    prompt_collections.c.collection_id.in_(scope)
                )
            )
        )
        .order_by(Prompt.title)
        .all()
    )

    exported = []
    for prompt in prompts:
        latest = prompt.latest_version
        in_scope = next((c.id for c in prompt.collections if c.id in scope), None)
        collection_id = in_scope or (prompt.collections[0].id if prompt.collections else None)
        exported.append(
            {
                "id": str(prompt.id),
                "technicalId": prompt.technical_id,
                "title": prompt.title,
                "description": prompt.description,
                "content": latest.content if latest else "",
                "shortPrompt": (latest.short_content if latest else None) or "",
                "exampleOutput": (latest.usage_example if latest else None) or "",
                "expectedResult": (latest.result_text if latest else None) or "",
                "tags": [t.name for t in prompt.tags],
                "collectionId": str(collection_id) if collection_id else None,
                "createdAt": _iso(prompt.created_at),
                "updatedAt": _iso(prompt.updated_at),
                "relatedPrompts": [r.technical_id for r in prompt.related_prompts if r.technical_id],
            }
        )

    return {
        "version": ZERO_EXPORT_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "collections": [
            {"id": str(c.id), "name": c.title, "parentId": str(c.parent_id) if c.parent_id else None}
            for c in collections
        ],
        "prompts": exported,
    }
