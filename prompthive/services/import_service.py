"""JSON import of native exports, legacy flat lists and PromptCat files."""

from __future__ import annotations

import logging
import uuid
from pathlib import PurePosixPath
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError
from prompthive.core.messages import IMPORT_INVALID_JSON, IMPORT_INVALID_SCHEMA
from prompthive.models.collection import Collection
from prompthive.models.prompt import ATTACHMENT_ROLE, RESULT_ROLE, Attachment, Prompt, PromptVersion
from prompthive.models.tag import Tag
from prompthive.models.user import User
from prompthive.services import file_service, tag_service
from prompthive.services.id_service import UNASSIGNED, generate_technical_id
from prompthive.utils.import_utils import PROMPTCAT, detect_format, parse_import_text
from prompthive.utils.prompt_utils import normalize_variable_definitions

logger = logging.getLogger("prompthive.services.imports")

DEFAULT_PROMPTCAT_TITLE = "Untitled Prompt"


def _as_list(value: Any) -> list:
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _tags_from(db: Session, raw: Any) -> list[Tag]:
    if isinstance(raw, str):
        names = [part.strip() for part in raw.split(",")]
    else:
        names = [str(name).strip() for name in _as_list(raw)]
    tags: list[Tag] = []
    for name in names:
        if name:
            tag = tag_service.get_or_create_tag(db, name)
            if tag not in tags:
                tags.append(tag)
    return tags


def _root_collection(db: Session, user: User, title: str) -> Collection:
    """Collection of this owner with the title, created at the root when missing."""
    collection = (
        db.query(Collection)
        .filter(Collection.owner_id == user.id, Collection.title == title)
        .first()
    )
    if collection is None:
        collection = Collection(title=title, owner_id=user.id)
        db.add(collection)
        db.flush()
    return collection


def import_structure(
    db: Session, user: User, defined_collections: Iterable[dict[str, Any]], commit: bool = True
) -> dict[str, uuid.UUID]:
    """Recreate an exported collection tree. Returns ``{old id: new id}``.

    Parents are handled before their children; an existing collection with
    the same owner, title and (mapped) parent is reused.
    """
    pending = [c for c in defined_collections if isinstance(c, dict) and c.get("id") and c.get("title")]
    known_ids = {str(c["id"]) for c in pending}
    id_map: dict[str, uuid.UUID] = {}

    while pending:
        ready = [
            c
            for c in pending
            if not c.get("parentId")
            or str(c["parentId"]) in id_map
            or str(c["parentId"]) not in known_ids
        ]
        if not ready:
            # Parent cycle in the document: unmapped parents resolve to the root
            logger.warning("Import structure has a parent cycle; %d collections placed at root", len(pending))
            ready = pending

        for item in ready:
            old_parent = str(item["parentId"]) if item.get("parentId") else None
            parent_id = id_map.get(old_parent) if old_parent else None
            title = str(item["title"]).strip()

            query = db.query(Collection).filter(
                Collection.owner_id == user.id, Collection.title == title
            )
            query = query.filter(
                Collection.parent_id == parent_id if parent_id else Collection.parent_id.is_(None)
            )
            collection = query.first()
            if collection is None:
                collection = Collection(
                    title=title,
                    description=item.get("description") or None,
                    owner_id=user.id,
                    parent_id=parent_id,
                )
                db.add(collection)
                db.flush()
            id_map[str(item["id"])] = collection.id

        ready_ids = {id(c) for c in ready}
        pending = [c for c in pending if id(c) not in ready_ids]

    if commit:
        db.commit()
    return id_map


def _collections_for_item(
    db: Session, user: User, item: dict[str, Any], collection_id_map: Optional[dict[str, uuid.UUID]]
) -> list[Collection]:
    collections: list[Collection] = []

    def _add(collection: Optional[Collection]) -> None:
        if collection is not None and collection not in collections:
            collections.append(collection)

    mapped = False
    if collection_id_map:
        for old_id in _as_list(item.get("collectionIds")):
            new_id = collection_id_map.get(str(old_id))
            if new_id is not None:
                _add(db.get(Collection, new_id))
                mapped = True

    if not mapped:
        for name in _as_list(item.get("collections")):
            name = str(name).strip()
            if name:
                _add(_root_collection(db, user, name))

    legacy = str(item.get("collection") or "").strip()
    if legacy:
        _add(_root_collection(db, user, legacy))
    return collections


def _restore_embedded(file_obj: Any, original_path: Optional[str], default_suffix: str, prefix: str) -> Optional[str]:
    """Write a ``{data, type}`` blob from an export back to uploads."""
    if not isinstance(file_obj, dict) or not file_obj.get("data"):
        return None
    suffix = PurePosixPath(original_path).suffix if original_path else default_suffix
    try:
        return file_service.save_base64(file_obj["data"], suffix, prefix=prefix)
    except (ValueError, OSError) as exc:
        logger.error("Failed to restore file %s: %s", original_path, exc)
        return None


def _build_version(user: User, raw: dict[str, Any], default_number: int) -> PromptVersion:
    result_image = raw.get("resultImage")
    result_path: Optional[str] = None
    if isinstance(result_image, dict):
        result_path = result_image.get("path")
        restored = _restore_embedded(result_image.get("file"), result_path, ".png", "restored-")
        if restored:
            result_path = restored
    elif isinstance(result_image, str):
        result_path = result_image or None

    attachments = []
    for att in _as_list(raw.get("attachments")):
        if not isinstance(att, dict):
            continue
        stored = _restore_embedded(att.get("file"), att.get("filePath"), ".bin", "restored-att-")
        if not stored:
            continue
        attachments.append(
            Attachment(
                file_path=stored,
                file_type=att.get("fileType") or file_service.guess_content_type(stored),
                original_name=att.get("originalName"),
                role=att.get("role") if att.get("role") in (ATTACHMENT_ROLE, RESULT_ROLE) else ATTACHMENT_ROLE,
            )
        )

    number = raw.get("versionNumber")
    return PromptVersion(
        version_number=number if isinstance(number, int) and number > 0 else default_number,
        content=raw.get("content") or "",
        short_content=raw.get("shortContent") or raw.get("longContent"),
        usage_example=raw.get("usageExample"),
        variable_definitions=normalize_variable_definitions(raw.get("variableDefinitions")),
        changelog=raw.get("changelog"),
        result_text=raw.get("resultText"),
        result_image=result_path,
        created_by_id=user.id,
        attachments=attachments,
    )


def _versions_for_item(user: User, item: dict[str, Any]) -> list[PromptVersion]:
    raw_versions = [v for v in _as_list(item.get("versions")) if isinstance(v, dict)]
    if raw_versions:
        versions = []
        used: set[int] = set()
        for index, raw in enumerate(reversed(raw_versions), start=1):
            version = _build_version(user, raw, index)
            # Keep (prompt, version_number) unique even for sloppy files
            while version.version_number in used:
                version.version_number += 1
            used.add(version.version_number)
            versions.append(version)
        return versions

    if item.get("content"):
        return [_build_version(user, item, 1)]
    return []


def _owns_title(db: Session, user: User, title: str) -> bool:
    return (
        db.query(Prompt.id).filter(Prompt.created_by_id == user.id, Prompt.title == title).first()
        is not None
    )


def _create_imported_prompt(
    db: Session,
    user: User,
    *,
    title: str,
    description: Optional[str],
    versions: list[PromptVersion],
    tags: list[Tag],
    collections: list[Collection],
    extra: Optional[dict[str, Any]] = None,
) -> Prompt:
    extra = extra or {}
    technical_id = generate_technical_id(db, collections[0].title if collections else UNASSIGNED)
    prompt = Prompt(
        title=title,
        description=description or "",
        technical_id=technical_id,
        resource=extra.get("resource"),
        is_private=bool(extra.get("isPrivate", False)),
        view_count=extra.get("viewCount") if isinstance(extra.get("viewCount"), int) else 0,
        copy_count=extra.get("copyCount") if isinstance(extra.get("copyCount"), int) else 0,
        created_by_id=user.id,
        versions=versions,
        tags=tags,
        collections=collections,
    )
    db.add(prompt)
    db.flush()
    current = next(
        (v for v in versions if v.version_number == extra.get("currentVersionNumber")),
        max(versions, key=lambda v: v.version_number),
    )
    prompt.current_version_id = current.id
    db.flush()
    return prompt


def _link_related(db: Session, created: list[tuple[Prompt, Optional[str], list]]) -> None:
    """Resolve ``relatedPrompts`` technical ids once every prompt exists."""
    by_old_id = {old_id: prompt for prompt, old_id, _ in created if old_id}
    for prompt, _, related in created:
        for technical_id in related:
            if not isinstance(technical_id, str) or not technical_id:
                continue
            target = by_old_id.get(technical_id)
            if target is None:
                target = db.query(Prompt).filter(Prompt.technical_id == technical_id).first()
            if target is not None and target.id != prompt.id and target not in prompt.related_prompts:
                prompt.related_prompts.append(target)
    db.flush()


def import_prompts(
    db: Session,
    user: User,
    items: Iterable[Any],
    collection_id_map: Optional[dict[str, uuid.UUID]] = None,
) -> dict[str, int]:
    """Import native or legacy prompt records. Returns ``{count, skipped}``."""
    count = 0
    skipped = 0
    created: list[tuple[Prompt, Optional[str], list]] = []

    for item in items:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip()
        if not title or (not item.get("content") and not item.get("versions")):
            continue

        versions = _versions_for_item(user, item)
        if not versions:
            continue
        if _owns_title(db, user, title):
            skipped += 1
            continue

        prompt = _create_imported_prompt(
            db,
            user,
            title=title,
            description=item.get("description"),
            versions=versions,
            tags=_tags_from(db, item.get("tags")),
            collections=_collections_for_item(db, user, item, collection_id_map),
            extra=item,
        )
        created.append((prompt, item.get("technicalId"), _as_list(item.get("relatedPrompts"))))
        count += 1

    _link_related(db, created)
    db.commit()
    logger.info("Imported %d prompts for %s (%d skipped)", count, user.username, skipped)
    return {"count": count, "skipped": skipped}


def import_promptcat(db: Session, user: User, data: Any) -> dict[str, int]:
    """Import a PromptCat document: ``{prompts, folders}`` or a bare prompt list."""
    prompts = data if isinstance(data, list) else data.get("prompts") or []
    folders = [] if isinstance(data, list) else data.get("folders") or []

    folder_map: dict[str, Collection] = {}
    for folder in folders:
        if not isinstance(folder, dict) or not folder.get("name"):
            continue
        collection = _root_collection(db, user, str(folder["name"]).strip())
        if folder.get("id"):
            folder_map[str(folder["id"])] = collection

    count = 0
    skipped = 0
    for item in prompts:
        if not isinstance(item, dict):
            continue
        title = str(item.get("title") or "").strip() or DEFAULT_PROMPTCAT_TITLE
        content = item.get("body") or item.get("content") or ""
        description = item.get("notes") or item.get("description") or ""

        tags = [
            tag_service.get_or_create_tag(db, name)
            for name in (str(t).strip() for t in _as_list(item.get("tags")))
            if name
        ]

        categories = _as_list(item.get("categories")) or _as_list(item.get("category"))
        collections: list[Collection] = []
        for name in (str(c).strip() for c in categories):
            if name:
                collection = _root_collection(db, user, name)
                if collection not in collections:
                    collections.append(collection)
        folder = folder_map.get(str(item.get("folderId"))) if item.get("folderId") else None
        if folder is not None and folder not in collections:
            collections.append(folder)

        if not content:
            continue
        if _owns_title(db, user, title):
            skipped += 1
            continue

        _create_imported_prompt(
            db,
            user,
            title=title,
            description=description,
            versions=[PromptVersion(version_number=1, content=content, created_by_id=user.id)],
            tags=tags,
            collections=collections,
        )
        count += 1

    db.commit()
    logger.info("Imported %d PromptCat prompts for %s (%d skipped)", count, user.username, skipped)
    return {"count": count, "skipped": skipped}


def is_unified_document(data: Any) -> bool:
    return isinstance(data, dict) and "definedCollections" in data and "prompts" in data


def import_unified(
    db: Session,
    user: User,
    data: Any,
    collection_id_map: Optional[dict[str, uuid.UUID]] = None,
) -> dict[str, int]:
    """Dispatch a parsed document to the matching importer."""
    if is_unified_document(data):
        id_map = dict(collection_id_map or {})
        id_map.update(import_structure(db, user, _as_list(data.get("definedCollections")), commit=False))
        return import_prompts(db, user, _as_list(data.get("prompts")), id_map)

    if detect_format(data) == PROMPTCAT:
        return import_promptcat(db, user, data)

    return import_prompts(db, user, data if isinstance(data, list) else [data], collection_id_map)


def import_document(db: Session, user: User, text: str) -> dict[str, Any]:
    """Parse an uploaded JSON text and import it."""
    try:
        data = parse_import_text(text)
    except ValueError as exc:
        logger.warning("Import rejected, unparseable JSON: %s", exc)
        raise InvalidParameterError(IMPORT_INVALID_JSON) from exc

    if not isinstance(data, (dict, list)):
        raise InvalidParameterError(IMPORT_INVALID_SCHEMA)

    result = import_unified(db, user, data)
    return {"success": True, "count": result["count"], "skipped": result["skipped"]}
