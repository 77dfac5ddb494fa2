"""Import a directory tree from the server's disk.

A directory holding text files is one prompt; any other directory is a
collection whose sub-directories are imported recursively.
"""

from __future__ import annotations

import logging
import uuid
from pathlib import Path
from typing import Optional

from sqlalchemy.orm import Session

from prompthive.core.exceptions import InvalidParameterError
from prompthive.models.collection import Collection
from prompthive.models.prompt import ATTACHMENT_ROLE, Attachment, Prompt, PromptVersion
from prompthive.models.user import User
from prompthive.services import collection_service, file_service
from prompthive.services.id_service import generate_technical_id

logger = logging.getLogger("prompthive.services.folder_import")

TEXT_EXTENSIONS = (".txt", ".md", ".markdown")
CHANGELOG = "Imported from local folder"


def _find_or_create_collection(
    db: Session, user: User, title: str, parent_id: Optional[uuid.UUID]
) -> Collection:
    query = db.query(Collection).filter(Collection.owner_id == user.id, Collection.title == title)
    query = query.filter(
        Collection.parent_id == parent_id if parent_id else Collection.parent_id.is_(None)
    )
    collection = query.first()
    if collection is None:
        collection = Collection(title=title, owner_id=user.id, parent_id=parent_id)
        db.add(collection)
        db.flush()
    return collection


def _import_prompt_dir(db: Session, user: User, directory: Path, files: list[Path], parent: Collection) -> None:
    text_files = [f for f in files if f.suffix.lower() in TEXT_EXTENSIONS]

    content = text_files[0].read_text(encoding="utf-8", errors="replace")
    for extra in text_files[1:]:
        content += f"\n\n--- {extra.name} ---\n{extra.read_text(encoding='utf-8', errors='replace')}"

    attachments = [
        Attachment(role=ATTACHMENT_ROLE, **file_service.copy_local_file(f))
        for f in files
        if f.suffix.lower() not in TEXT_EXTENSIONS and not f.name.startswith(".")
    ]

    version = PromptVersion(
        version_number=1,
        content=content,
        changelog=CHANGELOG,
        created_by_id=user.id,
        attachments=attachments,
    )
    prompt = Prompt(
        title=directory.name,
        description=content[:150].replace("\n", " ") + "...",
        technical_id=generate_technical_id(db, parent.title),
        created_by_id=user.id,
        versions=[version],
        collections=[parent],
    )
    db.add(prompt)
    db.flush()
    prompt.current_version_id = version.id
    db.flush()


def _process_directory(db: Session, user: User, directory: Path, parent: Collection) -> int:
    entries = sorted(directory.iterdir(), key=lambda p: p.name.lower())
    files = [e for e in entries if e.is_file()]

    if any(f.suffix.lower() in TEXT_EXTENSIONS for f in files):
        _import_prompt_dir(db, user, directory, files, parent)
        return 1

    collection = _find_or_create_collection(db, user, directory.name, parent.id)
    return sum(
        _process_directory(db, user, sub, collection) for sub in entries if sub.is_dir()
    )


def import_local_folder(
    db: Session, user: User, path: str, target_collection_id: Optional[uuid.UUID] = None
) -> int:
    """Import ``path``; returns the number of prompts created."""
    root = Path(path).expanduser()
    if not root.is_dir():
        raise InvalidParameterError(f"Path does not exist: {path}")

    if target_collection_id is not None:
        root_collection = collection_service.get_collection(db, target_collection_id)
    else:
        root_collection = _find_or_create_collection(db, user, root.name, None)

    count = 0
    for entry in sorted(root.iterdir(), key=lambda p: p.name.lower()):
        if entry.is_dir():
            count += _process_directory(db, user, entry, root_collection)

    db.commit()
    logger.info("Imported %d prompts from %s for %s", count, root, user.username)
    return count
