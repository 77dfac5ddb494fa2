"""Storage of uploaded files under ``UPLOAD_DIR``.

Files are addressed by their public path ``/uploads/<name>``; the stored name
is ``<prefix><epoch-ms>-<original name>``.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from prompthive.core.config import settings
from prompthive.core.exceptions import InvalidParameterError

logger = logging.getLogger("prompthive.services.files")

ALLOWED_EXTENSIONS = (
    ".txt",
    ".md",
    ".doc",
    ".docx",
    ".xls",
    ".xlsx",
    ".pdf",
    ".jpg",
    ".jpeg",
    ".png",
    ".svg",
    ".gif",
    ".webp",
    ".json",
    ".j2",
    ".xml",
    ".xsd",
    ".swagger",
    ".jinja2",
)

PUBLIC_PREFIX = "/uploads/"

_EXTRA_TYPES = {
    ".md": "text/markdown",
    ".j2": "text/plain",
    ".jinja2": "text/plain",
    ".swagger": "application/json",
    ".xsd": "application/xml",
    ".webp": "image/webp",
}
_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


@dataclass
class IncomingFile:
    """An uploaded file already read into memory."""

    filename: str
    content: bytes
    content_type: Optional[str] = None


def get_upload_dir() -> Path:
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def guess_content_type(filename: str) -> str:
    ext = Path(filename).suffix.lower()
    if ext in _EXTRA_TYPES:
        return _EXTRA_TYPES[ext]
    guessed, _ = mimetypes.guess_type(filename)
    return guessed or "application/octet-stream"


def validate_file_extension(filename: str) -> None:
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_EXTENSIONS:
        raise InvalidParameterError(
            f"File extension {ext} not allowed. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
        )


def is_safe_filename(filename: str) -> bool:
    return bool(filename) and ".." not in filename and "/" not in filename and "\\" not in filename


def resolve_public_path(file_path: str) -> Optional[Path]:
    """Map ``/uploads/<name>`` to the file on disk, or None for foreign paths."""
    if not file_path or not file_path.startswith(PUBLIC_PREFIX):
        return None
    name = file_path[len(PUBLIC_PREFIX):]
    if not is_safe_filename(name):
        return None
    return get_upload_dir() / name


def _unique_name(upload_dir: Path, prefix: str, name: str) -> str:
    stamp = int(time.time() * 1000)
    candidate = f"{prefix}{stamp}-{name}"
    while (upload_dir / candidate).exists():
        stamp += 1
        candidate = f"{prefix}{stamp}-{name}"
    return candidate


def save_file(
    content: bytes,
    filename: str,
    content_type: Optional[str] = None,
    prefix: str = "",
) -> dict[str, str]:
    """Validate and store an upload. Returns ``{file_path, file_type, original_name}``."""
    validate_file_extension(filename)

    if len(content) > settings.MAX_UPLOAD_SIZE:
        raise InvalidParameterError(
            f"File too large. Maximum size: {settings.MAX_UPLOAD_SIZE // (1024 * 1024)}MB"
        )

    upload_dir = get_upload_dir()
    safe_name = _UNSAFE_CHARS.sub("_", Path(filename).name)
    stored_name = _unique_name(upload_dir, prefix, safe_name)
    (upload_dir / stored_name).write_bytes(content)

    logger.info("Stored upload %s (%d bytes)", stored_name, len(content))
    return {
        "file_path": f"{PUBLIC_PREFIX}{stored_name}",
        "file_type": content_type or guess_content_type(filename),
        "original_name": filename,
    }


def save_base64(data: str, suffix: str, prefix: str = "restored-") -> str:
    """Write base64 content from an export back to uploads. Returns the public path."""
    raw = base64.b64decode(data)
    upload_dir = get_upload_dir()
    stored_name = _unique_name(upload_dir, prefix, f"file{suffix or '.bin'}")
    (upload_dir / stored_name).write_bytes(raw)
    return f"{PUBLIC_PREFIX}{stored_name}"


def copy_local_file(source: Path, prefix: str = "imported-") -> dict[str, str]:
    upload_dir = get_upload_dir()
    safe_name = _UNSAFE_CHARS.sub("_", source.name)
    stored_name = _unique_name(upload_dir, prefix, safe_name)
    (upload_dir / stored_name).write_bytes(source.read_bytes())
    return {
        "file_path": f"{PUBLIC_PREFIX}{stored_name}",
        "file_type": guess_content_type(source.name),
        "original_name": source.name,
    }


def delete_file(file_path: str) -> None:
    """Remove a stored file; missing files are ignored."""
    path = resolve_public_path(file_path)
    if path is None:
        return
    try:
        path.unlink()
    except FileNotFoundError:
        logger.debug("File %s already removed", file_path)


def read_file_base64(file_path: Optional[str]) -> Optional[dict[str, str]]:
    """``{data, type}`` for a stored file, or None when it is gone."""
    if not file_path:
        return None
    path = resolve_public_path(file_path)
    if path is None or not path.is_file():
        return None
    return {
        "data": base64.b64encode(path.read_bytes()).decode("ascii"),
        "type": guess_content_type(path.name),
    }
