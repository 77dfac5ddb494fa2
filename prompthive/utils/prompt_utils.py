"""Helpers for prompt variables and stored file names."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Optional

logger = logging.getLogger("prompthive.utils.prompt")

VARIABLE_PATTERN = re.compile(r"\{\{([\s\S]+?)\}\}|\[\[([\s\S]+?)\]\]")
_UPLOAD_PREFIX = re.compile(r"^\d+-")


def parse_variable_definitions(raw: Optional[str]) -> list[dict[str, str]]:
    """Parse a stored ``[{key, description}]`` JSON string.

    Anything malformed yields an empty list.
    """
    if not raw:
        return []
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError) as exc:
        logger.warning("Failed to parse variable definitions JSON: %s", exc)
        return []

    if not isinstance(parsed, list):
        logger.warning("Invalid variable definitions format: expected a list")
        return []

    result = []
    for item in parsed:
        if not isinstance(item, dict) or not isinstance(item.get("key"), str):
            logger.warning("Invalid variable definitions format: %r", item)
            return []
        entry = {"key": item["key"]}
        if isinstance(item.get("description"), str):
            entry["description"] = item["description"]
        result.append(entry)
    return result


def extract_unique_variables(content: Optional[str]) -> list[str]:
    """Variable names used as ``{{name}}`` or ``[[name]]``, in order of first use."""
    if not content:
        return []
    seen: list[str] = []
    for match in VARIABLE_PATTERN.finditer(content):
        name = (match.group(1) or match.group(2) or "").strip()
        if name and name not in seen:
            seen.append(name)
    return seen


def replace_variables(content: Optional[str], variables: dict[str, Any]) -> str:
    if not content:
        return ""
    result = content
    for name in extract_unique_variables(content):
        value = variables.get(name)
        if value is None:
            continue
        escaped = re.escape(name)
        pattern = re.compile(r"\{\{\s*" + escaped + r"\s*\}\}|\[\[\s*" + escaped + r"\s*\]\]")
        result = pattern.sub(lambda _m: str(value), result)
    return result


def normalize_variable_definitions(value: Any) -> str:
    """Coerce imported variable definitions to the stored JSON string form."""
    if not value:
        return "[]"
    if isinstance(value, list):
        if value and isinstance(value[0], str):
            return json.dumps([{"key": v, "description": ""} for v in value])
        return json.dumps(value)
    if isinstance(value, str):
        trimmed = value.strip()
        if trimmed.startswith("["):
            return trimmed
        keys = [re.sub(r"^\{\{|\}\}$", "", part.strip()) for part in trimmed.split(",")]
        return json.dumps([{"key": key, "description": ""} for key in keys if key])
    return "[]"


def get_display_name(file_path: str, original_name: Optional[str] = None) -> str:
    """Name to show for a stored upload.

    Stored files are named ``<timestamp>-<name>``; the timestamp is dropped.
    """
    if original_name:
        return original_name
    basename = file_path.replace("\\", "/").rsplit("/", 1)[-1]
    return _UPLOAD_PREFIX.sub("", basename, count=1)
