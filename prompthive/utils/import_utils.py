import json
import re
from typing import Any

PROMPTCAT = "PROMPTCAT"
STANDARD = "STANDARD"

_CONCATENATED_OBJECTS = re.compile(r"\}\s*\{")


def detect_format(data: Any) -> str:
    """Tell a PromptCat export from a native one."""
    if isinstance(data, dict):
        if "prompts" in data or "folders" in data:
            return PROMPTCAT
    elif isinstance(data, list) and data:
        first = data[0]
        if isinstance(first, dict) and ("body" in first or "categories" in first) and "versions" not in first:
            return PROMPTCAT
    return STANDARD


def parse_import_text(text: str) -> Any:
    """Parse an uploaded JSON document.

    Strips a UTF-8 BOM and, when the text is a run of concatenated objects
    (``{...}{...}``), retries it as an array. Raises ``ValueError`` when the
    text is not JSON either way.
    """
    text = text.lstrip("\ufeff").strip()
    try:
        return json.loads(text)
    except ValueError:
        repaired = _CONCATENATED_OBJECTS.sub("},{", text)
        if not repaired.startswith("["):
            repaired = f"[{repaired}]"
        return json.loads(repaired)
