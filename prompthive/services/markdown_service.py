"""Markdown rendering of a single prompt version."""

from __future__ import annotations

import uuid
from typing import Optional

from prompthive.models.prompt import RESULT_ROLE, Prompt
from prompthive.utils.prompt_utils import parse_variable_definitions


def _file_name(path: Optional[str]) -> Optional[str]:
    if not path:
        return None
    return path.rsplit("/", 1)[-1] or None


def _block(heading: str, body: str) -> str:
    return f"\n## {heading}\n```text\n{body}\n```\n"


def generate_markdown(prompt: Prompt, version_id: uuid.UUID) -> str:
    """Render one version of ``prompt``; an unknown version gives ``""``."""
    version = next((v for v in prompt.versions if v.id == version_id), None)
    if version is None:
        return ""

    date = version.created_at.strftime("%Y-%m-%d") if version.created_at else ""
    author = version.created_by.username if version.created_by else "Unknown"
    tags = ", ".join(f"#{t.name}" for t in prompt.tags) or "None"
    collection = ", ".join(c.title for c in prompt.collections) or "None"
    variables = parse_variable_definitions(version.variable_definitions)

    result_files = [_file_name(a.file_path) for a in version.attachments if a.role == RESULT_ROLE]
    other_files = [_file_name(a.file_path) for a in version.attachments if a.role != RESULT_ROLE]
    legacy = [_file_name(version.result_image)] if version.result_image else []
    file_names = [name for name in result_files + other_files + legacy if name]

    md = (
        f"# {prompt.title}\n\n"
        f"> {prompt.description or 'No description provided.'}\n\n"
        f"**Version:** {version.version_number} | **Date:** {date} | **Author:** {author}\n"
        f"**Tags:** {tags}\n\n"
        "---\n"
    )
    md += _block("Prompt Content", version.content)

    if version.short_content:
        md += _block("Short Prompt", version.short_content)
    if version.usage_example:
        md += _block("Usage Example", version.usage_example)

    if variables:
        rows = "\n".join(f"| {v['key']} | {v.get('description', '')} |" for v in variables)
        md += f"\n## Variables\n| Name | Description |\n|------|-------------|\n{rows}\n"

    md += (
        "\n## Metadata\n"
        f"*   **Collection:** {collection}\n"
        f"*   **Source:** {prompt.resource or 'None'}\n"
    )

    if file_names:
        listing = "\n".join(f"*   {name}" for name in file_names)
        md += f"\n## Attachments\n*(Files are not included in this text export)*\n{listing}\n"

    return md
