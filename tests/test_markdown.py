from conftest import make_collection
from prompthive.schemas.prompt import PromptCreate
from prompthive.services import markdown_service, prompt_service, tag_service
from prompthive.services.file_service import IncomingFile


def test_markdown_of_a_version(db, user):
    collection = make_collection(db, user, "Writing")
    tag = tag_service.create_tag(db, "blog")
    prompt = prompt_service.create_prompt(
        db,
        user,
        PromptCreate(
            title="Blog outline",
            description="Outline a post",
            content="Outline a post about {{topic}}",
            short_content="Outline {{topic}}",
            variable_definitions='[{"key": "topic", "description": "Subject"}]',
            collection_id=collection.id,
            tag_ids=[tag.id],
        ),
        attachments=[IncomingFile("style.md", b"# style")],
    )
    version = prompt.versions[0]

    md = markdown_service.generate_markdown(prompt, version.id)

    assert md.startswith("# Blog outline\n\n> Outline a post\n\n")
    assert f"**Version:** 1 | **Date:** {version.created_at:%Y-%m-%d} | **Author:** {user.username}" in md
    assert "**Tags:** #blog" in md
    assert "## Prompt Content\n```text\nOutline a post about {{topic}}\n```" in md
    assert "## Short Prompt" in md
    assert "| topic | Subject |" in md
    assert "*   **Collection:** Writing" in md
    assert "*   **Source:** None" in md
    assert "## Attachments" in md
    assert "style.md" in md


def test_markdown_defaults_and_unknown_version(db, user):
    prompt = prompt_service.create_prompt(db, user, PromptCreate(title="Bare", content="hello"))

    md = markdown_service.generate_markdown(prompt, prompt.versions[0].id)
    assert "> No description provided." in md
    assert "**Tags:** None" in md
    assert "## Variables" not in md
    assert "## Attachments" not in md

    assert markdown_service.generate_markdown(prompt, prompt.id) == ""
