import json
import uuid
from pathlib import Path

import pytest

from conftest import auth_headers, make_collection, make_prompt
from prompthive.core.exceptions import ConflictError, InvalidParameterError, NotFoundError, PermissionDeniedError
from prompthive.models.prompt import Prompt, PromptVersion
from prompthive.models.tag import Tag
from prompthive.schemas.prompt import PromptCreate, VersionCreate
from prompthive.services import favorite_service, prompt_service, settings_service, tag_service
from prompthive.services.file_service import IncomingFile


def test_create_assigns_technical_id_and_first_version(db, user):
    vibe = make_collection(db, user, "Vibe Coding")
    first = make_prompt(db, user, collection=vibe)
    second = make_prompt(db, user, collection=vibe)
    loose = make_prompt(db, user)

    assert first.technical_id == "VIBE-1"
    assert second.technical_id == "VIBE-2"
    assert loose.technical_id == "UNAS-1"
    assert [v.version_number for v in first.versions] == [1]
    assert first.current_version_id == first.versions[0].id


def test_duplicate_title_for_same_owner(db, user, other_user):
    make_prompt(db, user, title="Summarise")
    with pytest.raises(ConflictError):
        make_prompt(db, user, title="Summarise")
    assert make_prompt(db, other_user, title="Summarise").title == "Summarise"


def test_invalid_variable_definitions_are_rejected():
    with pytest.raises(ValueError):
        VersionCreate(content="x", variable_definitions="{not json")


def test_new_version_updates_metadata(db, user):
    prompt = make_prompt(db, user, title="Draft")
    target = make_collection(db, user, "Target")
    tag = tag_service.create_tag(db, "email")

    version = prompt_service.create_version(
        db,
        user,
        prompt.id,
        VersionCreate(
            content="Second take",
            title="Final",
            changelog="tightened",
            collection_id=str(target.id),
            tag_ids=[tag.id],
        ),
    )

    db.refresh(prompt)
    assert version.version_number == 2
    assert prompt.title == "Final"
    assert prompt.current_version_id == version.id
    assert [c.title for c in prompt.collections] == ["Target"]
    assert [t.name for t in prompt.tags] == ["email"]

    prompt_service.create_version(
        db, user, prompt.id, VersionCreate(content="Third", collection_id="unassigned")
    )
    db.refresh(prompt)
    assert prompt.collections == []


def test_new_version_with_bad_collection_id(db, user):
    prompt = make_prompt(db, user)
    with pytest.raises(InvalidParameterError, match="Invalid collection ID"):
        prompt_service.create_version(db, user, prompt.id, VersionCreate(content="x", collection_id="nope"))


def test_locked_prompt_rejects_versions(db, user, other_user):
    prompt = make_prompt(db, user)

    with pytest.raises(PermissionDeniedError):
        prompt_service.toggle_lock(db, other_user, prompt.id)

    prompt_service.toggle_lock(db, user, prompt.id)
    with pytest.raises(PermissionDeniedError, match="locked"):
        prompt_service.create_version(db, other_user, prompt.id, VersionCreate(content="sneaky"))
    with pytest.raises(PermissionDeniedError, match="locked by the creator"):
        prompt_service.move_prompt(db, other_user, prompt.id, None)

    prompt_service.toggle_lock(db, user, prompt.id)
    version = prompt_service.create_version(db, other_user, prompt.id, VersionCreate(content="welcome"))
    assert version.created_by_id == other_user.id


def test_restore_copies_old_version(db, user, upload_dir):
    prompt = prompt_service.create_prompt(
        db,
        user,
        PromptCreate(title="With files", content="v1 content"),
        attachments=[IncomingFile("notes.txt", b"hello", "text/plain")],
    )
    v1 = prompt.versions[0]
    prompt_service.create_version(db, user, prompt.id, VersionCreate(content="v2 content"))

    restored = prompt_service.restore_version(db, user, prompt.id, v1.id)

    assert restored.version_number == 3
    assert restored.content == "v1 content"
    assert restored.changelog == "Restored from version 1"
    assert [a.original_name for a in restored.attachments] == ["notes.txt"]
    assert restored.attachments[0].file_path == v1.attachments[0].file_path


def test_restore_unknown_version(db, user):
    prompt = make_prompt(db, user)
    with pytest.raises(NotFoundError):
        prompt_service.restore_version(db, user, prompt.id, uuid.uuid4())


def test_delete_prunes_orphaned_tags_and_files(db, user, upload_dir):
    shared = tag_service.create_tag(db, "shared")
    lonely = tag_service.create_tag(db, "lonely")
    keeper = make_prompt(db, user, tag_ids=[shared.id])
    doomed = prompt_service.create_prompt(
        db,
        user,
        PromptCreate(title="Doomed", content="bye", tag_ids=[shared.id, lonely.id]),
        attachments=[IncomingFile("a.md", b"# a")],
    )
    stored = doomed.versions[0].attachments[0].file_path
    favorite_service.toggle_favorite(db, user, doomed.id)

    prompt_service.delete_prompt(db, user, doomed.id)

    assert {t.name for t in db.query(Tag).all()} == {"shared"}
    assert db.query(Prompt).one().id == keeper.id
    assert db.query(PromptVersion).count() == 1
    assert not (Path(upload_dir) / stored.rsplit("/", 1)[-1]).exists()


def test_only_owner_or_admin_deletes(db, user, other_user, admin):
    prompt = make_prompt(db, user)
    with pytest.raises(PermissionDeniedError, match="Access denied"):
        prompt_service.delete_prompt(db, other_user, prompt.id)
    prompt_service.delete_prompt(db, admin, prompt.id)
    assert db.query(Prompt).count() == 0


def test_bulk_operations(db, user):
    target = make_collection(db, user, "Bulk")
    tag = tag_service.create_tag(db, "bulk")
    prompts = [make_prompt(db, user) for _ in range(3)]
    ids = [p.id for p in prompts]

    assert prompt_service.bulk_move_prompts(db, user, ids, target.id) == 3
    assert all(p.technical_id.startswith("BULK-") for p in db.query(Prompt).all())

    assert prompt_service.bulk_add_tags(db, user, ids[:2], [tag.id]) == 2
    assert db.get(Prompt, ids[2]).tags == []

    assert prompt_service.bulk_delete_prompts(db, user, ids) == 3
    assert db.query(Prompt).count() == 0
    assert db.query(Tag).count() == 0


def test_private_prompts_are_hidden_from_others(db, user, other_user, admin):
    secret = make_prompt(db, user, is_private=True)
    public = make_prompt(db, user)

    visible = {p.id for p in prompt_service.search_prompts(db, other_user)}
    assert visible == {public.id}
    with pytest.raises(NotFoundError):
        prompt_service.get_prompt_detail(db, other_user, secret.id)

    assert secret.id in {p.id for p in prompt_service.search_prompts(db, admin)}
    assert prompt_service.get_prompt_detail(db, user, secret.id).id == secret.id


def test_visibility_toggle_is_creator_only(db, user, other_user):
    prompt = make_prompt(db, user)
    with pytest.raises(PermissionDeniedError):
        prompt_service.toggle_visibility(db, other_user, prompt.id)
    assert prompt_service.toggle_visibility(db, user, prompt.id).is_private is True


def test_search_filters(db, user, other_user):
    tag = tag_service.create_tag(db, "python")
    match = make_prompt(db, user, title="Refactor helper", tag_ids=[tag.id])
    make_prompt(db, user, title="Haiku writer")
    theirs = make_prompt(db, other_user, title="Refactor legacy")

    assert {p.id for p in prompt_service.search_prompts(db, user, q="refactor")} == {match.id, theirs.id}
    assert [p.id for p in prompt_service.search_prompts(db, user, tags="python")] == [match.id]
    assert [p.id for p in prompt_service.search_prompts(db, user, tags=str(tag.id))] == [match.id]
    assert [p.id for p in prompt_service.search_prompts(db, user, creator=other_user.username)] == [theirs.id]

    titles = [p.title for p in prompt_service.search_prompts(db, user, sort="alpha", order="asc")]
    assert titles == sorted(titles)

    settings_service.update_hidden_users(db, user.id, [other_user.id])
    assert theirs.id not in {p.id for p in prompt_service.search_prompts(db, user)}


def test_links_are_bidirectional(db, user):
    a = make_prompt(db, user, title="Alpha prompt")
    b = make_prompt(db, user, title="Beta prompt")

    with pytest.raises(InvalidParameterError):
        prompt_service.link_prompts(db, user, a.id, a.id)

    prompt_service.link_prompts(db, user, a.id, b.id)
    prompt_service.link_prompts(db, user, b.id, a.id)
    db.refresh(a)
    db.refresh(b)
    assert a.related_prompts == [b]
    assert b.related_to_prompts == [a]
    assert b.related_prompts == []

    assert prompt_service.search_prompts_for_linking(db, user, "prompt", exclude_id=a.id) == []
    assert prompt_service.search_prompts_for_linking(db, user, "p") == []

    prompt_service.unlink_prompts(db, user, b.id, a.id)
    db.refresh(a)
    assert a.related_prompts == []


def test_analytics_counts(db, user):
    prompt = make_prompt(db, user)
    prompt_service.record_analytics(db, prompt.id, "view")
    prompt_service.record_analytics(db, prompt.id, "view")
    updated = prompt_service.record_analytics(db, prompt.id, "copy")
    assert (updated.view_count, updated.copy_count) == (2, 1)

    with pytest.raises(InvalidParameterError, match="Missing fields"):
        prompt_service.record_analytics(db, prompt.id, None)
    with pytest.raises(InvalidParameterError, match="Invalid event type"):
        prompt_service.record_analytics(db, prompt.id, "like")


def test_dashboard_sections(db, user, other_user):
    mine = make_prompt(db, user)
    theirs = make_prompt(db, other_user)
    favorite_service.toggle_favorite(db, user, theirs.id)

    dashboard = prompt_service.get_dashboard(db, user)

    assert [p.id for p in dashboard["favorites"]] == [theirs.id]
    assert [p.id for p in dashboard["recent"]] == [mine.id]
    assert {p.id for p in dashboard["newest"]} == {mine.id, theirs.id}
    assert dashboard["favorite_ids"] == [theirs.id]


def test_create_and_version_over_http(client, db, user, guest):
    payload = {"title": "HTTP prompt", "content": "Hello {{name}}", "tag_ids": []}
    response = client.post(
        "/api/v1/prompts",
        data={"payload": json.dumps(payload)},
        files=[("attachments", ("brief.txt", b"details", "text/plain"))],
        headers=auth_headers(user),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["technical_id"] == "UNAS-1"
    assert body["versions"][0]["attachments"][0]["original_name"] == "brief.txt"

    prompt_id = body["id"]
    response = client.post(
        f"/api/v1/prompts/{prompt_id}/versions",
        data={"payload": json.dumps({"content": "Hi {{name}}", "changelog": "shorter"})},
        headers=auth_headers(user),
    )
    assert response.status_code == 201
    assert response.json()["version_number"] == 2

    version_id = response.json()["id"]
    markdown = client.get(
        f"/api/v1/prompts/{prompt_id}/markdown",
        params={"version_id": version_id},
        headers=auth_headers(user),
    )
    assert markdown.status_code == 200
    assert markdown.text.startswith("# HTTP prompt")

    response = client.post(
        "/api/v1/prompts",
        data={"payload": json.dumps({"title": "Guest", "content": "x"})},
        headers=auth_headers(guest),
    )
    assert response.status_code == 403

    response = client.post(
        "/api/v1/prompts",
        data={"payload": json.dumps({"title": "", "content": "x"})},
        headers=auth_headers(user),
    )
    assert response.status_code == 422


def test_rejects_disallowed_extension(client, user):
    response = client.post(
        "/api/v1/prompts",
        data={"payload": json.dumps({"title": "Bad file", "content": "x"})},
        files=[("attachments", ("run.exe", b"MZ", "application/octet-stream"))],
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert response.json()["detail"].startswith("File extension .exe not allowed")


def test_prompt_requires_token(client):
    assert client.get("/api/v1/prompts").status_code == 401
