import json
from pathlib import Path

import pytest

from conftest import auth_headers, make_collection, make_prompt
from prompthive.core.exceptions import InvalidParameterError
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt
from prompthive.schemas.prompt import PromptCreate, VersionCreate
from prompthive.services import (
    export_service,
    folder_import_service,
    import_service,
    prompt_service,
    tag_service,
)
from prompthive.services.file_service import IncomingFile, resolve_public_path


def _seed_library(db, user):
    marketing = make_collection(db, user, "Marketing")
    email = make_collection(db, user, "Email", parent=marketing)
    tag = tag_service.create_tag(db, "newsletter")
    main = prompt_service.create_prompt(
        db,
        user,
        PromptCreate(
            title="Weekly digest",
            content="Summarise {{topic}}",
            collection_id=email.id,
            tag_ids=[tag.id],
        ),
        attachments=[IncomingFile("brief.md", b"# brief")],
    )
    prompt_service.create_version(db, user, main.id, VersionCreate(content="Summarise {{topic}} briefly"))
    helper = make_prompt(db, user, title="Subject lines", collection=marketing)
    prompt_service.link_prompts(db, user, main.id, helper.id)
    return main, helper


def test_full_export_round_trip(db, user, other_user):
    _seed_library(db, user)
    document = export_service.get_full_export(db, user)

    assert document["version"] == 2
    assert {c["title"] for c in document["definedCollections"]} == {"Marketing", "Email"}

    result = import_service.import_document(db, other_user, json.dumps(document))
    assert result == {"success": True, "count": 2, "skipped": 0}

    email = db.query(Collection).filter(Collection.owner_id == other_user.id, Collection.title == "Email").one()
    assert email.parent.title == "Marketing"

    digest = db.query(Prompt).filter(Prompt.created_by_id == other_user.id, Prompt.title == "Weekly digest").one()
    assert [v.version_number for v in digest.versions] == [2, 1]
    assert digest.current_version.content == "Summarise {{topic}} briefly"
    assert [t.name for t in digest.tags] == ["newsletter"]
    assert [c.id for c in digest.collections] == [email.id]
    assert [r.title for r in digest.related_prompts] == ["Subject lines"]

    restored = digest.versions[-1].attachments[0]
    assert restored.original_name == "brief.md"
    assert resolve_public_path(restored.file_path).read_bytes() == b"# brief"


def test_reimport_skips_existing_titles(db, user):
    _seed_library(db, user)
    document = json.dumps(export_service.get_full_export(db, user))

    result = import_service.import_document(db, user, document)
    assert result["count"] == 0
    assert result["skipped"] == 2


def test_export_meta_recursive_keeps_empty_folders(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    make_collection(db, user, "Empty", parent=child)
    prompt = make_prompt(db, user, collection=child)

    meta = export_service.get_export_meta(db, user, [root.id], recursive=True)
    assert meta["promptIds"] == [str(prompt.id)]
    assert [c["title"] for c in meta["definedCollections"]] == ["Child", "Empty", "Root"]

    flat = export_service.get_export_meta(db, user, [root.id])
    assert flat["totalPrompts"] == 0


def test_zero_export_covers_descendants(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    nested = make_prompt(db, user, title="Nested", collection=child)
    make_prompt(db, user, title="Elsewhere")

    zero = export_service.generate_zero_export(db, user, [root.id])

    assert zero["version"] == 1
    assert {c["name"] for c in zero["collections"]} == {"Root", "Child"}
    assert [p["title"] for p in zero["prompts"]] == ["Nested"]
    assert zero["prompts"][0]["collectionId"] == str(child.id)
    assert zero["prompts"][0]["content"] == nested.current_version.content

    with pytest.raises(InvalidParameterError, match="No collections selected"):
        export_service.generate_zero_export(db, user, [])


def test_structure_then_batch_import(db, user):
    id_map = import_service.import_structure(
        db,
        user,
        [
            {"id": "child", "title": "Child", "parentId": "root"},
            {"id": "root", "title": "Root", "parentId": None},
        ],
    )
    assert set(id_map) == {"root", "child"}
    assert db.get(Collection, id_map["child"]).parent_id == id_map["root"]

    result = import_service.import_prompts(
        db,
        user,
        [{"title": "Batched", "content": "hello", "collectionIds": ["child"], "tags": "a, b"}],
        id_map,
    )
    assert result == {"count": 1, "skipped": 0}
    prompt = db.query(Prompt).one()
    assert prompt.technical_id == "CHIL-1"
    assert sorted(t.name for t in prompt.tags) == ["a", "b"]


def test_legacy_flat_list(db, user):
    text = '{"title": "One", "content": "first", "collection": "Legacy"}{"title": "Two", "content": "second"}'
    assert import_service.import_document(db, user, text)["count"] == 2
    one = db.query(Prompt).filter(Prompt.title == "One").one()
    assert [c.title for c in one.collections] == ["Legacy"]


def test_promptcat_import(db, user):
    document = {
        "folders": [{"id": "f1", "name": "Writing"}],
        "prompts": [
            {"title": "Poem", "body": "Write a poem", "notes": "short", "folderId": "f1", "tags": ["fun"]},
            {"title": "", "body": "No title here", "categories": ["Misc"]},
            {"title": "Empty", "body": ""},
        ],
    }
    result = import_service.import_document(db, user, json.dumps(document))

    assert result["count"] == 2
    poem = db.query(Prompt).filter(Prompt.title == "Poem").one()
    assert poem.description == "short"
    assert [c.title for c in poem.collections] == ["Writing"]
    untitled = db.query(Prompt).filter(Prompt.title == "Untitled Prompt").one()
    assert untitled.latest_version.content == "No title here"


def test_invalid_json_is_rejected(db, user):
    with pytest.raises(InvalidParameterError, match="Not a JSON file"):
        import_service.import_document(db, user, "this is not json")
    with pytest.raises(InvalidParameterError, match="does not match the expected schema"):
        import_service.import_document(db, user, "42")


def test_local_folder_import(db, user, tmp_path):
    library = tmp_path / "library"
    prompt_dir = library / "Coding" / "Code review"
    prompt_dir.mkdir(parents=True)
    (prompt_dir / "prompt.md").write_text("Review this diff", encoding="utf-8")
    (prompt_dir / "notes.txt").write_text("be kind", encoding="utf-8")
    (prompt_dir / "diagram.png").write_bytes(b"\x89PNG")

    count = folder_import_service.import_local_folder(db, user, str(library))

    assert count == 1
    prompt = db.query(Prompt).one()
    assert prompt.title == "Code review"
    assert [c.title for c in prompt.collections] == ["Coding"]
    assert prompt.collections[0].parent.title == "library"
    assert prompt.latest_version.content == "be kind\n\n--- prompt.md ---\nReview this diff"
    attachment = prompt.latest_version.attachments[0]
    assert attachment.original_name == "diagram.png"
    assert Path(resolve_public_path(attachment.file_path)).read_bytes() == b"\x89PNG"


def test_local_folder_missing_path(db, user, tmp_path):
    with pytest.raises(InvalidParameterError, match="Path does not exist"):
        folder_import_service.import_local_folder(db, user, str(tmp_path / "nowhere"))


def test_export_and_import_endpoints(client, db, user, other_user, tmp_path):
    _seed_library(db, user)

    response = client.get("/api/v1/exports", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.headers["content-disposition"].startswith('attachment; filename="prompthive-backup-')

    upload = client.post(
        "/api/v1/imports/file",
        files={"file": ("backup.json", response.content, "application/json")},
        headers=auth_headers(other_user),
    )
    assert upload.status_code == 200
    assert upload.json()["count"] == 2

    raw = client.post("/api/v1/imports", content=b"{broken", headers=auth_headers(other_user))
    assert raw.status_code == 400

    folder = client.post(
        "/api/v1/imports/local-folder",
        json={"path": str(tmp_path)},
        headers=auth_headers(user),
    )
    assert folder.status_code == 403
