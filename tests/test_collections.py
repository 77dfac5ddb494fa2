import uuid

import pytest

from conftest import auth_headers, make_collection, make_prompt
from prompthive.core.exceptions import ConflictError, InvalidParameterError, NotFoundError, PermissionDeniedError
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt
from prompthive.models.tag import Tag
from prompthive.services import collection_service, settings_service, tag_service


def test_create_rejects_duplicate_sibling(db, user):
    root = make_collection(db, user, "Marketing")
    collection_service.create_collection(db, user, "Email", parent_id=root.id)

    with pytest.raises(ConflictError):
        collection_service.create_collection(db, user, "Email", parent_id=root.id)

    # Same title elsewhere in the tree is fine
    other = collection_service.create_collection(db, user, "Email")
    assert other.parent_id is None


def test_create_requires_a_name(db, user):
    with pytest.raises(InvalidParameterError, match="Name cannot be empty"):
        collection_service.create_collection(db, user, "   ")


def test_guest_cannot_modify_collections(db, user, guest):
    collection = make_collection(db, user)
    with pytest.raises(PermissionDeniedError, match="User prohibited"):
        collection_service.rename_collection(db, guest, collection.id, "Renamed")


def test_other_user_cannot_rename(db, user, other_user, admin):
    collection = make_collection(db, user, "Mine")
    with pytest.raises(PermissionDeniedError, match="Access denied"):
        collection_service.rename_collection(db, other_user, collection.id, "Theirs")

    renamed = collection_service.rename_collection(db, admin, collection.id, "Admin Renamed")
    assert renamed.title == "Admin Renamed"


def test_rename_keeps_description(db, user):
    collection = collection_service.create_collection(db, user, "Drafts", description="work in progress")
    collection_service.rename_collection(db, user, collection.id, "Drafts 2")
    assert collection.description == "work in progress"

    collection_service.update_collection_details(db, user, collection.id, "Drafts 3", None)
    assert collection.description is None


def test_move_into_descendant_is_rejected(db, user):
    a = make_collection(db, user, "A")
    b = make_collection(db, user, "B", parent=a)
    c = make_collection(db, user, "C", parent=b)

    with pytest.raises(InvalidParameterError, match="its own descendant"):
        collection_service.move_collection(db, user, a.id, c.id)

    with pytest.raises(InvalidParameterError, match="to itself"):
        collection_service.move_collection(db, user, a.id, a.id)


def test_move_checks_destination_names(db, user):
    a = make_collection(db, user, "A")
    make_collection(db, user, "Shared", parent=a)
    loose = make_collection(db, user, "Shared")

    with pytest.raises(ConflictError, match="destination folder"):
        collection_service.move_collection(db, user, loose.id, a.id)


def test_name_checks_ignore_other_users(db, user, other_user):
    make_collection(db, other_user, "Ideas")
    parent = make_collection(db, user, "X")
    nested = make_collection(db, user, "Ideas", parent=parent)
    draft = make_collection(db, user, "Draft")

    assert collection_service.move_collection(db, user, nested.id, None).parent_id is None
    with pytest.raises(ConflictError):
        collection_service.rename_collection(db, user, draft.id, "Ideas")

    collection_service.delete_collection(db, user, nested.id)
    assert collection_service.rename_collection(db, user, draft.id, "Ideas").title == "Ideas"


def test_move_unknown_collection(db, user):
    a = make_collection(db, user, "A")
    with pytest.raises(NotFoundError, match="Collection not found"):
        collection_service.move_collection(db, user, uuid.uuid4(), a.id)


def test_move_to_root(db, user):
    a = make_collection(db, user, "A")
    b = make_collection(db, user, "B", parent=a)

    moved = collection_service.move_collection(db, user, b.id, None)
    assert moved.parent_id is None


def test_descendants_lists_subtree_and_prompts(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    grandchild = make_collection(db, user, "Grandchild", parent=child)
    p1 = make_prompt(db, user, collection=root)
    p2 = make_prompt(db, user, collection=grandchild)

    walk = collection_service.get_collection_descendants(db, root.id)

    assert walk["collection_ids"] == [child.id, grandchild.id]
    assert set(walk["prompt_ids"]) == {p1.id, p2.id}


def test_delete_keeps_prompts_by_default(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    prompt = make_prompt(db, user, collection=child)

    parent_id = collection_service.delete_collection(db, user, root.id)

    assert parent_id is None
    assert db.query(Collection).count() == 0
    db.expire_all()
    survivor = db.get(Prompt, prompt.id)
    assert survivor is not None
    assert survivor.collections == []


def test_delete_with_prompts_removes_everything(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    make_collection(db, user, "Leaf", parent=child)
    tag = tag_service.create_tag(db, "only-here")
    make_prompt(db, user, collection=root, tag_ids=[tag.id])
    make_prompt(db, user, collection=child)

    returned = collection_service.delete_collection(db, user, child.id, delete_prompts=True)

    assert returned == root.id
    assert [c.title for c in db.query(Collection).all()] == ["Root"]
    assert db.query(Prompt).count() == 1
    assert db.query(Tag).filter(Tag.name == "only-here").count() == 1

    collection_service.delete_collection(db, user, root.id, delete_prompts=True)
    assert db.query(Prompt).count() == 0
    assert db.query(Tag).count() == 0


def test_empty_collection_deletes_direct_prompts_only(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    make_prompt(db, user, collection=root)
    make_prompt(db, user, collection=root)
    nested = make_prompt(db, user, collection=child)

    assert collection_service.empty_collection(db, user, root.id) == 2
    assert [p.id for p in db.query(Prompt).all()] == [nested.id]


def test_tree_counts_and_hidden_filter(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    hidden = make_collection(db, user, "Hidden", parent=root)
    make_prompt(db, user, collection=root)
    make_prompt(db, user, collection=child)
    make_prompt(db, user, collection=hidden)

    tree = collection_service.get_collection_tree(db, user)
    assert len(tree) == 1
    assert tree[0]["prompt_count"] == 1
    assert tree[0]["total_prompts"] == 3
    assert [c["title"] for c in tree[0]["children"]] == ["Child", "Hidden"]

    settings_service.update_hidden_collections(db, user.id, [hidden.id])
    tree = collection_service.get_collection_tree(db, user)
    assert [c["title"] for c in tree[0]["children"]] == ["Child"]

    full = collection_service.get_collection_tree(db, user, include_hidden=True)
    assert len(full[0]["children"]) == 2


def test_detail_has_breadcrumbs_and_children(db, user):
    root = make_collection(db, user, "Root")
    child = make_collection(db, user, "Child", parent=root)
    leaf = make_collection(db, user, "Leaf", parent=child)
    make_prompt(db, user, collection=leaf)

    detail = collection_service.get_collection_detail(db, user, child.id)

    assert [b["title"] for b in detail["breadcrumbs"]] == ["Root", "Child"]
    assert detail["children"] == [
        {"id": leaf.id, "title": "Leaf", "description": None, "prompt_count": 1}
    ]
    assert detail["prompts"] == []


def test_collection_endpoints(client, db, user, guest):
    response = client.post("/api/v1/collections", json={"title": "Ideas"}, headers=auth_headers(user))
    assert response.status_code == 201
    root_id = response.json()["id"]

    response = client.post(
        "/api/v1/collections",
        json={"title": "Sub", "parent_id": root_id},
        headers=auth_headers(user),
    )
    sub_id = response.json()["id"]

    tree = client.get("/api/v1/collections/tree", headers=auth_headers(user)).json()
    assert tree[0]["children"][0]["id"] == sub_id

    response = client.put(
        f"/api/v1/collections/{root_id}/move",
        json={"parent_id": sub_id},
        headers=auth_headers(user),
    )
    assert response.status_code == 400
    assert response.json() == {"detail": "Cannot move a collection into its own descendant."}

    response = client.post("/api/v1/collections", json={"title": "Nope"}, headers=auth_headers(guest))
    assert response.status_code == 403

    response = client.delete(f"/api/v1/collections/{sub_id}", headers=auth_headers(user))
    assert response.json() == {"parent_id": root_id}
