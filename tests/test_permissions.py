from types import SimpleNamespace

import pytest

from conftest import auth_headers, make_prompt
from prompthive.core.permissions import (
    CREATE_PROMPT,
    MANAGE_USERS,
    VIEW_ADMIN,
    can_edit_prompt,
    has_permission,
    is_admin,
    is_guest,
)


def _user(role):
    return SimpleNamespace(id=role.lower(), role=role)


@pytest.mark.parametrize(
    "role, action, allowed",
    [
        ("ADMIN", MANAGE_USERS, True),
        ("ADMIN", CREATE_PROMPT, True),
        ("USER", CREATE_PROMPT, True),
        ("USER", VIEW_ADMIN, False),
        ("GUEST", CREATE_PROMPT, False),
        ("ROBOT", CREATE_PROMPT, False),
    ],
)
def test_has_permission(role, action, allowed):
    assert has_permission(_user(role), action) is allowed


def test_anonymous_has_nothing():
    assert has_permission(None, CREATE_PROMPT) is False
    assert is_guest(None) is False
    assert is_admin(None) is False


def test_can_edit_prompt():
    owner = _user("USER")
    prompt = SimpleNamespace(created_by_id=owner.id, is_locked=False)

    assert can_edit_prompt(owner, prompt) is True
    assert can_edit_prompt(SimpleNamespace(id="someone", role="USER"), prompt) is False
    assert can_edit_prompt(_user("GUEST"), prompt) is False
    assert can_edit_prompt(None, prompt) is False

    prompt.is_locked = True
    assert can_edit_prompt(owner, prompt) is False
    assert can_edit_prompt(_user("ADMIN"), prompt) is True


@pytest.mark.parametrize(
    "method, path, body",
    [
        ("GET", "/api/v1/exports", None),
        ("POST", "/api/v1/exports/meta", {"collection_ids": []}),
        ("POST", "/api/v1/imports/structure", {"definedCollections": []}),
    ],
)
def test_guest_cannot_move_data_in_or_out(client, guest, method, path, body):
    response = client.request(method, path, json=body, headers=auth_headers(guest))
    assert response.status_code == 403
    assert response.json() == {"detail": "Unauthorized: Guest account is read-only."}


def test_guest_cannot_download_markdown(client, db, user, guest):
    prompt = make_prompt(db, user)
    version_id = prompt.versions[0].id

    response = client.get(
        f"/api/v1/prompts/{prompt.id}/markdown",
        params={"version_id": str(version_id)},
        headers=auth_headers(guest),
    )
    assert response.status_code == 403


def test_prompt_detail_reports_edit_rights(client, db, user, other_user, guest):
    prompt = make_prompt(db, user)

    def can_edit(account):
        response = client.get(f"/api/v1/prompts/{prompt.id}", headers=auth_headers(account))
        assert response.status_code == 200
        return response.json()["can_edit"]

    assert can_edit(user) is True
    assert can_edit(other_user) is False
    assert can_edit(guest) is False
