"""Role based permissions."""

from __future__ import annotations

from typing import Any, Optional

ROLE_ADMIN = "ADMIN"
ROLE_USER = "USER"
ROLE_GUEST = "GUEST"
ROLES = (ROLE_ADMIN, ROLE_USER, ROLE_GUEST)

CREATE_PROMPT = "create:prompt"
EDIT_PROMPT = "edit:prompt"
DELETE_PROMPT = "delete:prompt"
CREATE_COLLECTION = "create:collection"
EDIT_COLLECTION = "edit:collection"
DELETE_COLLECTION = "delete:collection"
VIEW_ADMIN = "view:admin"
MANAGE_USERS = "manage:users"
IMPORT = "import"
EXPORT = "export"
DOWNLOAD = "download"

_USER_ACTIONS = frozenset(
    {
        CREATE_PROMPT,
        EDIT_PROMPT,
        DELETE_PROMPT,
        CREATE_COLLECTION,
        EDIT_COLLECTION,
        DELETE_COLLECTION,
        IMPORT,
        EXPORT,
        DOWNLOAD,
    }
)

ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    ROLE_ADMIN: _USER_ACTIONS | {VIEW_ADMIN, MANAGE_USERS},
    ROLE_USER: _USER_ACTIONS,
    ROLE_GUEST: frozenset(),
}


def _role(user: Optional[Any]) -> Optional[str]:
    return getattr(user, "role", None) if user is not None else None


def has_permission(user: Optional[Any], action: str) -> bool:
    role = _role(user)
    if role is None:
        return False
    return action in ROLE_PERMISSIONS.get(role, frozenset())


def is_guest(user: Optional[Any]) -> bool:
    return _role(user) == ROLE_GUEST


def is_admin(user: Optional[Any]) -> bool:
    return _role(user) == ROLE_ADMIN


def can_edit_prompt(user: Optional[Any], prompt: Any) -> bool:
    """Admins edit anything, guests nothing, creators their unlocked prompts."""
    if user is None:
        return False
    if is_admin(user):
        return True
    if is_guest(user):
        return False
    if prompt.created_by_id != user.id:
        return False
    return not prompt.is_locked
