import pytest

from conftest import PASSWORD, auth_headers
from prompthive.core.config import settings
from prompthive.core.exceptions import (
    ConflictError,
    InvalidParameterError,
    NotFoundError,
    PermissionDeniedError,
)
from prompthive.core.permissions import ROLE_ADMIN, ROLE_USER
from prompthive.core.security import verify_password
from prompthive.services import settings_service, user_service


def _login(client, login, password=PASSWORD):
    return client.post("/api/v1/auth/login", data={"username": login, "password": password})


def test_register_then_login_by_email(client, db):
    response = client.post(
        "/api/v1/auth/register",
        json={"username": "newbie", "email": "newbie@example.com", "password": "s3cret-pass"},
    )
    assert response.status_code == 201
    assert response.json()["email"] == "newbie@example.com"

    response = _login(client, "newbie@example.com", "s3cret-pass")
    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["role"] == ROLE_USER
    assert "refresh_token" in response.cookies


def test_login_rejects_bad_password(client, user):
    response = _login(client, user.username, "wrong")
    assert response.status_code == 401
    assert response.json() == {"detail": "Invalid username or password"}


def test_refresh_rotates_tokens(client, user):
    assert _login(client, user.username).status_code == 200

    response = client.post("/api/v1/auth/refresh")
    assert response.status_code == 200
    assert response.json()["access_token"]


def test_refresh_without_cookie(client):
    response = client.post("/api/v1/auth/refresh")
    assert response.status_code == 401


def test_register_conflicts(db, user):
    with pytest.raises(ConflictError, match="Email already registered"):
        user_service.register_user(db, "someone-else", user.email, "pw123456")
    with pytest.raises(ConflictError, match="Username already taken"):
        user_service.register_user(db, user.username, "fresh@example.com", "pw123456")
    with pytest.raises(InvalidParameterError, match="Missing required fields"):
        user_service.register_user(db, "", "fresh@example.com", "pw123456")


def test_registration_can_be_disabled(client, db):
    settings_service.update_global_settings(db, registration_enabled=False)

    response = client.post(
        "/api/v1/auth/register",
        json={"username": "late", "email": "late@example.com", "password": "pw123456"},
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Registration is currently disabled by the administrator."


def test_welcome_email_is_logged(db):
    user_service.register_user(db, "mailme", "mailme@example.com", "pw123456")
    with open(settings.EMAIL_LOG_FILE, encoding="utf-8") as fh:
        assert "[WELCOME EMAIL] To: mailme@example.com" in fh.read()


def test_change_password(db, user):
    with pytest.raises(InvalidParameterError, match="Incorrect current password"):
        user_service.change_password(db, user.id, "nope", "brand-new")

    user_service.change_password(db, user.id, PASSWORD, "brand-new")
    assert verify_password("brand-new", user.password_hash)


def test_password_reset_flow(db, user):
    assert user_service.generate_reset_token(db, "nobody@example.com") is None

    token = user_service.generate_reset_token(db, user.email)
    user_service.reset_password(db, token, "after-reset")

    assert verify_password("after-reset", user.password_hash)
    assert user.reset_token is None
    with pytest.raises(InvalidParameterError, match="Invalid or expired reset token"):
        user_service.reset_password(db, token, "again-again")


def test_password_reset_endpoints_do_not_leak_accounts(client):
    response = client.post("/api/v1/auth/password-reset/request", json={"email": "ghost@example.com"})
    assert response.status_code == 200

    response = client.post(
        "/api/v1/auth/password-reset/confirm", json={"token": "made-up", "new_password": "whatever"}
    )
    assert response.status_code == 400


def test_promote_with_admin_code(db, user, admin_properties):
    with open(admin_properties, "w", encoding="utf-8") as fh:
        fh.write("# server side\nadmin.code=Ab12Cd\n")

    with pytest.raises(InvalidParameterError, match="Invalid code format"):
        user_service.promote_to_admin(db, user, "short")
    with pytest.raises(PermissionDeniedError, match="Incorrect code"):
        user_service.promote_to_admin(db, user, "ZZ99ZZ")

    assert user_service.promote_to_admin(db, user, "Ab12Cd").role == ROLE_ADMIN


def test_promote_without_properties_file(tmp_path):
    with pytest.raises(NotFoundError, match="Configuration file missing"):
        user_service.read_admin_code(str(tmp_path / "missing.properties"))


def test_language_and_me_endpoints(client, user):
    response = client.put("/api/v1/users/me/language", json={"language": "nl"}, headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json()["language"] == "nl"

    response = client.put("/api/v1/users/me/language", json={"language": "de"}, headers=auth_headers(user))
    assert response.status_code == 400

    me = client.get("/api/v1/users/me", headers=auth_headers(user)).json()
    assert me["username"] == user.username
    assert "password_hash" not in me


def test_guest_cannot_change_password(client, guest):
    response = client.put(
        "/api/v1/users/me/password",
        json={"old_password": PASSWORD, "new_password": "new-password"},
        headers=auth_headers(guest),
    )
    assert response.status_code == 403
    assert response.json()["detail"] == "Unauthorized: Guest account is read-only."
