import json
import os

import pytest

from conftest import auth_headers, make_collection, make_prompt
from prompthive.core.exceptions import InvalidParameterError, NotFoundError, PermissionDeniedError
from prompthive.models.collection import Collection
from prompthive.models.prompt import Prompt
from prompthive.schemas.prompt import VersionCreate
from prompthive.services import backup_service, prompt_service, settings_service


def _configure(db, user, path, enabled=True):
    return settings_service.update_backup_settings(
        db,
        user.id,
        auto_backup_enabled=enabled,
        backup_path=str(path),
        backup_frequency="DAILY",
    )


def test_perform_backup_writes_user_document(db, user, tmp_path):
    collection = make_collection(db, user, "Ops")
    make_prompt(db, user, title="Runbook", collection=collection)

    assert backup_service.perform_backup(db, user, str(tmp_path / "backups")) is True

    files = list((tmp_path / "backups").iterdir())
    assert len(files) == 1
    assert files[0].name.endswith("_prompthive_autobackup.json")
    data = json.loads(files[0].read_text(encoding="utf-8"))
    assert data["userId"] == str(user.id)
    assert [c["title"] for c in data["collections"]] == ["Ops"]
    assert data["prompts"][0]["currentVersionNumber"] == 1


def test_auto_backup_runs_once_per_interval(db, user, tmp_path):
    assert backup_service.check_and_run_auto_backup(db, user) is False

    _configure(db, user, tmp_path)
    assert backup_service.check_and_run_auto_backup(db, user) is True
    assert backup_service.check_and_run_auto_backup(db, user) is False
    assert settings_service.get_settings(db, user.id).last_backup_at is not None


def test_restore_replaces_current_data(db, user, tmp_path):
    collection = make_collection(db, user, "Ops")
    kept = make_prompt(db, user, title="Runbook", collection=collection)
    prompt_service.create_version(db, user, kept.id, VersionCreate(content="second"))
    _configure(db, user, tmp_path)
    backup_service.perform_backup(db, user, str(tmp_path))

    prompt_service.delete_prompt(db, user, kept.id)
    make_prompt(db, user, title="Written after the backup")

    result = backup_service.restore_latest_backup(db, user)

    assert result["count"] == 1
    restored = db.query(Prompt).filter(Prompt.created_by_id == user.id).one()
    assert restored.title == "Runbook"
    assert restored.current_version.version_number == 2
    assert [c.title for c in restored.collections] == ["Ops"]
    assert db.query(Collection).filter(Collection.owner_id == user.id).count() == 1


def test_restore_refuses_someone_elses_backup(db, user, other_user, tmp_path):
    backup_service.perform_backup(db, other_user, str(tmp_path))
    _configure(db, user, tmp_path)

    with pytest.raises(PermissionDeniedError, match="does not belong"):
        backup_service.restore_latest_backup(db, user)


def test_restore_needs_a_backup(db, user, tmp_path):
    with pytest.raises(InvalidParameterError, match="No backup path configured"):
        backup_service.restore_latest_backup(db, user)

    _configure(db, user, tmp_path)
    with pytest.raises(NotFoundError, match="No backup files found"):
        backup_service.restore_latest_backup(db, user)


@pytest.mark.parametrize("content", ["{not json", "[]"])
def test_restore_rejects_unreadable_backup(db, user, tmp_path, content):
    survivor = make_prompt(db, user)
    _configure(db, user, tmp_path)
    (tmp_path / "2026-01-01_prompthive_autobackup.json").write_text(content, encoding="utf-8")

    with pytest.raises(InvalidParameterError, match="corrupt or unreadable"):
        backup_service.restore_latest_backup(db, user)
    assert db.query(Prompt).one().id == survivor.id


def test_latest_backup_is_newest_by_mtime(tmp_path):
    older = tmp_path / "zzz_prompthive_autobackup.json"
    newer = tmp_path / "aaa_prompthive_autobackup.json"
    older.write_text("{}", encoding="utf-8")
    newer.write_text("{}", encoding="utf-8")
    os.utime(older, (1_000_000, 1_000_000))
    os.utime(newer, (2_000_000, 2_000_000))
    (tmp_path / "notes.json").write_text("{}", encoding="utf-8")

    assert backup_service.find_latest_backup(str(tmp_path)) == newer


def test_drop_all_data_is_scoped_to_the_user(db, user, other_user):
    make_prompt(db, user, collection=make_collection(db, user))
    theirs = make_prompt(db, other_user)

    backup_service.drop_all_data(db, user)

    assert [p.id for p in db.query(Prompt).all()] == [theirs.id]
    assert db.query(Collection).count() == 0


def test_backup_endpoints(client, user, guest, tmp_path):
    response = client.put(
        "/api/v1/backup/settings",
        json={"auto_backup_enabled": True, "backup_path": str(tmp_path), "backup_frequency": "WEEKLY"},
        headers=auth_headers(user),
    )
    assert response.status_code == 200
    assert response.json()["backup_frequency"] == "WEEKLY"

    response = client.post("/api/v1/backup/run", json={}, headers=auth_headers(user))
    assert response.json() == {"success": True}

    response = client.post("/api/v1/backup/run", json={}, headers=auth_headers(guest))
    assert response.status_code == 403
