"""Server-side backups of the caller's data."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from prompthive.api.dependencies import WriterUser
from prompthive.core.database import get_db
from prompthive.core.exceptions import InvalidParameterError
from prompthive.core.messages import BACKUP_NO_PATH
from prompthive.schemas.settings import BackupRunRequest, BackupSettingsUpdate, UserSettingsResponse
from prompthive.services import backup_service, settings_service


router = APIRouter(prefix="/backup", tags=["backup"])


@router.put("/settings", response_model=UserSettingsResponse)
def save_settings(payload: BackupSettingsUpdate, current_user: WriterUser, db: Session = Depends(get_db)):
    return backup_service.save_backup_settings(
        db,
        current_user,
        auto_backup_enabled=payload.auto_backup_enabled,
        backup_path=payload.backup_path,
        backup_frequency=payload.backup_frequency,
    )


@router.post("/run")
def run_backup(payload: BackupRunRequest, current_user: WriterUser, db: Session = Depends(get_db)):
    path = payload.path or settings_service.get_settings(db, current_user.id).backup_path
    if not path:
        raise InvalidParameterError(BACKUP_NO_PATH)
    return {"success": backup_service.perform_backup(db, current_user, path)}


@router.post("/auto")
def run_auto_backup(current_user: WriterUser, db: Session = Depends(get_db)):
    """Called by the client on start-up; backs up only when one is due."""
    return {"performed": backup_service.check_and_run_auto_backup(db, current_user)}


@router.post("/restore")
def restore_latest(current_user: WriterUser, db: Session = Depends(get_db)):
    return backup_service.restore_latest_backup(db, current_user)


@router.post("/drop")
def drop_data(current_user: WriterUser, db: Session = Depends(get_db)):
    backup_service.drop_all_data(db, current_user)
    return {"success": True}
