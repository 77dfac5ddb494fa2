"""Administration: user management and global switches."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from prompthive.api.dependencies import AdminUser
from prompthive.core.database import get_db
from prompthive.models.audit_log import RESOURCE_SETTINGS, RESOURCE_USER
from prompthive.schemas.user import (
    AdminUserCreate,
    GlobalSettingsResponse,
    GlobalSettingsUpdate,
    RoleUpdate,
    UserResponse,
)
from prompthive.services import settings_service, user_service
from prompthive.services.audit_service import log_admin_event


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=List[UserResponse])
def list_users(admin: AdminUser, db: Session = Depends(get_db)):
    return user_service.list_users(db)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(payload: AdminUserCreate, admin: AdminUser, db: Session = Depends(get_db)):
    user = user_service.create_user(db, payload.username, payload.email, payload.password, payload.role)
    log_admin_event(db, admin, "USER_CREATE", RESOURCE_USER, user.id, {"role": user.role})
    return user


@router.put("/users/{user_id}/role", response_model=UserResponse)
def update_user_role(user_id: UUID, payload: RoleUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    user = user_service.update_user_role(db, user_id, payload.role)
    log_admin_event(db, admin, "USER_ROLE_CHANGE", RESOURCE_USER, user_id, {"role": payload.role})
    return user


@router.delete("/users/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: UUID, admin: AdminUser, db: Session = Depends(get_db)):
    user_service.delete_user(db, admin, user_id)
    log_admin_event(db, admin, "USER_DELETE", RESOURCE_USER, user_id)


@router.get("/settings", response_model=GlobalSettingsResponse)
def get_global_settings(admin: AdminUser, db: Session = Depends(get_db)):
    return settings_service.get_global_configuration(db)


@router.put("/settings", response_model=GlobalSettingsResponse)
def update_global_settings(payload: GlobalSettingsUpdate, admin: AdminUser, db: Session = Depends(get_db)):
    config = settings_service.update_global_settings(
        db,
        registration_enabled=payload.registration_enabled,
        private_prompts_enabled=payload.private_prompts_enabled,
    )
    log_admin_event(db, admin, "SETTINGS_UPDATE", RESOURCE_SETTINGS, details=payload.model_dump(exclude_none=True))
    return config
