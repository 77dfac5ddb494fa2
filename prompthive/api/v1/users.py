from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser, WriterUser
from prompthive.core.database import get_db
from prompthive.core.messages import ADMIN_PROMOTED
from prompthive.models.user import User
from prompthive.schemas.prompt import UserSummary
from prompthive.schemas.user import (
    AvatarUpdate,
    LanguageUpdate,
    PasswordChange,
    PromoteRequest,
    UserResponse,
)
from prompthive.services import user_service


router = APIRouter(prefix="/users", tags=["users"])


@router.get("", response_model=List[UserSummary])
def list_users(current_user: CurrentUser, db: Session = Depends(get_db)):
    """Everyone's public identity, for the hidden-users picker."""
    return db.query(User).order_by(User.username).all()


@router.get("/me", response_model=UserResponse)
def read_me(current_user: CurrentUser):
    return current_user


@router.put("/me/password", response_model=UserResponse)
def change_password(payload: PasswordChange, current_user: WriterUser, db: Session = Depends(get_db)):
    return user_service.change_password(db, current_user.id, payload.old_password, payload.new_password)


@router.put("/me/language", response_model=UserResponse)
def update_language(payload: LanguageUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    return user_service.update_language(db, current_user.id, payload.language)


@router.put("/me/avatar", response_model=UserResponse)
def update_avatar(payload: AvatarUpdate, current_user: WriterUser, db: Session = Depends(get_db)):
    return user_service.update_avatar(db, current_user.id, payload.avatar_url)


@router.post("/me/promote")
def promote_to_admin(payload: PromoteRequest, current_user: CurrentUser, db: Session = Depends(get_db)):
    user = user_service.promote_to_admin(db, current_user, payload.code)
    return {"message": ADMIN_PROMOTED, "role": user.role}
