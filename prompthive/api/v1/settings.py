"""Per-user preferences."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser
from prompthive.core.database import get_db
from prompthive.models.settings import UserSettings
from prompthive.schemas.settings import (
    GeneralSettingsUpdate,
    HiddenCollectionsUpdate,
    HiddenUsersUpdate,
    UserSettingsResponse,
)
from prompthive.services import settings_service


router = APIRouter(prefix="/settings", tags=["settings"])


def _serialize(user_settings: UserSettings) -> UserSettingsResponse:
    response = UserSettingsResponse.model_validate(user_settings)
    response.hidden_user_ids = [u.id for u in user_settings.hidden_users]
    response.hidden_collection_ids = [c.id for c in user_settings.hidden_collections]
    return response


@router.get("", response_model=UserSettingsResponse)
def get_settings(current_user: CurrentUser, db: Session = Depends(get_db)):
    return _serialize(settings_service.get_settings(db, current_user.id))


@router.put("/general", response_model=UserSettingsResponse)
def update_general(payload: GeneralSettingsUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    user_settings = settings_service.update_general_settings(
        db,
        current_user.id,
        show_prompter_tips=payload.show_prompter_tips,
        tag_colors_enabled=payload.tag_colors_enabled,
        workflow_visible=payload.workflow_visible,
    )
    return _serialize(user_settings)


@router.put("/hidden-users", response_model=UserSettingsResponse)
def update_hidden_users(payload: HiddenUsersUpdate, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Prompts of these users disappear from search and the dashboard."""
    return _serialize(settings_service.update_hidden_users(db, current_user.id, payload.user_ids))


@router.put("/hidden-collections", response_model=UserSettingsResponse)
def update_hidden_collections(
    payload: HiddenCollectionsUpdate, current_user: CurrentUser, db: Session = Depends(get_db)
):
    return _serialize(settings_service.update_hidden_collections(db, current_user.id, payload.collection_ids))
