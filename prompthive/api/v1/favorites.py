from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser
from prompthive.core.database import get_db
from prompthive.schemas.prompt import PromptSummary
from prompthive.services import favorite_service


router = APIRouter(prefix="/favorites", tags=["favorites"])


@router.get("", response_model=List[PromptSummary])
def list_favorites(
    current_user: CurrentUser,
    q: Optional[str] = None,
    sort: Optional[str] = None,
    db: Session = Depends(get_db),
):
    return favorite_service.get_favorites(db, current_user, q, sort)


@router.post("/{prompt_id}")
def toggle_favorite(prompt_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return favorite_service.toggle_favorite(db, current_user, prompt_id)


@router.get("/{prompt_id}")
def favorite_status(prompt_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return {"is_favorite": favorite_service.is_favorite(db, current_user, prompt_id)}
