from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser
from prompthive.core.database import get_db
from prompthive.schemas.prompt import AnalyticsEvent
from prompthive.services import prompt_service


router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("")
def record_event(event: AnalyticsEvent, current_user: CurrentUser, db: Session = Depends(get_db)):
    """Count a ``view`` or ``copy`` of a prompt."""
    prompt = prompt_service.record_analytics(db, event.prompt_id, event.type)
    return {"success": True, "view_count": prompt.view_count, "copy_count": prompt.copy_count}
