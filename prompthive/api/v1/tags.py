from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser, WriterUser
from prompthive.core.database import get_db
from prompthive.schemas.prompt import TagCreate, TagResponse, TagWithCount
from prompthive.services import tag_service


router = APIRouter(prefix="/tags", tags=["tags"])


@router.get("", response_model=List[TagWithCount])
def list_tags(current_user: CurrentUser, db: Session = Depends(get_db)):
    return tag_service.list_tags_with_counts(db)


@router.post("", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
def create_tag(payload: TagCreate, current_user: WriterUser, db: Session = Depends(get_db)):
    """Create a tag, or return the existing one with this name."""
    return tag_service.create_tag(db, payload.name)


@router.post("/prune")
def prune_tags(current_user: WriterUser, db: Session = Depends(get_db)):
    return {"deleted": tag_service.delete_unused_tags(db)}
