"""Collection tree endpoints."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser, WriterUser
from prompthive.core.database import get_db
from prompthive.schemas.collection import (
    CollectionCreate,
    CollectionDeleted,
    CollectionDescendants,
    CollectionDetail,
    CollectionDetailsUpdate,
    CollectionMove,
    CollectionRename,
    CollectionResponse,
    CollectionTreeNode,
)
from prompthive.services import collection_service


router = APIRouter(prefix="/collections", tags=["collections"])


@router.get("/tree", response_model=List[CollectionTreeNode])
def get_tree(
    current_user: CurrentUser,
    include_hidden: bool = Query(False),
    db: Session = Depends(get_db),
):
    """The caller's collections as a nested tree with recursive prompt counts."""
    return collection_service.get_collection_tree(db, current_user, include_hidden=include_hidden)


@router.post("", response_model=CollectionResponse, status_code=status.HTTP_201_CREATED)
def create_collection(payload: CollectionCreate, current_user: WriterUser, db: Session = Depends(get_db)):
    return collection_service.create_collection(
        db, current_user, payload.title, payload.description, payload.parent_id
    )


@router.get("/{collection_id}", response_model=CollectionDetail)
def get_collection(collection_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return collection_service.get_collection_detail(db, current_user, collection_id)


@router.get("/{collection_id}/descendants", response_model=CollectionDescendants)
def get_descendants(collection_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    collection_service.get_collection(db, collection_id)
    return collection_service.get_collection_descendants(db, collection_id)


@router.put("/{collection_id}/move", response_model=CollectionResponse)
def move_collection(
    collection_id: UUID, payload: CollectionMove, current_user: WriterUser, db: Session = Depends(get_db)
):
    return collection_service.move_collection(db, current_user, collection_id, payload.parent_id)


@router.put("/{collection_id}/rename", response_model=CollectionResponse)
def rename_collection(
    collection_id: UUID, payload: CollectionRename, current_user: WriterUser, db: Session = Depends(get_db)
):
    return collection_service.rename_collection(db, current_user, collection_id, payload.title)


@router.put("/{collection_id}", response_model=CollectionResponse)
def update_collection(
    collection_id: UUID,
    payload: CollectionDetailsUpdate,
    current_user: WriterUser,
    db: Session = Depends(get_db),
):
    return collection_service.update_collection_details(
        db, current_user, collection_id, payload.title, payload.description
    )


@router.delete("/{collection_id}", response_model=CollectionDeleted)
def delete_collection(
    collection_id: UUID,
    current_user: WriterUser,
    delete_prompts: bool = Query(False),
    db: Session = Depends(get_db),
):
    """Delete a collection with all of its sub-collections.

    The response carries the former parent so the client can navigate there.
    """
    parent_id = collection_service.delete_collection(db, current_user, collection_id, delete_prompts)
    return {"parent_id": parent_id}


@router.post("/{collection_id}/empty")
def empty_collection(collection_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    deleted = collection_service.empty_collection(db, current_user, collection_id)
    return {"deleted": deleted}
