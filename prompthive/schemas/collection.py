"""Pydantic schemas for collections and the collection tree."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prompthive.schemas.prompt import PromptSummary


class CollectionCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    parent_id: Optional[UUID] = None


class CollectionMove(BaseModel):
    parent_id: Optional[UUID] = None


class CollectionRename(BaseModel):
    title: str = Field(..., max_length=100)


class CollectionDetailsUpdate(BaseModel):
    title: str = Field(..., max_length=100)
    description: Optional[str] = None


class CollectionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    owner_id: UUID
    created_at: datetime


class CollectionTreeNode(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    prompt_count: int = 0
    total_prompts: int = 0
    children: List["CollectionTreeNode"] = Field(default_factory=list)


class Breadcrumb(BaseModel):
    id: UUID
    title: str


class CollectionChild(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    prompt_count: int = 0


class CollectionDetail(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    parent_id: Optional[UUID] = None
    owner_id: UUID
    created_at: datetime
    breadcrumbs: List[Breadcrumb]
    children: List[CollectionChild]
    prompts: List[PromptSummary]


class CollectionDescendants(BaseModel):
    collection_ids: List[UUID]
    prompt_ids: List[UUID]


class CollectionDeleted(BaseModel):
    parent_id: Optional[UUID] = None


CollectionTreeNode.model_rebuild()
