"""Pydantic schemas for prompts, versions and tags."""

from datetime import datetime
import json
from typing import Annotated, List, Optional
from uuid import UUID

from pydantic import AfterValidator, BaseModel, ConfigDict, Field


def _check_variable_definitions(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    try:
        json.loads(value)
    except ValueError as exc:
        raise ValueError("Invalid JSON for variable definitions") from exc
    return value


VariableDefinitions = Annotated[Optional[str], AfterValidator(_check_variable_definitions)]


class PromptCreate(BaseModel):
    """Fields of a new prompt and its first version."""
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    content: str = Field(..., min_length=1)
    short_content: Optional[str] = None
    usage_example: Optional[str] = None
    variable_definitions: VariableDefinitions = None
    collection_id: Optional[UUID] = None
    tag_ids: List[UUID] = Field(default_factory=list)
    result_text: Optional[str] = None
    resource: Optional[str] = None
    is_private: bool = False


class VersionCreate(BaseModel):
    """A new version plus optional prompt metadata changes."""
    content: str = Field(..., min_length=1)
    title: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    short_content: Optional[str] = None
    usage_example: Optional[str] = None
    variable_definitions: VariableDefinitions = None
    changelog: Optional[str] = None
    result_text: Optional[str] = None
    # A collection id, "unassigned" to clear, or None to keep
    collection_id: Optional[str] = None
    tag_ids: Optional[List[UUID]] = None
    keep_attachment_ids: List[UUID] = Field(default_factory=list)
    keep_result_image_ids: List[UUID] = Field(default_factory=list)
    existing_result_image_path: Optional[str] = None
    resource: Optional[str] = None
    is_private: Optional[bool] = None


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class TagResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    color: Optional[str] = None


class TagWithCount(TagResponse):
    prompt_count: int = 0


class AttachmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    file_path: str
    file_type: str
    original_name: Optional[str] = None
    role: str


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str


class VersionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    version_number: int
    content: str
    short_content: Optional[str] = None
    usage_example: Optional[str] = None
    variable_definitions: Optional[str] = None
    changelog: Optional[str] = None
    result_text: Optional[str] = None
    result_image: Optional[str] = None
    created_at: datetime
    created_by: Optional[UserSummary] = None
    attachments: List[AttachmentResponse] = Field(default_factory=list)


class CollectionRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str


class PromptRef(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    technical_id: Optional[str] = None


class PromptSummary(BaseModel):
    """Card view of a prompt, with its latest version."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    technical_id: Optional[str] = None
    is_locked: bool
    is_private: bool
    view_count: int
    copy_count: int
    created_at: datetime
    updated_at: datetime
    created_by: Optional[UserSummary] = None
    tags: List[TagResponse] = Field(default_factory=list)
    latest_version: Optional[VersionResponse] = None


class PromptDetail(PromptSummary):
    resource: Optional[str] = None
    can_edit: bool = False
    current_version_id: Optional[UUID] = None
    versions: List[VersionResponse] = Field(default_factory=list)
    collections: List[CollectionRef] = Field(default_factory=list)
    related_prompts: List[PromptRef] = Field(default_factory=list)
    related_to_prompts: List[PromptRef] = Field(default_factory=list)


class PromptMove(BaseModel):
    collection_id: Optional[UUID] = None


class BulkPromptIds(BaseModel):
    prompt_ids: List[UUID] = Field(..., min_length=1)


class BulkMove(BulkPromptIds):
    collection_id: Optional[UUID] = None


class BulkTags(BulkPromptIds):
    tag_ids: List[UUID] = Field(..., min_length=1)


class PromptLink(BaseModel):
    related_id: UUID


class AnalyticsEvent(BaseModel):
    prompt_id: Optional[UUID] = None
    type: Optional[str] = None


class DashboardResponse(BaseModel):
    favorites: List[PromptSummary]
    recent: List[PromptSummary]
    newest: List[PromptSummary]
    popular: List[PromptSummary]
    favorite_ids: List[UUID]
