from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class UserSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    auto_backup_enabled: bool
    backup_path: Optional[str] = None
    backup_frequency: str
    last_backup_at: Optional[datetime] = None
    show_prompter_tips: bool
    tag_colors_enabled: bool
    workflow_visible: bool
    hidden_user_ids: List[UUID] = Field(default_factory=list)
    hidden_collection_ids: List[UUID] = Field(default_factory=list)


class GeneralSettingsUpdate(BaseModel):
    show_prompter_tips: bool = True
    tag_colors_enabled: bool = True
    workflow_visible: bool = False


class HiddenUsersUpdate(BaseModel):
    user_ids: List[UUID] = Field(default_factory=list)


class HiddenCollectionsUpdate(BaseModel):
    collection_ids: List[UUID] = Field(default_factory=list)


class BackupSettingsUpdate(BaseModel):
    auto_backup_enabled: bool = False
    backup_path: Optional[str] = Field(None, max_length=1000)
    backup_frequency: Literal["DAILY", "WEEKLY", "MONTHLY"] = "DAILY"


class BackupRunRequest(BaseModel):
    # Defaults to the configured backup path
    path: Optional[str] = None
