from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class RegisterRequest(BaseModel):
    # Missing values are reported by the service as one message
    username: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    email: str
    role: str
    avatar_url: Optional[str] = None
    language: str
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime] = None


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class PasswordResetRequest(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class LanguageUpdate(BaseModel):
    language: str


class AvatarUpdate(BaseModel):
    avatar_url: Optional[str] = Field(None, max_length=500)


class PromoteRequest(BaseModel):
    code: str = ""


class AdminUserCreate(BaseModel):
    username: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(..., min_length=1)
    role: str = "USER"


class RoleUpdate(BaseModel):
    role: str


class GlobalSettingsUpdate(BaseModel):
    registration_enabled: bool
    private_prompts_enabled: Optional[bool] = None


class GlobalSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    registration_enabled: bool
    private_prompts_enabled: bool
    updated_at: Optional[datetime] = None
