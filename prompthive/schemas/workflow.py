from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from prompthive.schemas.prompt import PromptSummary


class WorkflowStepInput(BaseModel):
    prompt_id: UUID
    order: int = Field(..., ge=0)
    # variable name -> "<step id>:output" or "USER_INPUT"
    input_mappings: Dict[str, str] = Field(default_factory=dict)


class WorkflowCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    steps: List[WorkflowStepInput] = Field(default_factory=list)


class WorkflowStepResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    prompt_id: UUID
    order: int
    input_mappings: Dict[str, str] = Field(default_factory=dict)
    prompt: Optional[PromptSummary] = None


class WorkflowResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: Optional[str] = None
    owner_id: UUID
    created_at: datetime
    updated_at: datetime
    steps: List[WorkflowStepResponse] = Field(default_factory=list)


class WorkflowListItem(BaseModel):
    id: UUID
    title: str
    description: Optional[str] = None
    updated_at: datetime
    step_count: int
