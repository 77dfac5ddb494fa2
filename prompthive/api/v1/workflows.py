from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser, WriterUser
from prompthive.core.database import get_db
from prompthive.schemas.workflow import WorkflowCreate, WorkflowListItem, WorkflowResponse
from prompthive.services import workflow_service


router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("", response_model=List[WorkflowListItem])
def list_workflows(current_user: CurrentUser, db: Session = Depends(get_db)):
    return workflow_service.list_workflows(db, current_user)


@router.post("", response_model=WorkflowResponse, status_code=status.HTTP_201_CREATED)
def create_workflow(payload: WorkflowCreate, current_user: WriterUser, db: Session = Depends(get_db)):
    workflow = workflow_service.create_workflow(db, current_user, payload)
    return workflow_service.get_workflow(db, current_user, workflow.id)


@router.get("/{workflow_id}", response_model=WorkflowResponse)
def get_workflow(workflow_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    return workflow_service.get_workflow(db, current_user, workflow_id)


@router.put("/{workflow_id}", response_model=WorkflowResponse)
def update_workflow(
    workflow_id: UUID, payload: WorkflowCreate, current_user: WriterUser, db: Session = Depends(get_db)
):
    workflow_service.update_workflow(db, current_user, workflow_id, payload)
    return workflow_service.get_workflow(db, current_user, workflow_id)


@router.delete("/{workflow_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_workflow(workflow_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    workflow_service.delete_workflow(db, current_user, workflow_id)
