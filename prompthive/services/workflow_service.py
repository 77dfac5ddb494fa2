from __future__ import annotations

import uuid
from typing import Iterable

from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from prompthive.core.exceptions import NotFoundError, PermissionDeniedError
from prompthive.core.messages import AUTH_UNAUTHORIZED, WORKFLOW_NOT_FOUND
from prompthive.models.prompt import Prompt, PromptVersion
from prompthive.models.user import User
from prompthive.models.workflow import Workflow, WorkflowStep
from prompthive.schemas.workflow import WorkflowCreate, WorkflowStepInput
from prompthive.services import prompt_service


def _build_steps(db: Session, steps: Iterable[WorkflowStepInput]) -> list[WorkflowStep]:
    built = []
    for step in steps:
        prompt_service.get_prompt(db, step.prompt_id)
        built.append(
            WorkflowStep(
                prompt_id=step.prompt_id,
                order=step.order,
                input_mappings=dict(step.input_mappings),
            )
        )
    return built


def create_workflow(db: Session, user: User, data: WorkflowCreate) -> Workflow:
    workflow = Workflow(
        owner_id=user.id,
        title=data.title,
        description=data.description,
        steps=_build_steps(db, data.steps),
    )
    db.add(workflow)
    db.commit()
    db.refresh(workflow)
    return workflow


def update_workflow(db: Session, user: User, workflow_id: uuid.UUID, data: WorkflowCreate) -> Workflow:
    workflow = db.get(Workflow, workflow_id)
    if workflow is None or workflow.owner_id != user.id:
        raise NotFoundError(WORKFLOW_NOT_FOUND)

    workflow.title = data.title
    workflow.description = data.description
    # delete-orphan drops the previous steps
    workflow.steps = _build_steps(db, data.steps)
    db.commit()
    db.refresh(workflow)
    return workflow


def delete_workflow(db: Session, user: User, workflow_id: uuid.UUID) -> None:
    workflow = db.get(Workflow, workflow_id)
    if workflow is None or workflow.owner_id != user.id:
        raise PermissionDeniedError(AUTH_UNAUTHORIZED)
    db.delete(workflow)
    db.commit()


def get_workflow(db: Session, user: User, workflow_id: uuid.UUID) -> Workflow:
    """Workflow with ordered steps, each prompt loaded with its versions."""
    workflow = (
        db.query(Workflow)
        .options(
            selectinload(Workflow.steps)
            .selectinload(WorkflowStep.prompt)
            .selectinload(Prompt.versions)
            .selectinload(PromptVersion.attachments)
        )
        .filter(Workflow.id == workflow_id)
        .first()
    )
    if workflow is None or workflow.owner_id != user.id:
        raise NotFoundError(WORKFLOW_NOT_FOUND)
    return workflow


def list_workflows(db: Session, user: User) -> list[dict]:
    rows = (
        db.query(Workflow, func.count(WorkflowStep.id))
        .outerjoin(WorkflowStep, WorkflowStep.workflow_id == Workflow.id)
        .filter(Workflow.owner_id == user.id)
        .group_by(Workflow.id)
        .order_by(Workflow.updated_at.desc())
        .all()
    )
    return [
        {
            "id": workflow.id,
            "title": workflow.title,
            "description": workflow.description,
            "updated_at": workflow.updated_at,
            "step_count": count,
        }
        for workflow, count in rows
    ]
