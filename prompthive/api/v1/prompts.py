"""Prompt endpoints: search, dashboard, versioning and bulk actions.

Create and new-version requests are multipart: the prompt fields travel as a
JSON document in the ``payload`` form field next to the uploaded files.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, ValidationError
from sqlalchemy.orm import Session

from prompthive.api.dependencies import CurrentUser, DownloadUser, WriterUser
from prompthive.core.database import get_db
from prompthive.core.exceptions import NotFoundError
from prompthive.core.messages import VERSION_NOT_FOUND
from prompthive.core.permissions import can_edit_prompt
from prompthive.schemas.prompt import (
    BulkMove,
    BulkPromptIds,
    BulkTags,
    DashboardResponse,
    PromptCreate,
    PromptDetail,
    PromptLink,
    PromptMove,
    PromptRef,
    PromptSummary,
    VersionCreate,
    VersionResponse,
)
from prompthive.services import markdown_service, prompt_service
from prompthive.services.file_service import IncomingFile


router = APIRouter(prefix="/prompts", tags=["prompts"])


def _parse_payload(schema: type[BaseModel], payload: str) -> BaseModel:
    try:
        return schema.model_validate_json(payload)
    except ValidationError as exc:
        raise RequestValidationError(exc.errors())


async def _read_uploads(files: Optional[List[UploadFile]]) -> list[IncomingFile]:
    incoming = []
    for upload in files or []:
        if not upload.filename:
            continue
        incoming.append(
            IncomingFile(
                filename=upload.filename,
                content=await upload.read(),
                content_type=upload.content_type,
            )
        )
    return incoming


@router.get("", response_model=List[PromptSummary])
def search_prompts(
    current_user: CurrentUser,
    q: Optional[str] = None,
    tags: Optional[str] = Query(None, description="Comma separated tag names or ids"),
    creator: Optional[str] = None,
    sort: str = Query("date", pattern="^(date|alpha|usage)$"),
    order: str = Query("desc", pattern="^(asc|desc)$"),
    db: Session = Depends(get_db),
):
    return prompt_service.search_prompts(
        db, current_user, q=q, tags=tags, creator=creator, sort=sort, order=order
    )


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(current_user: CurrentUser, db: Session = Depends(get_db)):
    return prompt_service.get_dashboard(db, current_user)


@router.get("/simple")
def list_prompts_simple(current_user: CurrentUser, db: Session = Depends(get_db)):
    """Id, title and variables of the caller's prompts, for workflow editors."""
    return prompt_service.get_all_prompts_simple(db, current_user)


@router.get("/linking/search", response_model=List[PromptRef])
def search_for_linking(
    current_user: CurrentUser,
    q: str = "",
    exclude_id: Optional[UUID] = None,
    db: Session = Depends(get_db),
):
    return prompt_service.search_prompts_for_linking(db, current_user, q, exclude_id)


@router.post("/bulk/delete")
def bulk_delete(payload: BulkPromptIds, current_user: WriterUser, db: Session = Depends(get_db)):
    count = prompt_service.bulk_delete_prompts(db, current_user, payload.prompt_ids)
    return {"count": count}


@router.post("/bulk/move")
def bulk_move(payload: BulkMove, current_user: WriterUser, db: Session = Depends(get_db)):
    count = prompt_service.bulk_move_prompts(db, current_user, payload.prompt_ids, payload.collection_id)
    return {"count": count}


@router.post("/bulk/tags")
def bulk_tags(payload: BulkTags, current_user: WriterUser, db: Session = Depends(get_db)):
    count = prompt_service.bulk_add_tags(db, current_user, payload.prompt_ids, payload.tag_ids)
    return {"count": count}


@router.post("", response_model=PromptDetail, status_code=status.HTTP_201_CREATED)
async def create_prompt(
    current_user: WriterUser,
    payload: str = Form(...),
    attachments: Optional[List[UploadFile]] = File(None),
    result_images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    data = _parse_payload(PromptCreate, payload)
    prompt = prompt_service.create_prompt(
        db,
        current_user,
        data,
        attachments=await _read_uploads(attachments),
        result_images=await _read_uploads(result_images),
    )
    return prompt_service.get_prompt_detail(db, current_user, prompt.id)


@router.get("/{prompt_id}", response_model=PromptDetail)
def get_prompt(prompt_id: UUID, current_user: CurrentUser, db: Session = Depends(get_db)):
    prompt = prompt_service.get_prompt_detail(db, current_user, prompt_id)
    detail = PromptDetail.model_validate(prompt)
    detail.can_edit = can_edit_prompt(current_user, prompt)
    return detail


@router.delete("/{prompt_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_prompt(prompt_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    prompt_service.delete_prompt(db, current_user, prompt_id)


@router.post("/{prompt_id}/versions", response_model=VersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    prompt_id: UUID,
    current_user: WriterUser,
    payload: str = Form(...),
    attachments: Optional[List[UploadFile]] = File(None),
    result_images: Optional[List[UploadFile]] = File(None),
    db: Session = Depends(get_db),
):
    data = _parse_payload(VersionCreate, payload)
    return prompt_service.create_version(
        db,
        current_user,
        prompt_id,
        data,
        attachments=await _read_uploads(attachments),
        result_images=await _read_uploads(result_images),
    )


@router.post(
    "/{prompt_id}/versions/{version_id}/restore",
    response_model=VersionResponse,
    status_code=status.HTTP_201_CREATED,
)
def restore_version(prompt_id: UUID, version_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    return prompt_service.restore_version(db, current_user, prompt_id, version_id)


@router.get("/{prompt_id}/markdown", response_class=PlainTextResponse)
def get_markdown(
    prompt_id: UUID,
    version_id: UUID,
    current_user: DownloadUser,
    db: Session = Depends(get_db),
):
    prompt = prompt_service.get_prompt_detail(db, current_user, prompt_id)
    markdown = markdown_service.generate_markdown(prompt, version_id)
    if not markdown:
        raise NotFoundError(VERSION_NOT_FOUND)
    return PlainTextResponse(markdown, media_type="text/markdown")


@router.put("/{prompt_id}/move", response_model=PromptSummary)
def move_prompt(prompt_id: UUID, payload: PromptMove, current_user: WriterUser, db: Session = Depends(get_db)):
    return prompt_service.move_prompt(db, current_user, prompt_id, payload.collection_id)


@router.post("/{prompt_id}/lock")
def toggle_lock(prompt_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    prompt = prompt_service.toggle_lock(db, current_user, prompt_id)
    return {"is_locked": prompt.is_locked}


@router.post("/{prompt_id}/visibility")
def toggle_visibility(prompt_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    prompt = prompt_service.toggle_visibility(db, current_user, prompt_id)
    return {"is_private": prompt.is_private}


@router.post("/{prompt_id}/links", status_code=status.HTTP_204_NO_CONTENT)
def link_prompt(prompt_id: UUID, payload: PromptLink, current_user: WriterUser, db: Session = Depends(get_db)):
    prompt_service.link_prompts(db, current_user, prompt_id, payload.related_id)


@router.delete("/{prompt_id}/links/{related_id}", status_code=status.HTTP_204_NO_CONTENT)
def unlink_prompt(prompt_id: UUID, related_id: UUID, current_user: WriterUser, db: Session = Depends(get_db)):
    prompt_service.unlink_prompts(db, current_user, prompt_id, related_id)
