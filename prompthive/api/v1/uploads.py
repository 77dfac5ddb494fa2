"""Stored file retrieval and standalone uploads."""

from fastapi import APIRouter, File, HTTPException, UploadFile, status
from fastapi.responses import FileResponse

from prompthive.api.dependencies import WriterUser
from prompthive.core.messages import FILE_INVALID_NAME, FILE_NOT_FOUND
from prompthive.services import file_service


router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def upload_file(current_user: WriterUser, file: UploadFile = File(...)) -> dict:
    content = await file.read()
    return file_service.save_file(content, file.filename or "upload.bin", file.content_type)


@router.get("/{filename}")
def get_file(filename: str):
    # Served without a token so stored images can be embedded directly
    if not file_service.is_safe_filename(filename):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=FILE_INVALID_NAME,
        )

    path = file_service.get_upload_dir() / filename
    if not path.is_file():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=FILE_NOT_FOUND,
        )

    return FileResponse(path, media_type=file_service.guess_content_type(filename))
