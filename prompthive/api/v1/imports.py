"""Import endpoints.

``POST /imports`` takes the document as the raw request body and
``POST /imports/file`` as an uploaded file; both accept the native, unified
and PromptCat formats.
"""

from fastapi import APIRouter, Depends, File, Request, UploadFile
from sqlalchemy.orm import Session

from prompthive.api.dependencies import AdminUser, ImportUser
from prompthive.core.database import get_db
from prompthive.core.exceptions import InvalidParameterError
from prompthive.core.messages import IMPORT_INVALID_JSON
from prompthive.schemas.transfer import (
    BatchImport,
    ImportResult,
    LocalFolderImport,
    StructureImport,
    StructureImportResult,
)
from prompthive.services import folder_import_service, import_service


router = APIRouter(prefix="/imports", tags=["imports"])


def _decode(raw: bytes) -> str:
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise InvalidParameterError(IMPORT_INVALID_JSON) from exc


@router.post("", response_model=ImportResult)
async def import_json(request: Request, current_user: ImportUser, db: Session = Depends(get_db)):
    text = _decode(await request.body())
    return import_service.import_document(db, current_user, text)


@router.post("/file", response_model=ImportResult)
async def import_json_file(
    current_user: ImportUser,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
):
    text = _decode(await file.read())
    return import_service.import_document(db, current_user, text)


@router.post("/structure", response_model=StructureImportResult)
def import_structure(payload: StructureImport, current_user: ImportUser, db: Session = Depends(get_db)):
    """First step of a chunked import: recreate the collections, return the id map."""
    id_map = import_service.import_structure(db, current_user, payload.defined_collections)
    return {"success": True, "id_map": id_map}


@router.post("/batch", response_model=ImportResult)
def import_batch(payload: BatchImport, current_user: ImportUser, db: Session = Depends(get_db)):
    result = import_service.import_prompts(db, current_user, payload.prompts, payload.collection_id_map)
    return {"success": True, **result}


@router.post("/local-folder", response_model=ImportResult)
def import_local_folder(payload: LocalFolderImport, current_user: AdminUser, db: Session = Depends(get_db)):
    """Import a directory tree that lives on the server's filesystem."""
    count = folder_import_service.import_local_folder(
        db, current_user, payload.path, payload.target_collection_id
    )
    return {"success": True, "count": count}
