import json

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from prompthive.api.dependencies import ExportUser
from prompthive.core.database import get_db
from prompthive.schemas.transfer import ExportBatchRequest, ExportMetaRequest, ZeroExportRequest
from prompthive.services import export_service


router = APIRouter(prefix="/exports", tags=["exports"])


@router.get("")
def download_full_export(current_user: ExportUser, db: Session = Depends(get_db)):
    """All of the caller's prompts as a downloadable JSON backup."""
    data = export_service.get_full_export(db, current_user)
    return Response(
        content=json.dumps(data, indent=2),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="{export_service.export_filename()}"'},
    )


@router.post("/meta")
def export_meta(payload: ExportMetaRequest, current_user: ExportUser, db: Session = Depends(get_db)):
    return export_service.get_export_meta(db, current_user, payload.collection_ids, payload.recursive)


@router.post("/batch")
def export_batch(payload: ExportBatchRequest, current_user: ExportUser, db: Session = Depends(get_db)):
    return export_service.get_export_batch(db, current_user, payload.ids)


@router.post("/zero")
def export_zero(payload: ZeroExportRequest, current_user: ExportUser, db: Session = Depends(get_db)):
    return export_service.generate_zero_export(db, current_user, payload.collection_ids)
