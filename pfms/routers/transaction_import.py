"""
Transaction import endpoints.

- GET  /api/transactions/template : Sample .xlsx with the expected columns
- POST /api/transactions/import-preview : Headers, column mapping and first rows
- POST /api/transactions/import : Validate and save every row

Preview does not stage anything server-side: the client resubmits the same
file to /import, optionally with the fileHash preview returned so a swapped
file is refused instead of imported.
"""

import logging
from typing import Any, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user_id
from ..database import get_db
from ..services import workbook_reader
from ..services.import_executor import UploadedFile, commit_import, preview_import
from ..services.import_template import build_template

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Pydantic Schemas ---

class ImportPreviewOut(BaseModel):
    success: bool
    totalRows: int
    columns: list[str]
    preview: list[dict[str, Any]]
    mapping: dict[str, str]  # canonical field -> header
    ignoredColumns: list[str] = []
    unmappedColumns: list[str] = []
    missingFields: list[str] = []
    fileHash: str
    message: str


class ImportResultsOut(BaseModel):
    success: int
    failed: int
    errors: list[str]  # "Row <n>: <reason>"


class ImportOut(BaseModel):
    success: bool
    message: str
    results: ImportResultsOut


async def _read_upload(file: Optional[UploadFile]) -> UploadedFile:
    """Read the upload into memory, one byte past the limit so oversize is detectable."""
    if file is None or not file.filename:
        return UploadedFile(filename=None, content_type=None)
    content = await file.read(workbook_reader.MAX_UPLOAD_BYTES + 1)
    return UploadedFile(
        filename=file.filename,
        content_type=file.content_type,
        content=content,
    )


# --- Endpoints ---

@router.get("/template")
def download_template():
    """Download the import template (no login required)."""
    return Response(
        content=build_template(),
        media_type=workbook_reader.XLSX_MIME,
        headers={"Content-Disposition": 'attachment; filename="pfms-template.xlsx"'},
    )


@router.post("/import-preview", response_model=ImportPreviewOut)
async def import_preview(
    file: Optional[UploadFile] = File(None),
    user_id: int = Depends(get_current_user_id),
):
    """Show what an upload contains before importing it."""
    upload = await _read_upload(file)
    logger.info(f"Import preview for user {user_id}: {upload.filename}")
    preview = preview_import(upload)
    return preview.to_response()


@router.post("/import", response_model=ImportOut)
async def import_transactions(
    file: Optional[UploadFile] = File(None),
    file_hash: Optional[str] = Form(None),
    user_id: int = Depends(get_current_user_id),
    db: Session = Depends(get_db),
):
    """Import every row of an upload; bad rows are reported, not fatal."""
    upload = await _read_upload(file)
    result = commit_import(upload, db, user_id, expected_hash=file_hash)
    return {
        "success": True,
        "message": result.summary(),
        "results": result.to_response(),
    }
