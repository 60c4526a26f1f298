"""Recipe import API endpoints."""

import logging
import shutil
import uuid
from pathlib import Path
from typing import Annotated

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse

from recipe_ingest.api.dependencies import get_ingestion_service
from recipe_ingest.config import get_settings
from recipe_ingest.schemas.imports import (
    ImportCreate,
    ImportJobStatusResponse,
    ImportStartResponse,
)
from recipe_ingest.services.ingestion_service import IngestionService, SourceFileError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/imports", tags=["imports"])


def _start(service: IngestionService, source_path: str, name: str | None):
    try:
        result = service.start_import(source_path, name=name)
    except SourceFileError as e:
        logger.warning(f"Rejected import of {source_path}: {e}")
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": str(e)},
        )
    return ImportStartResponse(
        success=result.success, message=result.message, process_id=result.process_id
    )


@router.post(
    "",
    response_model=ImportStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"description": "Source file missing or unreadable"}},
)
def create_import(
    data: ImportCreate,
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
):
    """Queue an import of a CSV file that already exists on the server."""
    return _start(service, data.source_path, data.name)


@router.post(
    "/upload",
    response_model=ImportStartResponse,
    status_code=status.HTTP_202_ACCEPTED,
    responses={400: {"description": "Uploaded file missing or empty"}},
)
def upload_import(
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
    file: UploadFile = File(...),
    name: str | None = Form(None),
):
    """Save an uploaded CSV file and queue its import."""
    if not file.filename:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "No file provided"},
        )

    upload_dir = Path(get_settings().upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    destination = upload_dir / f"{uuid.uuid4().hex}_{Path(file.filename).name}"
    with destination.open("wb") as out:
        shutil.copyfileobj(file.file, out)
    logger.info(f"Saved upload {file.filename} to {destination}")

    if destination.stat().st_size == 0:
        destination.unlink(missing_ok=True)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": "Uploaded file is empty"},
        )

    return _start(service, str(destination), name or file.filename)


@router.get("/{process_id}", response_model=ImportJobStatusResponse)
def get_import_status(
    process_id: uuid.UUID,
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
):
    """Get the status and counters of an import job."""
    job_status = service.get_status(process_id)
    if job_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import not found")
    return job_status


@router.post("/{process_id}/cancel", response_model=ImportJobStatusResponse)
def cancel_import(
    process_id: uuid.UUID,
    service: Annotated[IngestionService, Depends(get_ingestion_service)],
):
    """Cancel a queued or running import. Finished imports are returned unchanged."""
    job_status = service.cancel_import(process_id)
    if job_status is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Import not found")
    return job_status
