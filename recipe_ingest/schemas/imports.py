"""Import job schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from recipe_ingest.models.enums import ImportStatus


class ImportCreate(BaseModel):
    """Request to import a source file already on the server."""

    source_path: str = Field(..., min_length=1, max_length=1024)
    name: str | None = Field(None, max_length=255)


class ImportStartResponse(BaseModel):
    """Response for an import request."""

    success: bool
    message: str
    process_id: uuid.UUID | None = None


class ImportJobStatusResponse(BaseModel):
    """Import job status and counters."""

    model_config = ConfigDict(from_attributes=True)

    process_id: uuid.UUID
    name: str
    status: ImportStatus
    message: str | None = None
    total_records: int
    imported_count: int
    skipped_count: int
    error_count: int
    enrichment_pending: int  # ingredients from this job still awaiting nutrients
    queued_at: datetime
    started_at: datetime | None = None
    completed_at: datetime | None = None
