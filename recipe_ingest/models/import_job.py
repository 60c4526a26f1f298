"""ImportJob model for tracking recipe import runs."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Enum, Integer, String, Uuid
from sqlalchemy.orm import relationship

from recipe_ingest.database import Base
from recipe_ingest.models.enums import ImportStatus
from recipe_ingest.models.mixins import TimestampMixin


class ImportJob(Base, TimestampMixin):
    """One execution of the ingestion pipeline over one source file.

    The row is the single source of truth for job status. Counters are
    written by the ingestion worker only while the job is running.
    """

    __tablename__ = "import_jobs"

    id = Column(Integer, primary_key=True, index=True)
    process_id = Column(Uuid, nullable=False, unique=True, index=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    source = Column(String(255), nullable=True)  # e.g. "csv"
    source_path = Column(String(1024), nullable=True)
    status = Column(
        Enum(
            ImportStatus,
            name="importstatus",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=ImportStatus.QUEUED,
        nullable=False,
        index=True,
    )
    total_records = Column(Integer, nullable=False, default=0)
    imported_count = Column(Integer, nullable=False, default=0)
    skipped_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    message = Column(String(2047), nullable=True)
    queued_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    recipes = relationship("Recipe", back_populates="import_job")
