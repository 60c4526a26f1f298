"""Ingestion coordinator: import jobs over recipe source files."""

import logging
import os
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recipe_ingest.config import get_settings
from recipe_ingest.models.enums import ImportStatus
from recipe_ingest.models.import_job import ImportJob
from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.models.recipe import Recipe
from recipe_ingest.services.ingredient_parser import IngredientStandardizer
from recipe_ingest.services.recipe_assembler import TITLE_MAX_LENGTH, RecipeAssembler
from recipe_ingest.services.recipe_source import RawRecipeRow, read_recipe_rows
from recipe_ingest.services.reference_cache import ReferenceCache, get_reference_cache
from recipe_ingest.services.step_segmenter import StepSegmenter

logger = logging.getLogger(__name__)

MESSAGE_MAX_LENGTH = 2047


class IngestError(Exception):
    """Base error for import requests."""


class SourceFileError(IngestError):
    """Raised when a source file is missing or unreadable."""


@dataclass
class ImportStartResult:
    """Outcome of an import request."""

    success: bool
    message: str
    process_id: uuid.UUID | None = None


@dataclass
class ImportJobStatus:
    """Snapshot of an import job for callers."""

    process_id: uuid.UUID
    name: str
    status: ImportStatus
    message: str | None
    total_records: int
    imported_count: int
    skipped_count: int
    error_count: int
    enrichment_pending: int
    queued_at: datetime
    started_at: datetime | None
    completed_at: datetime | None

    @classmethod
    def from_job(cls, job: ImportJob, enrichment_pending: int = 0) -> "ImportJobStatus":
        return cls(
            process_id=job.process_id,
            name=job.name,
            status=job.status,
            message=job.message,
            total_records=job.total_records,
            imported_count=job.imported_count,
            skipped_count=job.skipped_count,
            error_count=job.error_count,
            enrichment_pending=enrichment_pending,
            queued_at=job.queued_at,
            started_at=job.started_at,
            completed_at=job.completed_at,
        )


@dataclass
class ImportCounters:
    """Running counters of an import, written to the job at checkpoints."""

    total: int = 0
    imported: int = 0
    skipped: int = 0
    errors: int = 0
    last_error: str | None = None

    def as_update(self) -> dict:
        return {
            "total_records": self.total,
            "imported_count": self.imported,
            "skipped_count": self.skipped,
            "error_count": self.errors,
        }

    def summary(self) -> str:
        text = (
            f"Processed {self.total} records: {self.imported} imported, "
            f"{self.skipped} skipped, {self.errors} errors"
        )
        if self.last_error:
            text += f". Last error: {self.last_error}"
        return text


def _coerce_process_id(process_id: uuid.UUID | str) -> uuid.UUID | None:
    if isinstance(process_id, uuid.UUID):
        return process_id
    try:
        return uuid.UUID(str(process_id))
    except ValueError:
        return None


def _queue_import(process_id: uuid.UUID) -> object:
    from recipe_ingest.tasks.ingestion import run_recipe_import

    return run_recipe_import.delay(str(process_id))


def _title_key(row: RawRecipeRow) -> str:
    return row.title.strip()[:TITLE_MAX_LENGTH].rstrip().lower()


class IngestionService:
    """Create, run, inspect and cancel recipe import jobs.

    The job row is the only shared state. Counters are kept in memory while
    a job runs and written through updates guarded by ``status = running``,
    so a canceled or failed job is never overwritten and the worker notices
    cancellation at its next checkpoint.
    """

    def __init__(
        self,
        db: Session,
        reference_cache: ReferenceCache | None = None,
        dispatch_import: Callable[[uuid.UUID], object] | None = None,
        dispatch_enrichment: Callable[[int], object] | None = None,
        segmenter: StepSegmenter | None = None,
        batch_size: int | None = None,
        progress_interval: int | None = None,
    ) -> None:
        settings = get_settings()
        self.db = db
        self.reference_cache = reference_cache or get_reference_cache()
        self.dispatch_import = dispatch_import or _queue_import
        self.dispatch_enrichment = dispatch_enrichment
        self.segmenter = segmenter or StepSegmenter()
        self.batch_size = batch_size or settings.import_batch_size
        self.progress_interval = progress_interval or settings.import_progress_interval

    # --- Requests ---

    def start_import(self, source_path: str, name: str | None = None) -> ImportStartResult:
        """Validate the source, persist a queued job and hand it to a worker.

        Raises:
            SourceFileError: If the file is missing or unreadable. No job is created.
        """
        path = Path(source_path)
        if not path.is_file():
            raise SourceFileError(f"Source file not found: {source_path}")
        if not os.access(path, os.R_OK):
            raise SourceFileError(f"Source file is not readable: {source_path}")

        job = ImportJob(
            name=name or path.name,
            source="csv",
            source_path=str(path.resolve()),
            status=ImportStatus.QUEUED,
        )
        self.db.add(job)
        self.db.commit()
        self.db.refresh(job)
        process_id = job.process_id
        logger.info(f"Queued import {process_id} ({job.name}) from {job.source_path}")

        try:
            self.dispatch_import(process_id)
        except Exception as e:
            logger.error(f"Could not dispatch import {process_id}: {e}", exc_info=True)
            self._finish(
                process_id,
                ImportStatus.FAILED,
                f"Import could not be queued: {e}",
                from_status=ImportStatus.QUEUED,
            )
            return ImportStartResult(
                success=False, message=f"Import could not be queued: {e}", process_id=process_id
            )

        return ImportStartResult(success=True, message="Import queued", process_id=process_id)

    def get_status(self, process_id: uuid.UUID | str) -> ImportJobStatus | None:
        """Get a job snapshot, or None if the process id is unknown."""
        job = self._get_job(process_id)
        if job is None:
            return None
        pending = (
            self.db.query(func.count(Ingredient.id))
            .filter(
                Ingredient.source_job_id == job.id,
                Ingredient.nutrients_enriched_at.is_(None),
            )
            .scalar()
        )
        return ImportJobStatus.from_job(job, enrichment_pending=pending or 0)

    def cancel_import(self, process_id: uuid.UUID | str) -> ImportJobStatus | None:
        """Cancel a queued or running job. Terminal jobs are left unchanged."""
        pid = _coerce_process_id(process_id)
        if pid is None:
            return None
        updated = (
            self.db.query(ImportJob)
            .filter(
                ImportJob.process_id == pid,
                ImportJob.status.in_([ImportStatus.QUEUED, ImportStatus.RUNNING]),
            )
            .update(
                {
                    "status": ImportStatus.CANCELED,
                    "message": "Canceled by request",
                    "completed_at": datetime.now(UTC),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        if updated:
            logger.info(f"Import {pid} canceled")
        return self.get_status(pid)

    # --- Worker ---

    def execute_import(self, process_id: uuid.UUID | str) -> bool:
        """Run a queued job to completion.

        Returns:
            True if the job reached Completed
        """
        pid = _coerce_process_id(process_id)
        if pid is None:
            logger.warning(f"Ignoring import with invalid process id {process_id!r}")
            return False

        started = (
            self.db.query(ImportJob)
            .filter(ImportJob.process_id == pid, ImportJob.status == ImportStatus.QUEUED)
            .update(
                {"status": ImportStatus.RUNNING, "started_at": datetime.now(UTC)},
                synchronize_session=False,
            )
        )
        self.db.commit()
        if not started:
            logger.warning(f"Import {pid} is not queued - ignoring")
            return False

        job = self._get_job(pid)
        job_id, source_path = job.id, job.source_path
        counters = ImportCounters()
        logger.info(f"Starting import {pid} from {source_path}")

        try:
            finished_input = self._run(pid, job_id, source_path, counters)
        except Exception as e:
            logger.error(f"Import {pid} failed: {e}", exc_info=True)
            self.db.rollback()
            self._finish(pid, ImportStatus.FAILED, f"Import failed: {e}", counters)
            return False

        if not finished_input:
            logger.info(f"Import {pid} stopped after cancellation. {counters.summary()}")
            return False

        completed = self._finish(pid, ImportStatus.COMPLETED, counters.summary(), counters)
        if completed:
            logger.info(f"Import {pid} completed. {counters.summary()}")
        else:
            logger.info(f"Import {pid} was canceled before completion")
        return completed

    def _run(self, pid: uuid.UUID, job_id: int, source_path: str, counters: ImportCounters) -> bool:
        """Stream, assemble and persist rows. Returns False if canceled."""
        standardizer = IngredientStandardizer(
            self.db,
            reference_cache=self.reference_cache,
            dispatch_enrichment=self.dispatch_enrichment,
            source_job_id=job_id,
        )
        assembler = RecipeAssembler(standardizer, self.segmenter)
        buffer: list[tuple[RawRecipeRow, Recipe]] = []
        buffered_titles: set[str] = set()

        for row in read_recipe_rows(source_path):
            counters.total += 1
            try:
                recipe = self._process_row(row, assembler, job_id, buffered_titles)
            except Exception as e:
                self._record_row_error(pid, row, e, counters)
            else:
                if recipe is None:
                    counters.skipped += 1
                else:
                    buffer.append((row, recipe))
                    buffered_titles.add(_title_key(row))

            if len(buffer) >= self.batch_size:
                if not self._flush(pid, buffer, assembler, job_id, counters):
                    return False
                buffer = []
                buffered_titles.clear()
            elif counters.total % self.progress_interval == 0:
                if not self._checkpoint(pid, counters):
                    logger.info(f"Import {pid}: discarding {len(buffer)} buffered recipes")
                    return False

        if buffer and not self._flush(pid, buffer, assembler, job_id, counters):
            return False
        return True

    def _record_row_error(
        self, pid: uuid.UUID, row: RawRecipeRow, error: Exception, counters: ImportCounters
    ) -> None:
        counters.errors += 1
        counters.last_error = f"'{row.title}' (line {row.line_number}): {error}"
        logger.error(f"Import {pid}: error importing recipe {counters.last_error}", exc_info=True)
        self.db.rollback()

    def _process_row(
        self,
        row: RawRecipeRow,
        assembler: RecipeAssembler,
        job_id: int,
        buffered_titles: set[str],
    ) -> Recipe | None:
        if not row.is_complete:
            logger.warning(
                f"Skipping line {row.line_number}: missing title, ingredients or instructions"
            )
            return None

        title_key = _title_key(row)
        if title_key in buffered_titles or self._title_exists(title_key):
            logger.info(f"Skipping duplicate recipe '{row.title}' (line {row.line_number})")
            return None

        return assembler.assemble(row, import_job_id=job_id)

    def _title_exists(self, title_key: str) -> bool:
        return (
            self.db.query(Recipe.id).filter(func.lower(Recipe.title) == title_key).first()
            is not None
        )

    def _flush(
        self,
        pid: uuid.UUID,
        buffer: list[tuple[RawRecipeRow, Recipe]],
        assembler: RecipeAssembler,
        job_id: int,
        counters: ImportCounters,
    ) -> bool:
        """Persist a batch together with a checkpoint. Returns False if canceled.

        If the batch cannot be saved, its rows are assembled and saved again
        one at a time so that only the failing rows are counted as errors.
        """
        recipes = [recipe for _, recipe in buffer]
        self.db.add_all(recipes)
        counters.imported += len(recipes)
        try:
            self.db.flush()
            if not self._write_counters(pid, counters):
                self.db.rollback()
                counters.imported -= len(recipes)
                logger.info(f"Import {pid}: discarding {len(recipes)} buffered recipes")
                return False
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            counters.imported -= len(recipes)
            logger.warning(
                f"Import {pid}: failed to save a batch of {len(recipes)} recipes ({e}); "
                "retrying one at a time"
            )
            return self._flush_rows(pid, [row for row, _ in buffer], assembler, job_id, counters)

        logger.info(f"Import {pid}: saved batch of {len(recipes)} recipes. {counters.summary()}")
        return True

    def _flush_rows(
        self,
        pid: uuid.UUID,
        rows: list[RawRecipeRow],
        assembler: RecipeAssembler,
        job_id: int,
        counters: ImportCounters,
    ) -> bool:
        """Save rows one transaction each. Returns False if canceled."""
        for row in rows:
            try:
                recipe = assembler.assemble(row, import_job_id=job_id)
                if recipe is None:
                    counters.skipped += 1
                    continue
                self.db.add(recipe)
                self.db.flush()
            except Exception as e:
                self._record_row_error(pid, row, e, counters)
                continue

            counters.imported += 1
            if not self._write_counters(pid, counters):
                self.db.rollback()
                counters.imported -= 1
                logger.info(f"Import {pid}: discarding unsaved recipes after cancellation")
                return False
            self.db.commit()

        return self._checkpoint(pid, counters)

    def _checkpoint(self, pid: uuid.UUID, counters: ImportCounters) -> bool:
        """Write counters. Returns False if the job is no longer running."""
        running = self._write_counters(pid, counters)
        self.db.commit()
        return running

    def _write_counters(self, pid: uuid.UUID, counters: ImportCounters) -> bool:
        updated = (
            self.db.query(ImportJob)
            .filter(ImportJob.process_id == pid, ImportJob.status == ImportStatus.RUNNING)
            .update(counters.as_update(), synchronize_session=False)
        )
        return updated > 0

    def _finish(
        self,
        pid: uuid.UUID,
        status: ImportStatus,
        message: str,
        counters: ImportCounters | None = None,
        from_status: ImportStatus = ImportStatus.RUNNING,
    ) -> bool:
        """Move a job to a terminal status if it is still in ``from_status``."""
        values = counters.as_update() if counters else {}
        values.update(
            {
                "status": status,
                "message": message[:MESSAGE_MAX_LENGTH],
                "completed_at": datetime.now(UTC),
            }
        )
        updated = (
            self.db.query(ImportJob)
            .filter(ImportJob.process_id == pid, ImportJob.status == from_status)
            .update(values, synchronize_session=False)
        )
        self.db.commit()
        return updated > 0

    def _get_job(self, process_id: uuid.UUID | str) -> ImportJob | None:
        pid = _coerce_process_id(process_id)
        if pid is None:
            return None
        return self.db.query(ImportJob).filter(ImportJob.process_id == pid).first()
