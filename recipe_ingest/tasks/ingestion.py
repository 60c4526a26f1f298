"""Celery tasks for recipe import jobs."""

import logging

from sqlalchemy.orm import Session

from recipe_ingest.celery_app import app as celery_app
from recipe_ingest.config import get_settings
from recipe_ingest.database import SessionLocal
from recipe_ingest.services.ingestion_service import IngestionService

logger = logging.getLogger(__name__)

settings = get_settings()


@celery_app.task(
    bind=True,
    time_limit=settings.import_time_limit_seconds,
    soft_time_limit=max(settings.import_time_limit_seconds - 60, 1),
)
def run_recipe_import(self, process_id: str) -> dict:
    """Execute a queued import job.

    Not retried: a failed job stays Failed and a redelivered task for a job
    that already left Queued is ignored.

    Args:
        process_id: Process id of the ImportJob to run

    Returns:
        dict with the final job counters
    """
    db: Session = SessionLocal()
    try:
        service = IngestionService(db)
        completed = service.execute_import(process_id)

        job_status = service.get_status(process_id)
        if job_status is None:
            return {"error": "Import not found"}

        return {
            "success": completed,
            "process_id": process_id,
            "status": job_status.status.value,
            "total_records": job_status.total_records,
            "imported": job_status.imported_count,
            "skipped": job_status.skipped_count,
            "errors": job_status.error_count,
        }

    except Exception as e:
        logger.error(f"Error running import {process_id}: {e}", exc_info=True)
        db.rollback()
        return {"error": str(e)}
    finally:
        db.close()
