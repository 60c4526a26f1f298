"""FastAPI dependencies for services."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from recipe_ingest.database import get_db
from recipe_ingest.services.ingestion_service import IngestionService
from recipe_ingest.services.reference_cache import ReferenceCache, get_reference_cache


def get_ingestion_service(
    db: Annotated[Session, Depends(get_db)],
    reference_cache: Annotated[ReferenceCache, Depends(get_reference_cache)],
) -> IngestionService:
    """Get ingestion service with dependencies."""
    return IngestionService(db, reference_cache=reference_cache)
