"""Pydantic schemas for API requests and responses."""

from recipe_ingest.schemas.imports import (
    ImportCreate,
    ImportJobStatusResponse,
    ImportStartResponse,
)

__all__ = [
    "ImportCreate",
    "ImportStartResponse",
    "ImportJobStatusResponse",
]
