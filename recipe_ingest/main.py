"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from recipe_ingest.api import imports
from recipe_ingest.config import get_settings
from recipe_ingest.database import SessionLocal, init_db

settings = get_settings()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown events."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.seed_reference_on_startup:
        from recipe_ingest.services.reference_seed import seed_reference_data

        init_db()
        db = SessionLocal()
        try:
            seed_reference_data(db)
        finally:
            db.close()
    yield


app = FastAPI(
    title="Recipe Ingest API",
    description="Bulk recipe import with ingredient standardization and nutrient enrichment",
    version="0.1.0",
    lifespan=lifespan,
)

# Register routers
app.include_router(imports.router)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "environment": settings.environment}
