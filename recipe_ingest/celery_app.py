"""Celery application configuration."""

from celery import Celery

from recipe_ingest.config import get_settings

settings = get_settings()

app = Celery(
    "recipe_ingest",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["recipe_ingest.tasks.ingestion", "recipe_ingest.tasks.enrichment"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # Defaults sized for enrichment (two FDC calls); imports set their own limits
    task_time_limit=300,
    task_soft_time_limit=240,
    task_routes={
        "recipe_ingest.tasks.ingestion.*": {"queue": "ingestion"},
        "recipe_ingest.tasks.enrichment.*": {"queue": "enrichment"},
    },
    # Rate-limited enrichment tasks must not be prefetched in bulk
    worker_prefetch_multiplier=1,
)
