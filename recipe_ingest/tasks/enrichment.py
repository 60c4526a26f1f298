"""Celery tasks for ingredient nutrient enrichment."""

import asyncio
import logging
from dataclasses import asdict

from sqlalchemy.orm import Session

from recipe_ingest.celery_app import app as celery_app
from recipe_ingest.config import get_settings
from recipe_ingest.database import SessionLocal
from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.services.nutrient_enrichment import NutrientEnrichmentService

logger = logging.getLogger(__name__)

settings = get_settings()


@celery_app.task(bind=True, rate_limit=settings.enrichment_rate_limit)
def enrich_ingredient(self, ingredient_id: int) -> dict:
    """Look up and attach nutrients for one ingredient.

    Rate limited per worker to stay under the FoodData Central hourly quota.

    Args:
        ingredient_id: ID of the Ingredient to enrich

    Returns:
        dict with enrichment result
    """
    db: Session = SessionLocal()
    try:
        ingredient = db.query(Ingredient).filter(Ingredient.id == ingredient_id).first()
        if not ingredient:
            logger.warning(f"Ingredient {ingredient_id} not found, skipping enrichment")
            return {"error": "Ingredient not found"}

        service = NutrientEnrichmentService(db)
        result = asyncio.run(service.enrich(ingredient))
        return {"success": True, **asdict(result)}

    except Exception as e:
        logger.error(f"Error enriching ingredient {ingredient_id}: {e}", exc_info=True)
        db.rollback()
        return {"error": str(e)}
    finally:
        db.close()


@celery_app.task
def enrich_pending_ingredients(limit: int = 500) -> dict:
    """Queue enrichment for ingredients that are still pending.

    Recovers ingredients whose enrichment was never queued or was lost.
    """
    db: Session = SessionLocal()
    try:
        pending_ids = [
            ingredient_id
            for (ingredient_id,) in db.query(Ingredient.id)
            .filter(Ingredient.nutrients_enriched_at.is_(None))
            .order_by(Ingredient.id)
            .limit(limit)
        ]
        for ingredient_id in pending_ids:
            enrich_ingredient.delay(ingredient_id)

        logger.info(f"Queued enrichment for {len(pending_ids)} pending ingredients")
        return {"success": True, "queued": len(pending_ids)}
    finally:
        db.close()
