"""Tests for Celery tasks, executed synchronously."""

import csv
from unittest.mock import patch

import pytest

from recipe_ingest.celery_app import app as celery_app
from recipe_ingest.config import get_settings
from recipe_ingest.models.enums import ImportStatus
from recipe_ingest.models.import_job import ImportJob
from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.models.nutrient import IngredientNutrient
from recipe_ingest.tasks.enrichment import enrich_ingredient, enrich_pending_ingredients
from recipe_ingest.tasks.ingestion import run_recipe_import


@pytest.fixture
def task_session(session_factory):
    """Point task modules at the test database."""
    with (
        patch("recipe_ingest.tasks.ingestion.SessionLocal", session_factory),
        patch("recipe_ingest.tasks.enrichment.SessionLocal", session_factory),
    ):
        yield


def test_run_recipe_import(db, reference_cache, task_session, tmp_path):
    """Test running an import job through the task."""
    path = tmp_path / "recipes.csv"
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(["Title", "Ingredients", "Instructions"])
        writer.writerow(["Omelette", "2 eggs, 1 tbsp butter", "Beat eggs.\nCook in butter."])
    job = ImportJob(name="task test", source="csv", source_path=str(path))
    db.add(job)
    db.commit()
    db.refresh(job)

    with (
        patch(
            "recipe_ingest.services.ingestion_service.get_reference_cache",
            return_value=reference_cache,
        ),
        patch("recipe_ingest.tasks.enrichment.enrich_ingredient.delay") as mock_enrich,
    ):
        result = run_recipe_import(str(job.process_id))

    assert result["success"] is True
    assert result["status"] == ImportStatus.COMPLETED.value
    assert result["imported"] == 1
    assert mock_enrich.call_count == 2


def test_run_recipe_import_unknown_job(task_session):
    """Test that an unknown job is reported, not raised."""
    result = run_recipe_import("00000000-0000-0000-0000-000000000000")
    assert result == {"error": "Import not found"}


def test_enrich_ingredient(db, reference_cache, lookup_client, task_session):
    """Test enriching an ingredient through the task."""
    ingredient = Ingredient(name="rice", normalized_name="rice")
    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)

    with (
        patch(
            "recipe_ingest.services.nutrient_enrichment.get_reference_cache",
            return_value=reference_cache,
        ),
        patch(
            "recipe_ingest.services.nutrient_enrichment.FoodDataCentralClient",
            return_value=lookup_client,
        ),
    ):
        result = enrich_ingredient(ingredient.id)

    assert result["success"] is True
    assert result["fallback_nutrients"] == 4
    assert lookup_client.searches == ["rice"]
    assert db.query(IngredientNutrient).count() == 4


def test_enrich_missing_ingredient(task_session):
    """Test that a missing ingredient is reported, not raised."""
    assert enrich_ingredient(999999) == {"error": "Ingredient not found"}


def test_enrich_pending_ingredients(db, task_session):
    """Test re-queuing ingredients that were never enriched."""
    db.add_all(
        [
            Ingredient(name="salt", normalized_name="salt"),
            Ingredient(name="pepper", normalized_name="pepper"),
        ]
    )
    db.commit()

    with patch("recipe_ingest.tasks.enrichment.enrich_ingredient.delay") as mock_enrich:
        result = enrich_pending_ingredients(limit=10)

    assert result == {"success": True, "queued": 2}
    assert mock_enrich.call_count == 2


def test_task_time_limits():
    """Test that imports override the worker-wide limit enrichment relies on."""
    settings = get_settings()

    assert run_recipe_import.time_limit == settings.import_time_limit_seconds
    assert run_recipe_import.soft_time_limit < run_recipe_import.time_limit
    assert enrich_ingredient.time_limit is None
    assert celery_app.conf.task_time_limit == 300
    assert celery_app.conf.task_soft_time_limit < celery_app.conf.task_time_limit
