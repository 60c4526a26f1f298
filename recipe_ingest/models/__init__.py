"""SQLAlchemy models."""

from recipe_ingest.models.import_job import ImportJob
from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.models.measurement_unit import MeasurementUnit
from recipe_ingest.models.nutrient import IngredientNutrient, Nutrient
from recipe_ingest.models.recipe import Recipe, RecipeIngredient, RecipeStep

__all__ = [
    "ImportJob",
    "Recipe",
    "RecipeStep",
    "RecipeIngredient",
    "Ingredient",
    "Nutrient",
    "IngredientNutrient",
    "MeasurementUnit",
]
