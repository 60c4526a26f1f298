"""Assemble Recipe aggregates from raw source rows."""

import logging

from recipe_ingest.models.recipe import Recipe, RecipeIngredient, RecipeStep
from recipe_ingest.services.ingredient_parser import IngredientStandardizer
from recipe_ingest.services.recipe_source import RawRecipeRow
from recipe_ingest.services.step_segmenter import StepSegmenter

logger = logging.getLogger(__name__)

TITLE_MAX_LENGTH = 500


def recipe_title(row: RawRecipeRow) -> str:
    """Stored title of a row, cut to the column length."""
    title = row.title.strip()
    if len(title) > TITLE_MAX_LENGTH:
        logger.warning(
            f"Title on line {row.line_number} is longer than {TITLE_MAX_LENGTH} characters; "
            "truncating"
        )
        title = title[:TITLE_MAX_LENGTH].rstrip()
    return title


class RecipeAssembler:
    """Build an unsaved Recipe with its steps and ingredient links.

    The recipe is not added to the session; the caller persists it with
    its batch.
    """

    def __init__(self, standardizer: IngredientStandardizer, segmenter: StepSegmenter) -> None:
        self.standardizer = standardizer
        self.segmenter = segmenter

    def assemble(self, row: RawRecipeRow, import_job_id: int | None = None) -> Recipe | None:
        """Build a recipe from a row.

        Returns:
            The recipe, or None when the row yields no ingredients or no steps
        """
        ingredients = self.standardizer.parse_all(row.ingredients)
        if not ingredients:
            logger.warning(f"Recipe '{row.title}' (line {row.line_number}) has no parsable ingredients")
            return None

        steps = self.segmenter.segment(row.instructions)
        if not steps:
            logger.warning(f"Recipe '{row.title}' (line {row.line_number}) has no instruction steps")
            return None

        recipe = Recipe(
            title=recipe_title(row),
            instructions=row.instructions,
            raw_ingredients=row.ingredients,
            prep_time_minutes=row.prep_time_minutes,
            cook_time_minutes=(
                row.cook_time_seconds // 60 if row.cook_time_seconds is not None else None
            ),
            servings=row.servings,
            import_job_id=import_job_id,
        )
        recipe.steps = [
            RecipeStep(
                step_number=step.step_number,
                summary=step.summary,
                description=step.description,
            )
            for step in steps
        ]
        # Link by id so the shared ingredient rows are not cascaded into the batch
        recipe.ingredients = [
            RecipeIngredient(
                ingredient_id=item.ingredient.id,
                quantity=item.quantity,
                unit_id=item.unit.id,
                original_text=item.original_text[:1000],
                position=position,
            )
            for position, item in enumerate(ingredients)
        ]
        return recipe
