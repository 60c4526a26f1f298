"""Attach nutrient data to ingredients from FoodData Central."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.models.nutrient import IngredientNutrient, Nutrient
from recipe_ingest.services.fdc_client import FoodDataCentralClient, FoodDetail, FoodNutrient
from recipe_ingest.services.ingredient_rules import (
    CORE_NUTRIENTS,
    NUTRIENT_SYNONYMS,
    NUTRIENT_UNIT_PREFERENCES,
)
from recipe_ingest.services.reference_cache import NutrientRef, ReferenceCache, get_reference_cache

logger = logging.getLogger(__name__)

_QUALIFIER_PATTERN = re.compile(r"\([^)]*\)|\[[^\]]*\]")


def normalize_nutrient_name(raw: str) -> str:
    """Map an FDC nutrient name to its canonical form.

    Examples:
    - "Total lipid (fat)" -> "Fat"
    - "Energy" -> "Calories"
    - "Carbohydrate, by difference" -> "Carbohydrates"
    - "Vitamin C, total ascorbic acid" -> "Vitamin C"
    """
    text = " ".join(_QUALIFIER_PATTERN.sub(" ", raw).split()).strip(" ,")
    key = text.lower()
    if key in NUTRIENT_SYNONYMS:
        return NUTRIENT_SYNONYMS[key]

    base = key.split(",")[0].strip()
    if base in NUTRIENT_SYNONYMS:
        return NUTRIENT_SYNONYMS[base]
    return base.title()


@dataclass
class EnrichmentResult:
    """Outcome of enriching one ingredient."""

    ingredient_id: int
    matched: bool = False
    external_id: str | None = None
    nutrients_added: int = 0
    fallback_nutrients: int = 0
    skipped: bool = False


class NutrientEnrichmentService:
    """Best-effort nutrient enrichment for a single ingredient.

    The best textual match is looked up, each reported nutrient is mapped to
    a canonical Nutrient, and the four core nutrients are always present
    afterwards (zero-valued when the lookup could not supply them).
    """

    def __init__(
        self,
        db: Session,
        lookup_client: FoodDataCentralClient | None = None,
        reference_cache: ReferenceCache | None = None,
    ) -> None:
        self.db = db
        self.lookup_client = lookup_client or FoodDataCentralClient()
        self.reference_cache = reference_cache or get_reference_cache()

    async def enrich(self, ingredient: Ingredient) -> EnrichmentResult:
        """Enrich an ingredient and commit its nutrient associations.

        Idempotent: ingredients already marked enriched are skipped, and
        existing (ingredient, nutrient) pairs are never inserted again.
        """
        ingredient_id = ingredient.id
        if ingredient.is_enriched:
            logger.info(f"Ingredient {ingredient_id} already enriched - skipping")
            return EnrichmentResult(ingredient_id=ingredient_id, skipped=True)

        result = EnrichmentResult(ingredient_id=ingredient_id)
        existing_ids = {
            nutrient_id
            for (nutrient_id,) in self.db.query(IngredientNutrient.nutrient_id).filter(
                IngredientNutrient.ingredient_id == ingredient_id
            )
        }
        staged: dict[int, IngredientNutrient] = {}

        try:
            detail = await self._lookup(ingredient.name)
        except Exception as e:
            logger.error(
                f"Lookup failed for ingredient {ingredient_id} ({ingredient.name}): {e}; "
                "using core nutrient fallback",
                exc_info=True,
            )
            detail = None
        if detail is not None:
            result.matched = True
            result.external_id = str(detail.fdc_id)
            for entry in detail.nutrients:
                try:
                    self._stage_entry(ingredient_id, entry, existing_ids, staged)
                except Exception as e:
                    logger.warning(
                        f"Skipping nutrient '{entry.name}' for ingredient {ingredient_id}: {e}",
                        exc_info=True,
                    )
                    self.db.rollback()
        result.nutrients_added = len(staged)

        for name, unit_name in CORE_NUTRIENTS:
            nutrient = self._get_or_create_nutrient(name, unit_name)
            if nutrient.id in existing_ids or nutrient.id in staged:
                continue
            unit = self.reference_cache.resolve_unit(unit_name)
            staged[nutrient.id] = IngredientNutrient(
                ingredient_id=ingredient_id,
                nutrient_id=nutrient.id,
                amount=0.0,
                unit_id=unit.id if unit else nutrient.default_unit_id,
            )
            result.fallback_nutrients += 1

        if detail is not None:
            ingredient.external_id = result.external_id
            if not ingredient.description and detail.description:
                ingredient.description = detail.description
        self.db.add_all(staged.values())
        ingredient.nutrients_enriched_at = datetime.now(UTC)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(
                f"Ingredient {ingredient_id} was enriched concurrently; discarding this run: {e}"
            )
            return EnrichmentResult(ingredient_id=ingredient_id, skipped=True)

        logger.info(
            f"Enriched ingredient {ingredient_id} ({ingredient.name}): "
            f"{result.nutrients_added} nutrients from lookup, "
            f"{result.fallback_nutrients} core fallbacks"
        )
        return result

    async def _lookup(self, name: str) -> FoodDetail | None:
        """Fetch details for the single best match, or None."""
        results = await self.lookup_client.search(name, limit=1)
        if not results:
            logger.info(f"No food match for '{name}'; using core nutrient fallback")
            return None

        best = results[0]
        detail = await self.lookup_client.get_details(best.fdc_id)
        if detail is None:
            logger.info(
                f"No nutrient details for '{name}' (fdcId {best.fdc_id}); "
                "using core nutrient fallback"
            )
            return None
        if not detail.description:
            detail.description = best.description
        return detail

    def _stage_entry(
        self,
        ingredient_id: int,
        entry: FoodNutrient,
        existing_ids: set[int],
        staged: dict[int, IngredientNutrient],
    ) -> None:
        name = normalize_nutrient_name(entry.name)
        if not name:
            return

        preferred_unit = NUTRIENT_UNIT_PREFERENCES.get(name)
        if preferred_unit and (entry.unit or "").lower() != preferred_unit:
            logger.debug(f"Ignoring {name} reported in '{entry.unit}'")
            return

        nutrient = self._get_or_create_nutrient(name, entry.unit)
        if nutrient.id in existing_ids or nutrient.id in staged:
            return

        if entry.unit:
            unit_id = self.reference_cache.match_unit(entry.unit, has_quantity=True).id
        else:
            unit_id = nutrient.default_unit_id

        staged[nutrient.id] = IngredientNutrient(
            ingredient_id=ingredient_id,
            nutrient_id=nutrient.id,
            amount=entry.amount,
            unit_id=unit_id,
        )

    def _get_or_create_nutrient(self, name: str, unit_name: str | None) -> NutrientRef:
        cached = self.reference_cache.get_nutrient(name)
        if cached is not None:
            return cached

        normalized = Nutrient.normalize(name)
        nutrient = self.db.query(Nutrient).filter(Nutrient.normalized_name == normalized).first()
        if nutrient is None:
            default_unit = self.reference_cache.lookup_unit_token(unit_name)
            nutrient = Nutrient(
                name=name,
                normalized_name=normalized,
                default_unit_id=default_unit.id if default_unit else None,
            )
            self.db.add(nutrient)
            try:
                self.db.commit()
            except IntegrityError:
                self.db.rollback()
                nutrient = (
                    self.db.query(Nutrient).filter(Nutrient.normalized_name == normalized).first()
                )
                if nutrient is None:
                    raise
            else:
                logger.info(f"Created nutrient '{name}'")

        ref = NutrientRef(id=nutrient.id, name=nutrient.name, default_unit_id=nutrient.default_unit_id)
        self.reference_cache.register_nutrient(ref)
        return ref
