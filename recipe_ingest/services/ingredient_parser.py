"""Standardize free-text ingredient lines into quantity, unit and ingredient."""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from fractions import Fraction

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.services.ingredient_rules import (
    DESCRIPTOR_PATTERN,
    TO_TASTE_PATTERN,
    TO_TASTE_UNIT,
    TRAILING_PHRASE_PATTERN,
    VULGAR_FRACTIONS,
)
from recipe_ingest.services.reference_cache import ReferenceCache, UnitRef, get_reference_cache

logger = logging.getLogger(__name__)

_NUMBER = r"\d+\s+\d+/\d+|\d+/\d+|\d+(?:\.\d+)?|\.\d+"

# Leading quantity with an optional range upper bound ("1-2", "1 to 2"), which is ignored.
QUANTITY_PATTERN = re.compile(
    rf"^(?P<quantity>{_NUMBER})(?:\s*(?:-|–|to)\s*(?:{_NUMBER}))?\s*(?P<rest>.*)$",
    re.DOTALL | re.IGNORECASE,
)
FIRST_WORD_PATTERN = re.compile(r"^(?P<word>[^\s,]+)[\s,]*(?P<rest>.*)$", re.DOTALL)
ABBREVIATION_PATTERN = re.compile(r"^[a-z]{1,4}\.$", re.IGNORECASE)
PARENTHETICAL_PATTERN = re.compile(r"\([^)]*\)|\[[^\]]*\]")
LEADING_OF_PATTERN = re.compile(r"^of\s+", re.IGNORECASE)
DANGLING_CONJUNCTION_PATTERN = re.compile(r"^(?:and|or)\s+|\s+(?:and|or)$", re.IGNORECASE)
NAME_STRIP_CHARS = " \t\r\n.,;:-*'\"`"


@dataclass
class ParsedIngredientLine:
    """Heuristic split of one line, before any store lookups."""

    quantity: float | None
    unit_token: str | None
    name: str
    to_taste: bool = False


@dataclass
class StandardizedIngredient:
    """A line resolved to reference data and a canonical ingredient."""

    quantity: float | None
    unit: UnitRef
    ingredient: Ingredient
    original_text: str
    is_new_ingredient: bool = False


def parse_quantity(text: str) -> float | None:
    """Parse "2", "1.5", "1/2" or "1 1/2" into a float.

    Returns None for a zero denominator.
    """
    try:
        return float(sum(Fraction(part) for part in text.split()))
    except (ValueError, ZeroDivisionError):
        return None


def replace_vulgar_fractions(text: str) -> str:
    """Rewrite "2½" as "2 1/2"."""
    for symbol, ascii_fraction in VULGAR_FRACTIONS.items():
        text = text.replace(symbol, f" {ascii_fraction}")
    return text.replace("⁄", "/").strip()


def clean_ingredient_name(text: str) -> str:
    """Strip notes, descriptors and punctuation from a candidate name."""
    text = PARENTHETICAL_PATTERN.sub(" ", text)
    text = TRAILING_PHRASE_PATTERN.sub(" ", text)
    text = DESCRIPTOR_PATTERN.sub(" ", text)
    text = text.replace(",", " ")
    text = " ".join(text.split()).strip(NAME_STRIP_CHARS)
    text = LEADING_OF_PATTERN.sub("", text)
    text = DANGLING_CONJUNCTION_PATTERN.sub("", text)
    return " ".join(text.split()).strip(NAME_STRIP_CHARS)


def split_ingredient_blob(blob: str | None) -> list[str]:
    """Split a serialized ingredient list into raw line segments.

    Handles both plain comma-separated text and list literals such as
    ``["1 cup flour", "2 eggs, beaten"]``: commas inside quotes do not split,
    and a quote only opens a quoted segment at the start of a segment so
    that apostrophes ("confectioners' sugar") pass through.
    """
    if not blob:
        return []
    text = blob.strip()
    if text.startswith("[") and text.endswith("]"):
        text = text[1:-1]

    segments = []
    current: list[str] = []
    quote: str | None = None
    for char in text:
        if quote:
            if char == quote:
                quote = None
            else:
                current.append(char)
        elif char in "\"'" and not "".join(current).strip():
            current = []
            quote = char
        elif char == ",":
            segments.append("".join(current))
            current = []
        else:
            current.append(char)
    segments.append("".join(current))

    return [segment.strip().strip("\"'").strip() for segment in segments if segment.strip()]


class IngredientStandardizer:
    """Parse ingredient lines and resolve them to canonical ingredients.

    New ingredients are committed as soon as they are created so that their
    ids can be linked and enrichment can be dispatched for them. Enrichment
    runs elsewhere; this class never waits for it.
    """

    def __init__(
        self,
        db: Session,
        reference_cache: ReferenceCache | None = None,
        dispatch_enrichment: Callable[[int], object] | None = None,
        source_job_id: int | None = None,
    ) -> None:
        self.db = db
        self.reference_cache = reference_cache or get_reference_cache()
        self.dispatch_enrichment = dispatch_enrichment or _queue_enrichment
        self.source_job_id = source_job_id

    def parse_line(self, raw: str | None) -> ParsedIngredientLine | None:
        """Split a raw line into quantity, unit token and cleaned name.

        Examples:
        - "1/2 cup flour" -> (0.5, "cup", "flour")
        - "2 large eggs" -> (2.0, "large", "eggs")
        - "1/2 tsp salt, to taste" -> (None, "to taste", "salt")

        Returns None when no ingredient name can be recovered.
        """
        if not raw or not raw.strip():
            return None
        original = raw.strip()
        text = PARENTHETICAL_PATTERN.sub(" ", replace_vulgar_fractions(original))
        text = " ".join(text.split())

        to_taste = bool(TO_TASTE_PATTERN.search(text))
        if to_taste:
            text = " ".join(TO_TASTE_PATTERN.sub(" ", text).split())

        quantity: float | None = None
        unit_token: str | None = None
        remainder = text

        match = QUANTITY_PATTERN.match(text)
        if match:
            quantity = parse_quantity(match.group("quantity"))
            remainder = match.group("rest")
            word_match = FIRST_WORD_PATTERN.match(remainder)
            if word_match:
                word = word_match.group("word")
                rest = word_match.group("rest")
                is_abbreviation = bool(ABBREVIATION_PATTERN.match(word)) and bool(rest.strip())
                if is_abbreviation or self.reference_cache.is_unit_token(word):
                    unit_token = word
                    remainder = rest

        if to_taste:
            quantity = None
            unit_token = TO_TASTE_UNIT

        name = clean_ingredient_name(remainder)
        if not name:
            fallback = TO_TASTE_PATTERN.sub(" ", original) if to_taste else original
            name = clean_ingredient_name(fallback)
        if not name:
            return None

        return ParsedIngredientLine(
            quantity=quantity, unit_token=unit_token, name=name.lower(), to_taste=to_taste
        )

    def parse(self, raw: str | None) -> StandardizedIngredient | None:
        """Parse a line and resolve its unit and canonical ingredient."""
        parsed = self.parse_line(raw)
        if parsed is None:
            return None

        unit = self.reference_cache.match_unit(
            parsed.unit_token, has_quantity=parsed.quantity is not None
        )
        ingredient, created = self._get_or_create_ingredient(parsed.name)
        if created:
            self._dispatch_enrichment(ingredient)

        return StandardizedIngredient(
            quantity=parsed.quantity,
            unit=unit,
            ingredient=ingredient,
            original_text=raw.strip(),
            is_new_ingredient=created,
        )

    def parse_all(self, blob: str | None) -> list[StandardizedIngredient]:
        """Parse every line of a serialized ingredient list, dropping unnamed ones."""
        results = []
        for segment in split_ingredient_blob(blob):
            standardized = self.parse(segment)
            if standardized is not None:
                results.append(standardized)
        return results

    def _get_or_create_ingredient(self, name: str) -> tuple[Ingredient, bool]:
        normalized = Ingredient.normalize(name)
        ingredient = (
            self.db.query(Ingredient).filter(Ingredient.normalized_name == normalized).first()
        )
        if ingredient:
            return ingredient, False

        ingredient = Ingredient(
            name=name, normalized_name=normalized, source_job_id=self.source_job_id
        )
        self.db.add(ingredient)
        try:
            self.db.commit()
        except IntegrityError:
            # Another worker created it first
            self.db.rollback()
            existing = (
                self.db.query(Ingredient).filter(Ingredient.normalized_name == normalized).first()
            )
            if existing is None:
                raise
            logger.debug(f"Ingredient '{name}' was created concurrently; using existing row")
            return existing, False

        self.db.refresh(ingredient)
        logger.info(f"Created ingredient {ingredient.id}: {ingredient.name}")
        return ingredient, True

    def _dispatch_enrichment(self, ingredient: Ingredient) -> None:
        try:
            self.dispatch_enrichment(ingredient.id)
        except Exception as e:
            # Ingredient stays pending and is picked up by enrich_pending_ingredients
            logger.warning(f"Could not queue enrichment for ingredient {ingredient.id}: {e}")


def _queue_enrichment(ingredient_id: int) -> object:
    from recipe_ingest.tasks.enrichment import enrich_ingredient

    return enrich_ingredient.delay(ingredient_id)
