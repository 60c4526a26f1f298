"""Tests for ingredient line standardization."""

from unittest.mock import MagicMock

import pytest

from recipe_ingest.models.ingredient import Ingredient
from recipe_ingest.services.ingredient_parser import (
    IngredientStandardizer,
    clean_ingredient_name,
    parse_quantity,
    split_ingredient_blob,
)


@pytest.fixture
def dispatch():
    return MagicMock()


@pytest.fixture
def standardizer(db, reference_cache, dispatch):
    return IngredientStandardizer(db, reference_cache=reference_cache, dispatch_enrichment=dispatch)


class TestParseLine:
    """Tests for the line heuristics."""

    def test_fraction_with_unit(self, standardizer):
        parsed = standardizer.parse_line("1/2 cup flour")
        assert parsed.quantity == 0.5
        assert parsed.unit_token == "cup"
        assert parsed.name == "flour"

    def test_mixed_number(self, standardizer):
        parsed = standardizer.parse_line("1 1/2 cups sugar")
        assert parsed.quantity == 1.5
        assert parsed.unit_token == "cups"
        assert parsed.name == "sugar"

    def test_vulgar_fraction(self, standardizer):
        parsed = standardizer.parse_line("2½ tbsp butter, softened")
        assert parsed.quantity == 2.5
        assert parsed.unit_token == "tbsp"
        assert parsed.name == "butter"

    def test_decimal_quantity(self, standardizer):
        parsed = standardizer.parse_line("1.5 lbs ground beef")
        assert parsed.quantity == 1.5
        assert parsed.unit_token == "lbs"
        assert parsed.name == "beef"

    def test_range_keeps_lower_bound(self, standardizer):
        parsed = standardizer.parse_line("2-3 cloves garlic, minced")
        assert parsed.quantity == 2.0
        assert parsed.unit_token == "cloves"
        assert parsed.name == "garlic"

    def test_quantity_without_unit(self, standardizer):
        parsed = standardizer.parse_line("2 eggs")
        assert parsed.quantity == 2.0
        assert parsed.unit_token is None
        assert parsed.name == "eggs"

    def test_size_word_is_consumed_as_unit(self, standardizer):
        parsed = standardizer.parse_line("3 large eggs")
        assert parsed.quantity == 3.0
        assert parsed.unit_token == "large"
        assert parsed.name == "eggs"

    def test_to_taste_suffix(self, standardizer):
        parsed = standardizer.parse_line("salt to taste")
        assert parsed.quantity is None
        assert parsed.unit_token == "to taste"
        assert parsed.name == "salt"
        assert parsed.to_taste

    def test_to_taste_overrides_leading_quantity(self, standardizer):
        parsed = standardizer.parse_line("1/2 tsp salt, to taste")
        assert parsed.quantity is None
        assert parsed.unit_token == "to taste"
        assert parsed.name == "salt"

    def test_as_needed(self, standardizer):
        parsed = standardizer.parse_line("olive oil as needed")
        assert parsed.unit_token == "to taste"
        assert parsed.name == "olive oil"

    def test_zero_denominator_gives_no_quantity(self, standardizer):
        parsed = standardizer.parse_line("1/0 cup milk")
        assert parsed.quantity is None
        assert parsed.unit_token == "cup"
        assert parsed.name == "milk"

    def test_parenthetical_note_removed(self, standardizer):
        parsed = standardizer.parse_line("1 (14 oz) can diced tomatoes")
        assert parsed.quantity == 1.0
        assert parsed.unit_token == "can"
        assert parsed.name == "tomatoes"

    def test_abbreviation_with_period(self, standardizer):
        parsed = standardizer.parse_line("2 Tbsp. honey")
        assert parsed.unit_token == "Tbsp."
        assert parsed.name == "honey"

    def test_word_that_is_not_a_unit_stays_in_name(self, standardizer):
        parsed = standardizer.parse_line("4 chicken thighs")
        assert parsed.unit_token is None
        assert parsed.name == "chicken thighs"

    def test_leading_of_removed(self, standardizer):
        parsed = standardizer.parse_line("1 cup of milk")
        assert parsed.name == "milk"

    def test_descriptor_only_line_is_dropped(self, standardizer):
        assert standardizer.parse_line("chopped") is None

    def test_blank_line(self, standardizer):
        assert standardizer.parse_line("   ") is None
        assert standardizer.parse_line(None) is None


class TestParse:
    """Tests for unit and ingredient resolution."""

    def test_resolves_unit_and_creates_ingredient(self, standardizer, db, dispatch):
        result = standardizer.parse("1/2 cup flour")

        assert result.quantity == 0.5
        assert result.unit.name == "cup"
        assert result.ingredient.name == "flour"
        assert result.is_new_ingredient
        assert result.original_text == "1/2 cup flour"
        dispatch.assert_called_once_with(result.ingredient.id)
        assert db.query(Ingredient).count() == 1

    def test_plural_unit_resolves_to_singular(self, standardizer):
        assert standardizer.parse("2 cups milk").unit.name == "cup"

    def test_unit_alias(self, standardizer):
        assert standardizer.parse("2 teaspoons vanilla").unit.name == "tsp"

    def test_count_unit_default(self, standardizer):
        result = standardizer.parse("2 eggs")
        assert result.quantity == 2.0
        assert result.unit.name == "each"

    def test_size_word_maps_to_count(self, standardizer):
        assert standardizer.parse("2 large onions").unit.name == "each"

    def test_to_taste_unit(self, standardizer):
        result = standardizer.parse("salt to taste")
        assert result.quantity is None
        assert result.unit.name == "to taste"

    def test_no_quantity_no_unit_is_unknown(self, standardizer):
        result = standardizer.parse("fresh parsley")
        assert result.quantity is None
        assert result.unit.name == "unknown"
        assert result.ingredient.name == "parsley"

    def test_existing_ingredient_reused_case_insensitively(self, standardizer, db, dispatch):
        first = standardizer.parse("1 cup Flour")
        second = standardizer.parse("2 cups flour")

        assert first.ingredient.id == second.ingredient.id
        assert not second.is_new_ingredient
        assert db.query(Ingredient).count() == 1
        dispatch.assert_called_once()

    def test_dispatch_failure_does_not_fail_parse(self, db, reference_cache):
        dispatch = MagicMock(side_effect=ConnectionError("broker down"))
        standardizer = IngredientStandardizer(
            db, reference_cache=reference_cache, dispatch_enrichment=dispatch
        )

        result = standardizer.parse("1 cup rice")

        assert result is not None
        assert result.ingredient.nutrients_enriched_at is None

    def test_source_job_recorded(self, db, reference_cache, dispatch):
        from recipe_ingest.models.import_job import ImportJob

        job = ImportJob(name="test", source="csv")
        db.add(job)
        db.commit()

        standardizer = IngredientStandardizer(
            db, reference_cache=reference_cache, dispatch_enrichment=dispatch, source_job_id=job.id
        )
        result = standardizer.parse("1 lemon")

        assert result.ingredient.source_job_id == job.id


class TestParseAll:
    """Tests for ingredient blob splitting."""

    def test_list_literal(self, standardizer):
        results = standardizer.parse_all('["1 cup flour", "2 eggs, beaten", "salt to taste"]')

        assert [r.ingredient.name for r in results] == ["flour", "eggs", "salt"]

    def test_plain_commas_drop_empty_segments(self, standardizer):
        results = standardizer.parse_all("1 onion, chopped, 2 carrots")

        assert [r.ingredient.name for r in results] == ["onion", "carrots"]

    def test_empty_blob(self, standardizer):
        assert standardizer.parse_all("") == []
        assert standardizer.parse_all("[]") == []


def test_split_keeps_apostrophes():
    """Test that an apostrophe inside a segment does not open a quote."""
    assert split_ingredient_blob("1 cup confectioners' sugar, 2 eggs") == [
        "1 cup confectioners' sugar",
        "2 eggs",
    ]


def test_split_respects_quoted_commas():
    """Test that commas inside quotes do not split."""
    assert split_ingredient_blob("['1 onion, diced', '2 tbsp oil']") == [
        "1 onion, diced",
        "2 tbsp oil",
    ]


@pytest.mark.parametrize(
    "text,expected",
    [("2", 2.0), ("1/4", 0.25), ("1 1/2", 1.5), ("0.75", 0.75), ("3/0", None)],
)
def test_parse_quantity(text, expected):
    """Test quantity parsing."""
    assert parse_quantity(text) == expected


def test_clean_ingredient_name():
    """Test descriptor and trailing phrase removal."""
    assert clean_ingredient_name("fresh basil leaves, for garnish") == "basil leaves"
    assert clean_ingredient_name("sweet potatoes, peeled and cubed") == "sweet potatoes"
