"""Tests for reading recipe source files."""

import pytest

from recipe_ingest.services.recipe_source import (
    SourceFormatError,
    parse_optional_int,
    read_recipe_rows,
)


def test_read_rows(tmp_path):
    """Test reading rows with the standard headers."""
    path = tmp_path / "recipes.csv"
    path.write_text(
        "Title,Ingredients,Instructions,Cooking Time in Seconds,"
        "Preparation Time in Minutes,Servings\n"
        'Soup,"[""1 cup water"", ""1 onion""]","Boil.\nServe.",1200,5,2\n'
        "Toast,1 slice bread,Toast it.,,,\n",
        encoding="utf-8",
    )

    rows = list(read_recipe_rows(path))

    assert len(rows) == 2
    soup, toast = rows
    assert soup.title == "Soup"
    assert soup.ingredients == '["1 cup water", "1 onion"]'
    assert soup.instructions == "Boil.\nServe."
    assert soup.cook_time_seconds == 1200
    assert soup.prep_time_minutes == 5
    assert soup.servings == 2
    assert toast.cook_time_seconds is None
    assert toast.servings is None
    assert toast.line_number > soup.line_number


def test_headers_are_case_insensitive(tmp_path):
    """Test header aliases and case-insensitive matching."""
    path = tmp_path / "recipes.csv"
    path.write_text("TITLE,ingredients,Directions\nEggs,2 eggs,Boil.\n", encoding="utf-8")

    row = next(read_recipe_rows(path))

    assert row.title == "Eggs"
    assert row.instructions == "Boil."
    assert row.is_complete


def test_missing_required_column(tmp_path):
    """Test that a file without an instructions column is rejected."""
    path = tmp_path / "recipes.csv"
    path.write_text("Title,Ingredients\nEggs,2 eggs\n", encoding="utf-8")

    with pytest.raises(SourceFormatError, match="instructions"):
        list(read_recipe_rows(path))


def test_incomplete_row(tmp_path):
    """Test that rows with blank fields are reported incomplete."""
    path = tmp_path / "recipes.csv"
    path.write_text("Title,Ingredients,Instructions\n  ,2 eggs,Boil.\n", encoding="utf-8")

    row = next(read_recipe_rows(path))

    assert not row.is_complete


@pytest.mark.parametrize(
    "value,expected",
    [("12", 12), (" 7 ", 7), ("12.0", 12), ("", None), (None, None), ("n/a", None), ("nan", None)],
)
def test_parse_optional_int(value, expected):
    """Test tolerant integer parsing."""
    assert parse_optional_int(value) == expected
