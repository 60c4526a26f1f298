"""Read raw recipe rows from a delimited source file."""

import csv
import logging
import sys
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

# Ingredient and instruction blobs can exceed the csv module's 128 KiB default
csv.field_size_limit(min(sys.maxsize, 2**31 - 1))

# Canonical field -> accepted header names (compared case-insensitively)
COLUMN_ALIASES: dict[str, tuple[str, ...]] = {
    "title": ("title", "name", "recipe name"),
    "ingredients": ("ingredients",),
    "instructions": ("instructions", "directions", "method"),
    "cook_time_seconds": ("cooking time in seconds", "cook_time_seconds"),
    "prep_time_minutes": ("preparation time in minutes", "prep_time_minutes"),
    "servings": ("servings", "yield"),
}

REQUIRED_COLUMNS = ("title", "ingredients", "instructions")


class SourceFormatError(Exception):
    """Raised when the source file cannot be read as a recipe table."""


@dataclass
class RawRecipeRow:
    """One untransformed row of the source file."""

    title: str
    ingredients: str
    instructions: str
    cook_time_seconds: int | None = None
    prep_time_minutes: int | None = None
    servings: int | None = None
    line_number: int = 0

    @property
    def is_complete(self) -> bool:
        """Check if title, ingredients and instructions all have text."""
        return bool(self.title.strip() and self.ingredients.strip() and self.instructions.strip())


def parse_optional_int(value: str | None) -> int | None:
    """Parse "12", "12.0" or " 12 " into an int; anything else is None."""
    if value is None or not value.strip():
        return None
    try:
        return int(float(value.strip()))
    except (ValueError, OverflowError):
        return None


def _map_columns(fieldnames: list[str] | None) -> dict[str, str]:
    if not fieldnames:
        raise SourceFormatError("Source file has no header row")

    by_lower = {name.strip().lower(): name for name in fieldnames if name}
    columns = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in by_lower:
                columns[field] = by_lower[alias]
                break

    missing = [field for field in REQUIRED_COLUMNS if field not in columns]
    if missing:
        raise SourceFormatError(f"Source file is missing required columns: {', '.join(missing)}")
    return columns


def read_recipe_rows(path: str | Path) -> Iterator[RawRecipeRow]:
    """Stream rows from a CSV file with a header row.

    Rows are yielded one at a time so memory does not grow with file size.

    Raises:
        SourceFormatError: If the header lacks a required column
        OSError: If the file cannot be opened
        csv.Error: If the file is malformed beyond recovery
    """
    with open(path, newline="", encoding="utf-8-sig") as f:
        reader = csv.DictReader(f)
        columns = _map_columns(reader.fieldnames)

        def cell(record: dict, field: str) -> str | None:
            header = columns.get(field)
            return record.get(header) if header else None

        for record in reader:
            yield RawRecipeRow(
                title=(cell(record, "title") or "").strip(),
                ingredients=cell(record, "ingredients") or "",
                instructions=cell(record, "instructions") or "",
                cook_time_seconds=parse_optional_int(cell(record, "cook_time_seconds")),
                prep_time_minutes=parse_optional_int(cell(record, "prep_time_minutes")),
                servings=parse_optional_int(cell(record, "servings")),
                line_number=reader.line_num,
            )
