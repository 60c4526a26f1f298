"""Idempotent seeding of measurement units and core nutrients."""

import logging

from sqlalchemy.orm import Session

from recipe_ingest.models.enums import UnitGroup
from recipe_ingest.models.measurement_unit import MeasurementUnit
from recipe_ingest.models.nutrient import Nutrient

logger = logging.getLogger(__name__)

# (name, description, group)
MEASUREMENT_UNITS: tuple[tuple[str, str, UnitGroup], ...] = (
    ("unknown", "Unknown or unparsed unit", UnitGroup.SPECIAL),
    ("to taste", "Amount left to the cook", UnitGroup.SPECIAL),
    ("each", "Single item", UnitGroup.COUNT),
    ("piece", "Piece", UnitGroup.COUNT),
    ("slice", "Slice", UnitGroup.COUNT),
    ("can", "Can", UnitGroup.COUNT),
    ("bottle", "Bottle", UnitGroup.COUNT),
    ("package", "Package", UnitGroup.COUNT),
    ("clove", "Clove", UnitGroup.COUNT),
    ("sprig", "Sprig", UnitGroup.COUNT),
    ("leaf", "Leaf", UnitGroup.COUNT),
    ("stalk", "Stalk", UnitGroup.COUNT),
    ("g", "Gram", UnitGroup.MASS),
    ("mg", "Milligram", UnitGroup.MASS),
    ("µg", "Microgram", UnitGroup.MASS),
    ("kg", "Kilogram", UnitGroup.MASS),
    ("oz", "Ounce", UnitGroup.MASS),
    ("lb", "Pound", UnitGroup.MASS),
    ("ml", "Milliliter", UnitGroup.VOLUME),
    ("l", "Liter", UnitGroup.VOLUME),
    ("tsp", "Teaspoon", UnitGroup.VOLUME),
    ("tbsp", "Tablespoon", UnitGroup.VOLUME),
    ("cup", "Cup", UnitGroup.VOLUME),
    ("pint", "Pint", UnitGroup.VOLUME),
    ("quart", "Quart", UnitGroup.VOLUME),
    ("gallon", "Gallon", UnitGroup.VOLUME),
    ("pinch", "Pinch", UnitGroup.VOLUME),
    ("dash", "Dash", UnitGroup.VOLUME),
    ("splash", "Splash", UnitGroup.VOLUME),
    ("kcal", "Kilocalorie", UnitGroup.ENERGY),
)

# (name, default unit, description)
NUTRIENTS: tuple[tuple[str, str, str], ...] = (
    ("Calories", "kcal", "Energy"),
    ("Protein", "g", "Protein"),
    ("Fat", "g", "Total lipid (fat)"),
    ("Carbohydrates", "g", "Carbohydrate, by difference"),
    ("Sodium", "mg", "Sodium, Na"),
    ("Fiber", "g", "Fiber, total dietary"),
    ("Saturated Fat", "g", "Fatty acids, total saturated"),
    ("Sugar", "g", "Sugars, total"),
)


def seed_reference_data(db: Session) -> dict[str, int]:
    """Insert missing reference rows; existing rows are left untouched.

    Returns:
        Counts of inserted units and nutrients
    """
    existing_units = {unit.name: unit for unit in db.query(MeasurementUnit).all()}
    units_added = 0
    for name, description, group in MEASUREMENT_UNITS:
        if name in existing_units:
            continue
        unit = MeasurementUnit(name=name, description=description, unit_group=group)
        db.add(unit)
        existing_units[name] = unit
        units_added += 1
    db.flush()

    existing_nutrients = {n.normalized_name for n in db.query(Nutrient).all()}
    nutrients_added = 0
    for name, unit_name, description in NUTRIENTS:
        normalized = Nutrient.normalize(name)
        if normalized in existing_nutrients:
            continue
        unit = existing_units.get(unit_name)
        db.add(
            Nutrient(
                name=name,
                normalized_name=normalized,
                description=description,
                default_unit_id=unit.id if unit else None,
            )
        )
        existing_nutrients.add(normalized)
        nutrients_added += 1

    db.commit()
    logger.info(f"Seeded reference data: {units_added} units, {nutrients_added} nutrients")
    return {"units": units_added, "nutrients": nutrients_added}
