"""Nutrient and IngredientNutrient models."""

from sqlalchemy import Column, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from recipe_ingest.database import Base
from recipe_ingest.models.mixins import CanonicalNameMixin, TimestampMixin


class Nutrient(Base, CanonicalNameMixin, TimestampMixin):
    """Canonical nutrient (e.g. "Protein", "Calories")."""

    __tablename__ = "nutrients"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(Text, nullable=True)
    default_unit_id = Column(Integer, ForeignKey("measurement_units.id"), nullable=True)

    # Relationships
    default_unit = relationship("MeasurementUnit")


class IngredientNutrient(Base, TimestampMixin):
    """Amount of one nutrient in one ingredient (per 100 g as reported by FDC)."""

    __tablename__ = "ingredient_nutrients"
    __table_args__ = (
        UniqueConstraint(
            "ingredient_id", "nutrient_id", name="uq_ingredient_nutrients_ingredient_nutrient"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)
    nutrient_id = Column(Integer, ForeignKey("nutrients.id"), nullable=False, index=True)
    amount = Column(Float, nullable=False, default=0.0)
    unit_id = Column(Integer, ForeignKey("measurement_units.id"), nullable=True)

    # Relationships
    ingredient = relationship("Ingredient", back_populates="nutrients")
    nutrient = relationship("Nutrient")
    unit = relationship("MeasurementUnit")
