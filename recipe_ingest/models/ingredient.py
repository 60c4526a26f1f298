"""Ingredient model."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from recipe_ingest.database import Base
from recipe_ingest.models.mixins import CanonicalNameMixin, TimestampMixin


class Ingredient(Base, CanonicalNameMixin, TimestampMixin):
    """Canonical ingredient shared across recipes."""

    __tablename__ = "ingredients"

    id = Column(Integer, primary_key=True, index=True)
    description = Column(Text, nullable=True)
    external_id = Column(String(64), nullable=True)  # FoodData Central fdcId
    source_job_id = Column(Integer, ForeignKey("import_jobs.id"), nullable=True, index=True)
    nutrients_enriched_at = Column(DateTime(timezone=True), nullable=True, index=True)

    # Relationships
    nutrients = relationship(
        "IngredientNutrient", back_populates="ingredient", cascade="all, delete-orphan"
    )

    @property
    def is_enriched(self) -> bool:
        """Check if nutrient enrichment has finished for this ingredient."""
        return self.nutrients_enriched_at is not None
