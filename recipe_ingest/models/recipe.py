"""Recipe, RecipeStep and RecipeIngredient models."""

from sqlalchemy import (
    CheckConstraint,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import relationship

from recipe_ingest.database import Base
from recipe_ingest.models.mixins import TimestampMixin


class Recipe(Base, TimestampMixin):
    """Recipe assembled from one source row."""

    __tablename__ = "recipes"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(500), nullable=False)
    instructions = Column(Text, nullable=False)  # verbatim source text
    raw_ingredients = Column(Text, nullable=False)  # verbatim source text
    prep_time_minutes = Column(Integer, nullable=True)
    cook_time_minutes = Column(Integer, nullable=True)
    servings = Column(Integer, nullable=True)
    import_job_id = Column(Integer, ForeignKey("import_jobs.id"), nullable=True, index=True)

    # Relationships
    import_job = relationship("ImportJob", back_populates="recipes")
    steps = relationship(
        "RecipeStep",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStep.step_number",
    )
    ingredients = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )


# Duplicate-title checks compare lower(title)
Index("ix_recipes_title_lower", func.lower(Recipe.title))


class RecipeStep(Base):
    """Ordered instruction step owned by a recipe."""

    __tablename__ = "recipe_steps"
    __table_args__ = (
        UniqueConstraint("recipe_id", "step_number", name="uq_recipe_steps_recipe_step"),
        CheckConstraint("step_number >= 1", name="ck_recipe_steps_step_number_positive"),
    )

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    step_number = Column(SmallInteger, nullable=False)
    summary = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    # Relationships
    recipe = relationship("Recipe", back_populates="steps")


class RecipeIngredient(Base):
    """Link between a recipe and a canonical ingredient with its measure."""

    __tablename__ = "recipe_ingredients"

    id = Column(Integer, primary_key=True, index=True)
    recipe_id = Column(Integer, ForeignKey("recipes.id"), nullable=False, index=True)
    ingredient_id = Column(Integer, ForeignKey("ingredients.id"), nullable=False, index=True)
    quantity = Column(Float, nullable=True)  # None for "to taste" and unparsable amounts
    unit_id = Column(Integer, ForeignKey("measurement_units.id"), nullable=True)
    original_text = Column(String(1000), nullable=True)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    recipe = relationship("Recipe", back_populates="ingredients")
    ingredient = relationship("Ingredient")
    unit = relationship("MeasurementUnit")
