"""MeasurementUnit reference model."""

from sqlalchemy import Column, Enum, Integer, String

from recipe_ingest.database import Base
from recipe_ingest.models.enums import UnitGroup
from recipe_ingest.models.mixins import TimestampMixin


class MeasurementUnit(Base, TimestampMixin):
    """Canonical measurement unit (read-only for the ingestion pipeline)."""

    __tablename__ = "measurement_units"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(50), nullable=False, unique=True, index=True)  # "cup", "g", "each"
    description = Column(String(255), nullable=True)
    unit_group = Column(
        Enum(
            UnitGroup,
            name="unitgroup",
            values_callable=lambda x: [e.value for e in x],
        ),
        nullable=False,
    )
