"""Enums for model fields."""

from enum import Enum


class ImportStatus(str, Enum):
    """Lifecycle states of an import job."""

    QUEUED = "queued"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELED = "canceled"

    @property
    def is_terminal(self) -> bool:
        """Check if no further transitions are allowed from this status."""
        return self in (ImportStatus.COMPLETED, ImportStatus.FAILED, ImportStatus.CANCELED)


class UnitGroup(str, Enum):
    """Taxonomy groups for measurement units."""

    SPECIAL = "special"  # unknown, to taste
    COUNT = "count"
    VOLUME = "volume"
    MASS = "mass"
    ENERGY = "energy"
