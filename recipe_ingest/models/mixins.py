"""Mixins for SQLAlchemy models."""

from sqlalchemy import Column, DateTime, String, func


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamp columns."""

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class CanonicalNameMixin:
    """Mixin for records identified by a case-insensitive unique name.

    ``name`` keeps the spelling first seen; ``normalized_name`` carries the
    unique constraint that lookups and concurrent creates rely on.
    """

    name = Column(String(255), nullable=False)
    normalized_name = Column(String(255), nullable=False, unique=True, index=True)

    @staticmethod
    def normalize(name: str) -> str:
        """Collapse whitespace and lower-case a name for lookups."""
        return " ".join(name.split()).lower()
