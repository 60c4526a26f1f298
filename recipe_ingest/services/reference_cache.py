"""Process-wide cache of measurement units and the nutrient taxonomy."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache

from sqlalchemy.orm import Session

from recipe_ingest.database import SessionLocal
from recipe_ingest.models.enums import UnitGroup
from recipe_ingest.models.measurement_unit import MeasurementUnit
from recipe_ingest.models.nutrient import Nutrient
from recipe_ingest.services.ingredient_rules import SIZE_WORDS, TO_TASTE_UNIT, UNIT_ALIASES

logger = logging.getLogger(__name__)


class FallbackUnit(str, Enum):
    """Distinguished units used when a line has no resolvable unit."""

    UNKNOWN = "unknown"
    EACH = "each"
    TO_TASTE = "to taste"


@dataclass(frozen=True)
class UnitRef:
    """Immutable snapshot of a measurement unit row."""

    id: int | None
    name: str
    group: UnitGroup


@dataclass(frozen=True)
class NutrientRef:
    """Immutable snapshot of a nutrient row."""

    id: int
    name: str
    default_unit_id: int | None


# Stand-in when the "unknown" unit was never seeded; id None leaves unit_id empty.
UNKNOWN_UNIT_PLACEHOLDER = UnitRef(id=None, name="unknown", group=UnitGroup.SPECIAL)


class ReferenceCache:
    """Read-mostly lookup tables loaded once per process.

    Loading happens on first access behind a double-checked lock, so
    concurrent first callers trigger a single load. The tables are never
    refreshed afterwards; nutrients created later are added with
    ``register_nutrient``.
    """

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory
        self._lock = threading.Lock()
        self._loaded = False
        self._units: dict[str, UnitRef] = {}
        self._nutrients: dict[str, NutrientRef] = {}
        self._fallbacks: dict[FallbackUnit, UnitRef] = {}

    @property
    def is_loaded(self) -> bool:
        """Check if the tables have been loaded."""
        return self._loaded

    def ensure_loaded(self) -> None:
        """Load the tables if this is the first access."""
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            self._load()
            self._loaded = True

    def _load(self) -> None:
        logger.info("Initializing reference cache...")
        db = self._session_factory()
        try:
            units = {
                unit.name.lower(): UnitRef(id=unit.id, name=unit.name, group=unit.unit_group)
                for unit in db.query(MeasurementUnit).all()
            }
            nutrients = {
                nutrient.normalized_name: NutrientRef(
                    id=nutrient.id,
                    name=nutrient.name,
                    default_unit_id=nutrient.default_unit_id,
                )
                for nutrient in db.query(Nutrient).all()
            }
        finally:
            db.close()

        unknown = units.get(FallbackUnit.UNKNOWN.value)
        if unknown is None:
            logger.critical(
                "CRITICAL: 'unknown' measurement unit not found in measurement_units. "
                "Seed reference data; using an in-memory placeholder until then."
            )
            unknown = UNKNOWN_UNIT_PLACEHOLDER

        fallbacks = {FallbackUnit.UNKNOWN: unknown}
        for kind in (FallbackUnit.EACH, FallbackUnit.TO_TASTE):
            unit = units.get(kind.value)
            if unit is None:
                logger.warning(
                    f"'{kind.value}' measurement unit not found in reference data. "
                    "Using 'unknown' as fallback."
                )
                unit = unknown
            fallbacks[kind] = unit

        self._units = units
        self._nutrients = nutrients
        self._fallbacks = fallbacks
        logger.info(
            f"Reference cache initialized with {len(units)} units and {len(nutrients)} nutrients"
        )

    # --- Units ---

    def resolve_unit(self, name: str | None) -> UnitRef | None:
        """Exact, case-insensitive unit lookup."""
        if not name or not name.strip():
            return None
        self.ensure_loaded()
        return self._units.get(name.strip().lower())

    def resolve_fallback_unit(self, kind: FallbackUnit) -> UnitRef:
        """Get the unit standing in for one of the fallback kinds."""
        self.ensure_loaded()
        return self._fallbacks[kind]

    def lookup_unit_token(self, token: str | None) -> UnitRef | None:
        """Resolve a raw unit token without falling back.

        Tries an exact match, then the alias table, then the singular/plural
        toggle ("cups" -> "cup", "pinches" -> "pinch", "clove" -> "cloves").
        """
        if not token:
            return None
        key = token.strip().lower().rstrip(".")
        if not key:
            return None
        self.ensure_loaded()

        candidates = [key]
        if key in UNIT_ALIASES:
            candidates.append(UNIT_ALIASES[key])
        if key.endswith("es"):
            candidates.append(key[:-2])
        if key.endswith("s"):
            candidates.append(key[:-1])
        else:
            candidates.append(key + "s")

        for candidate in candidates:
            unit = self._units.get(candidate)
            if unit is not None:
                return unit
        return None

    def is_unit_token(self, token: str | None) -> bool:
        """Check if a word following a quantity should be read as its unit."""
        if not token:
            return False
        key = token.strip().lower()
        if key.rstrip(".") in SIZE_WORDS:
            return True
        return self.lookup_unit_token(key) is not None

    def match_unit(self, token: str | None, has_quantity: bool) -> UnitRef:
        """Resolve a unit token through the full fallback chain.

        Order: exact/alias/plural lookup, size words as a count, the count
        unit when a quantity had no unit token, then "unknown". Unresolved
        tokens are logged and never raise.
        """
        if token and token.strip():
            key = token.strip().lower()
            if key == TO_TASTE_UNIT:
                return self.resolve_fallback_unit(FallbackUnit.TO_TASTE)
            unit = self.lookup_unit_token(key)
            if unit is not None:
                return unit
            if key.rstrip(".") in SIZE_WORDS:
                return self.resolve_fallback_unit(FallbackUnit.EACH)
            logger.warning(
                f"Measurement unit '{token}' not found in reference data. Assigning 'unknown'."
            )
            return self.resolve_fallback_unit(FallbackUnit.UNKNOWN)

        if has_quantity:
            return self.resolve_fallback_unit(FallbackUnit.EACH)
        return self.resolve_fallback_unit(FallbackUnit.UNKNOWN)

    # --- Nutrients ---

    def get_nutrient(self, name: str) -> NutrientRef | None:
        """Case-insensitive nutrient lookup."""
        self.ensure_loaded()
        return self._nutrients.get(Nutrient.normalize(name))

    def register_nutrient(self, nutrient: NutrientRef) -> None:
        """Add a nutrient created after the initial load."""
        self.ensure_loaded()
        with self._lock:
            self._nutrients[Nutrient.normalize(nutrient.name)] = nutrient


@lru_cache
def get_reference_cache() -> ReferenceCache:
    """Get the process-scoped reference cache."""
    return ReferenceCache()
