"""Pytest configuration and fixtures."""

import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from recipe_ingest import models  # noqa: F401
from recipe_ingest.database import Base, get_db
from recipe_ingest.main import app
from recipe_ingest.services.fdc_client import (
    FoodDetail,
    FoodNutrient,
    FoodSearchResult,
    LookupFailure,
)
from recipe_ingest.services.reference_cache import ReferenceCache, get_reference_cache
from recipe_ingest.services.reference_seed import seed_reference_data

# Use test database - PostgreSQL in Docker, SQLite locally
if os.getenv("DATABASE_URL"):
    # Running in Docker - use PostgreSQL test database
    SQLALCHEMY_DATABASE_URL = os.getenv("DATABASE_URL").replace(
        "/recipe_ingest", "/recipe_ingest_test"
    )
else:
    # Running locally - use SQLite
    SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"

connect_args = {"check_same_thread": False} if "sqlite" in SQLALCHEMY_DATABASE_URL else {}
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args=connect_args)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class FakeLookupClient:
    """In-memory stand-in for FoodDataCentralClient.

    ``foods`` maps a lower-case query to the FoodDetail returned for it.
    """

    def __init__(self, foods: dict[str, FoodDetail] | None = None) -> None:
        self.foods = foods or {}
        self.searches: list[str] = []
        self.detail_requests: list[int] = []
        self.last_failure: LookupFailure | None = None

    @property
    def is_configured(self) -> bool:
        return True

    async def search(self, query, limit=1, data_types=None):
        self.searches.append(query)
        detail = self.foods.get(query.lower())
        if detail is None:
            return []
        return [FoodSearchResult(fdc_id=detail.fdc_id, description=detail.description)]

    async def get_details(self, fdc_id):
        self.detail_requests.append(fdc_id)
        for detail in self.foods.values():
            if detail.fdc_id == fdc_id:
                return detail
        self.last_failure = LookupFailure.NOT_FOUND
        return None


def _make_food(fdc_id: int, description: str, *nutrients: tuple[str, str, float]) -> FoodDetail:
    return FoodDetail(
        fdc_id=fdc_id,
        description=description,
        nutrients=[
            FoodNutrient(name=name, unit=unit, amount=amount) for name, unit, amount in nutrients
        ],
    )


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    if "postgresql" in SQLALCHEMY_DATABASE_URL:
        # For PostgreSQL, create the test database
        from sqlalchemy_utils import create_database, database_exists

        # Create test database if it doesn't exist
        if not database_exists(SQLALCHEMY_DATABASE_URL):
            create_database(SQLALCHEMY_DATABASE_URL)

    Base.metadata.create_all(bind=engine)
    yield
    # Don't drop database - just leave it for next run (each test cleans up after itself)


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = TestingSessionLocal()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture
def reference_data(db):
    """Seed measurement units and core nutrients."""
    seed_reference_data(db)
    return db


@pytest.fixture
def session_factory():
    """Session factory bound to the test database."""
    return TestingSessionLocal


@pytest.fixture
def reference_cache(reference_data, session_factory):
    """Fresh reference cache over the seeded test database."""
    return ReferenceCache(session_factory=session_factory)


@pytest.fixture
def lookup_client():
    """Lookup client that knows no foods unless told otherwise."""
    return FakeLookupClient()


@pytest.fixture
def make_food():
    """Factory building a FoodDetail from (name, unit, amount) tuples."""
    return _make_food


@pytest.fixture(scope="function")
def client(db, reference_cache):
    """Create a test client with database and reference cache overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_reference_cache] = lambda: reference_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
