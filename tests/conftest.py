"""
Pytest Configuration and Shared Fixtures.

This module provides common fixtures for all tests:

- store: Fresh in-memory record store
- businesses / locations / products / reviews: Repositories over that store
- settings: Settings that do not read the environment or .env
- sample_business / sample_product / sample_location: Write payloads
"""

import pytest

from bizdirectory.config.settings import Settings
from bizdirectory.models import BusinessCreate, LocationCreate, ProductCreate, ProductKind
from bizdirectory.repositories import (
    BusinessRepository,
    LocationRepository,
    ProductRepository,
    RatingRollup,
    ReviewRepository,
)
from bizdirectory.store import MemoryRecordStore


@pytest.fixture
def store() -> MemoryRecordStore:
    """Fresh in-memory store for each test."""
    return MemoryRecordStore()


@pytest.fixture
def businesses(store) -> BusinessRepository:
    return BusinessRepository(store)


@pytest.fixture
def locations(store) -> LocationRepository:
    return LocationRepository(store)


@pytest.fixture
def products(store) -> ProductRepository:
    return ProductRepository(store)


@pytest.fixture
def reviews(store) -> ReviewRepository:
    return ReviewRepository(store, rollup=RatingRollup.ACCUMULATE)


@pytest.fixture
def settings() -> Settings:
    """Settings built without touching the environment."""
    return Settings(
        _env_file=None,
        supabase_url="https://test-project.supabase.co",
        supabase_key="test-key",
    )


@pytest.fixture
def sample_business() -> BusinessCreate:
    """Return a sample business for testing."""
    return BusinessCreate(
        name="Test Bakery",
        description="Fresh bread every morning",
        category="food",
        city="Springfield",
        address="123 Test Street",
        phone="555-0100",
    )


@pytest.fixture
def sample_product() -> ProductCreate:
    """Return a sample product for testing."""
    return ProductCreate(
        name="Sourdough Loaf",
        kind=ProductKind.PRODUCT,
        category="bread",
        price=6.5,
        currency="USD",
    )


@pytest.fixture
def sample_location() -> LocationCreate:
    """Return a sample location for testing."""
    return LocationCreate(
        name="Main Street",
        address="123 Test Street",
        city="Springfield",
        latitude=39.78,
        longitude=-89.65,
    )
