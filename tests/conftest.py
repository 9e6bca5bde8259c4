"""Test configuration and fixtures.

This module provides pytest configuration and fixtures for the claim lifecycle
service: a deterministic clock and random source, the in-memory claim store,
the services wired on top of it, a mock cache and a FastAPI test client whose
store dependency is replaced by the in-memory store.
"""

import random
from collections.abc import AsyncGenerator, Callable, Generator
from datetime import datetime
from typing import TYPE_CHECKING, Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis
from fastapi.testclient import TestClient

from claimflow.core.cache import Cache
from claimflow.core.config import clear_settings_cache
from claimflow.models.claim import Claim, ClaimStatus
from claimflow.services.claim_number import ClaimNumberGenerator
from claimflow.services.claim_search import ClaimSearchService
from claimflow.services.claim_service import ClaimService
from claimflow.services.claim_store_memory import InMemoryClaimStore
from tests.fixtures.test_data import FIXED_NOW, ClaimDataFactory

if TYPE_CHECKING:
    from fastapi import FastAPI

# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock frozen at ``FIXED_NOW``."""
    return lambda: FIXED_NOW


@pytest.fixture
def rng() -> random.Random:
    """Seeded random source for reproducible claim numbers."""
    return random.Random(20250615)


@pytest.fixture
def memory_store(fixed_clock: Callable[[], datetime]) -> InMemoryClaimStore:
    """Empty in-memory claim store."""
    return InMemoryClaimStore(clock=fixed_clock)


@pytest.fixture
def number_generator(
    memory_store: InMemoryClaimStore,
    rng: random.Random,
    fixed_clock: Callable[[], datetime],
) -> ClaimNumberGenerator:
    """Claim number generator over the in-memory store."""
    return ClaimNumberGenerator(memory_store, rng=rng, clock=fixed_clock)


@pytest.fixture
def claim_service(
    memory_store: InMemoryClaimStore,
    number_generator: ClaimNumberGenerator,
    fixed_clock: Callable[[], datetime],
) -> ClaimService:
    """Claim lifecycle service over the in-memory store, without cache."""
    return ClaimService(memory_store, number_generator, clock=fixed_clock)


@pytest.fixture
def search_service(memory_store: InMemoryClaimStore) -> ClaimSearchService:
    """Search service over the in-memory store."""
    return ClaimSearchService(memory_store)


@pytest.fixture
def claim_factory() -> ClaimDataFactory:
    """Factory for claim payloads relative to ``FIXED_NOW``."""
    return ClaimDataFactory(now=FIXED_NOW)


@pytest.fixture
def seed_claim(
    memory_store: InMemoryClaimStore, claim_factory: ClaimDataFactory
) -> Callable[..., Any]:
    """Insert a claim directly into the store, in any status."""

    async def _seed(
        status: ClaimStatus = ClaimStatus.SUBMITTED, **overrides: Any
    ) -> Claim:
        return await memory_store.insert(
            claim_factory.create_new_claim(status=status, **overrides)
        )

    return _seed


@pytest.fixture
def mock_cache() -> MagicMock:
    """Create mock cache for testing."""
    cache = MagicMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock(return_value=True)
    cache.delete = AsyncMock(return_value=1)
    cache.incr = AsyncMock(return_value=1)
    return cache


@pytest.fixture
def mock_store() -> MagicMock:
    """Claim store double whose calls can be scripted per test."""
    store = MagicMock()
    store.find_by_id = AsyncMock(return_value=None)
    store.find_by_claim_number = AsyncMock(return_value=None)
    store.exists_by_claim_number = AsyncMock(return_value=False)
    store.insert = AsyncMock()
    store.save = AsyncMock()
    store.delete = AsyncMock(return_value=None)
    store.query = AsyncMock()
    store.count = AsyncMock(return_value=0)

    transaction = MagicMock()
    transaction.__aenter__ = AsyncMock(return_value=store)
    transaction.__aexit__ = AsyncMock(return_value=False)
    store.transaction = MagicMock(return_value=transaction)
    return store


@pytest_asyncio.fixture  # type: ignore[misc]
async def redis_cache() -> AsyncGenerator[Cache, None]:
    """Cache backed by fakeredis."""
    client = FakeAsyncRedis(decode_responses=True)
    cache = Cache(client)
    yield cache
    await cache.disconnect()


@pytest.fixture
def test_app(memory_store: InMemoryClaimStore) -> "FastAPI":
    """Application whose claim store is the in-memory store and cache is off."""
    from claimflow.api.dependencies import get_claim_cache, get_claim_store
    from claimflow.main import create_app

    app = create_app()
    app.dependency_overrides[get_claim_store] = lambda: memory_store
    app.dependency_overrides[get_claim_cache] = lambda: None
    return app


@pytest.fixture
def test_client(test_app: "FastAPI") -> TestClient:
    """Create test client for FastAPI app.

    Not used as a context manager, so the lifespan (database and Redis
    connections) never runs.
    """
    return TestClient(test_app)


@pytest.fixture
def sample_uuid() -> UUID:
    """Generate sample UUID for testing."""
    return uuid4()


@pytest.fixture(autouse=True)
def reset_singletons() -> Generator[None, None, None]:
    """Reset the settings singleton between tests."""
    clear_settings_cache()
    yield
    clear_settings_cache()
