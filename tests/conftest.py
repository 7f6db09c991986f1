"""
Shared pytest fixtures for Satchel tests.

This module provides common fixtures including:
- FakeClock: controllable wall clock for expiration tests
- Redis mocks for storage/session tests
- Session storage and manager factories
"""

import os
import sys
from unittest.mock import AsyncMock

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from satchel.modules.session import AutoStart, SessionManager
from satchel.modules.storage import RedisSessionStorage


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Wall clock that only moves when told to."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Redis Mocking Infrastructure
# =============================================================================


@pytest.fixture
def mock_redis():
    """Create a mock Redis client for async operations."""
    redis = AsyncMock()

    redis.setex = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.delete = AsyncMock(return_value=1)
    redis.exists = AsyncMock(return_value=0)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()

    return redis


@pytest.fixture
def mock_redis_with_data():
    """
    Redis mock with in-memory data storage for more realistic tests.

    This allows testing code that reads back what it writes. TTLs are
    recorded in _ttls but never enforced.
    """
    storage = {}
    ttls = {}

    redis = AsyncMock()

    async def mock_setex(key, ttl, value):
        storage[key] = value
        ttls[key] = ttl
        return True

    async def mock_get(key):
        return storage.get(key)

    async def mock_delete(*keys):
        count = 0
        for key in keys:
            if key in storage:
                del storage[key]
                ttls.pop(key, None)
                count += 1
        return count

    async def mock_exists(*keys):
        return sum(1 for k in keys if k in storage)

    redis.setex = mock_setex
    redis.get = mock_get
    redis.delete = mock_delete
    redis.exists = mock_exists
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()
    redis._storage = storage  # Expose for test assertions
    redis._ttls = ttls

    return redis


# =============================================================================
# Session Fixtures
# =============================================================================


@pytest.fixture
def storage(mock_redis_with_data):
    """Session storage over the in-memory Redis mock."""
    return RedisSessionStorage(mock_redis_with_data, prefix="test:session", max_lifetime=10800)


@pytest.fixture
def make_manager(storage, clock):
    """
    Factory for session managers sharing one storage and clock.

    Usage:
        manager = make_manager(session_id, visit_key, expiration=3600)
    """

    def factory(session_id=None, visit_key=None, expiration=None, auto_start=AutoStart.SMART):
        return SessionManager(
            storage,
            session_id=session_id,
            visit_key=visit_key,
            expiration=expiration,
            auto_start=auto_start,
            clock=clock,
        )

    return factory

