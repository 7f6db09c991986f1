"""
Storage Module - Black Box Interface

Purpose: Abstract all session persistence
Interface: StorageModule.connect(), disconnect(); RedisSessionStorage.read(), write(), destroy()
Hidden: Redis specifics, connection pooling, serialization

Can be replaced with any storage backend implementing SessionStorage.
"""

import os
from typing import Optional

import redis.asyncio as redis

from .session_store import RedisSessionStorage, SessionStorage


class StorageModule:
    """Black box storage abstraction."""

    def __init__(self, connection_url: Optional[str] = None, password: Optional[str] = None):
        """Initialize storage with connection URL."""
        self.url = connection_url or os.getenv("REDIS_URL", "redis://localhost:6379/0")
        self.password = password
        self._client = None

    async def connect(self) -> redis.Redis:
        """Get storage connection."""
        if not self._client:
            self._client = redis.from_url(
                self.url,
                password=self.password,  # Passed separately to avoid URL encoding issues
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def disconnect(self):
        """Close storage connection."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def session_storage(
        self, prefix: str = "satchel:session", max_lifetime: int = 10800
    ) -> RedisSessionStorage:
        """Get session storage on this connection."""
        return RedisSessionStorage(await self.connect(), prefix=prefix, max_lifetime=max_lifetime)


__all__ = ["StorageModule", "RedisSessionStorage", "SessionStorage"]
