import json
import logging
import uuid
from typing import Any, Dict, Optional, Protocol

logger = logging.getLogger(__name__)


class SessionStorage(Protocol):
    """Protocol for session snapshot persistence."""

    async def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored snapshot, or None if the session does not exist."""
        ...

    async def write(
        self, session_id: str, snapshot: Dict[str, Any], ttl: Optional[int] = None
    ) -> None:
        """Store the snapshot, expiring it after ttl seconds."""
        ...

    async def destroy(self, session_id: str) -> None:
        """Delete the stored snapshot."""
        ...

    def generate_id(self) -> str:
        """Return a fresh opaque identifier."""
        ...


class RedisSessionStorage:
    def __init__(self, redis_client, prefix: str = "satchel:session", max_lifetime: int = 10800):
        """
        Initialize Redis-backed session storage.

        Args:
            redis_client: Async Redis client
            prefix: Key namespace (the configured save path)
            max_lifetime: TTL in seconds for sessions without their own expiration (3 hours)
        """
        self.redis = redis_client
        self.prefix = prefix
        self.max_lifetime = max_lifetime

    def _key(self, session_id: str) -> str:
        return f"{self.prefix}:{session_id}"

    def generate_id(self) -> str:
        return str(uuid.uuid4())

    async def read(self, session_id: str) -> Optional[Dict[str, Any]]:
        """
        Load a session snapshot.

        Returns:
            Snapshot dict, or None if missing or unreadable
        """
        data = await self.redis.get(self._key(session_id))
        if not data:
            return None

        try:
            snapshot = json.loads(data)
        except json.JSONDecodeError as e:
            logger.warning(f"Discarding unreadable session {session_id}: {e}")
            return None

        if not isinstance(snapshot, dict):
            logger.warning(f"Discarding malformed session {session_id}")
            return None
        return snapshot

    async def write(
        self, session_id: str, snapshot: Dict[str, Any], ttl: Optional[int] = None
    ) -> None:
        """Store a session snapshot with a TTL (max_lifetime when ttl is None)."""
        await self.redis.setex(self._key(session_id), ttl or self.max_lifetime, json.dumps(snapshot))

    async def destroy(self, session_id: str) -> None:
        await self.redis.delete(self._key(session_id))
