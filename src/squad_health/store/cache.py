"""
Caching for team info lookups.

Provides an in-memory cache with TTL expiry and LRU-like eviction, and a
TeamInfoCache using the key pattern team:{team_id}. Caching is advisory:
a stale entry may delay a rename or roster change, never change a score.
"""

import asyncio
import fnmatch
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from ..models.records import Team


logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Represents a cached item with metadata."""
    key: str
    value: Any
    created_at: float
    expires_at: Optional[float]
    access_count: int = 0
    last_accessed: Optional[float] = None


class InMemoryCache:
    """
    In-memory cache with TTL support and LRU-like eviction.

    Features:
    - TTL-based expiration
    - Size-based eviction (least recently accessed first)
    - Pattern-based key listing
    """

    def __init__(self, max_size: int = 1000, default_ttl: Optional[int] = 300):
        """
        Initialize in-memory cache.

        Args:
            max_size: Maximum number of entries to store
            default_ttl: Default TTL in seconds (None for no expiration)
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self._cache: Dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        """Get a value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if not entry:
                return None

            if entry.expires_at and time.time() > entry.expires_at:
                del self._cache[key]
                return None

            entry.access_count += 1
            entry.last_accessed = time.time()

            return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        """Set a value in cache with optional TTL."""
        async with self._lock:
            self._cleanup_expired()
            if key not in self._cache:
                self._ensure_space()

            if ttl is None:
                ttl = self.default_ttl

            now = time.time()
            self._cache[key] = CacheEntry(
                key=key,
                value=value,
                created_at=now,
                expires_at=now + ttl if ttl is not None else None,
                last_accessed=now,
            )

    async def delete(self, key: str) -> bool:
        """Delete a key from cache. Returns True if key existed."""
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    async def keys(self, pattern: Optional[str] = None) -> List[str]:
        """Get all live keys, optionally matching a `*` wildcard pattern."""
        async with self._lock:
            self._cleanup_expired()
            all_keys = list(self._cache.keys())

            if pattern is None:
                return all_keys
            return [key for key in all_keys if fnmatch.fnmatch(key, pattern)]

    def _cleanup_expired(self) -> None:
        """Remove expired entries."""
        current_time = time.time()
        expired_keys = [
            key for key, entry in self._cache.items()
            if entry.expires_at and current_time > entry.expires_at
        ]

        for key in expired_keys:
            del self._cache[key]

        if expired_keys:
            logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")

    def _ensure_space(self) -> None:
        """Evict least recently accessed entries when full."""
        if len(self._cache) >= self.max_size:
            lru_keys = sorted(
                self._cache.keys(),
                key=lambda k: self._cache[k].last_accessed or 0
            )

            # Remove oldest 20% of entries to make space
            keys_to_remove = lru_keys[:max(1, len(lru_keys) // 5)]

            for key in keys_to_remove:
                del self._cache[key]

            logger.debug(f"Evicted {len(keys_to_remove)} LRU cache entries")


class TeamInfoCache:
    """Team info cache keyed as team:{team_id}."""

    def __init__(self, cache: Optional[InMemoryCache] = None, ttl: int = 300):
        self.cache = cache or InMemoryCache(default_ttl=ttl)
        self.ttl = ttl

    @staticmethod
    def _make_key(team_id: str) -> str:
        return f"team:{team_id}"

    async def get_team(self, team_id: str) -> Optional[Team]:
        return await self.cache.get(self._make_key(team_id))

    async def set_team(self, team: Team) -> None:
        await self.cache.set(self._make_key(team.id), team, self.ttl)

    async def invalidate_team(self, team_id: str) -> None:
        await self.cache.delete(self._make_key(team_id))

    async def invalidate_all(self) -> None:
        for key in await self.cache.keys("team:*"):
            await self.cache.delete(key)
