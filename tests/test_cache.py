"""Tests for the in-memory cache and the team info cache."""

import pytest
from unittest.mock import patch

from squad_health.models import Team
from squad_health.store.cache import InMemoryCache, TeamInfoCache


@pytest.mark.asyncio
class TestInMemoryCache:
    """TTL expiry and eviction."""

    async def test_set_and_get(self):
        cache = InMemoryCache()
        await cache.set("team:a", "value")
        assert await cache.get("team:a") == "value"
        assert await cache.get("missing") is None

    async def test_entries_expire(self):
        cache = InMemoryCache(default_ttl=10)
        with patch("squad_health.store.cache.time.time", return_value=1000.0):
            await cache.set("team:a", "value")
        with patch("squad_health.store.cache.time.time", return_value=1005.0):
            assert await cache.get("team:a") == "value"
        with patch("squad_health.store.cache.time.time", return_value=1011.0):
            assert await cache.get("team:a") is None

    async def test_no_ttl_never_expires(self):
        cache = InMemoryCache(default_ttl=None)
        with patch("squad_health.store.cache.time.time", return_value=1000.0):
            await cache.set("k", 1)
        with patch("squad_health.store.cache.time.time", return_value=10 ** 9):
            assert await cache.get("k") == 1

    async def test_eviction_removes_least_recently_used(self):
        cache = InMemoryCache(max_size=5, default_ttl=None)
        for i in range(5):
            with patch("squad_health.store.cache.time.time", return_value=1000.0 + i):
                await cache.set(f"k{i}", i)

        with patch("squad_health.store.cache.time.time", return_value=2000.0):
            await cache.get("k0")
            await cache.set("k5", 5)

        keys = await cache.keys()
        assert "k1" not in keys
        assert "k0" in keys
        assert "k5" in keys

    async def test_delete_and_pattern_keys(self):
        cache = InMemoryCache()
        await cache.set("team:a", 1)
        await cache.set("team:b", 2)
        await cache.set("other", 3)

        assert sorted(await cache.keys("team:*")) == ["team:a", "team:b"]
        assert await cache.delete("team:a") is True
        assert await cache.delete("team:a") is False

        await cache.clear()
        assert await cache.keys() == []


@pytest.mark.asyncio
class TestTeamInfoCache:
    """Team-specific key handling."""

    async def test_round_trip_and_invalidate(self):
        cache = TeamInfoCache(ttl=60)
        team = Team(id="t1", name="One")

        await cache.set_team(team)
        assert await cache.get_team("t1") == team

        await cache.invalidate_team("t1")
        assert await cache.get_team("t1") is None

    async def test_invalidate_all(self):
        cache = TeamInfoCache()
        await cache.set_team(Team(id="t1", name="One"))
        await cache.set_team(Team(id="t2", name="Two"))

        await cache.invalidate_all()

        assert await cache.get_team("t1") is None
        assert await cache.get_team("t2") is None
