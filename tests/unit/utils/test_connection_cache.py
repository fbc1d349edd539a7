"""
Unit tests for ConnectionCache.

Tests cover:
- Building once per key and rebuilding on a new key
- Least-recently-used eviction
- Deferred close of evicted handles that are still leased
- Shutdown and close errors
"""

import asyncio
from unittest.mock import AsyncMock

import pytest

from vector_search.core.utils import ConnectionCache


class Handle:
    def __init__(self, key):
        self.key = key
        self.aclose = AsyncMock()


@pytest.fixture
def built():
    return []


@pytest.fixture
def cache(built) -> ConnectionCache:
    def factory(key):
        handle = Handle(key)
        built.append(handle)
        return handle

    return ConnectionCache(factory=factory, closer=lambda h: h.aclose(), max_size=2, name="test")


async def use(cache, key):
    async with cache.lease(key) as handle:
        return handle


class TestBuilding:

    async def test_same_key_builds_once(self, cache, built):
        first = await use(cache, "a")
        second = await use(cache, "a")

        assert first is second
        assert len(built) == 1

    async def test_new_key_builds_new_handle(self, cache, built):
        first = await use(cache, "a")
        second = await use(cache, "b")

        assert first is not second
        assert [h.key for h in built] == ["a", "b"]
        first.aclose.assert_not_called()

    async def test_failed_build_leaves_no_entry(self):
        def factory(key):
            raise ValueError("bad url")

        cache = ConnectionCache(factory=factory)

        with pytest.raises(ValueError):
            async with cache.lease("a"):
                pass

        assert len(cache) == 0

    def test_max_size_must_be_positive(self):
        with pytest.raises(ValueError):
            ConnectionCache(factory=lambda key: key, max_size=0)


class TestEviction:

    async def test_least_recently_used_idle_handle_is_closed(self, cache, built):
        a = await use(cache, "a")
        await use(cache, "b")
        await use(cache, "a")
        await use(cache, "c")

        assert "b" not in cache
        assert "a" in cache
        built[1].aclose.assert_awaited_once()
        a.aclose.assert_not_called()

    async def test_leased_handle_is_closed_only_after_release(self, cache, built):
        async with cache.lease("a") as a:
            await use(cache, "b")
            await use(cache, "c")

            assert "a" not in cache
            a.aclose.assert_not_called()
            assert cache.active_leases(a) == 1

        a.aclose.assert_awaited_once()
        assert cache.active_leases(a) == 0

    async def test_evicted_handle_waits_for_every_lease(self, cache):
        async with cache.lease("a") as a:
            async with cache.lease("a"):
                await use(cache, "b")
                await use(cache, "c")
            a.aclose.assert_not_called()

        a.aclose.assert_awaited_once()

    async def test_evicted_key_is_rebuilt_on_next_lease(self, cache, built):
        async with cache.lease("a") as old:
            await use(cache, "b")
            await use(cache, "c")

            async with cache.lease("a") as new:
                assert new is not old
                old.aclose.assert_not_called()

    async def test_concurrent_leases_beyond_max_size_stay_open(self, cache, built):
        seen_closed = []

        async def borrow(key):
            async with cache.lease(key) as handle:
                await asyncio.sleep(0.01)
                seen_closed.append(handle.aclose.await_count)

        await asyncio.gather(*[borrow(f"k{i}") for i in range(5)])

        assert seen_closed == [0] * 5
        assert len(cache) == 2
        closed = [h for h in built if h.aclose.await_count]
        assert len(closed) == 3


class TestClose:

    async def test_close_closes_everything(self, cache, built):
        await use(cache, "a")
        await use(cache, "b")

        await cache.close()

        assert len(cache) == 0
        for handle in built:
            handle.aclose.assert_awaited_once()

    async def test_close_includes_retired_handles(self, cache):
        async with cache.lease("a") as a:
            await use(cache, "b")
            await use(cache, "c")

            await cache.close()

            a.aclose.assert_awaited_once()

        a.aclose.assert_awaited_once()

    async def test_close_error_is_logged_not_raised(self, cache):
        handle = await use(cache, "a")
        handle.aclose.side_effect = RuntimeError("already closed")

        await cache.close()

        assert len(cache) == 0
