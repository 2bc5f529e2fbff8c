"""
RunCache — Scheduled Expiry Tests

Behaviour driven by real TTL timers: expiry notifications, autonomous
auto-refetch, and timer replacement on overwrite.

Timers use short TTLs (tens of milliseconds) and real sleeps.
"""

import asyncio

from run_cache.cache.store import RunCache


class TestScheduledExpiry:
    """Timer-driven expiry on the wall clock."""

    async def test_timer_emits_expire_with_armed_snapshot(self, live_cache: RunCache, recorder) -> None:
        global_events, on_global = recorder()
        key_events, on_key = recorder()
        live_cache.on_expiry(on_global)
        live_cache.on_key_expiry("k", on_key)

        await live_cache.set("k", "v", ttl=30)
        await asyncio.sleep(0.1)

        assert len(global_events) == 1
        assert len(key_events) == 1
        payload = key_events[0]
        assert payload.key == "k"
        assert payload.value == "v"
        assert payload.ttl == 30

        # The timer only notifies; get() resolves the stale entry
        assert live_cache.get_stats()["size"] == 1
        assert await live_cache.get("k") is None
        assert live_cache.get_stats()["size"] == 0

    async def test_get_and_has_after_ttl(self, live_cache: RunCache) -> None:
        await live_cache.set("k", "v", ttl=30)
        assert await live_cache.has("k") is True

        await asyncio.sleep(0.06)

        assert await live_cache.has("k") is False
        assert await live_cache.get("k") is None

    async def test_timer_auto_refetches(self, live_cache: RunCache, make_producer, recorder) -> None:
        refetches, callback = recorder()
        live_cache.on_key_refetch("k", callback)
        producer = make_producer("v1", "v2", "v3")

        await live_cache.set("k", source_fn=producer, ttl=50, auto_refetch=True)
        await asyncio.sleep(0.075)

        assert producer.calls == 2
        assert [e.value for e in refetches] == ["v2"]
        assert await live_cache.get("k") == "v2"

    async def test_auto_refetch_repeats_each_ttl(self, live_cache: RunCache, make_producer) -> None:
        producer = make_producer("v1", "v2", "v3", "v4")

        await live_cache.set("k", source_fn=producer, ttl=30, auto_refetch=True)
        await asyncio.sleep(0.1)

        assert producer.calls >= 3

    async def test_timer_refetch_failure_is_reported_not_raised(
        self, live_cache: RunCache, make_producer, recorder
    ) -> None:
        failures, callback = recorder()
        live_cache.on_refetch_failure(callback)
        producer = make_producer("v1", RuntimeError("upstream down"))

        await live_cache.set("k", source_fn=producer, ttl=30, auto_refetch=True)
        await asyncio.sleep(0.06)

        assert len(failures) == 1
        assert failures[0].value == "v1"
        assert producer.calls == 2

    async def test_overwrite_cancels_previous_timer(self, live_cache: RunCache, recorder) -> None:
        events, callback = recorder()
        live_cache.on_key_expiry("k", callback)

        await live_cache.set("k", "v1", ttl=30)
        await live_cache.set("k", "v2", ttl=30)
        await live_cache.set("k", "v3")
        await asyncio.sleep(0.08)

        assert events == []
        assert await live_cache.get("k") == "v3"

    async def test_repeated_sets_fire_once(self, live_cache: RunCache, recorder) -> None:
        events, callback = recorder()
        live_cache.on_key_expiry("k", callback)

        for i in range(3):
            await live_cache.set("k", f"v{i}", ttl=30)
        await asyncio.sleep(0.08)

        assert [e.value for e in events] == ["v2"]

    async def test_delete_and_flush_cancel_timers(self, live_cache: RunCache, recorder) -> None:
        events, callback = recorder()
        live_cache.on_expiry(callback)

        await live_cache.set("a", "1", ttl=30)
        await live_cache.set("b", "2", ttl=30)
        await live_cache.set("c", "3", ttl=30)
        live_cache.delete("a")
        live_cache.flush()
        await asyncio.sleep(0.08)

        assert events == []

    async def test_async_expiry_handler_is_awaited(self, live_cache: RunCache, make_producer) -> None:
        """Handlers finish before the scheduled refetch starts."""
        order: list[str] = []
        producer = make_producer("v1", "v2")

        async def on_expire(event) -> None:
            await asyncio.sleep(0.01)
            order.append("expire")

        def on_refetch(event) -> None:
            order.append("refetch")

        live_cache.on_key_expiry("k", on_expire)
        live_cache.on_key_refetch("k", on_refetch)

        await live_cache.set("k", source_fn=producer, ttl=30, auto_refetch=True)
        await asyncio.sleep(0.065)

        assert order[:2] == ["expire", "refetch"]
