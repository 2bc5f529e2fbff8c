"""
RunCache — Entry Store

In-memory keyed cache with per-entry TTL, source-function population,
single-flight refetching and expiry/refetch notifications.

Features:
- Per-key TTL in milliseconds, checked on access and armed as a timer
- Source functions (sync or async) for initial values and refreshes
- Auto-refetch: an expired entry is refreshed instead of removed
- Global and key-scoped event subscriptions

Expiry handling is two-tier: ``get`` resolves an expired
entry (delete or refetch) while ``has`` only reports it, leaving the stale
entry for a later ``get``/``refetch`` to resolve.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Any

from ..config.schemas import EventDispatch
from ..errors import ErrorCode, ListenerConfigError, SourceFunctionError, ValidationError
from .entry import CacheEntry, Clock, SourceFn, now_ms
from .events import EventBus, EventFn, EventKind, EventParam
from .interface import CacheInterface
from .refetch import RefetchCoordinator
from .scheduler import ExpiryScheduler
from .source import invoke_source, serialize_value

logger = logging.getLogger(__name__)


def _require_key(key: str) -> None:
    if not key:
        raise ValidationError("Empty key", {"error_code": ErrorCode.EMPTY_KEY})


class RunCache(CacheInterface):
    """
    Process-local cache instance.

    Each instance owns its entries, timers and listeners; call ``close()``
    (or use ``async with``) to cancel outstanding timers when done.

    Example:
        async with RunCache() as cache:
            await cache.set("greeting", "hello", ttl=60_000)
            value = await cache.get("greeting")
    """

    def __init__(
        self,
        event_dispatch: EventDispatch = EventDispatch.AWAIT,
        clock: Clock = now_ms,
    ):
        """
        Initialize the cache.

        Args:
            event_dispatch: Whether event handlers are awaited or run in background
            clock: Millisecond wall clock used for timestamps and expiry checks
        """
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._generation = 0

        self._bus = EventBus(dispatch=event_dispatch)
        self._scheduler = ExpiryScheduler()
        self._refetcher = RefetchCoordinator(
            self._entries,
            self._bus,
            clock=clock,
            on_refreshed=self._arm_expiry,
        )

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._expire_events = 0

    # ------------------------------------------------------------------
    # Entry operations
    # ------------------------------------------------------------------

    async def set(
        self,
        key: str,
        value: Any = None,
        ttl: int | None = None,
        auto_refetch: bool = False,
        source_fn: SourceFn | None = None,
    ) -> bool:
        """Store a value, or the output of ``source_fn``, under ``key``."""
        _require_key(key)

        if source_fn is None and (value is None or value == ""):
            raise ValidationError(
                "`value` can't be empty without a `source_fn`",
                {"key": key, "error_code": ErrorCode.MISSING_VALUE},
            )

        if ttl is not None and ttl < 0:
            raise ValidationError(
                "Value `ttl` cannot be negative",
                {"key": key, "ttl": ttl, "error_code": ErrorCode.INVALID_TTL},
            )

        if auto_refetch and not ttl:
            raise ValidationError(
                "`auto_refetch` is not allowed without a `ttl`",
                {"key": key, "error_code": ErrorCode.INVALID_TTL},
            )

        if value is None:
            # Nothing is written if the producer fails
            cache_value = await invoke_source(key, source_fn)  # type: ignore[arg-type]
        else:
            cache_value = serialize_value(value)

        now = self._clock()
        created_at = now
        existing = self._entries.get(key)
        if existing is not None:
            existing.cancel_scheduled_action()
            created_at = existing.created_at
            now = max(now, existing.updated_at)

        self._generation += 1
        entry = CacheEntry(
            value=cache_value,
            created_at=created_at,
            updated_at=now,
            ttl=ttl,
            auto_refetch=auto_refetch,
            source_fn=source_fn,
            generation=self._generation,
        )
        self._entries[key] = entry
        self._arm_expiry(key, entry)
        self._sets += 1

        logger.debug(
            "Set key '%s'",
            key,
            extra={"key": key, "ttl": ttl, "auto_refetch": auto_refetch, "overwrite": existing is not None},
        )
        return True

    async def get(self, key: str) -> str | None:
        """Retrieve a value, resolving expiry by deletion or refetch."""
        if not key:
            logger.warning("Attempted to get cache value with empty key")
            return None

        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        if not entry.is_expired(self._clock()):
            self._hits += 1
            return entry.value

        await self._emit_expired(key, entry)

        if entry.source_fn is None or not entry.auto_refetch:
            # A handler may already have replaced the entry
            if self._entries.get(key) is entry:
                self._remove(key)
            self._misses += 1
            return None

        try:
            await self.refetch(key)
        except SourceFunctionError as e:
            logger.warning(
                f"Auto-refetch failed for expired key '{key}': {e}",
                extra={"key": key, "error": str(e)},
            )

        # Stale value when the refetch failed or is still in flight elsewhere
        current = self._entries.get(key)
        if current is None:
            self._misses += 1
            return None

        self._hits += 1
        return current.value

    async def has(self, key: str) -> bool:
        """Check existence without resolving an expired entry."""
        if not key:
            return False

        entry = self._entries.get(key)
        if entry is None:
            return False

        if entry.is_expired(self._clock()):
            await self._emit_expired(key, entry)
            return False

        return True

    def delete(self, key: str) -> bool:
        """Delete ``key``, cancelling its scheduled expiry."""
        if not key:
            logger.warning("Attempted to delete cache value with empty key")
            return False

        if self._remove(key) is None:
            return False

        self._deletes += 1
        logger.debug("Deleted key '%s'", key, extra={"key": key})
        return True

    def flush(self) -> None:
        """Remove every entry and cancel every scheduled expiry."""
        size = len(self._entries)
        for entry in self._entries.values():
            entry.cancel_scheduled_action()
        self._entries.clear()
        logger.info(f"Flushed {size} entries from cache", extra={"size": size})

    async def refetch(self, key: str) -> bool:
        """Refresh ``key`` through its source function (single-flight)."""
        if not key:
            return False
        return await self._refetcher.refetch(key)

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    def on_expiry(self, callback: EventFn) -> None:
        """Run ``callback`` whenever any entry expires."""
        self._bus.subscribe(EventKind.EXPIRE, callback)

    def on_key_expiry(self, key: str, callback: EventFn) -> None:
        """Run ``callback`` when ``key`` expires."""
        _require_key(key)
        self._bus.subscribe(EventKind.EXPIRE, callback, key)

    def on_refetch(self, callback: EventFn) -> None:
        """Run ``callback`` after any entry is refetched."""
        self._bus.subscribe(EventKind.REFETCH, callback)

    def on_key_refetch(self, key: str, callback: EventFn) -> None:
        """Run ``callback`` after ``key`` is refetched."""
        _require_key(key)
        self._bus.subscribe(EventKind.REFETCH, callback, key)

    def on_refetch_failure(self, callback: EventFn) -> None:
        """Run ``callback`` when any refetch fails."""
        self._bus.subscribe(EventKind.REFETCH_FAILURE, callback)

    def on_key_refetch_failure(self, key: str, callback: EventFn) -> None:
        """Run ``callback`` when refetching ``key`` fails."""
        _require_key(key)
        self._bus.subscribe(EventKind.REFETCH_FAILURE, callback, key)

    def remove_event_listener(self, kind: EventKind, callback: EventFn, key: str | None = None) -> bool:
        """
        Unsubscribe a single callback.

        Args:
            kind: Event kind the callback was registered for
            callback: The registered callback
            key: Key for key-scoped registrations, None for global ones

        Returns:
            True if the callback was registered and has been removed
        """
        return self._bus.unsubscribe(kind, callback, key or None)

    def clear_event_listeners(self, kind: EventKind | None = None, key: str | None = None) -> bool:
        """
        Clear event listeners.

        - No arguments: every listener is removed.
        - ``kind`` only: global and key-scoped listeners of that kind.
        - ``kind`` and ``key``: key-scoped listeners for that pair.

        Returns:
            True once the listeners are removed

        Raises:
            ListenerConfigError: If ``key`` is given without ``kind``
        """
        if kind is None:
            if key:
                raise ListenerConfigError(key)
            self._bus.clear_all()
            return True

        if key:
            self._bus.clear_key(kind, key)
        else:
            self._bus.clear_kind(kind)
        return True

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

        return {
            "backend": "memory",
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(hit_rate, 2),
            "sets": self._sets,
            "deletes": self._deletes,
            "expire_events": self._expire_events,
            "refetches": self._refetcher.refetches,
            "refetch_failures": self._refetcher.failures,
            "scheduled": self._scheduler.pending_count,
        }

    def dispose(self) -> None:
        """Cancel timers and background tasks, drop entries and listeners."""
        self._scheduler.cancel_all()
        self._bus.cancel_pending()
        self.flush()
        self._bus.clear_all()

    async def close(self) -> None:
        """Dispose the cache and wait for cancelled tasks to unwind."""
        self.dispose()
        await self._scheduler.close()
        await self._bus.close()
        logger.debug("Cache closed")

    async def __aenter__(self) -> RunCache:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _remove(self, key: str) -> CacheEntry | None:
        entry = self._entries.pop(key, None)
        if entry is not None:
            entry.cancel_scheduled_action()
        return entry

    async def _emit_expired(self, key: str, entry: CacheEntry) -> None:
        self._expire_events += 1
        await self._bus.emit(EventKind.EXPIRE, EventParam.from_entry(key, entry))

    def _arm_expiry(self, key: str, entry: CacheEntry) -> None:
        """Replace the entry's pending expiry with one ``ttl`` ms from now."""
        entry.cancel_scheduled_action()
        if entry.ttl is None:
            return

        snapshot = EventParam.from_entry(key, entry)
        generation = entry.generation

        async def on_expire() -> None:
            await self._on_scheduled_expiry(key, generation, snapshot)

        entry.scheduled_action = self._scheduler.schedule(key, entry.ttl, on_expire)

    async def _on_scheduled_expiry(self, key: str, generation: int, snapshot: EventParam) -> None:
        self._expire_events += 1
        await self._bus.emit(EventKind.EXPIRE, snapshot)

        entry = self._entries.get(key)
        if entry is None or entry.generation != generation:
            return
        if entry.source_fn is None or not entry.auto_refetch:
            return

        try:
            await self._refetcher.refetch(key)
        except SourceFunctionError as e:
            # Already reported through the refetch-failure event
            logger.debug(
                f"Scheduled refetch failed for key '{key}': {e}",
                extra={"key": key, "error": str(e)},
            )
