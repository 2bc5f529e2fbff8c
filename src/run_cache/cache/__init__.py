"""
RunCache — Cache Module

The cache engine: entry store, expiry scheduler, refetch coordinator and
event bus.

Usage:
    from run_cache.cache import create_cache

    cache = create_cache()
    await cache.set("key", "value", ttl=60_000)
    value = await cache.get("key")
"""

from .entry import CacheEntry, SourceFn, now_ms
from .events import EventBus, EventFn, EventKind, EventParam
from .factory import create_cache
from .interface import CacheInterface
from .refetch import RefetchCoordinator
from .scheduler import ExpiryScheduler, ScheduledAction
from .source import invoke_source, serialize_value
from .store import RunCache

__all__ = [
    # Factory
    "create_cache",
    # Store
    "CacheInterface",
    "RunCache",
    "CacheEntry",
    "SourceFn",
    "now_ms",
    # Events
    "EventBus",
    "EventFn",
    "EventKind",
    "EventParam",
    # Lifecycle collaborators
    "ExpiryScheduler",
    "ScheduledAction",
    "RefetchCoordinator",
    "invoke_source",
    "serialize_value",
]
