"""
RunCache — Event Bus

Typed publish/subscribe registry for cache notifications.

Subscriptions are keyed by (event kind, optional entry key):
- global subscriptions (key=None) fire for every entry
- key-scoped subscriptions fire only for their key

On emission global subscribers run before key-scoped ones, each group in
subscription order.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..config.schemas import EventDispatch

if TYPE_CHECKING:
    from .entry import CacheEntry

logger = logging.getLogger(__name__)


class EventKind(str, Enum):
    """Cache event kinds."""

    EXPIRE = "expire"
    REFETCH = "refetch"
    REFETCH_FAILURE = "refetch-failure"


@dataclass(frozen=True, slots=True)
class EventParam:
    """Snapshot of an entry at the moment an event was emitted."""

    key: str
    value: str
    ttl: int | None
    created_at: int
    updated_at: int

    @classmethod
    def from_entry(cls, key: str, entry: CacheEntry) -> EventParam:
        """Capture the current state of ``entry``."""
        return cls(
            key=key,
            value=entry.value,
            ttl=entry.ttl,
            created_at=entry.created_at,
            updated_at=entry.updated_at,
        )


EventFn = Callable[[EventParam], Awaitable[None] | None]

_Channel = tuple[EventKind, str | None]


class EventBus:
    """
    Ordered subscriber registry with awaited or background dispatch.

    With ``EventDispatch.AWAIT`` every handler is awaited before the next
    one runs and handler exceptions propagate to the emitter. With
    ``EventDispatch.BACKGROUND`` coroutine handlers run as tasks, sync
    handlers run inline, and failures from either are only logged.
    """

    def __init__(self, dispatch: EventDispatch = EventDispatch.AWAIT) -> None:
        self.dispatch = dispatch
        self._listeners: dict[_Channel, list[EventFn]] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    def subscribe(self, kind: EventKind, callback: EventFn, key: str | None = None) -> None:
        """Register ``callback`` for ``kind``, optionally scoped to ``key``."""
        self._listeners.setdefault((EventKind(kind), key), []).append(callback)

    def unsubscribe(self, kind: EventKind, callback: EventFn, key: str | None = None) -> bool:
        """Remove the first registration of ``callback``. Returns True if found."""
        channel = (EventKind(kind), key)
        callbacks = self._listeners.get(channel)
        if not callbacks or callback not in callbacks:
            return False

        callbacks.remove(callback)
        if not callbacks:
            del self._listeners[channel]
        return True

    def clear_all(self) -> None:
        """Remove every subscription."""
        self._listeners.clear()

    def clear_kind(self, kind: EventKind) -> None:
        """Remove global and key-scoped subscriptions for ``kind``."""
        kind = EventKind(kind)
        for channel in [c for c in self._listeners if c[0] is kind]:
            del self._listeners[channel]

    def clear_key(self, kind: EventKind, key: str) -> None:
        """Remove key-scoped subscriptions for ``kind`` and ``key``."""
        self._listeners.pop((EventKind(kind), key), None)

    def listener_count(self, kind: EventKind, key: str | None = None) -> int:
        """Number of callbacks registered on exactly this channel."""
        return len(self._listeners.get((EventKind(kind), key), []))

    async def emit(self, kind: EventKind, payload: EventParam) -> None:
        """
        Deliver ``payload`` to global then key-scoped subscribers of ``kind``.

        Args:
            kind: Event kind being emitted
            payload: Entry snapshot delivered to every handler
        """
        kind = EventKind(kind)
        # Snapshot so handlers that (un)subscribe don't alter this delivery
        callbacks = [
            *self._listeners.get((kind, None), []),
            *self._listeners.get((kind, payload.key), []),
        ]
        if not callbacks:
            return

        logger.debug(
            "Emitting %s event for key '%s' to %d handler(s)",
            kind.value,
            payload.key,
            len(callbacks),
            extra={"event_kind": kind.value, "key": payload.key},
        )

        for callback in callbacks:
            if self.dispatch is EventDispatch.AWAIT:
                result = callback(payload)
                if inspect.isawaitable(result):
                    await result
                continue

            try:
                result = callback(payload)
            except Exception as e:
                logger.error(
                    f"Background event handler failed: {e}",
                    extra={"event_kind": kind.value, "key": payload.key, "error": str(e)},
                    exc_info=True,
                )
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future[None]) -> None:
        self._tasks.discard(task)  # type: ignore[arg-type]
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                f"Background event handler failed: {error}",
                extra={"error": str(error)},
                exc_info=error,
            )

    def cancel_pending(self) -> None:
        """Cancel background handler tasks without waiting for them."""
        for task in list(self._tasks):
            task.cancel()

    async def close(self) -> None:
        """Cancel background handler tasks and wait for them to finish."""
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        self.cancel_pending()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
