"""
RunCache — Expiry Scheduler

Cancellable one-shot deferred actions backed by ``loop.call_later``.

Each action is owned by exactly one cache entry. When an action fires its
coroutine callback runs as a tracked background task; exceptions escaping
the callback are logged and never raised into an unrelated caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

ExpiryCallback = Callable[[], Awaitable[None]]


class ScheduledAction:
    """Handle to a pending expiry action."""

    __slots__ = ("_handle", "_scheduler", "_fired", "_cancelled", "key")

    def __init__(self, scheduler: ExpiryScheduler, key: str) -> None:
        self._scheduler = scheduler
        self._handle: asyncio.TimerHandle | None = None
        self._fired = False
        self._cancelled = False
        self.key = key

    @property
    def pending(self) -> bool:
        """True until the action fires or is cancelled."""
        return not (self._fired or self._cancelled)

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Cancel the action. Safe to call repeatedly or after firing."""
        if not self.pending:
            return
        self._cancelled = True
        if self._handle is not None:
            self._handle.cancel()
        self._scheduler._discard(self)

    def _fire(self, callback: ExpiryCallback) -> None:
        if not self.pending:
            return
        self._fired = True
        self._scheduler._discard(self)
        self._scheduler._spawn(self.key, callback())


class ExpiryScheduler:
    """
    Arms expiry actions and tracks the tasks they spawn.

    Must be used from within a running event loop.
    """

    def __init__(self) -> None:
        self._pending: set[ScheduledAction] = set()
        self._tasks: set[asyncio.Task[None]] = set()

    def schedule(self, key: str, delay_ms: int, callback: ExpiryCallback) -> ScheduledAction:
        """
        Arm ``callback`` to run ``delay_ms`` milliseconds from now.

        Args:
            key: Cache key the action belongs to (used for logging)
            delay_ms: Delay in milliseconds
            callback: Coroutine function invoked once on firing

        Returns:
            Cancellable handle for the action
        """
        loop = asyncio.get_running_loop()
        action = ScheduledAction(self, key)
        action._handle = loop.call_later(max(delay_ms, 0) / 1000, action._fire, callback)
        self._pending.add(action)

        logger.debug(
            "Scheduled expiry for key '%s' in %d ms",
            key,
            delay_ms,
            extra={"key": key, "delay_ms": delay_ms},
        )
        return action

    @property
    def pending_count(self) -> int:
        """Number of armed actions that have not fired or been cancelled."""
        return len(self._pending)

    def cancel_all(self) -> None:
        """Cancel every pending action and every running expiry task."""
        for action in list(self._pending):
            action.cancel()
        for task in list(self._tasks):
            task.cancel()

    async def close(self) -> None:
        """Cancel everything and wait for running expiry tasks to unwind."""
        current = asyncio.current_task()
        tasks = [t for t in self._tasks if t is not current]
        self.cancel_all()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def _discard(self, action: ScheduledAction) -> None:
        self._pending.discard(action)

    def _spawn(self, key: str, coro: Awaitable[None]) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)

        def _done(t: asyncio.Future[None]) -> None:
            self._tasks.discard(t)  # type: ignore[arg-type]
            if t.cancelled():
                return
            error = t.exception()
            if error is not None:
                logger.error(
                    f"Expiry action for key '{key}' failed: {error}",
                    extra={"key": key, "error": str(error)},
                    exc_info=error,
                )

        task.add_done_callback(_done)
