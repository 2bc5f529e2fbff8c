"""
RunCache — Refetch Coordinator

Single-flight refresh of an entry through its source function.

The ``fetching`` flag is checked and set before the first suspension point,
so refetch calls for the same key issued in one scheduling turn see the
flag and return False instead of invoking the producer again.
"""

import logging
from collections.abc import Callable

from ..errors import SourceFunctionError
from .entry import CacheEntry, Clock, now_ms
from .events import EventBus, EventKind, EventParam
from .source import invoke_source

logger = logging.getLogger(__name__)


class RefetchCoordinator:
    """
    Runs at most one source-function invocation per key at a time.

    Args:
        entries: Key -> entry mapping shared with the entry store
        bus: Event bus receiving refetch / refetch-failure events
        clock: Millisecond clock used for ``updated_at``
        on_refreshed: Called with (key, entry) after a successful write,
            before the refetch event is emitted
    """

    def __init__(
        self,
        entries: dict[str, CacheEntry],
        bus: EventBus,
        clock: Clock = now_ms,
        on_refreshed: Callable[[str, CacheEntry], None] | None = None,
    ) -> None:
        self._entries = entries
        self._bus = bus
        self._clock = clock
        self._on_refreshed = on_refreshed

        self.refetches = 0
        self.failures = 0
        self.discarded = 0

    def _is_current(self, key: str, generation: int) -> bool:
        current = self._entries.get(key)
        return current is not None and current.generation == generation

    async def refetch(self, key: str) -> bool:
        """
        Refresh ``key`` from its source function.

        Args:
            key: Cache key to refresh

        Returns:
            True if a fresh value was written; False when the key is
            unknown, has no source function, is already being fetched, or
            was deleted/replaced while the producer was running

        Raises:
            SourceFunctionError: If the producer fails
        """
        entry = self._entries.get(key)
        if entry is None or entry.source_fn is None or entry.fetching:
            return False

        # No await between the check above and this write
        entry.fetching = True
        generation = entry.generation

        try:
            value = await invoke_source(key, entry.source_fn)
        except SourceFunctionError:
            entry.fetching = False
            if not self._is_current(key, generation):
                logger.debug(
                    "Refetch failure for replaced entry '%s' ignored",
                    key,
                    extra={"key": key, "generation": generation},
                )
                raise

            self.failures += 1
            await self._bus.emit(EventKind.REFETCH_FAILURE, EventParam.from_entry(key, entry))
            raise

        entry.fetching = False
        if not self._is_current(key, generation):
            self.discarded += 1
            logger.debug(
                "Discarding refetched value for deleted or replaced entry '%s'",
                key,
                extra={"key": key, "generation": generation},
            )
            return False

        entry.value = value
        entry.updated_at = max(self._clock(), entry.updated_at)
        self.refetches += 1

        if self._on_refreshed is not None:
            self._on_refreshed(key, entry)

        logger.debug("Refetched key '%s'", key, extra={"key": key, "updated_at": entry.updated_at})
        await self._bus.emit(EventKind.REFETCH, EventParam.from_entry(key, entry))
        return True
