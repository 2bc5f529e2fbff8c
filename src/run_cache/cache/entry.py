"""
RunCache — Cache Entry

The per-key record owned by the entry store, plus the millisecond clock
used for timestamps and expiry checks.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .scheduler import ScheduledAction

# A producer may return its value directly or as an awaitable
SourceFn = Callable[[], Any]
Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(slots=True)
class CacheEntry:
    """
    One cached value and its lifecycle state.

    Attributes:
        value: Serialized string payload
        created_at: Timestamp (ms) of the first insertion for this key
        updated_at: Timestamp (ms) of the last successful write or refetch
        ttl: Lifetime in ms after ``updated_at``; None never expires
        auto_refetch: Refetch instead of delete when the entry expires
        source_fn: Producer used for refetching
        fetching: True while a refetch invocation is outstanding
        scheduled_action: Pending expiry action owned by this entry
        generation: Store-wide counter value assigned when the entry was set
    """

    value: str
    created_at: int
    updated_at: int
    ttl: int | None = None
    auto_refetch: bool = False
    source_fn: SourceFn | None = None
    fetching: bool = False
    scheduled_action: ScheduledAction | None = field(default=None, repr=False)
    generation: int = 0

    def is_expired(self, now: int) -> bool:
        """Check whether the entry outlived its TTL at ``now``."""
        if self.ttl is None:
            return False
        return now > self.updated_at + self.ttl

    def cancel_scheduled_action(self) -> None:
        """Cancel and forget the pending expiry action, if any."""
        if self.scheduled_action is not None:
            self.scheduled_action.cancel()
            self.scheduled_action = None
