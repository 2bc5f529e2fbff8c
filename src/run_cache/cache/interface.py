"""
RunCache — Cache Interface

Defines the abstract surface of the entry store.
"""

from abc import ABC, abstractmethod
from typing import Any

from .entry import SourceFn


class CacheInterface(ABC):
    """
    Abstract base class for keyed caches with TTL and source-function refresh.

    Values are opaque serialized strings. Expiry is time-based only.
    """

    @abstractmethod
    async def set(
        self,
        key: str,
        value: Any = None,
        ttl: int | None = None,
        auto_refetch: bool = False,
        source_fn: SourceFn | None = None,
    ) -> bool:
        """
        Store a value, or the output of ``source_fn``, under ``key``.

        Args:
            key: Cache key (non-empty)
            value: Value to cache; strings are stored verbatim
            ttl: Time-to-live in milliseconds (None = never expires)
            auto_refetch: Refetch through ``source_fn`` on expiry (requires ttl)
            source_fn: Producer used when ``value`` is missing and for refetching

        Returns:
            True once the entry is written

        Raises:
            ValidationError: If the arguments are invalid
            SourceFunctionError: If ``source_fn`` fails to produce the initial value
        """

    @abstractmethod
    async def get(self, key: str) -> str | None:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired; for an expired auto-refetch
            entry the value held after the refetch attempt; None once the entry is gone
        """

    @abstractmethod
    async def has(self, key: str) -> bool:
        """
        Check if a key exists and has not expired.

        Unlike ``get`` this never deletes or refetches an expired entry.

        Args:
            key: Cache key to check

        Returns:
            True if the key exists and is not expired, False otherwise
        """

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key from the cache.

        Args:
            key: Cache key to delete

        Returns:
            True if key was deleted, False if key didn't exist
        """

    @abstractmethod
    def flush(self) -> None:
        """Remove every entry and cancel every scheduled expiry."""

    @abstractmethod
    async def refetch(self, key: str) -> bool:
        """
        Refresh a value through its stored source function.

        Args:
            key: Cache key

        Returns:
            True if a fresh value was written, False otherwise

        Raises:
            SourceFunctionError: If the source function fails
        """

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, size, etc.)
        """

    @abstractmethod
    async def close(self) -> None:
        """
        Close the cache and release resources.

        Cancels scheduled expiry actions and background tasks.
        """
