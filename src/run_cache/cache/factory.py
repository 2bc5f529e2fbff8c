"""
RunCache — Cache Factory

Builds cache instances from configuration.

Every call returns a new, independent instance: there is no process-wide
cache registry, so separate components (and separate tests) never share
entries, timers or listeners by accident.

Examples:
    from run_cache.cache.factory import create_cache

    # Uses env-configured settings
    cache = create_cache()

    # Or explicitly supply a RunCacheConfig (e.g., for tests)
    from run_cache.config import EventDispatch, RunCacheConfig
    cfg = RunCacheConfig(event_dispatch=EventDispatch.BACKGROUND)
    cache = create_cache(cfg)
"""

from __future__ import annotations

import logging

from ..config import RunCacheConfig, get_config
from ..observability import configure_logging
from .entry import Clock, now_ms
from .store import RunCache

logger = logging.getLogger(__name__)


def create_cache(
    config: RunCacheConfig | None = None,
    clock: Clock = now_ms,
    setup_logging: bool = True,
) -> RunCache:
    """
    Create a cache instance based on configuration.

    Args:
        config: Cache configuration (uses the loaded environment config if not provided)
        clock: Millisecond clock for timestamps and expiry checks
        setup_logging: Apply the configured log level and format to the ``run_cache`` logger

    Returns:
        New RunCache instance

    Raises:
        ConfigurationError: If the environment configuration is invalid
    """
    if config is None:
        config = get_config()

    if setup_logging:
        configure_logging(config.log_level, config.log_format)

    cache = RunCache(event_dispatch=config.event_dispatch, clock=clock)

    logger.info(
        "Created cache instance (event dispatch: %s)",
        config.event_dispatch.value,
        extra={"environment": config.environment.value, "event_dispatch": config.event_dispatch.value},
    )
    return cache
