"""
RunCache — Observability Module

Structured logging for the cache engine. Cache activity is observable
through the event bus (expire / refetch / refetch-failure) and through the
``run_cache`` logger tree configured here.

Usage:
    from run_cache.observability import configure_logging

    configure_logging("DEBUG", "text")
"""

from .monitoring import ROOT_LOGGER_NAME, JSONFormatter, configure_logging

__all__ = [
    "JSONFormatter",
    "ROOT_LOGGER_NAME",
    "configure_logging",
]
