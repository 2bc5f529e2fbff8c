"""
RunCache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config
from .schemas import (
    Environment,
    EventDispatch,
    LogFormat,
    LogLevel,
    RunCacheConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    # Main config
    "RunCacheConfig",
    # Enums
    "Environment",
    "EventDispatch",
    "LogFormat",
    "LogLevel",
]
