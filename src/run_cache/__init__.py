"""
RunCache — In-Process Keyed Cache

Caches serialized string values under string keys with optional TTL,
values produced by sync or async source functions, single-flight
refetching, and expiry/refetch notifications.
"""

__version__ = "1.0.0"

from .cache import (
    CacheInterface,
    EventKind,
    EventParam,
    RunCache,
    create_cache,
)
from .config import EventDispatch, RunCacheConfig, get_config, load_config
from .errors import (
    ConfigurationError,
    ErrorCode,
    ListenerConfigError,
    RunCacheError,
    SourceFunctionError,
    ValidationError,
)

__all__ = [
    "__version__",
    # Cache
    "RunCache",
    "CacheInterface",
    "create_cache",
    # Events
    "EventKind",
    "EventParam",
    # Configuration
    "EventDispatch",
    "RunCacheConfig",
    "get_config",
    "load_config",
    # Errors
    "RunCacheError",
    "ErrorCode",
    "ConfigurationError",
    "ValidationError",
    "ListenerConfigError",
    "SourceFunctionError",
]
