"""
RunCache — Source Invoker

Adapts a user-supplied producer (sync or async) into a uniform awaitable
call returning a serialized string.
"""

import inspect
import json
import logging
from typing import Any

from ..errors import SourceFunctionError
from .entry import SourceFn

logger = logging.getLogger(__name__)


def serialize_value(value: Any) -> str:
    """Strings are stored verbatim; anything else is JSON encoded."""
    if isinstance(value, str):
        return value
    return json.dumps(value)


async def invoke_source(key: str, source_fn: SourceFn) -> str:
    """
    Run ``source_fn`` and return its serialized result.

    No retry and no timeout are applied: a producer that never completes
    keeps its caller waiting.

    Args:
        key: Cache key the value is produced for
        source_fn: Producer returning a value or an awaitable of one

    Returns:
        Serialized value

    Raises:
        SourceFunctionError: If the producer raises, rejects, or returns a
            value that cannot be serialized
    """
    try:
        result = source_fn()
        if inspect.isawaitable(result):
            result = await result
        return serialize_value(result)
    except Exception as e:
        logger.warning(
            f"Source function failed for key '{key}': {e}",
            extra={"key": key, "error": str(e), "error_type": type(e).__name__},
        )
        raise SourceFunctionError(key, details={"error": str(e)}) from e
