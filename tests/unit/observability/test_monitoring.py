"""
RunCache — Log Formatter Tests
"""

import json
import logging
import sys

from run_cache.observability import JSONFormatter


def make_record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="run_cache.cache.store",
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg="Refetch failed for key %s",
        args=("users:1",),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    def test_core_fields(self) -> None:
        payload = json.loads(JSONFormatter().format(make_record()))

        assert payload["level"] == "WARNING"
        assert payload["logger"] == "run_cache.cache.store"
        assert payload["message"] == "Refetch failed for key users:1"
        assert payload["line"] == 10
        assert payload["timestamp"].endswith("Z")

    def test_extra_fields(self) -> None:
        payload = json.loads(JSONFormatter().format(make_record(key="users:1", generation=3)))

        assert payload["key"] == "users:1"
        assert payload["generation"] == 3
        assert "args" not in payload
        assert "msg" not in payload

    def test_private_and_unserializable_extras(self) -> None:
        marker = object()
        payload = json.loads(JSONFormatter().format(make_record(_hidden=True, handle=marker)))

        assert "_hidden" not in payload
        assert payload["handle"] == str(marker)

    def test_exception_included(self) -> None:
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        payload = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in payload["exception"]
