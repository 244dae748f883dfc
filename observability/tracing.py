"""Span helper that reports elapsed time as a structured event."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .logger import log_event


@contextmanager
def span(kind: str, session_id: str, **fields: Any) -> Iterator[Dict[str, Any]]:
    """Time the block and log ``kind`` with ``ms`` plus any fields added to the yielded dict."""

    extra: Dict[str, Any] = dict(fields)
    start = time.perf_counter()
    try:
        yield extra
    finally:
        extra["ms"] = int((time.perf_counter() - start) * 1000)
        log_event(kind, session_id, **extra)


__all__ = ["span"]
