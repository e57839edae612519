"""
ledger_engines.tracer -- debug trace for pure engine invocations.

Responsibility:
    ``@traced_engine`` wraps an engine function and emits one DEBUG
    ``engine_trace`` record with engine name, version and duration.

Architecture position:
    Engines -- infrastructure support.  Emits a log record only; never
    mutates inputs or results.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any

from ledger_kernel.logging_config import get_logger

_logger = get_logger("engines.tracer")


def traced_engine(engine_name: str, engine_version: str) -> Callable:
    """
    Decorator that logs an ``engine_trace`` record per invocation.

    Args:
        engine_name: Engine identifier (e.g. "gst_split").
        engine_version: Engine version (e.g. "1.0").
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            t0 = time.monotonic()
            result = func(*args, **kwargs)
            _logger.debug(
                "engine_trace",
                extra={
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 3),
                },
            )
            return result

        return wrapper

    return decorator
