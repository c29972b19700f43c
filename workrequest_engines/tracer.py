"""
workrequest_engines.tracer -- Engine invocation tracer emitting WORKREQUEST_ENGINE_TRACE.

Responsibility:
    ``@traced_engine`` wraps a pure engine function with one structured
    trace record per call: engine name and version, a fingerprint of the
    inputs, and the duration.

Architecture position:
    Engines -- support for the pure layer.  Emits a log record only; the
    wrapped function's inputs and result are untouched.

Invariants enforced:
    - The fingerprint is deterministic.  A ``WorkRequest`` argument
      contributes ``<request_id>@<version>``; any other argument its
      ``repr``.  Only the arguments named in ``fingerprint_fields`` count.

Failure modes:
    - Exceptions from the wrapped function propagate unchanged and no
      trace record is written for that call.
"""

from __future__ import annotations

import functools
import hashlib
import inspect
import time
from collections.abc import Callable
from typing import Any

from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")


def _fingerprint_part(value: Any) -> str:
    if isinstance(value, WorkRequest):
        return f"{value.request_id}@{value.version}"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: dict[str, Any],
) -> str:
    """SHA-256 prefix (16 hex chars) over the selected arguments."""
    canonical = "|".join(
        f"{name}={_fingerprint_part(arguments.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = ("request",),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind_partial(*args, **kwargs)
            fp = compute_input_fingerprint(fingerprint_fields, bound.arguments)

            t0 = time.monotonic()
            result = func(*args, **kwargs)
            duration_ms = round((time.monotonic() - t0) * 1000, 2)

            logger.debug(
                "WORKREQUEST_ENGINE_TRACE",
                extra={
                    "trace_type": "WORKREQUEST_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fp,
                    "duration_ms": duration_ms,
                    "function": func.__qualname__,
                },
            )
            return result

        return wrapper

    return decorator
