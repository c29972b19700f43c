"""
workrequest_services.retry -- Reload-and-reapply on lost compare-and-swap.

Responsibility:
    Re-runs a service call when it loses the optimistic concurrency race.
    Service mutations reload the request on every call, so calling again
    is a reload followed by a re-application of the engine operation.

Architecture position:
    Services layer.  Callers wrap service calls; the services themselves
    never retry.

Invariants enforced:
    - Only ``StaleRequestError`` is retried.  Engine errors (duplicate
      vote, unauthorized approver, terminal request) surface on the attempt
      that sees the fresh state.
    - At most ``max_retries`` additional attempts are made; the last
      ``StaleRequestError`` is re-raised when they run out.
"""

from __future__ import annotations

from typing import Callable, TypeVar

from workrequest_kernel.exceptions import StaleRequestError
from workrequest_kernel.logging_config import get_logger

logger = get_logger("services.retry")

T = TypeVar("T")

MAX_CONFLICT_RETRIES = 5


def apply_with_retry(fn: Callable[[], T], max_retries: int = MAX_CONFLICT_RETRIES) -> T:
    """
    Call ``fn`` until it does not raise ``StaleRequestError``.

    Args:
        fn: Zero-argument callable, typically a bound service method in a
            lambda.
        max_retries: Extra attempts after the first.

    Returns:
        Whatever ``fn`` returns on its first non-conflicting attempt.

    Raises:
        StaleRequestError: Every attempt lost the race.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except StaleRequestError as exc:
            if attempt >= max_retries:
                logger.warning(
                    "conflict_retries_exhausted",
                    extra={
                        "request_id": str(exc.request_id),
                        "attempts": attempt + 1,
                    },
                )
                raise
            attempt += 1
            logger.info(
                "conflict_retry",
                extra={
                    "request_id": str(exc.request_id),
                    "expected_version": exc.expected_version,
                    "attempt": attempt,
                },
            )
