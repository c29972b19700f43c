"""
SLA Clock -- Pure service-level queries over work requests.

Responsibility:
    Derives target hours from priority and answers overdue / remaining-time
    questions for a given ``now``.  Observation only: breaching an SLA
    never changes a request.

Architecture position:
    Engines -- pure functional core, zero I/O.

Invariants enforced:
    - Elapsed time is counted in whole hours, truncated.
    - ``hours_until_sla`` is signed: negative once the target has passed.
    - Only requests awaiting approval (PENDING, IN_PROGRESS) can be overdue
      or approaching.

Failure modes:
    - InternalConsistencyError for a request that was never opened
      (no ``created_at``).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime

from workrequest_kernel.domain.policy import SlaPolicy
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import InternalConsistencyError


@dataclass(frozen=True)
class SlaStatus:
    """Snapshot of one request against its SLA."""

    target_hours: int
    elapsed_hours: int
    hours_until_sla: int
    is_overdue: bool
    is_approaching: bool


def elapsed_hours(request: WorkRequest, now: datetime) -> int:
    if request.created_at is None:
        raise InternalConsistencyError(request.request_id, "request has no created_at")
    return int((now - request.created_at).total_seconds() / 3600)


def hours_until_sla(request: WorkRequest, now: datetime, policy: SlaPolicy | None = None) -> int:
    policy = policy or SlaPolicy()
    return policy.target_hours(request.priority) - elapsed_hours(request, now)


def is_overdue(request: WorkRequest, now: datetime, policy: SlaPolicy | None = None) -> bool:
    policy = policy or SlaPolicy()
    if not request.is_awaiting_approval:
        return False
    return elapsed_hours(request, now) > policy.target_hours(request.priority)


def is_approaching_sla(
    request: WorkRequest,
    now: datetime,
    policy: SlaPolicy | None = None,
) -> bool:
    """Less than ``approaching_fraction`` of the target left, but not yet breached."""
    policy = policy or SlaPolicy()
    if not request.is_awaiting_approval:
        return False
    fraction = hours_until_sla(request, now, policy) / policy.target_hours(request.priority)
    return 0 < fraction < policy.approaching_fraction


def evaluate_sla(request: WorkRequest, now: datetime, policy: SlaPolicy | None = None) -> SlaStatus:
    policy = policy or SlaPolicy()
    return SlaStatus(
        target_hours=policy.target_hours(request.priority),
        elapsed_hours=elapsed_hours(request, now),
        hours_until_sla=hours_until_sla(request, now, policy),
        is_overdue=is_overdue(request, now, policy),
        is_approaching=is_approaching_sla(request, now, policy),
    )


def overdue_requests(
    requests: Iterable[WorkRequest],
    now: datetime,
    policy: SlaPolicy | None = None,
) -> list[WorkRequest]:
    """Overdue requests, oldest first."""
    found = [r for r in requests if is_overdue(r, now, policy)]
    return sorted(found, key=lambda r: r.created_at)


def approaching_sla_requests(
    requests: Iterable[WorkRequest],
    now: datetime,
    policy: SlaPolicy | None = None,
) -> list[WorkRequest]:
    """Requests nearing their target, least time left first."""
    found = [r for r in requests if is_approaching_sla(r, now, policy)]
    return sorted(found, key=lambda r: hours_until_sla(r, now, policy))
