"""
Work request aggregate (``workrequest_kernel.domain.work_request``).

Responsibility
--------------
The ``WorkRequest`` value object, its status/priority enums, the status
transition table and the append-only audit record.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.  Timestamps are
passed in by callers; this module never reads the clock.

Invariants enforced
-------------------
* ``REQUEST_TRANSITIONS`` defines the only valid status transitions.
  Terminal statuses have no outgoing edges.  APPROVED is not terminal: it
  waits for a fulfillment step to complete it.
* ``approval_step == len(approver_ids) == len(approver_names)``.
* ``version`` increases by exactly one per mutation and keys the
  repository's compare-and-swap.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID, uuid4

from workrequest_kernel.domain.payloads import (
    REQUEST_TYPE_BY_PAYLOAD,
    RequestPayload,
    RequestType,
)
from workrequest_kernel.domain.roles import DEFAULT_ENTERPRISE_TYPE, EnterpriseType


# =========================================================================
# Status lifecycle
# =========================================================================


class RequestStatus(str, Enum):
    """Work request lifecycle states."""

    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


REQUEST_TRANSITIONS: dict[RequestStatus, frozenset[RequestStatus]] = {
    RequestStatus.PENDING: frozenset({
        RequestStatus.IN_PROGRESS,
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.CANCELLED,
        RequestStatus.COMPLETED,
    }),
    RequestStatus.IN_PROGRESS: frozenset({
        RequestStatus.IN_PROGRESS,
        RequestStatus.APPROVED,
        RequestStatus.REJECTED,
        RequestStatus.CANCELLED,
        RequestStatus.COMPLETED,
    }),
    RequestStatus.APPROVED: frozenset({
        RequestStatus.COMPLETED,
        RequestStatus.REJECTED,
        RequestStatus.CANCELLED,
    }),
    RequestStatus.REJECTED: frozenset(),
    RequestStatus.COMPLETED: frozenset(),
    RequestStatus.CANCELLED: frozenset(),
}

TERMINAL_REQUEST_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.REJECTED,
    RequestStatus.COMPLETED,
    RequestStatus.CANCELLED,
})

# Statuses in which an approver action is still possible.
AWAITING_APPROVAL_STATUSES: frozenset[RequestStatus] = frozenset({
    RequestStatus.PENDING,
    RequestStatus.IN_PROGRESS,
})


class RequestPriority(str, Enum):
    URGENT = "URGENT"
    HIGH = "HIGH"
    NORMAL = "NORMAL"
    LOW = "LOW"


class RequestAction(str, Enum):
    """Actions recorded in the audit trail."""

    CREATED = "CREATED"
    ADVANCED = "ADVANCED"
    REJECTED = "REJECTED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    NOTE_ADDED = "NOTE_ADDED"
    PAYLOAD_UPDATED = "PAYLOAD_UPDATED"
    PRIORITY_CHANGED = "PRIORITY_CHANGED"
    ROUTED = "ROUTED"


@dataclass(frozen=True)
class TransitionRecord:
    """One entry in a request's audit trail.  Immutable."""

    action: RequestAction
    from_status: RequestStatus
    to_status: RequestStatus
    at: datetime
    actor_id: str | None = None
    detail: str | None = None


# =========================================================================
# Aggregate
# =========================================================================


@dataclass(frozen=True)
class WorkRequest:
    """Immutable snapshot of a work request.

    Every engine operation returns a new instance; ``version`` counts them.
    """

    payload: RequestPayload
    requester_id: str
    request_id: UUID = field(default_factory=uuid4)
    requester_name: str = ""
    requester_email: str = ""
    requester_enterprise_id: str | None = None
    requester_organization_id: str | None = None
    requester_enterprise_type: EnterpriseType | None = None
    target_enterprise_id: str | None = None
    target_organization_id: str | None = None
    status: RequestStatus = RequestStatus.PENDING
    priority: RequestPriority = RequestPriority.NORMAL
    approval_step: int = 0
    approver_ids: tuple[str, ...] = ()
    approver_names: tuple[str, ...] = ()
    current_approver_id: str | None = None
    description: str = ""
    notes: tuple[str, ...] = ()
    history: tuple[TransitionRecord, ...] = ()
    created_at: datetime | None = None
    last_updated_at: datetime | None = None
    completed_at: datetime | None = None
    version: int = 0

    @property
    def request_type(self) -> RequestType:
        return REQUEST_TYPE_BY_PAYLOAD[type(self.payload)]

    @property
    def item_id(self) -> str:
        return self.payload.item_id

    @property
    def home_enterprise_type(self) -> EnterpriseType:
        return self.requester_enterprise_type or DEFAULT_ENTERPRISE_TYPE

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_REQUEST_STATUSES

    @property
    def is_awaiting_approval(self) -> bool:
        return self.status in AWAITING_APPROVAL_STATUSES

    @property
    def is_cross_enterprise(self) -> bool:
        return (
            self.target_enterprise_id is not None
            and self.requester_enterprise_id != self.target_enterprise_id
        )

    @property
    def is_same_enterprise(self) -> bool:
        return (
            self.requester_enterprise_id is not None
            and self.requester_enterprise_id == self.target_enterprise_id
        )

    @property
    def short_id(self) -> str:
        """Last six characters of the id, used in human-facing codes."""
        return str(self.request_id)[-6:]
