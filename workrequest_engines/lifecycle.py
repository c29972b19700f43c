"""
Lifecycle -- Pure work request state machine.

Responsibility:
    Every change to a ``WorkRequest`` goes through a function here (or through
    an engine built on ``revise``).  Each returns a new request with
    ``version`` incremented and an audit record appended.

Architecture position:
    Engines -- pure functional core, zero I/O.  ``now`` is always an
    argument; nothing here reads the clock.

Invariants enforced:
    - Transitions follow ``REQUEST_TRANSITIONS``; terminal requests only
      accept notes.
    - ``approval_step == len(approver_ids) == len(approver_names)`` is
      checked before every advance and preserved by it.
    - ``advance`` requires the approver's role to equal the role at the
      current step.
    - MBTA-to-airport emergencies open as URGENT regardless of input.

Failure modes:
    - RequestAlreadyTerminalError: mutation of REJECTED/COMPLETED/CANCELLED.
    - InvalidTransitionError: transition not in the table (e.g. advancing
      an APPROVED request, fulfilling a request that is not APPROVED).
    - UnauthorizedApproverError: role does not match ``chain[approval_step]``.
    - InternalConsistencyError: step/approver mismatch, or chain exhausted
      while the request still waits for approval.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from enum import Enum
from typing import Any

from workrequest_engines.chain_resolver import next_required_role
from workrequest_kernel.domain.payloads import MBTAToAirportEmergencyPayload, RequestPayload
from workrequest_kernel.domain.roles import ApprovalChain, Role
from workrequest_kernel.domain.work_request import (
    REQUEST_TRANSITIONS,
    RequestAction,
    RequestPriority,
    RequestStatus,
    TransitionRecord,
    WorkRequest,
)
from workrequest_kernel.exceptions import (
    InternalConsistencyError,
    InvalidTransitionError,
    RequestAlreadyTerminalError,
    UnauthorizedApproverError,
)


class CompletionPath(str, Enum):
    """How a request reaches COMPLETED."""

    FULFILLMENT = "FULFILLMENT"
    EMERGENCY_DELIVERY = "EMERGENCY_DELIVERY"
    DISPUTE_RESOLUTION = "DISPUTE_RESOLUTION"


# =========================================================================
# Building blocks
# =========================================================================


def revise(
    request: WorkRequest,
    now: datetime,
    *,
    action: RequestAction,
    actor_id: str | None = None,
    detail: str | None = None,
    **changes: Any,
) -> WorkRequest:
    """Copy ``request`` with ``changes``, bump its version and record ``action``."""
    to_status = changes.get("status", request.status)
    record = TransitionRecord(
        action=action,
        from_status=request.status,
        to_status=to_status,
        at=now,
        actor_id=actor_id,
        detail=detail,
    )
    return replace(
        request,
        **changes,
        history=request.history + (record,),
        last_updated_at=now,
        version=request.version + 1,
    )


def check_invariants(request: WorkRequest) -> None:
    """Raise InternalConsistencyError if the approver bookkeeping is inconsistent."""
    if request.approval_step != len(request.approver_ids):
        raise InternalConsistencyError(
            request.request_id,
            f"approval_step {request.approval_step} != "
            f"{len(request.approver_ids)} approver ids",
        )
    if len(request.approver_ids) != len(request.approver_names):
        raise InternalConsistencyError(
            request.request_id,
            f"{len(request.approver_ids)} approver ids but "
            f"{len(request.approver_names)} approver names",
        )


def require_transition(request: WorkRequest, to_status: RequestStatus, action: str) -> None:
    """Raise unless ``request`` may move to ``to_status``."""
    if request.is_terminal:
        raise RequestAlreadyTerminalError(request.request_id, request.status.value, action)
    if to_status not in REQUEST_TRANSITIONS[request.status]:
        raise InvalidTransitionError(request.request_id, request.status.value, to_status.value)


def require_mutable(request: WorkRequest, action: str) -> None:
    if request.is_terminal:
        raise RequestAlreadyTerminalError(request.request_id, request.status.value, action)


# =========================================================================
# Operations
# =========================================================================


def open_request(request: WorkRequest, chain: ApprovalChain, now: datetime) -> WorkRequest:
    """
    Stamp a freshly built request as created.

    An empty chain has nothing to wait for, so the request opens APPROVED.
    """
    if request.history or request.version != 0:
        raise InternalConsistencyError(request.request_id, "request already opened")

    priority = request.priority
    if isinstance(request.payload, MBTAToAirportEmergencyPayload):
        priority = RequestPriority.URGENT

    return revise(
        request,
        now,
        action=RequestAction.CREATED,
        actor_id=request.requester_id,
        detail=f"chain: {' > '.join(r.value for r in chain) or '(none)'}",
        status=RequestStatus.APPROVED if not chain else RequestStatus.PENDING,
        priority=priority,
        approval_step=0,
        approver_ids=(),
        approver_names=(),
        created_at=now,
        completed_at=None,
    )


def advance(
    request: WorkRequest,
    approver_id: str,
    approver_name: str,
    approver_role: Role | None,
    chain: ApprovalChain,
    now: datetime,
) -> WorkRequest:
    """
    Record one approval and move the cursor.

    Returns:
        The request in IN_PROGRESS, or APPROVED when the chain is exhausted.
    """
    check_invariants(request)
    require_mutable(request, "advance")
    if not request.is_awaiting_approval:
        raise InvalidTransitionError(
            request.request_id, request.status.value, RequestStatus.IN_PROGRESS.value
        )

    required = next_required_role(chain, request.approval_step)
    if required is None:
        raise InternalConsistencyError(
            request.request_id,
            f"chain of {len(chain)} exhausted at step {request.approval_step} "
            f"while status is {request.status.value}",
        )
    if approver_role != required:
        raise UnauthorizedApproverError(
            request.request_id,
            approver_id,
            required.value,
            approver_role.value if approver_role is not None else None,
        )

    step = request.approval_step + 1
    status = RequestStatus.APPROVED if step >= len(chain) else RequestStatus.IN_PROGRESS

    return revise(
        request,
        now,
        action=RequestAction.ADVANCED,
        actor_id=approver_id,
        detail=f"{required.value} approved (step {step}/{len(chain)})",
        status=status,
        approval_step=step,
        approver_ids=request.approver_ids + (approver_id,),
        approver_names=request.approver_names + (approver_name,),
    )


def reject(
    request: WorkRequest,
    reason: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    """Reject from any non-terminal status; the reason is kept in the notes."""
    require_transition(request, RequestStatus.REJECTED, "reject")
    return revise(
        request,
        now,
        action=RequestAction.REJECTED,
        actor_id=actor_id,
        detail=reason,
        status=RequestStatus.REJECTED,
        notes=request.notes + (f"REJECTED: {reason}",),
    )


def complete(
    request: WorkRequest,
    now: datetime,
    path: CompletionPath = CompletionPath.FULFILLMENT,
    actor_id: str | None = None,
) -> WorkRequest:
    """
    Move to COMPLETED.

    Fulfillment requires APPROVED.  Emergency delivery and dispute
    resolution complete from any non-terminal status.
    """
    require_mutable(request, "complete")
    if path == CompletionPath.FULFILLMENT and request.status != RequestStatus.APPROVED:
        raise InvalidTransitionError(
            request.request_id, request.status.value, RequestStatus.COMPLETED.value
        )
    require_transition(request, RequestStatus.COMPLETED, "complete")

    return revise(
        request,
        now,
        action=RequestAction.COMPLETED,
        actor_id=actor_id,
        detail=path.value,
        status=RequestStatus.COMPLETED,
        completed_at=now,
    )


def cancel(
    request: WorkRequest,
    now: datetime,
    actor_id: str | None = None,
    reason: str | None = None,
) -> WorkRequest:
    """Withdraw a non-terminal request."""
    require_transition(request, RequestStatus.CANCELLED, "cancel")
    notes = request.notes + (f"CANCELLED: {reason}",) if reason else request.notes
    return revise(
        request,
        now,
        action=RequestAction.CANCELLED,
        actor_id=actor_id,
        detail=reason,
        status=RequestStatus.CANCELLED,
        notes=notes,
    )


def add_note(
    request: WorkRequest,
    note: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    """Append a note.  Allowed in every status, terminal ones included."""
    return revise(
        request,
        now,
        action=RequestAction.NOTE_ADDED,
        actor_id=actor_id,
        notes=request.notes + (note,),
    )


def set_priority(
    request: WorkRequest,
    priority: RequestPriority,
    now: datetime,
    reason: str | None = None,
) -> WorkRequest:
    require_mutable(request, "reprioritize")
    if priority == request.priority:
        return request
    return revise(
        request,
        now,
        action=RequestAction.PRIORITY_CHANGED,
        detail=f"{request.priority.value} -> {priority.value}"
        + (f": {reason}" if reason else ""),
        priority=priority,
    )


def assign_approver(
    request: WorkRequest,
    approver_id: str | None,
    now: datetime,
) -> WorkRequest:
    """Route the request to ``approver_id`` (None clears the assignment)."""
    require_mutable(request, "route")
    if approver_id == request.current_approver_id:
        return request
    return revise(
        request,
        now,
        action=RequestAction.ROUTED,
        actor_id=approver_id,
        current_approver_id=approver_id,
    )


def update_payload(
    request: WorkRequest,
    payload: RequestPayload,
    now: datetime,
    actor_id: str | None = None,
    detail: str | None = None,
) -> WorkRequest:
    """Replace the variant payload with a revised payload of the same type."""
    require_mutable(request, "update")
    if type(payload) is not type(request.payload):
        raise InternalConsistencyError(
            request.request_id,
            f"payload type change {type(request.payload).__name__} -> "
            f"{type(payload).__name__}",
        )
    return revise(
        request,
        now,
        action=RequestAction.PAYLOAD_UPDATED,
        actor_id=actor_id,
        detail=detail,
        payload=payload,
    )
