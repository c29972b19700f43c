"""
Evidence Engine -- Pure police evidence verification outcomes.

Responsibility:
    Records the verification result of a police evidence request (stolen,
    clear, flagged) and issues its case number.

Architecture position:
    Engines -- pure functional core, zero I/O.

Invariants enforced:
    - A STOLEN result always carries the stolen report id and URGENT urgency.
    - A case number, once issued, never changes.

Failure modes:
    - WrongRequestTypeError: operation on another variant.
    - RequestAlreadyTerminalError: any mutation of a terminal request.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from workrequest_engines.lifecycle import update_payload
from workrequest_kernel.domain.payloads import (
    EvidenceUrgency,
    PoliceEvidencePayload,
    RequestType,
    VerificationStatus,
)
from workrequest_kernel.domain.policy import CustodyPolicy
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import WrongRequestTypeError


def evidence_of(request: WorkRequest) -> PoliceEvidencePayload:
    if not isinstance(request.payload, PoliceEvidencePayload):
        raise WrongRequestTypeError(
            request.request_id,
            RequestType.POLICE_EVIDENCE_REQUEST.value,
            request.request_type.value,
        )
    return request.payload


def flag_as_stolen(
    request: WorkRequest,
    report_id: str,
    notes: str | None,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = evidence_of(request)
    updated = replace(
        payload,
        verification_status=VerificationStatus.STOLEN,
        matches_stolen_report=True,
        stolen_report_id=report_id,
        verification_notes=notes,
        urgency=EvidenceUrgency.URGENT,
    )
    return update_payload(
        request, updated, now, actor_id=actor_id, detail=f"stolen report {report_id}"
    )


def mark_as_clear(
    request: WorkRequest,
    notes: str | None,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = evidence_of(request)
    updated = replace(
        payload,
        verification_status=VerificationStatus.CLEAR,
        matches_stolen_report=False,
        verification_notes=notes,
    )
    return update_payload(request, updated, now, actor_id=actor_id, detail="clear")


def flag_for_investigation(
    request: WorkRequest,
    reason: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    """Suspicious but unconfirmed: FLAGGED with HIGH urgency."""
    payload = evidence_of(request)
    updated = replace(
        payload,
        verification_status=VerificationStatus.FLAGGED,
        verification_notes=f"FLAGGED FOR INVESTIGATION: {reason}",
        urgency=EvidenceUrgency.HIGH,
    )
    return update_payload(request, updated, now, actor_id=actor_id, detail="flagged")


def generate_case_number(
    request: WorkRequest,
    now: datetime,
    policy: CustodyPolicy | None = None,
) -> WorkRequest:
    """
    Issue ``<prefix>-<year>-<last 6 of id>``.

    Idempotent: a request that already has a case number is returned as is.
    """
    payload = evidence_of(request)
    if payload.case_number:
        return request
    policy = policy or CustodyPolicy()
    case_number = f"{policy.evidence_case_prefix}-{now.year}-{request.short_id}"
    return update_payload(
        request,
        replace(payload, case_number=case_number),
        now,
        detail=f"case {case_number}",
    )


def assign_officer(
    request: WorkRequest,
    officer_id: str,
    officer_name: str,
    now: datetime,
    department: str | None = None,
) -> WorkRequest:
    payload = evidence_of(request)
    updated = replace(
        payload,
        police_officer_id=officer_id,
        police_officer_name=officer_name,
        police_department=department or payload.police_department,
    )
    return update_payload(
        request, updated, now, actor_id=officer_id, detail=f"officer {officer_name}"
    )
