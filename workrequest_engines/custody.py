"""
Custody Engine -- Pure operations on the transfer and emergency variants.

Responsibility:
    Note trails, tracking codes and the MBTA-to-airport handoff steps
    (gate hold, police escort, location status, pickup, delivery).

Architecture position:
    Engines -- pure functional core, zero I/O.  Each operation returns a
    revised ``WorkRequest`` through ``lifecycle.update_payload``.

Invariants enforced:
    - Note trails only grow.
    - Delivery notes are timestamped with the ``now`` passed in.
    - ``confirm_delivery`` completes the request on the EMERGENCY_DELIVERY
      path, whatever its approval step.

Failure modes:
    - WrongRequestTypeError: operation on another variant.
    - RequestAlreadyTerminalError: any mutation of a terminal request.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from workrequest_engines.lifecycle import CompletionPath, complete, update_payload
from workrequest_kernel.domain.payloads import (
    AirportToUniversityTransferPayload,
    CrossCampusTransferPayload,
    CustodyLocation,
    GateHoldStatus,
    MBTAToAirportEmergencyPayload,
    RequestType,
    TransitToUniversityTransferPayload,
)
from workrequest_kernel.domain.policy import CustodyPolicy
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import WrongRequestTypeError


def _require(request: WorkRequest, *payload_types: type, expected: RequestType):
    if not isinstance(request.payload, payload_types):
        raise WrongRequestTypeError(
            request.request_id, expected.value, request.request_type.value
        )
    return request.payload


# =========================================================================
# Note trails
# =========================================================================


def add_tracking_note(
    request: WorkRequest,
    note: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _require(
        request, CrossCampusTransferPayload, expected=RequestType.CROSS_CAMPUS_TRANSFER
    )
    return update_payload(
        request,
        replace(payload, tracking_notes=payload.tracking_notes + (note,)),
        now,
        actor_id=actor_id,
        detail="tracking note",
    )


def add_transfer_note(
    request: WorkRequest,
    note: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _require(
        request,
        TransitToUniversityTransferPayload,
        AirportToUniversityTransferPayload,
        expected=RequestType.TRANSIT_TO_UNIVERSITY_TRANSFER,
    )
    return update_payload(
        request,
        replace(payload, transfer_notes=payload.transfer_notes + (note,)),
        now,
        actor_id=actor_id,
        detail="transfer note",
    )


def add_security_note(
    request: WorkRequest,
    note: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _require(
        request,
        AirportToUniversityTransferPayload,
        expected=RequestType.AIRPORT_TO_UNIVERSITY_TRANSFER,
    )
    return update_payload(
        request,
        replace(payload, security_notes=payload.security_notes + (note,)),
        now,
        actor_id=actor_id,
        detail="security note",
    )


def _emergency(request: WorkRequest) -> MBTAToAirportEmergencyPayload:
    return _require(
        request,
        MBTAToAirportEmergencyPayload,
        expected=RequestType.MBTA_TO_AIRPORT_EMERGENCY,
    )


def _delivery_noted(
    payload: MBTAToAirportEmergencyPayload,
    note: str,
    now: datetime,
    **changes,
) -> MBTAToAirportEmergencyPayload:
    return replace(
        payload,
        **changes,
        delivery_notes=payload.delivery_notes + (f"[{now.isoformat()}] {note}",),
    )


def add_delivery_note(
    request: WorkRequest,
    note: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _emergency(request)
    return update_payload(
        request,
        _delivery_noted(payload, note, now),
        now,
        actor_id=actor_id,
        detail="delivery note",
    )


# =========================================================================
# Codes and checks
# =========================================================================


def transfer_code(request: WorkRequest) -> str:
    """``MBTA-UNI-`` or ``LOGAN-UNI-`` plus the last six characters of the id."""
    match request.payload:
        case TransitToUniversityTransferPayload():
            return f"MBTA-UNI-{request.short_id}"
        case AirportToUniversityTransferPayload():
            return f"LOGAN-UNI-{request.short_id}"
        case _:
            raise WrongRequestTypeError(
                request.request_id,
                RequestType.TRANSIT_TO_UNIVERSITY_TRANSFER.value,
                request.request_type.value,
            )


def emergency_code(request: WorkRequest) -> str:
    _emergency(request)
    return f"EMR-MBTA-LOG-{request.short_id}"


def requires_enhanced_security(
    payload: AirportToUniversityTransferPayload,
    policy: CustodyPolicy | None = None,
) -> bool:
    """Secure-area find, value over the threshold, or an Enhanced/TSA clearance."""
    policy = policy or CustodyPolicy()
    return (
        payload.found_in_secure_area
        or payload.item_value > policy.enhanced_security_value
        or payload.security_clearance_level.lower() in policy.enhanced_clearance_levels
    )


def is_same_enterprise(request: WorkRequest) -> bool:
    _require(request, CrossCampusTransferPayload, expected=RequestType.CROSS_CAMPUS_TRANSFER)
    return request.is_same_enterprise


# =========================================================================
# Emergency handoff
# =========================================================================


def request_gate_hold(
    request: WorkRequest,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _emergency(request)
    updated = _delivery_noted(
        payload,
        f"Gate hold requested for flight {payload.flight_number}",
        now,
        gate_hold_status=GateHoldStatus.REQUESTED,
    )
    return update_payload(request, updated, now, actor_id=actor_id, detail="gate hold requested")


def request_police_escort(
    request: WorkRequest,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _emergency(request)
    updated = _delivery_noted(
        payload,
        "Police escort requested for emergency delivery",
        now,
        police_escort_requested=True,
    )
    return update_payload(
        request, updated, now, actor_id=actor_id, detail="police escort requested"
    )


def update_location_status(
    request: WorkRequest,
    location: CustodyLocation,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _emergency(request)
    updated = _delivery_noted(
        payload,
        f"Status updated: {location.value}",
        now,
        location_status=location,
    )
    return update_payload(request, updated, now, actor_id=actor_id, detail=location.value)


def confirm_pickup(
    request: WorkRequest,
    confirmation_code: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    payload = _emergency(request)
    updated = _delivery_noted(
        payload,
        f"Picked up from MBTA. Code: {confirmation_code}",
        now,
        pickup_confirmation_code=confirmation_code,
        location_status=CustodyLocation.IN_TRANSIT,
    )
    return update_payload(request, updated, now, actor_id=actor_id, detail="picked up")


def confirm_delivery(
    request: WorkRequest,
    confirmation_code: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    """Record the airport handoff and complete the request."""
    payload = _emergency(request)
    updated = _delivery_noted(
        payload,
        f"Delivered at airport. Code: {confirmation_code}",
        now,
        delivery_confirmation_code=confirmation_code,
        location_status=CustodyLocation.DELIVERED,
    )
    delivered = update_payload(request, updated, now, actor_id=actor_id, detail="delivered")
    return complete(delivered, now, CompletionPath.EMERGENCY_DELIVERY, actor_id=actor_id)
