"""
Human-readable renderings of requests and approval chains.

Pure.  Used by the services for log lines and by callers for display.
"""

from __future__ import annotations

from workrequest_kernel.domain.dispute import DisputePayload
from workrequest_kernel.domain.payloads import (
    AirportToUniversityTransferPayload,
    CrossCampusTransferPayload,
    EvidenceUrgency,
    ItemClaimPayload,
    MBTAToAirportEmergencyPayload,
    PoliceEvidencePayload,
    TransitToUniversityTransferPayload,
)
from workrequest_kernel.domain.policy import ChainPolicy
from workrequest_kernel.domain.roles import ApprovalChain, Role
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import InternalConsistencyError


def format_role_name(role: Role) -> str:
    """``MBTA_STATION_MANAGER`` -> ``MBTA station manager``."""
    words = [w.upper() if w == "mbta" else w for w in role.value.lower().split("_")]
    text = " ".join(words)
    return text[0].upper() + text[1:]


def describe_chain(chain: ApprovalChain) -> str:
    """Numbered workflow, one step per line."""
    if not chain:
        return "No approval required"
    return "\n".join(f"{n}. {format_role_name(role)}" for n, role in enumerate(chain, start=1))


def summarize_request(request: WorkRequest, policy: ChainPolicy | None = None) -> str:
    """One-line summary of what the request is about."""
    policy = policy or ChainPolicy()
    payload = request.payload

    match payload:
        case ItemClaimPayload():
            tags = ""
            if policy.is_high_value(payload.item_value):
                tags += " [HIGH VALUE]"
            if (
                payload.holding_enterprise_type is not None
                and payload.holding_enterprise_type != request.home_enterprise_type
            ):
                tags += f" [{payload.holding_enterprise_name or 'External'}]"
            return f"Item Claim: {payload.item_name}{tags} - Claimed by {request.requester_name}"
        case CrossCampusTransferPayload():
            return (
                f"Cross-Campus Transfer: {payload.item_name} from "
                f"{payload.source_campus_name} to {payload.destination_campus_name} "
                f"for student {payload.student_name}"
            )
        case TransitToUniversityTransferPayload():
            return (
                f"Transit Transfer: {payload.item_name} from MBTA {payload.station_name} "
                f"to {payload.university_name} for student {payload.student_name}"
            )
        case AirportToUniversityTransferPayload():
            secure = " [SECURE AREA]" if payload.found_in_secure_area else ""
            return (
                f"Airport Transfer: {payload.item_name} from {payload.terminal_number} "
                f"to {payload.university_name} for student {payload.student_name}{secure}"
            )
        case MBTAToAirportEmergencyPayload():
            return (
                f"EMERGENCY: {payload.item_name} from MBTA "
                f"{payload.mbta_station_name or 'Station'} to Logan "
                f"{payload.airport_terminal or 'Airport'} for flight "
                f"{payload.flight_number or 'Unknown'} ({payload.traveler_name or 'Traveler'})"
            )
        case PoliceEvidencePayload():
            urgent = " [URGENT]" if payload.urgency == EvidenceUrgency.URGENT else ""
            return (
                f"Police Verification: {payload.item_name} from "
                f"{payload.source_enterprise_name} - {payload.verification_reason}{urgent}"
            )
        case DisputePayload():
            return (
                f"DISPUTE: {payload.item_name} - {len(payload.claimants)} claimants from "
                f"{len(payload.involved_enterprise_names)} enterprises"
            )
        case _:
            raise InternalConsistencyError(
                request.request_id,
                f"no summary for payload type {type(payload).__name__}",
            )
