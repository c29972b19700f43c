"""
Request validation (``workrequest_engines.validation``).

Responsibility
--------------
Per-variant completeness rules checked before a request is opened.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.

Failure modes
-------------
* ``validate_request`` returns a result listing the missing or invalid
  fields; it never raises for business rule violations.
* ``require_valid`` raises ``RequestValidationError`` carrying that list.
"""

from __future__ import annotations

from dataclasses import dataclass

from workrequest_engines.tracer import traced_engine
from workrequest_kernel.domain.dispute import DisputePayload
from workrequest_kernel.domain.payloads import (
    AirportToUniversityTransferPayload,
    CrossCampusTransferPayload,
    ItemClaimPayload,
    MBTAToAirportEmergencyPayload,
    PoliceEvidencePayload,
    TransitToUniversityTransferPayload,
)
from workrequest_kernel.domain.policy import ChainPolicy, CustodyPolicy
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import InternalConsistencyError, RequestValidationError


@dataclass(frozen=True)
class ValidationResult:
    missing: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.missing


def _blank(payload: object, *names: str) -> list[str]:
    return [name for name in names if not getattr(payload, name)]


@traced_engine("validation", "1.0")
def validate_request(
    request: WorkRequest,
    chain_policy: ChainPolicy | None = None,
    custody_policy: CustodyPolicy | None = None,
) -> ValidationResult:
    """Check the variant's required fields."""
    chain_policy = chain_policy or ChainPolicy()
    custody_policy = custody_policy or CustodyPolicy()
    payload = request.payload
    missing: list[str] = []
    if not request.requester_id:
        missing.append("requester_id")

    match payload:
        case ItemClaimPayload():
            missing += _blank(payload, "item_id", "claim_details", "identifying_features")
        case CrossCampusTransferPayload():
            # The destination coordinator is found by routing, so it is optional.
            missing += _blank(
                payload, "item_id", "source_coordinator_id", "pickup_location", "student_name"
            )
        case TransitToUniversityTransferPayload():
            missing += _blank(
                payload,
                "item_id",
                "station_manager_id",
                "campus_coordinator_id",
                "student_id",
                "station_name",
                "campus_pickup_location",
            )
        case AirportToUniversityTransferPayload():
            missing += _blank(
                payload,
                "item_id",
                "airport_specialist_id",
                "campus_coordinator_id",
                "student_id",
                "terminal_number",
                "airport_incident_number",
                "campus_pickup_location",
            )
            if payload.found_in_secure_area:
                written = "\n".join(payload.security_notes)
                if len(written) < custody_policy.secure_area_note_min_length:
                    missing.append("security_notes")
        case MBTAToAirportEmergencyPayload():
            missing += _blank(
                payload, "item_id", "mbta_station_manager_id", "mbta_station_name", "flight_number"
            )
        case PoliceEvidencePayload():
            missing += _blank(payload, "item_id", "coordinator_id", "verification_reason")
            if (
                payload.is_high_value_verification
                and chain_policy.is_high_value(payload.estimated_value)
                and not payload.serial_number
            ):
                missing.append("serial_number")
            if payload.is_stolen_check and not (
                payload.serial_number or payload.imei_number or payload.other_identifiers
            ):
                missing.append("identifiers")
        case DisputePayload():
            missing += _blank(payload, "item_id", "dispute_reason")
            if len(payload.claimants) < 2:
                missing.append("claimants")
        case _:
            raise InternalConsistencyError(
                request.request_id,
                f"no validation rules for payload type {type(payload).__name__}",
            )

    return ValidationResult(missing=tuple(missing))


def require_valid(request: WorkRequest, **policies) -> None:
    result = validate_request(request, **policies)
    if not result.is_valid:
        raise RequestValidationError(request.request_type.value, list(result.missing))
