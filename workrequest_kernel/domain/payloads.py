"""
Request variant payloads (``workrequest_kernel.domain.payloads``).

Responsibility
--------------
One frozen dataclass per request variant.  The set of payload types is
closed: ``RequestPayload`` is the tagged union every engine matches on, and
``REQUEST_TYPE_BY_PAYLOAD`` is the tag each payload is stored under.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Note trails (tracking, transfer, security, delivery) are append-only
  tuples.  They grow only through ``workrequest_engines.custody``.
* ``MBTAToAirportEmergencyPayload`` requests are always URGENT (enforced
  when the request is opened, see ``workrequest_engines.lifecycle``).
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from workrequest_kernel.domain.dispute import DisputePayload
from workrequest_kernel.domain.roles import EnterpriseType


class RequestType(str, Enum):
    """Request variant tag."""

    ITEM_CLAIM = "ITEM_CLAIM"
    CROSS_CAMPUS_TRANSFER = "CROSS_CAMPUS_TRANSFER"
    TRANSIT_TO_UNIVERSITY_TRANSFER = "TRANSIT_TO_UNIVERSITY_TRANSFER"
    AIRPORT_TO_UNIVERSITY_TRANSFER = "AIRPORT_TO_UNIVERSITY_TRANSFER"
    MBTA_TO_AIRPORT_EMERGENCY = "MBTA_TO_AIRPORT_EMERGENCY"
    POLICE_EVIDENCE_REQUEST = "POLICE_EVIDENCE_REQUEST"
    MULTI_ENTERPRISE_DISPUTE = "MULTI_ENTERPRISE_DISPUTE"


# =========================================================================
# Item claim
# =========================================================================


@dataclass(frozen=True)
class ItemClaimPayload:
    """A student claims a found item is theirs."""

    item_id: str
    item_name: str = ""
    item_category: str = ""
    item_value: Decimal = Decimal("0")
    lost_item_id: str | None = None
    claim_details: str = ""
    proof_description: str = ""
    identifying_features: str = ""
    photo_url: str | None = None
    found_location: str = ""
    holding_enterprise_type: EnterpriseType | None = None
    holding_enterprise_name: str = ""

    def claim_confidence_score(self) -> int:
        """Score 0-100 from how much supporting detail the claimant gave."""
        score = 0
        if len(self.claim_details) > 50:
            score += 25
        if len(self.identifying_features) > 30:
            score += 25
        if self.proof_description:
            score += 25
        if self.photo_url:
            score += 25
        return score


# =========================================================================
# Transfers
# =========================================================================


@dataclass(frozen=True)
class CrossCampusTransferPayload:
    """Custody transfer between two campuses (or a campus and a partner).

    ``destination_enterprise_type``, when set, decides the destination
    approver role.  Without it the role is inferred from the destination
    name.
    """

    item_id: str
    item_name: str = ""
    source_campus_id: str = ""
    source_campus_name: str = ""
    source_coordinator_id: str = ""
    source_coordinator_name: str = ""
    destination_campus_id: str = ""
    destination_campus_name: str = ""
    destination_coordinator_id: str = ""
    destination_coordinator_name: str = ""
    destination_enterprise_type: EnterpriseType | None = None
    student_id: str = ""
    student_name: str = ""
    student_email: str = ""
    pickup_location: str = ""
    transfer_method: str = ""
    tracking_notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class TransitToUniversityTransferPayload:
    """Item found on the transit system, handed to a university for pickup."""

    item_id: str
    item_name: str = ""
    item_category: str = ""
    station_manager_id: str = ""
    station_manager_name: str = ""
    station_name: str = ""
    transit_line: str = ""
    found_location: str = ""
    incident_number: str = ""
    university_name: str = ""
    campus_coordinator_id: str = ""
    campus_coordinator_name: str = ""
    campus_pickup_location: str = ""
    student_id: str = ""
    student_name: str = ""
    student_email: str = ""
    requires_id_verification: bool = True
    transfer_notes: tuple[str, ...] = ()


@dataclass(frozen=True)
class AirportToUniversityTransferPayload:
    """Item found at the airport, routed to a university through police."""

    item_id: str
    item_name: str = ""
    item_value: Decimal = Decimal("0")
    airport_specialist_id: str = ""
    airport_specialist_name: str = ""
    terminal_number: str = ""
    airport_area: str = ""
    airport_incident_number: str = ""
    found_in_secure_area: bool = False
    security_clearance_level: str = "Standard"
    university_name: str = ""
    campus_coordinator_id: str = ""
    campus_coordinator_name: str = ""
    campus_pickup_location: str = ""
    police_officer_id: str | None = None
    police_officer_name: str | None = None
    student_id: str = ""
    student_name: str = ""
    student_email: str = ""
    security_notes: tuple[str, ...] = ()
    transfer_notes: tuple[str, ...] = ()


class CustodyLocation(str, Enum):
    AT_MBTA = "AT_MBTA"
    IN_TRANSIT = "IN_TRANSIT"
    AT_AIRPORT = "AT_AIRPORT"
    DELIVERED = "DELIVERED"


class GateHoldStatus(str, Enum):
    NOT_REQUESTED = "NOT_REQUESTED"
    REQUESTED = "REQUESTED"
    APPROVED = "APPROVED"
    DENIED = "DENIED"


@dataclass(frozen=True)
class MBTAToAirportEmergencyPayload:
    """Time-critical document handoff from a transit station to a departing flight."""

    item_id: str
    item_name: str = ""
    item_category: str = ""
    mbta_station_name: str = ""
    mbta_station_manager_id: str = ""
    mbta_station_manager_name: str = ""
    transit_line: str = ""
    mbta_incident_number: str = ""
    airport_terminal: str = ""
    airport_gate: str = ""
    airport_specialist_id: str | None = None
    airport_specialist_name: str | None = None
    traveler_name: str = ""
    traveler_phone: str = ""
    traveler_email: str = ""
    flight_number: str = ""
    flight_departure_time: str = ""
    airline: str = ""
    document_type: str | None = None
    courier_method: str = ""
    police_escort_requested: bool = False
    gate_hold_status: GateHoldStatus = GateHoldStatus.NOT_REQUESTED
    location_status: CustodyLocation = CustodyLocation.AT_MBTA
    pickup_confirmation_code: str | None = None
    delivery_confirmation_code: str | None = None
    delivery_notes: tuple[str, ...] = ()

    def is_passport_emergency(self) -> bool:
        return (self.document_type or "").upper() == "PASSPORT" or (
            "passport" in self.item_name.lower()
        )


# =========================================================================
# Police evidence verification
# =========================================================================


class VerificationStatus(str, Enum):
    PENDING = "PENDING"
    CLEAR = "CLEAR"
    FLAGGED = "FLAGGED"
    STOLEN = "STOLEN"


class EvidenceUrgency(str, Enum):
    STANDARD = "STANDARD"
    HIGH = "HIGH"
    URGENT = "URGENT"


@dataclass(frozen=True)
class PoliceEvidencePayload:
    """Request for police to check an item against stolen-property records."""

    item_id: str
    item_name: str = ""
    item_category: str = ""
    estimated_value: Decimal = Decimal("0")
    serial_number: str = ""
    imei_number: str = ""
    model_number: str = ""
    brand_name: str = ""
    other_identifiers: str = ""
    source_enterprise_name: str = ""
    found_location: str = ""
    coordinator_id: str = ""
    coordinator_name: str = ""
    police_officer_id: str | None = None
    police_officer_name: str | None = None
    police_department: str = ""
    verification_reason: str = ""
    is_stolen_check: bool = False
    is_high_value_verification: bool = False
    verification_status: VerificationStatus = VerificationStatus.PENDING
    verification_notes: str | None = None
    matches_stolen_report: bool = False
    stolen_report_id: str | None = None
    urgency: EvidenceUrgency = EvidenceUrgency.STANDARD
    case_number: str | None = None

    def is_verification_complete(self) -> bool:
        return self.verification_status in (
            VerificationStatus.CLEAR,
            VerificationStatus.STOLEN,
        )

    def requires_immediate_action(self) -> bool:
        return (
            self.verification_status in (VerificationStatus.STOLEN, VerificationStatus.FLAGGED)
            or self.urgency == EvidenceUrgency.URGENT
        )


# =========================================================================
# Tagged union
# =========================================================================

RequestPayload = (
    ItemClaimPayload
    | CrossCampusTransferPayload
    | TransitToUniversityTransferPayload
    | AirportToUniversityTransferPayload
    | MBTAToAirportEmergencyPayload
    | PoliceEvidencePayload
    | DisputePayload
)

REQUEST_TYPE_BY_PAYLOAD: dict[type, RequestType] = {
    ItemClaimPayload: RequestType.ITEM_CLAIM,
    CrossCampusTransferPayload: RequestType.CROSS_CAMPUS_TRANSFER,
    TransitToUniversityTransferPayload: RequestType.TRANSIT_TO_UNIVERSITY_TRANSFER,
    AirportToUniversityTransferPayload: RequestType.AIRPORT_TO_UNIVERSITY_TRANSFER,
    MBTAToAirportEmergencyPayload: RequestType.MBTA_TO_AIRPORT_EMERGENCY,
    PoliceEvidencePayload: RequestType.POLICE_EVIDENCE_REQUEST,
    DisputePayload: RequestType.MULTI_ENTERPRISE_DISPUTE,
}

PAYLOAD_BY_REQUEST_TYPE: dict[RequestType, type] = {
    v: k for k, v in REQUEST_TYPE_BY_PAYLOAD.items()
}
