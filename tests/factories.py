"""Builders for valid requests of every variant."""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from workrequest_kernel.domain.dispute import Claimant, DisputePayload, PanelMember
from workrequest_kernel.domain.payloads import (
    AirportToUniversityTransferPayload,
    CrossCampusTransferPayload,
    ItemClaimPayload,
    MBTAToAirportEmergencyPayload,
    PoliceEvidencePayload,
    TransitToUniversityTransferPayload,
)
from workrequest_kernel.domain.roles import EnterpriseType
from workrequest_kernel.domain.work_request import WorkRequest

T0 = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def make_claim(
    requester_id: str = "student-1",
    item_id: str = "item-100",
    value: str = "120",
    holding: EnterpriseType | None = None,
    **overrides,
) -> WorkRequest:
    payload = ItemClaimPayload(
        item_id=item_id,
        item_name="Blue backpack",
        item_category="Bags",
        item_value=Decimal(value),
        claim_details="Left it in the library on Monday",
        proof_description="Photo of me wearing it",
        identifying_features="Name tag inside the front pocket",
        holding_enterprise_type=holding,
    )
    fields = dict(
        payload=payload,
        requester_id=requester_id,
        requester_name=requester_id.replace("-", " ").title(),
        requester_email=f"{requester_id}@example.edu",
        requester_enterprise_id="UNI",
    )
    fields.update(overrides)
    return WorkRequest(**fields)


def make_cross_campus(
    requester_id: str = "coord-a",
    source_org: str = "org-north",
    target_org: str = "org-south",
    destination_name: str = "South Campus",
    destination_type: EnterpriseType | None = None,
) -> WorkRequest:
    payload = CrossCampusTransferPayload(
        item_id="item-200",
        item_name="Laptop charger",
        source_campus_id="north",
        source_campus_name="North Campus",
        source_coordinator_id=requester_id,
        destination_campus_name=destination_name,
        destination_enterprise_type=destination_type,
        student_id="student-9",
        student_name="Sam Student",
        pickup_location="South library desk",
    )
    return WorkRequest(
        payload=payload,
        requester_id=requester_id,
        requester_name="Coordinator A",
        requester_organization_id=source_org,
        target_organization_id=target_org,
    )


def make_transit(requester_id: str = "station-1") -> WorkRequest:
    payload = TransitToUniversityTransferPayload(
        item_id="item-300",
        item_name="Umbrella",
        station_manager_id=requester_id,
        station_name="Park Street",
        transit_line="Red",
        campus_coordinator_id="coord-a",
        campus_pickup_location="Student center",
        student_id="student-1",
        student_name="Student One",
    )
    return WorkRequest(
        payload=payload,
        requester_id=requester_id,
        requester_enterprise_type=EnterpriseType.PUBLIC_TRANSIT,
    )


def make_airport(secure_area: bool = False, security_notes: tuple[str, ...] = ()) -> WorkRequest:
    payload = AirportToUniversityTransferPayload(
        item_id="item-400",
        item_name="Passport",
        item_value=Decimal("100"),
        airport_specialist_id="airport-1",
        terminal_number="B",
        airport_incident_number="LOG-77",
        found_in_secure_area=secure_area,
        campus_coordinator_id="coord-a",
        campus_pickup_location="Student center",
        student_id="student-1",
        security_notes=security_notes,
    )
    return WorkRequest(
        payload=payload,
        requester_id="airport-1",
        requester_enterprise_type=EnterpriseType.AIRPORT,
    )


def make_emergency(requester_id: str = "station-1") -> WorkRequest:
    payload = MBTAToAirportEmergencyPayload(
        item_id="item-500",
        item_name="Passport",
        mbta_station_name="Airport Station",
        mbta_station_manager_id=requester_id,
        traveler_name="Terry Traveler",
        flight_number="DL 1234",
        airline="Delta",
        airport_terminal="A",
        airport_gate="A12",
    )
    return WorkRequest(
        payload=payload,
        requester_id=requester_id,
        requester_enterprise_type=EnterpriseType.PUBLIC_TRANSIT,
    )


def make_police(stolen_check: bool = False, serial: str = "SN-1") -> WorkRequest:
    payload = PoliceEvidencePayload(
        item_id="item-600",
        item_name="Phone",
        estimated_value=Decimal("900"),
        serial_number=serial,
        coordinator_id="coord-a",
        verification_reason="High value phone turned in",
        is_stolen_check=stolen_check,
        is_high_value_verification=True,
    )
    return WorkRequest(payload=payload, requester_id="coord-a")


def make_claimant(claimant_id: str, name: str | None = None, enterprise_id: str = "UNI") -> Claimant:
    return Claimant(
        claimant_id=claimant_id,
        name=name or claimant_id.upper(),
        enterprise_id=enterprise_id,
        enterprise_name=enterprise_id,
        submitted_at=T0,
    )


def make_dispute(
    claimant_ids: tuple[str, ...] = ("alice", "bob"),
    panel_ids: tuple[str, ...] = ("p1", "p2", "p3"),
    votes_required: int = 3,
) -> WorkRequest:
    payload = DisputePayload(
        item_id="item-700",
        item_name="Watch",
        estimated_value=Decimal("300"),
        claimants=tuple(make_claimant(cid) for cid in claimant_ids),
        involved_enterprise_ids=("UNI",),
        panel=tuple(PanelMember(member_id=pid, name=pid.upper()) for pid in panel_ids),
        panel_votes_required=votes_required,
        dispute_reason="Two students claim the same watch",
    )
    return WorkRequest(payload=payload, requester_id="SYSTEM")
