"""
Chain Resolver -- Pure computation of a request's approval chain.

Responsibility:
    Maps a work request (its variant payload plus requester affiliation) to
    the ordered tuple of roles that must approve it, one at a time.

Architecture position:
    Engines -- pure functional core, zero I/O.  Depends only on kernel
    domain types.

Invariants enforced:
    - Exhaustive dispatch over the closed payload union; an unknown payload
      type is an internal consistency fault.
    - No role appears twice in an item claim chain.
    - Result is a function of the request's fields and the policy only.

Failure modes:
    - InternalConsistencyError for a payload type outside the union.
"""

from __future__ import annotations

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
from workrequest_kernel.domain.policy import ChainPolicy
from workrequest_kernel.domain.roles import ApprovalChain, EnterpriseType, Role
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import InternalConsistencyError

TRANSIT_TO_UNIVERSITY_CHAIN: ApprovalChain = (
    Role.STATION_MANAGER,
    Role.CAMPUS_COORDINATOR,
    Role.STUDENT,
)

AIRPORT_TO_UNIVERSITY_CHAIN: ApprovalChain = (
    Role.AIRPORT_LOST_FOUND_SPECIALIST,
    Role.CAMPUS_COORDINATOR,
    Role.POLICE_EVIDENCE_CUSTODIAN,
    Role.STUDENT,
)

MBTA_TO_AIRPORT_EMERGENCY_CHAIN: ApprovalChain = (
    Role.STATION_MANAGER,
    Role.AIRPORT_LOST_FOUND_SPECIALIST,
)

POLICE_EVIDENCE_CHAIN: ApprovalChain = (
    Role.CAMPUS_COORDINATOR,
    Role.POLICE_EVIDENCE_CUSTODIAN,
)

# The panel adjudicates; this single step only gates the dispute record.
DISPUTE_CHAIN: ApprovalChain = (Role.POLICE_EVIDENCE_CUSTODIAN,)


@traced_engine("chain_resolver", "1.0", fingerprint_fields=("request", "policy"))
def resolve_chain(request: WorkRequest, policy: ChainPolicy | None = None) -> ApprovalChain:
    """
    Compute the approval chain for ``request``.

    Args:
        request: The work request.
        policy: Chain tables; defaults to the production ``ChainPolicy``.

    Returns:
        Ordered tuple of roles.

    Raises:
        InternalConsistencyError: If the payload is not a known variant.
    """
    policy = policy or ChainPolicy()
    payload = request.payload

    match payload:
        case ItemClaimPayload():
            return item_claim_chain(payload, request.home_enterprise_type, policy)
        case CrossCampusTransferPayload():
            return (
                Role.CAMPUS_COORDINATOR,
                destination_role(payload, policy),
                Role.STUDENT,
            )
        case TransitToUniversityTransferPayload():
            return TRANSIT_TO_UNIVERSITY_CHAIN
        case AirportToUniversityTransferPayload():
            return AIRPORT_TO_UNIVERSITY_CHAIN
        case MBTAToAirportEmergencyPayload():
            return MBTA_TO_AIRPORT_EMERGENCY_CHAIN
        case PoliceEvidencePayload():
            return POLICE_EVIDENCE_CHAIN
        case DisputePayload():
            return DISPUTE_CHAIN
        case _:
            raise InternalConsistencyError(
                request.request_id,
                f"no approval chain for payload type {type(payload).__name__}",
            )


def item_claim_chain(
    payload: ItemClaimPayload,
    home_type: EnterpriseType,
    policy: ChainPolicy,
) -> ApprovalChain:
    """Coordinator first, then the holder's custodian, then police for high value."""
    chain: list[Role] = [Role.CAMPUS_COORDINATOR]

    holding = payload.holding_enterprise_type
    if holding is not None and holding != home_type:
        extra = policy.holding_role(holding)
        if extra is not None and extra not in chain:
            chain.append(extra)

    if policy.is_high_value(payload.item_value) and Role.POLICE_EVIDENCE_CUSTODIAN not in chain:
        chain.append(Role.POLICE_EVIDENCE_CUSTODIAN)

    return tuple(chain)


def requires_police_verification(
    payload: ItemClaimPayload,
    policy: ChainPolicy | None = None,
) -> bool:
    return (policy or ChainPolicy()).is_high_value(payload.item_value)


def destination_role(payload: CrossCampusTransferPayload, policy: ChainPolicy) -> Role:
    """
    Approver role at the receiving end of a cross-campus transfer.

    An explicit ``destination_enterprise_type`` wins.  Otherwise the
    destination name is matched against the keyword rules in order
    (transit, airport, police); no match means a campus coordinator.
    """
    if payload.destination_enterprise_type is not None:
        return policy.destination_role_for_type(payload.destination_enterprise_type)

    for rule in policy.destination_keywords:
        if rule.matches(payload.destination_campus_name):
            return rule.role
    return policy.default_destination_role


def next_required_role(chain: ApprovalChain, approval_step: int) -> Role | None:
    """Role for the current step, or None once the chain is exhausted."""
    if approval_step < len(chain):
        return chain[approval_step]
    return None


def needs_approval_from_role(
    request: WorkRequest,
    role: Role,
    policy: ChainPolicy | None = None,
) -> bool:
    """True if ``request`` is waiting on ``role`` at its current step."""
    if not request.is_awaiting_approval:
        return False
    return next_required_role(resolve_chain(request, policy), request.approval_step) == role
