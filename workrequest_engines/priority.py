"""
Automatic priority at creation (``workrequest_engines.priority``).

Pure.  Applied by the request service only while the request is still at
NORMAL, after trust screening has had the chance to raise it.
"""

from __future__ import annotations

from workrequest_engines.tracer import traced_engine
from workrequest_kernel.domain.payloads import (
    AirportToUniversityTransferPayload,
    ItemClaimPayload,
    PoliceEvidencePayload,
)
from workrequest_kernel.domain.policy import ChainPolicy, PriorityPolicy
from workrequest_kernel.domain.work_request import RequestPriority, WorkRequest


@traced_engine("priority", "1.0")
def determine_priority(
    request: WorkRequest,
    policy: PriorityPolicy | None = None,
    chain_policy: ChainPolicy | None = None,
) -> RequestPriority:
    """
    Priority implied by the request's content.

    - Item claim over the high-value threshold: HIGH, or URGENT above the
      urgent threshold.
    - Police evidence: URGENT for a stolen check, HIGH otherwise.
    - Airport transfer of a secure-area find: HIGH.
    - Anything else: NORMAL.
    """
    policy = policy or PriorityPolicy()
    chain_policy = chain_policy or ChainPolicy()

    match request.payload:
        case ItemClaimPayload(item_value=value) if chain_policy.is_high_value(value):
            if value > policy.urgent_value_threshold:
                return RequestPriority.URGENT
            return RequestPriority.HIGH
        case PoliceEvidencePayload(is_stolen_check=True):
            return RequestPriority.URGENT
        case PoliceEvidencePayload():
            return RequestPriority.HIGH
        case AirportToUniversityTransferPayload(found_in_secure_area=True):
            return RequestPriority.HIGH
        case _:
            return RequestPriority.NORMAL
