"""
Pure domain layer.

Value objects and protocols with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the injectable Clock itself)
- I/O

All domain objects are immutable.
"""

from workrequest_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SequentialClock,
    SystemClock,
)
from workrequest_kernel.domain.collaborators import (
    IdentityProvider,
    NotificationSink,
    TrustOutcome,
    TrustScoreAdjuster,
    WorkRequestRepository,
)
from workrequest_kernel.domain.dispute import (
    Claimant,
    ClaimStatus,
    DisputePayload,
    DisputeType,
    EvidenceItem,
    EvidenceKind,
    EvidenceVerdict,
    PanelMember,
    ResolutionDecision,
    ResolutionStatus,
)
from workrequest_kernel.domain.payloads import (
    PAYLOAD_BY_REQUEST_TYPE,
    REQUEST_TYPE_BY_PAYLOAD,
    AirportToUniversityTransferPayload,
    CrossCampusTransferPayload,
    CustodyLocation,
    EvidenceUrgency,
    GateHoldStatus,
    ItemClaimPayload,
    MBTAToAirportEmergencyPayload,
    PoliceEvidencePayload,
    RequestPayload,
    RequestType,
    TransitToUniversityTransferPayload,
    VerificationStatus,
)
from workrequest_kernel.domain.policy import (
    ChainPolicy,
    CustodyPolicy,
    DisputePolicy,
    EnginePolicy,
    KeywordRule,
    PriorityPolicy,
    SlaPolicy,
    TrustPolicy,
)
from workrequest_kernel.domain.roles import (
    DEFAULT_ENTERPRISE_TYPE,
    ApprovalChain,
    EnterpriseType,
    Role,
)
from workrequest_kernel.domain.work_request import (
    AWAITING_APPROVAL_STATUSES,
    REQUEST_TRANSITIONS,
    TERMINAL_REQUEST_STATUSES,
    RequestAction,
    RequestPriority,
    RequestStatus,
    TransitionRecord,
    WorkRequest,
)

__all__ = [
    "AWAITING_APPROVAL_STATUSES",
    "AirportToUniversityTransferPayload",
    "ChainPolicy",
    "ApprovalChain",
    "ClaimStatus",
    "Claimant",
    "Clock",
    "CrossCampusTransferPayload",
    "CustodyLocation",
    "CustodyPolicy",
    "DEFAULT_ENTERPRISE_TYPE",
    "DeterministicClock",
    "DisputePayload",
    "DisputePolicy",
    "DisputeType",
    "EnginePolicy",
    "EnterpriseType",
    "EvidenceItem",
    "EvidenceKind",
    "EvidenceUrgency",
    "EvidenceVerdict",
    "GateHoldStatus",
    "IdentityProvider",
    "ItemClaimPayload",
    "KeywordRule",
    "MBTAToAirportEmergencyPayload",
    "NotificationSink",
    "PAYLOAD_BY_REQUEST_TYPE",
    "PanelMember",
    "PoliceEvidencePayload",
    "PriorityPolicy",
    "REQUEST_TRANSITIONS",
    "REQUEST_TYPE_BY_PAYLOAD",
    "RequestAction",
    "RequestPayload",
    "RequestPriority",
    "RequestStatus",
    "RequestType",
    "ResolutionDecision",
    "ResolutionStatus",
    "Role",
    "SequentialClock",
    "SlaPolicy",
    "SystemClock",
    "TERMINAL_REQUEST_STATUSES",
    "TransitToUniversityTransferPayload",
    "TransitionRecord",
    "TrustOutcome",
    "TrustPolicy",
    "TrustScoreAdjuster",
    "VerificationStatus",
    "WorkRequest",
    "WorkRequestRepository",
]
