"""
Dispute domain types (``workrequest_kernel.domain.dispute``).

Responsibility
--------------
Value objects for multi-claimant disputes: the claimants, the seated panel,
the evidence registry, and the dispute payload that owns them.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* Children are owned exclusively by their ``DisputePayload`` and held as
  tuples of frozen records.  They are changed only by the operations in
  ``workrequest_engines.dispute``, which return a new payload.
* ``panel_votes_received`` equals the number of seated members with
  ``has_voted`` set.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from workrequest_kernel.domain.roles import EnterpriseType


# =========================================================================
# Enumerations
# =========================================================================


class ClaimStatus(str, Enum):
    """Status of an individual claim inside a dispute."""

    SUBMITTED = "SUBMITTED"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"
    APPROVED = "APPROVED"


class ResolutionStatus(str, Enum):
    """Dispute resolution lifecycle."""

    PENDING = "PENDING"
    UNDER_REVIEW = "UNDER_REVIEW"
    RESOLVED = "RESOLVED"
    ESCALATED = "ESCALATED"


class ResolutionDecision(str, Enum):
    AWARDED = "AWARDED"
    ESCALATED_TO_POLICE = "ESCALATED_TO_POLICE"
    ADMIN_DECISION = "ADMIN_DECISION"
    POLICE_DECISION = "POLICE_DECISION"


class DisputeType(str, Enum):
    OWNERSHIP = "OWNERSHIP"
    PRIORITY = "PRIORITY"
    AUTHENTICITY = "AUTHENTICITY"


class EvidenceKind(str, Enum):
    RECEIPT = "RECEIPT"
    PHOTO = "PHOTO"
    SERIAL_NUMBER = "SERIAL_NUMBER"
    WITNESS_STATEMENT = "WITNESS_STATEMENT"
    OTHER = "OTHER"


class EvidenceVerdict(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"
    INCONCLUSIVE = "INCONCLUSIVE"


# =========================================================================
# Child records
# =========================================================================


@dataclass(frozen=True)
class Claimant:
    """One person claiming the disputed item."""

    claimant_id: str
    name: str
    email: str = ""
    enterprise_id: str | None = None
    enterprise_name: str | None = None
    organization_id: str | None = None
    trust_score: float = 50.0
    claim_description: str = ""
    proof_description: str = ""
    evidence_ids: tuple[str, ...] = ()
    claim_status: ClaimStatus = ClaimStatus.SUBMITTED
    submitted_at: datetime | None = None
    # Item claim request this claimant was derived from, if any.
    source_request_id: str | None = None


@dataclass(frozen=True)
class PanelMember:
    """One panel seat.  A member votes at most once."""

    member_id: str
    name: str
    role: str = ""
    enterprise_id: str | None = None
    enterprise_name: str | None = None
    has_voted: bool = False
    voted_for_claimant_id: str | None = None
    vote_reason: str | None = None
    voted_at: datetime | None = None


@dataclass(frozen=True)
class EvidenceItem:
    """A piece of evidence submitted to the dispute."""

    evidence_id: str
    submitted_by_id: str
    submitted_by_name: str
    kind: EvidenceKind
    description: str = ""
    claimant_id: str | None = None
    file_url: str | None = None
    submitted_at: datetime | None = None
    verdict: EvidenceVerdict | None = None
    verified_by_id: str | None = None
    verified_at: datetime | None = None
    verification_notes: str | None = None

    @property
    def is_verified(self) -> bool:
        return self.verdict is not None


# =========================================================================
# Dispute payload
# =========================================================================


@dataclass(frozen=True)
class DisputePayload:
    """Multi-enterprise dispute over one item.

    Resolution fields stay empty until the panel reaches its vote count or a
    manual or police decision is recorded.
    """

    item_id: str
    item_name: str = ""
    item_description: str = ""
    item_category: str = ""
    estimated_value: Decimal = Decimal("0")
    item_current_location: str = ""
    holding_enterprise_id: str | None = None
    holding_enterprise_name: str | None = None
    holding_enterprise_type: EnterpriseType | None = None

    claimants: tuple[Claimant, ...] = ()
    involved_enterprise_ids: tuple[str, ...] = ()
    involved_enterprise_names: tuple[str, ...] = ()

    panel: tuple[PanelMember, ...] = ()
    panel_votes_required: int = 3
    panel_votes_received: int = 0

    evidence: tuple[EvidenceItem, ...] = ()

    dispute_type: DisputeType = DisputeType.OWNERSHIP
    dispute_reason: str = ""
    initiated_by_id: str | None = None
    initiated_by_name: str | None = None

    resolution_status: ResolutionStatus = ResolutionStatus.PENDING
    resolution_decision: ResolutionDecision | None = None
    winning_claimant_id: str | None = None
    winning_claimant_name: str | None = None
    resolution_reason: str | None = None
    resolution_notes: tuple[str, ...] = ()

    police_involved: bool = False
    police_officer_id: str | None = None
    police_officer_name: str | None = None
    police_report_number: str | None = None
    police_findings: str | None = None

    dispute_started_at: datetime | None = None
    evidence_deadline: datetime | None = None
    panel_review_at: datetime | None = None
    resolution_deadline: datetime | None = None

    def claimant(self, claimant_id: str) -> Claimant | None:
        return next((c for c in self.claimants if c.claimant_id == claimant_id), None)

    def panel_member(self, member_id: str) -> PanelMember | None:
        return next((m for m in self.panel if m.member_id == member_id), None)

    def evidence_item(self, evidence_id: str) -> EvidenceItem | None:
        return next((e for e in self.evidence if e.evidence_id == evidence_id), None)

    def evidence_for_claimant(self, claimant_id: str) -> tuple[EvidenceItem, ...]:
        return tuple(e for e in self.evidence if e.claimant_id == claimant_id)

    @property
    def all_votes_in(self) -> bool:
        return self.panel_votes_received >= self.panel_votes_required

    @property
    def is_resolved(self) -> bool:
        return self.resolution_status == ResolutionStatus.RESOLVED

    @property
    def is_escalated(self) -> bool:
        return self.resolution_status == ResolutionStatus.ESCALATED
