"""
Engine policy values (``workrequest_kernel.domain.policy``).

Responsibility
--------------
Frozen policy objects the pure engines are parameterized with: chain
resolution tables, SLA targets, automatic priority thresholds, trust
scoring, dispute panel sizing and custody security rules.  Defaults carry
the production values; ``workrequest_config`` builds overridden instances
from YAML.

Architecture position
---------------------
**Kernel domain layer** -- pure value objects.  ZERO I/O.

Invariants enforced
-------------------
* ``destination_keywords`` is ordered; the first matching rule wins.  The
  default order is transit, airport, police.
* Trust deltas are applied with clamping to ``[min_score, max_score]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.roles import EnterpriseType, Role
from workrequest_kernel.domain.work_request import RequestPriority


@dataclass(frozen=True)
class KeywordRule:
    """Destination-name keywords that select an approver role."""

    role: Role
    keywords: tuple[str, ...]

    def matches(self, text: str) -> bool:
        lowered = text.lower()
        return any(k in lowered for k in self.keywords)


DEFAULT_DESTINATION_KEYWORDS: tuple[KeywordRule, ...] = (
    KeywordRule(Role.MBTA_STATION_MANAGER, ("mbta", "transit", "transportation", "station")),
    KeywordRule(Role.AIRPORT_SPECIALIST, ("airport", "logan")),
    KeywordRule(Role.POLICE_EVIDENCE_CUSTODIAN, ("police", "law enforcement", "nupd", "bpd")),
)


@dataclass(frozen=True)
class ChainPolicy:
    """Tables the chain resolver consults."""

    high_value_threshold: Decimal = Decimal("500")
    # Holding enterprise type -> extra approver (None: no extra step).
    holding_roles: tuple[tuple[EnterpriseType, Role | None], ...] = (
        (EnterpriseType.PUBLIC_TRANSIT, Role.STATION_MANAGER),
        (EnterpriseType.AIRPORT, Role.AIRPORT_LOST_FOUND_SPECIALIST),
        (EnterpriseType.LAW_ENFORCEMENT, Role.POLICE_EVIDENCE_CUSTODIAN),
        (EnterpriseType.HIGHER_EDUCATION, None),
    )
    # Explicit destination enterprise type -> destination approver.
    destination_roles: tuple[tuple[EnterpriseType, Role], ...] = (
        (EnterpriseType.PUBLIC_TRANSIT, Role.MBTA_STATION_MANAGER),
        (EnterpriseType.AIRPORT, Role.AIRPORT_SPECIALIST),
        (EnterpriseType.LAW_ENFORCEMENT, Role.POLICE_EVIDENCE_CUSTODIAN),
        (EnterpriseType.HIGHER_EDUCATION, Role.CAMPUS_COORDINATOR),
    )
    destination_keywords: tuple[KeywordRule, ...] = DEFAULT_DESTINATION_KEYWORDS
    default_destination_role: Role = Role.CAMPUS_COORDINATOR

    def holding_role(self, enterprise_type: EnterpriseType) -> Role | None:
        return dict(self.holding_roles).get(enterprise_type)

    def destination_role_for_type(self, enterprise_type: EnterpriseType) -> Role:
        return dict(self.destination_roles).get(enterprise_type, self.default_destination_role)

    def is_high_value(self, value: Decimal) -> bool:
        return value > self.high_value_threshold


@dataclass(frozen=True)
class SlaPolicy:
    """Priority -> target hours before a waiting request is overdue."""

    urgent_hours: int = 4
    high_hours: int = 24
    normal_hours: int = 72
    low_hours: int = 168
    # Remaining fraction of the target below which a request is "approaching".
    approaching_fraction: float = 0.2

    def target_hours(self, priority: RequestPriority) -> int:
        match priority:
            case RequestPriority.URGENT:
                return self.urgent_hours
            case RequestPriority.HIGH:
                return self.high_hours
            case RequestPriority.NORMAL:
                return self.normal_hours
            case RequestPriority.LOW:
                return self.low_hours


@dataclass(frozen=True)
class PriorityPolicy:
    """Thresholds for automatic priority at creation."""

    urgent_value_threshold: Decimal = Decimal("1000")
    low_trust_threshold: float = 30.0
    caution_trust_threshold: float = 50.0


@dataclass(frozen=True)
class TrustPolicy:
    """Trust score deltas and rejection-reason classification."""

    deltas: tuple[tuple[TrustOutcome, int], ...] = (
        (TrustOutcome.RETURN, 10),
        (TrustOutcome.HELPED_RETURN, 5),
        (TrustOutcome.REQUEST_COMPLETED, 3),
        (TrustOutcome.CLAIM_REJECTED, -5),
        (TrustOutcome.FALSE_CLAIM, -25),
    )
    min_score: float = 0.0
    max_score: float = 100.0
    false_claim_keywords: tuple[str, ...] = ("fraud", "false", "fake", "stolen")
    rejected_claim_keywords: tuple[str, ...] = ("invalid", "incomplete", "insufficient")

    def delta(self, outcome: TrustOutcome) -> int:
        return dict(self.deltas)[outcome]


@dataclass(frozen=True)
class DisputePolicy:
    panel_votes_required: int = 3
    # Claimant count at which an auto-created dispute becomes URGENT.
    escalation_claimant_count: int = 3


@dataclass(frozen=True)
class CustodyPolicy:
    """Security rules for custody handoffs."""

    enhanced_security_value: Decimal = Decimal("1000")
    enhanced_clearance_levels: tuple[str, ...] = ("enhanced", "tsa")
    secure_area_note_min_length: int = 20
    evidence_case_prefix: str = "BPD-EVD"


@dataclass(frozen=True)
class EnginePolicy:
    """All policy values one engine invocation needs."""

    chain: ChainPolicy = field(default_factory=ChainPolicy)
    sla: SlaPolicy = field(default_factory=SlaPolicy)
    priority: PriorityPolicy = field(default_factory=PriorityPolicy)
    trust: TrustPolicy = field(default_factory=TrustPolicy)
    dispute: DisputePolicy = field(default_factory=DisputePolicy)
    custody: CustodyPolicy = field(default_factory=CustodyPolicy)
