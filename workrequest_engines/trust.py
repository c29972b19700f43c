"""
Trust Scoring -- Pure trust-score arithmetic and screening.

Responsibility:
    Maps outcomes to score deltas, classifies rejection reasons, and screens
    a requester's standing before a request is opened.

Architecture position:
    Engines -- pure functional core, zero I/O.  The service reads scores
    through ``TrustScoreAdjuster`` and passes them in.

Invariants enforced:
    - Scores stay within ``[min_score, max_score]`` after any delta.
    - Screening checks run in a fixed order: flagged, under investigation,
      probation, low trust.  The first match wins.
"""

from __future__ import annotations

from dataclasses import dataclass

from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.policy import PriorityPolicy, TrustPolicy


@dataclass(frozen=True)
class TrustScreening:
    """Result of screening a requester."""

    score: float
    requires_flag: bool
    message: str

    @property
    def note(self) -> str:
        return f"LOW TRUST SCORE: {self.message}"


def apply_outcome(score: float, outcome: TrustOutcome, policy: TrustPolicy | None = None) -> float:
    """New score after ``outcome``, clamped."""
    policy = policy or TrustPolicy()
    adjusted = score + policy.delta(outcome)
    return max(policy.min_score, min(policy.max_score, adjusted))


def classify_rejection(reason: str, policy: TrustPolicy | None = None) -> TrustOutcome | None:
    """
    Trust outcome a rejection reason implies.

    Fraud-like wording is a FALSE_CLAIM, wording about an invalid or
    incomplete claim is CLAIM_REJECTED; other (policy) rejections carry no
    penalty and return None.
    """
    policy = policy or TrustPolicy()
    lowered = reason.lower()
    if any(k in lowered for k in policy.false_claim_keywords):
        return TrustOutcome.FALSE_CLAIM
    if any(k in lowered for k in policy.rejected_claim_keywords):
        return TrustOutcome.CLAIM_REJECTED
    return None


def screen_requester(
    score: float,
    flagged: bool,
    under_investigation: bool,
    policy: PriorityPolicy | None = None,
) -> TrustScreening:
    policy = policy or PriorityPolicy()
    shown = f"Score: {score:.0f}"

    if flagged:
        return TrustScreening(score, True, f"User is flagged for review ({shown})")
    if under_investigation:
        return TrustScreening(score, True, f"User is under active investigation ({shown})")
    if score < policy.low_trust_threshold:
        return TrustScreening(
            score, True, f"User on PROBATION - requires extra scrutiny ({shown})"
        )
    if score < policy.caution_trust_threshold:
        return TrustScreening(score, True, f"Low trust user - verify carefully ({shown})")
    return TrustScreening(score, False, f"Trust score acceptable ({score:.0f})")


def is_probation(screening: TrustScreening, policy: PriorityPolicy | None = None) -> bool:
    policy = policy or PriorityPolicy()
    return screening.score < policy.low_trust_threshold
