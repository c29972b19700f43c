"""
Dispute Engine -- Pure multi-claimant dispute resolution.

Responsibility:
    Claimant registry, panel seating, evidence registry, vote recording,
    tally/majority/escalation, and the manual or police decisions that close
    an escalated dispute.

Architecture position:
    Engines -- pure functional core, zero I/O.  Operates on ``WorkRequest``
    instances whose payload is a ``DisputePayload`` and returns revised
    requests through ``lifecycle.update_payload``.

Invariants enforced:
    - A panel member votes at most once; a second vote raises
      DuplicateVoteError.
    - ``panel_votes_received`` counts seated members who have voted.
    - Once ``panel_votes_received >= panel_votes_required`` the dispute
      moves to UNDER_REVIEW and is resolved immediately: a claimant whose
      vote count is the unique maximum and exceeds
      ``panel_votes_required // 2`` is AWARDED; anything else ESCALATES
      with police involvement.
    - Evidence verification never triggers resolution.
    - Claimant additions keep ``involved_enterprise_ids`` de-duplicated.

Failure modes:
    - WrongRequestTypeError: operation on a non-dispute request.
    - DuplicateClaimantError, DuplicatePanelMemberError or
      DuplicateEvidenceError on re-registration.
    - PanelMemberNotFoundError / UnknownClaimantError / EvidenceNotFoundError
      for ids that are not in the dispute.
    - DisputeClosedError: vote on a RESOLVED dispute.
    - PolicyAmbiguityError: ``require_winner`` on a dispute with no winner.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime

from workrequest_engines.lifecycle import CompletionPath, complete, update_payload
from workrequest_engines.tracer import traced_engine
from workrequest_kernel.domain.dispute import (
    Claimant,
    ClaimStatus,
    DisputePayload,
    DisputeType,
    EvidenceItem,
    EvidenceVerdict,
    PanelMember,
    ResolutionDecision,
    ResolutionStatus,
)
from workrequest_kernel.domain.payloads import ItemClaimPayload, RequestType
from workrequest_kernel.domain.policy import DisputePolicy
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import (
    DisputeClosedError,
    DuplicateClaimantError,
    DuplicateEvidenceError,
    DuplicatePanelMemberError,
    DuplicateVoteError,
    EvidenceNotFoundError,
    PanelMemberNotFoundError,
    PolicyAmbiguityError,
    UnknownClaimantError,
    WrongRequestTypeError,
)

NO_MAJORITY_REASON = "No clear majority. Escalated to police for further investigation."


def dispute_of(request: WorkRequest) -> DisputePayload:
    """The dispute payload of ``request``, or WrongRequestTypeError."""
    if not isinstance(request.payload, DisputePayload):
        raise WrongRequestTypeError(
            request.request_id,
            RequestType.MULTI_ENTERPRISE_DISPUTE.value,
            request.request_type.value,
        )
    return request.payload


def _stamp(now: datetime, note: str) -> str:
    return f"[{now.isoformat()}] {note}"


# =========================================================================
# Construction
# =========================================================================


def claimant_from_claim(
    claim: WorkRequest,
    trust_score: float,
    submitted_at: datetime,
    enterprise_name: str | None = None,
) -> Claimant:
    """Derive a dispute claimant from an item claim request."""
    payload = claim.payload
    assert isinstance(payload, ItemClaimPayload)
    return Claimant(
        claimant_id=claim.requester_id,
        name=claim.requester_name,
        email=claim.requester_email,
        enterprise_id=claim.requester_enterprise_id,
        enterprise_name=enterprise_name or claim.requester_enterprise_id,
        organization_id=claim.requester_organization_id,
        trust_score=trust_score,
        claim_description=payload.claim_details,
        proof_description=payload.proof_description,
        submitted_at=submitted_at,
        source_request_id=str(claim.request_id),
    )


def dispute_payload_for_item(
    claim: ItemClaimPayload,
    claimants: tuple[Claimant, ...],
    now: datetime,
    policy: DisputePolicy | None = None,
) -> DisputePayload:
    """Ownership dispute opened automatically over competing claims."""
    policy = policy or DisputePolicy()
    payload = DisputePayload(
        item_id=claim.item_id,
        item_name=claim.item_name,
        item_description=claim.claim_details,
        item_category=claim.item_category,
        estimated_value=claim.item_value,
        holding_enterprise_name=claim.holding_enterprise_name or None,
        holding_enterprise_type=claim.holding_enterprise_type,
        panel_votes_required=policy.panel_votes_required,
        dispute_type=DisputeType.OWNERSHIP,
        dispute_reason="Multiple claimants for the same item",
        initiated_by_id="SYSTEM",
        initiated_by_name="Automatic Dispute Detection",
        dispute_started_at=now,
    )
    for claimant in claimants:
        payload = _with_claimant(payload, claimant)
    return payload


def _with_claimant(payload: DisputePayload, claimant: Claimant) -> DisputePayload:
    if payload.claimant(claimant.claimant_id) is not None:
        raise DuplicateClaimantError(claimant.claimant_id)

    ids = payload.involved_enterprise_ids
    names = payload.involved_enterprise_names
    if claimant.enterprise_id and claimant.enterprise_id not in ids:
        ids = ids + (claimant.enterprise_id,)
        if claimant.enterprise_name and claimant.enterprise_name not in names:
            names = names + (claimant.enterprise_name,)

    return replace(
        payload,
        claimants=payload.claimants + (claimant,),
        involved_enterprise_ids=ids,
        involved_enterprise_names=names,
    )


# =========================================================================
# Registries
# =========================================================================


def add_claimant(request: WorkRequest, claimant: Claimant, now: datetime) -> WorkRequest:
    payload = dispute_of(request)
    if claimant.submitted_at is None:
        claimant = replace(claimant, submitted_at=now)
    return update_payload(
        request,
        _with_claimant(payload, claimant),
        now,
        detail=f"claimant added: {claimant.name}",
    )


def add_panel_member(request: WorkRequest, member: PanelMember, now: datetime) -> WorkRequest:
    payload = dispute_of(request)
    if payload.panel_member(member.member_id) is not None:
        raise DuplicatePanelMemberError(member.member_id)
    # Seats are always created unvoted.
    seat = replace(
        member,
        has_voted=False,
        voted_for_claimant_id=None,
        vote_reason=None,
        voted_at=None,
    )
    return update_payload(
        request,
        replace(payload, panel=payload.panel + (seat,)),
        now,
        detail=f"panel member seated: {member.name}",
    )


def _next_evidence_id(payload: DisputePayload) -> str:
    n = len(payload.evidence) + 1
    while payload.evidence_item(f"EV-{n:03d}") is not None:
        n += 1
    return f"EV-{n:03d}"


def add_evidence(request: WorkRequest, evidence: EvidenceItem, now: datetime) -> WorkRequest:
    """
    Register evidence.  A blank ``evidence_id`` is assigned the first free
    ``EV-<n>``, counting from the number of items already registered.

    Evidence aimed at a claimant is linked into that claimant's
    ``evidence_ids``.
    """
    payload = dispute_of(request)
    if evidence.claimant_id is not None and payload.claimant(evidence.claimant_id) is None:
        raise UnknownClaimantError(evidence.claimant_id)

    evidence_id = evidence.evidence_id or _next_evidence_id(payload)
    if payload.evidence_item(evidence_id) is not None:
        raise DuplicateEvidenceError(evidence_id)
    evidence = replace(
        evidence,
        evidence_id=evidence_id,
        submitted_at=evidence.submitted_at or now,
        verdict=None,
        verified_by_id=None,
        verified_at=None,
    )

    claimants = payload.claimants
    if evidence.claimant_id is not None:
        claimants = tuple(
            replace(c, evidence_ids=c.evidence_ids + (evidence_id,))
            if c.claimant_id == evidence.claimant_id
            else c
            for c in claimants
        )

    return update_payload(
        request,
        replace(payload, evidence=payload.evidence + (evidence,), claimants=claimants),
        now,
        actor_id=evidence.submitted_by_id,
        detail=f"evidence {evidence_id} ({evidence.kind.value})",
    )


def verify_evidence(
    request: WorkRequest,
    evidence_id: str,
    verdict: EvidenceVerdict,
    verifier_id: str,
    now: datetime,
    notes: str | None = None,
) -> WorkRequest:
    """Record a verification verdict.  Does not affect resolution."""
    payload = dispute_of(request)
    if payload.evidence_item(evidence_id) is None:
        raise EvidenceNotFoundError(evidence_id)

    evidence = tuple(
        replace(
            e,
            verdict=verdict,
            verified_by_id=verifier_id,
            verified_at=now,
            verification_notes=notes,
        )
        if e.evidence_id == evidence_id
        else e
        for e in payload.evidence
    )
    return update_payload(
        request,
        replace(payload, evidence=evidence),
        now,
        actor_id=verifier_id,
        detail=f"evidence {evidence_id} verified {verdict.value}",
    )


# =========================================================================
# Voting
# =========================================================================


def tally_votes(payload: DisputePayload) -> dict[str, int]:
    """Votes per claimant id, in claimant registration order (zeros included)."""
    tally = {c.claimant_id: 0 for c in payload.claimants}
    for member in payload.panel:
        if member.has_voted and member.voted_for_claimant_id in tally:
            tally[member.voted_for_claimant_id] += 1
    return tally


@traced_engine("dispute", "1.0", fingerprint_fields=("request", "member_id", "claimant_id"))
def record_panel_vote(
    request: WorkRequest,
    member_id: str,
    claimant_id: str,
    reason: str | None,
    now: datetime,
) -> WorkRequest:
    """
    Record one panel vote.

    When the vote count reaches ``panel_votes_required`` the dispute goes to
    UNDER_REVIEW and ``determine_resolution`` runs in the same step.
    """
    payload = dispute_of(request)
    if payload.resolution_status == ResolutionStatus.RESOLVED:
        raise DisputeClosedError(request.request_id, payload.resolution_status.value)

    member = payload.panel_member(member_id)
    if member is None:
        raise PanelMemberNotFoundError(member_id)
    if payload.claimant(claimant_id) is None:
        raise UnknownClaimantError(claimant_id)
    if member.has_voted:
        raise DuplicateVoteError(member_id, member.voted_for_claimant_id)

    panel = tuple(
        replace(
            m,
            has_voted=True,
            voted_for_claimant_id=claimant_id,
            vote_reason=reason,
            voted_at=now,
        )
        if m.member_id == member_id
        else m
        for m in payload.panel
    )
    payload = replace(
        payload,
        panel=panel,
        panel_votes_received=sum(1 for m in panel if m.has_voted),
    )

    if payload.all_votes_in:
        payload = _resolve(replace(payload, resolution_status=ResolutionStatus.UNDER_REVIEW), now)

    return update_payload(
        request,
        payload,
        now,
        actor_id=member_id,
        detail=f"vote for {claimant_id} ({payload.panel_votes_received}/"
        f"{payload.panel_votes_required})",
    )


@traced_engine("dispute", "1.0")
def determine_resolution(request: WorkRequest, now: datetime) -> WorkRequest:
    """Apply the majority rule to the current tally."""
    payload = dispute_of(request)
    if payload.resolution_status == ResolutionStatus.RESOLVED:
        raise DisputeClosedError(request.request_id, payload.resolution_status.value)
    resolved = _resolve(payload, now)
    return update_payload(
        request,
        resolved,
        now,
        detail=f"resolution {resolved.resolution_status.value}",
    )


def _resolve(payload: DisputePayload, now: datetime) -> DisputePayload:
    tally = tally_votes(payload)
    max_votes = max(tally.values(), default=0)
    leaders = [cid for cid, votes in tally.items() if votes == max_votes]

    if len(leaders) == 1 and max_votes > payload.panel_votes_required // 2:
        winner = payload.claimant(leaders[0])
        rest = payload.panel_votes_received - max_votes
        return _award(
            payload,
            winner,
            ResolutionDecision.AWARDED,
            f"Panel voted {max_votes}-{rest} in favor of {winner.name}",
            now,
        )

    return replace(
        payload,
        resolution_status=ResolutionStatus.ESCALATED,
        resolution_decision=ResolutionDecision.ESCALATED_TO_POLICE,
        winning_claimant_id=None,
        winning_claimant_name=None,
        resolution_reason=NO_MAJORITY_REASON,
        police_involved=True,
        resolution_notes=payload.resolution_notes + (_stamp(now, NO_MAJORITY_REASON),),
    )


def _award(
    payload: DisputePayload,
    winner: Claimant,
    decision: ResolutionDecision,
    reason: str,
    now: datetime,
    note: str | None = None,
) -> DisputePayload:
    claimants = tuple(
        replace(
            c,
            claim_status=ClaimStatus.APPROVED
            if c.claimant_id == winner.claimant_id
            else ClaimStatus.REJECTED,
        )
        for c in payload.claimants
    )
    return replace(
        payload,
        claimants=claimants,
        resolution_status=ResolutionStatus.RESOLVED,
        resolution_decision=decision,
        winning_claimant_id=winner.claimant_id,
        winning_claimant_name=winner.name,
        resolution_reason=reason,
        resolution_notes=payload.resolution_notes + (_stamp(now, note or reason),),
    )


# =========================================================================
# Manual and police outcomes
# =========================================================================


def award_to_claimant(
    request: WorkRequest,
    claimant_id: str,
    decided_by: str,
    reason: str,
    now: datetime,
    decision: ResolutionDecision = ResolutionDecision.POLICE_DECISION,
    actor_id: str | None = None,
) -> WorkRequest:
    """Authority decision: award the item, reject the other claims, complete."""
    payload = dispute_of(request)
    winner = payload.claimant(claimant_id)
    if winner is None:
        raise UnknownClaimantError(claimant_id)

    note = f"Resolved by {decided_by}. Item awarded to {winner.name}. Reason: {reason}"
    awarded = _award(payload, winner, decision, reason, now, note=note)
    revised = update_payload(request, awarded, now, actor_id=actor_id, detail=note)
    return complete(revised, now, CompletionPath.DISPUTE_RESOLUTION, actor_id=actor_id)


def set_manual_resolution(
    request: WorkRequest,
    claimant_id: str,
    reason: str,
    resolved_by: str,
    now: datetime,
    actor_id: str | None = None,
) -> WorkRequest:
    """Administrative override, typically after an escalation."""
    payload = dispute_of(request)
    winner = payload.claimant(claimant_id)
    if winner is None:
        raise UnknownClaimantError(claimant_id)

    note = f"Manual resolution by {resolved_by}: {reason}"
    awarded = _award(payload, winner, ResolutionDecision.ADMIN_DECISION, reason, now, note=note)
    revised = update_payload(request, awarded, now, actor_id=actor_id, detail=note)
    return complete(revised, now, CompletionPath.DISPUTE_RESOLUTION, actor_id=actor_id)


def escalate_to_police(
    request: WorkRequest,
    officer_id: str,
    officer_name: str,
    now: datetime,
    reason: str | None = None,
) -> WorkRequest:
    payload = dispute_of(request)
    if payload.resolution_status == ResolutionStatus.RESOLVED:
        raise DisputeClosedError(request.request_id, payload.resolution_status.value)

    note = f"Escalated to police: Officer {officer_name}"
    if reason:
        note = f"{note} - {reason}"
    escalated = replace(
        payload,
        police_involved=True,
        police_officer_id=officer_id,
        police_officer_name=officer_name,
        resolution_status=ResolutionStatus.ESCALATED,
        resolution_decision=ResolutionDecision.ESCALATED_TO_POLICE,
        resolution_notes=payload.resolution_notes + (_stamp(now, note),),
    )
    return update_payload(request, escalated, now, actor_id=officer_id, detail=note)


def record_police_findings(
    request: WorkRequest,
    officer_id: str,
    officer_name: str,
    report_number: str,
    findings: str,
    now: datetime,
) -> WorkRequest:
    payload = dispute_of(request)
    note = f"Police findings recorded by {officer_name} (Report #{report_number})"
    updated = replace(
        payload,
        police_involved=True,
        police_officer_id=officer_id,
        police_officer_name=officer_name,
        police_report_number=report_number,
        police_findings=findings,
        resolution_notes=payload.resolution_notes + (_stamp(now, note),),
    )
    return update_payload(request, updated, now, actor_id=officer_id, detail=note)


# =========================================================================
# Queries
# =========================================================================


def require_winner(request: WorkRequest) -> Claimant:
    """
    The awarded claimant.

    Raises:
        PolicyAmbiguityError: The dispute is escalated or not yet decided.
    """
    payload = dispute_of(request)
    if payload.resolution_status != ResolutionStatus.RESOLVED or payload.winning_claimant_id is None:
        raise PolicyAmbiguityError(
            request.request_id, payload.resolution_status.value, tally_votes(payload)
        )
    return payload.claimant(payload.winning_claimant_id)


def dispute_status_summary(payload: DisputePayload) -> str:
    summary = (
        f"{payload.resolution_status.value}: {len(payload.claimants)} claimants from "
        f"{len(payload.involved_enterprise_ids)} enterprises, "
        f"{payload.panel_votes_received}/{payload.panel_votes_required} votes"
    )
    if payload.winning_claimant_name:
        summary += f", awarded to {payload.winning_claimant_name}"
    if payload.police_involved:
        summary += ", police involved"
    return summary
