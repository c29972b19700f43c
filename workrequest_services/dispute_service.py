"""
workrequest_services.dispute_service -- Multi-claimant dispute orchestration.

Responsibility:
    Panel voting, evidence handling, police involvement and final awards
    for ownership disputes.  Every mutation is a variant operation run
    through ``WorkRequestService.update_variant``, so it shares the
    load / apply / compare-and-swap cycle of ordinary requests.

Architecture position:
    Services layer.  Rules live in ``workrequest_engines.dispute``.

Invariants enforced:
    - A voter who is not seated yet is seated before the vote, in its own
      swap.  Re-votes are rejected by the engine after reload.
    - Trust outcomes are recorded once, when the dispute completes: the
      winner gets RETURN, every other claimant CLAIM_REJECTED.
    - A panel award leaves the dispute RESOLVED but open until
      ``finalize_panel_award`` completes it.

Failure modes:
    - WrongRequestTypeError: the id does not name a dispute.
    - DuplicateVoteError / DisputeClosedError / UnknownClaimantError:
      from the dispute engine.
    - PolicyAmbiguityError: finalizing a dispute with no winner.
    - StaleRequestError: lost compare-and-swap.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from workrequest_engines.dispute import (
    add_claimant,
    add_evidence,
    add_panel_member,
    award_to_claimant,
    determine_resolution,
    dispute_of,
    escalate_to_police,
    record_panel_vote,
    record_police_findings,
    require_winner,
    set_manual_resolution,
    verify_evidence,
)
from workrequest_engines.lifecycle import CompletionPath, complete
from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.dispute import (
    Claimant,
    DisputePayload,
    EvidenceItem,
    EvidenceVerdict,
    PanelMember,
    ResolutionDecision,
)
from workrequest_kernel.domain.payloads import RequestType
from workrequest_kernel.domain.work_request import WorkRequest
from workrequest_kernel.exceptions import DisputeClosedError, UnknownClaimantError
from workrequest_kernel.logging_config import LogContext, get_logger
from workrequest_services.work_request_service import WorkRequestService

logger = get_logger("services.dispute")


class DisputeService:
    """Dispute operations over a ``WorkRequestService``."""

    def __init__(self, requests: WorkRequestService):
        self._requests = requests
        self._identity = requests.identity

    # =====================================================================
    # Panel
    # =====================================================================

    def add_panel_member(self, dispute_id: UUID, member: PanelMember) -> WorkRequest:
        def seat_member(request: WorkRequest, now: datetime) -> WorkRequest:
            return add_panel_member(request, member, now)

        return self._requests.update_variant(dispute_id, seat_member, actor_id=member.member_id)

    def record_vote(
        self,
        dispute_id: UUID,
        voter_id: str,
        claimant_id: str,
        reason: str | None = None,
        voter_name: str | None = None,
    ) -> WorkRequest:
        """
        Record ``voter_id``'s vote for ``claimant_id``.

        The voter is seated first when absent from the panel, provided
        ``claimant_id`` is in the dispute.  The vote that completes the
        panel also runs the majority rule.

        Returns:
            The stored dispute request after the vote.
        """
        with LogContext.bind(dispute_id=str(dispute_id), actor_id=voter_id):
            self._requests.update_variant(
                dispute_id, self._seat_voter(voter_id, claimant_id, voter_name), actor_id=voter_id
            )

            def cast_vote(request: WorkRequest, now: datetime) -> WorkRequest:
                return record_panel_vote(request, voter_id, claimant_id, reason, now)

            updated = self._requests.update_variant(dispute_id, cast_vote, actor_id=voter_id)
            payload: DisputePayload = updated.payload

            logger.info(
                "dispute_vote_recorded",
                extra={
                    "dispute_id": str(dispute_id),
                    "voter_id": voter_id,
                    "claimant_id": claimant_id,
                    "votes_received": payload.panel_votes_received,
                    "votes_required": payload.panel_votes_required,
                },
            )
            if payload.is_resolved:
                logger.info(
                    "dispute_resolved_by_panel",
                    extra={
                        "dispute_id": str(dispute_id),
                        "winning_claimant_id": payload.winning_claimant_id,
                    },
                )
            elif payload.is_escalated and payload.all_votes_in:
                logger.warning(
                    "dispute_escalated",
                    extra={"dispute_id": str(dispute_id), "reason": payload.resolution_reason},
                )
            return updated

    def _seat_voter(self, voter_id: str, claimant_id: str, voter_name: str | None):
        identity = self._identity

        def seat_voter(request: WorkRequest, now: datetime) -> WorkRequest:
            payload = dispute_of(request)
            if payload.is_resolved:
                raise DisputeClosedError(request.request_id, payload.resolution_status.value)
            if payload.claimant(claimant_id) is None:
                raise UnknownClaimantError(claimant_id)
            if payload.panel_member(voter_id) is not None:
                return request
            role = identity.role_of(voter_id)
            member = PanelMember(
                member_id=voter_id,
                name=voter_name or identity.display_name(voter_id),
                role=role.value if role is not None else "",
                enterprise_id=identity.organization_of(voter_id),
            )
            return add_panel_member(request, member, now)

        return seat_voter

    def determine_resolution(self, dispute_id: UUID) -> WorkRequest:
        """Re-run the majority rule on the current tally."""
        return self._requests.update_variant(dispute_id, determine_resolution)

    # =====================================================================
    # Claimants and evidence
    # =====================================================================

    def add_claimant(self, dispute_id: UUID, claimant: Claimant) -> WorkRequest:
        def register_claimant(request: WorkRequest, now: datetime) -> WorkRequest:
            return add_claimant(request, claimant, now)

        return self._requests.update_variant(
            dispute_id, register_claimant, actor_id=claimant.claimant_id
        )

    def add_evidence(self, dispute_id: UUID, evidence: EvidenceItem) -> WorkRequest:
        def register_evidence(request: WorkRequest, now: datetime) -> WorkRequest:
            return add_evidence(request, evidence, now)

        updated = self._requests.update_variant(
            dispute_id, register_evidence, actor_id=evidence.submitted_by_id
        )
        logger.info(
            "dispute_evidence_added",
            extra={
                "dispute_id": str(dispute_id),
                "evidence_id": updated.payload.evidence[-1].evidence_id,
                "kind": evidence.kind.value,
                "claimant_id": evidence.claimant_id,
            },
        )
        return updated

    def verify_evidence(
        self,
        dispute_id: UUID,
        evidence_id: str,
        verdict: EvidenceVerdict,
        verifier_id: str,
        notes: str | None = None,
    ) -> WorkRequest:
        def record_verdict(request: WorkRequest, now: datetime) -> WorkRequest:
            return verify_evidence(request, evidence_id, verdict, verifier_id, now, notes)

        return self._requests.update_variant(dispute_id, record_verdict, actor_id=verifier_id)

    # =====================================================================
    # Police
    # =====================================================================

    def escalate_to_police(
        self,
        dispute_id: UUID,
        officer_id: str,
        officer_name: str | None = None,
        reason: str | None = None,
    ) -> WorkRequest:
        name = officer_name or self._identity.display_name(officer_id)

        def escalate(request: WorkRequest, now: datetime) -> WorkRequest:
            return escalate_to_police(request, officer_id, name, now, reason)

        updated = self._requests.update_variant(dispute_id, escalate, actor_id=officer_id)
        logger.warning(
            "dispute_escalated",
            extra={"dispute_id": str(dispute_id), "officer_id": officer_id, "reason": reason},
        )
        return updated

    def record_police_findings(
        self,
        dispute_id: UUID,
        officer_id: str,
        report_number: str,
        findings: str,
        officer_name: str | None = None,
    ) -> WorkRequest:
        name = officer_name or self._identity.display_name(officer_id)

        def record_findings(request: WorkRequest, now: datetime) -> WorkRequest:
            return record_police_findings(request, officer_id, name, report_number, findings, now)

        updated = self._requests.update_variant(dispute_id, record_findings, actor_id=officer_id)
        logger.info(
            "dispute_police_findings_recorded",
            extra={
                "dispute_id": str(dispute_id),
                "officer_id": officer_id,
                "report_number": report_number,
            },
        )
        return updated

    # =====================================================================
    # Awards
    # =====================================================================

    def resolve_dispute(
        self,
        dispute_id: UUID,
        winning_claimant_id: str,
        reason: str,
        decided_by: str,
        decision: ResolutionDecision = ResolutionDecision.POLICE_DECISION,
    ) -> WorkRequest:
        """
        Authority award: the item goes to ``winning_claimant_id`` and the
        dispute completes.  Works whatever the panel state, escalated
        disputes included.
        """
        def award(request: WorkRequest, now: datetime) -> WorkRequest:
            return award_to_claimant(
                request, winning_claimant_id, decided_by, reason, now, decision=decision,
                actor_id=decided_by,
            )

        with LogContext.bind(dispute_id=str(dispute_id), actor_id=decided_by):
            updated = self._requests.update_variant(dispute_id, award, actor_id=decided_by)
            self._record_award_outcomes(updated)
            logger.info(
                "dispute_resolved",
                extra={
                    "dispute_id": str(dispute_id),
                    "winning_claimant_id": winning_claimant_id,
                    "decision": decision.value,
                    "decided_by": decided_by,
                },
            )
            return updated

    def set_manual_resolution(
        self,
        dispute_id: UUID,
        winning_claimant_id: str,
        reason: str,
        resolved_by: str,
    ) -> WorkRequest:
        """Administrative override, typically after an escalation."""
        def override(request: WorkRequest, now: datetime) -> WorkRequest:
            return set_manual_resolution(
                request, winning_claimant_id, reason, resolved_by, now, actor_id=resolved_by
            )

        with LogContext.bind(dispute_id=str(dispute_id), actor_id=resolved_by):
            updated = self._requests.update_variant(dispute_id, override, actor_id=resolved_by)
            self._record_award_outcomes(updated)
            logger.info(
                "dispute_resolved",
                extra={
                    "dispute_id": str(dispute_id),
                    "winning_claimant_id": winning_claimant_id,
                    "decision": ResolutionDecision.ADMIN_DECISION.value,
                    "decided_by": resolved_by,
                },
            )
            return updated

    def finalize_panel_award(self, dispute_id: UUID, actor_id: str | None = None) -> WorkRequest:
        """
        Complete a dispute the panel has decided.

        Raises:
            PolicyAmbiguityError: The panel escalated or has not finished.
        """
        def finalize(request: WorkRequest, now: datetime) -> WorkRequest:
            require_winner(request)
            return complete(request, now, CompletionPath.DISPUTE_RESOLUTION, actor_id=actor_id)

        with LogContext.bind(dispute_id=str(dispute_id), actor_id=actor_id):
            updated = self._requests.update_variant(dispute_id, finalize, actor_id=actor_id)
            self._record_award_outcomes(updated)
            logger.info(
                "dispute_finalized",
                extra={
                    "dispute_id": str(dispute_id),
                    "winning_claimant_id": updated.payload.winning_claimant_id,
                },
            )
            return updated

    def _record_award_outcomes(self, request: WorkRequest) -> None:
        payload = dispute_of(request)
        for claimant in payload.claimants:
            if claimant.claimant_id == payload.winning_claimant_id:
                outcome = TrustOutcome.RETURN
            else:
                outcome = TrustOutcome.CLAIM_REJECTED
            self._requests.record_trust_outcome(claimant.claimant_id, outcome)

    # =====================================================================
    # Queries
    # =====================================================================

    def disputes_for_item(self, item_id: str) -> list[WorkRequest]:
        return self._requests.requests_for_item(item_id, RequestType.MULTI_ENTERPRISE_DISPUTE)

    def disputes_for_user(self, user_id: str) -> list[WorkRequest]:
        """Disputes in which ``user_id`` is a claimant."""
        return [
            d
            for d in self._requests.requests_by_type(RequestType.MULTI_ENTERPRISE_DISPUTE)
            if d.payload.claimant(user_id) is not None
        ]

    def disputes_requiring_police(self) -> list[WorkRequest]:
        """Open disputes with police involvement."""
        return [
            d
            for d in self._requests.requests_by_type(RequestType.MULTI_ENTERPRISE_DISPUTE)
            if d.payload.police_involved and not d.payload.is_resolved and not d.is_terminal
        ]
