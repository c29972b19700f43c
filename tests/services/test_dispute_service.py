"""
Tests for DisputeService.

Tests cover:
- Panel voting through the service: seating, majority award, escalation
- Finalizing a panel award and the trust outcomes it records
- Authority awards, manual overrides and police involvement
- Evidence registration and verification
- Dispute queries
"""

import pytest

from tests.factories import make_claim, make_claimant
from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.dispute import (
    EvidenceItem,
    EvidenceKind,
    EvidenceVerdict,
    ResolutionDecision,
    ResolutionStatus,
)
from workrequest_kernel.domain.work_request import RequestStatus
from workrequest_kernel.exceptions import (
    DisputeClosedError,
    DuplicateClaimantError,
    DuplicateVoteError,
    PolicyAmbiguityError,
    UnknownClaimantError,
    WrongRequestTypeError,
)


@pytest.fixture
def dispute_id(service):
    service.create_request(make_claim())
    return service.create_request(make_claim(requester_id="student-2"))


@pytest.fixture
def three_way_dispute_id(service, dispute_id):
    service.create_request(make_claim(requester_id="student-9"))
    return dispute_id


# =========================================================================
# Voting
# =========================================================================


class TestVoting:

    def test_voter_is_seated_from_identity(self, dispute_service, dispute_id):
        dispute = dispute_service.record_vote(dispute_id, "coord-a", "student-1", "knew the name tag")
        member = dispute.payload.panel_member("coord-a")

        assert member.name == "Coordinator A"
        assert member.role == "CAMPUS_COORDINATOR"
        assert member.enterprise_id == "org-north"
        assert member.voted_for_claimant_id == "student-1"
        assert dispute.payload.panel_votes_received == 1

    def test_majority_awards(self, dispute_service, dispute_id, captured_logs):
        dispute_service.record_vote(dispute_id, "coord-a", "student-1")
        dispute_service.record_vote(dispute_id, "coord-b", "student-1")
        dispute = dispute_service.record_vote(dispute_id, "officer-1", "student-2")
        payload = dispute.payload

        assert payload.resolution_status == ResolutionStatus.RESOLVED
        assert payload.resolution_decision == ResolutionDecision.AWARDED
        assert payload.winning_claimant_id == "student-1"
        assert payload.resolution_reason == "Panel voted 2-1 in favor of Student 1"
        # The panel decides; completing the dispute is a separate step.
        assert dispute.status == RequestStatus.PENDING
        assert any(r["message"] == "dispute_resolved_by_panel" for r in captured_logs())

    def test_revote_is_rejected(self, dispute_service, dispute_id):
        dispute_service.record_vote(dispute_id, "coord-a", "student-1")
        with pytest.raises(DuplicateVoteError):
            dispute_service.record_vote(dispute_id, "coord-a", "student-2")

    def test_vote_after_resolution(self, dispute_service, dispute_id):
        for voter in ("coord-a", "coord-b", "officer-1"):
            dispute_service.record_vote(dispute_id, voter, "student-2")

        with pytest.raises(DisputeClosedError):
            dispute_service.record_vote(dispute_id, "admin-1", "student-1")

    def test_vote_for_unknown_claimant(self, service, dispute_service, dispute_id):
        before = service.get_request(dispute_id)

        with pytest.raises(UnknownClaimantError):
            dispute_service.record_vote(dispute_id, "coord-a", "student-42")

        after = service.get_request(dispute_id)
        assert after.payload.panel_member("coord-a") is None
        assert after.version == before.version

    def test_split_vote_escalates(self, dispute_service, three_way_dispute_id, captured_logs):
        dispute_service.record_vote(three_way_dispute_id, "coord-a", "student-1")
        dispute_service.record_vote(three_way_dispute_id, "coord-b", "student-2")
        dispute = dispute_service.record_vote(three_way_dispute_id, "officer-1", "student-9")

        assert dispute.payload.resolution_status == ResolutionStatus.ESCALATED
        assert dispute.payload.winning_claimant_id is None
        assert any(r["message"] == "dispute_escalated" for r in captured_logs())

    def test_vote_on_a_claim(self, service, dispute_service):
        claim_id = service.create_request(make_claim(item_id="item-999"))
        with pytest.raises(WrongRequestTypeError):
            dispute_service.record_vote(claim_id, "coord-a", "student-1")


# =========================================================================
# Finalizing and awards
# =========================================================================


class TestAwards:

    def test_finalize_panel_award(self, dispute_service, dispute_id, trust, routing):
        for voter, choice in (("coord-a", "student-1"), ("coord-b", "student-1"), ("officer-1", "student-2")):
            dispute_service.record_vote(dispute_id, voter, choice)

        done = dispute_service.finalize_panel_award(dispute_id, actor_id="officer-1")

        assert done.status == RequestStatus.COMPLETED
        assert trust.outcomes_for("student-1") == [TrustOutcome.RETURN]
        assert trust.outcomes_for("student-2") == [TrustOutcome.CLAIM_REJECTED]
        assert routing.workload_of("officer-1") == 0

    def test_finalize_without_winner(self, dispute_service, three_way_dispute_id):
        for voter, choice in (("coord-a", "student-1"), ("coord-b", "student-2"), ("officer-1", "student-9")):
            dispute_service.record_vote(three_way_dispute_id, voter, choice)

        with pytest.raises(PolicyAmbiguityError):
            dispute_service.finalize_panel_award(three_way_dispute_id)

    def test_police_decision_after_escalation(self, dispute_service, three_way_dispute_id, trust):
        for voter, choice in (("coord-a", "student-1"), ("coord-b", "student-2"), ("officer-1", "student-9")):
            dispute_service.record_vote(three_way_dispute_id, voter, choice)

        done = dispute_service.resolve_dispute(
            three_way_dispute_id, "student-9", "Serial number on receipt matches", "officer-1"
        )

        assert done.status == RequestStatus.COMPLETED
        assert done.payload.resolution_decision == ResolutionDecision.POLICE_DECISION
        assert done.payload.winning_claimant_name == "Student 9"
        assert trust.outcomes_for("student-9") == [TrustOutcome.RETURN]
        assert trust.outcomes_for("student-1") == [TrustOutcome.CLAIM_REJECTED]

    def test_manual_resolution(self, dispute_service, dispute_id):
        done = dispute_service.set_manual_resolution(
            dispute_id, "student-2", "Owner identified by campus ID", "admin-1"
        )

        assert done.status == RequestStatus.COMPLETED
        assert done.payload.resolution_decision == ResolutionDecision.ADMIN_DECISION
        assert done.payload.resolution_notes[-1].endswith(
            "Manual resolution by admin-1: Owner identified by campus ID"
        )

    def test_determine_resolution_before_votes(self, dispute_service, dispute_id):
        dispute = dispute_service.determine_resolution(dispute_id)
        assert dispute.payload.resolution_status == ResolutionStatus.ESCALATED


# =========================================================================
# Claimants, evidence and police
# =========================================================================


class TestEvidenceAndPolice:

    def test_add_claimant(self, dispute_service, dispute_id):
        dispute = dispute_service.add_claimant(dispute_id, make_claimant("visitor-1", "Visitor"))
        assert [c.claimant_id for c in dispute.payload.claimants][-1] == "visitor-1"

        with pytest.raises(DuplicateClaimantError):
            dispute_service.add_claimant(dispute_id, make_claimant("student-1"))

    def test_evidence_is_numbered_and_linked(self, dispute_service, dispute_id):
        receipt = EvidenceItem(
            evidence_id="",
            submitted_by_id="student-1",
            submitted_by_name="Student 1",
            kind=EvidenceKind.RECEIPT,
            description="Store receipt",
            claimant_id="student-1",
        )
        dispute = dispute_service.add_evidence(dispute_id, receipt)

        assert dispute.payload.evidence[0].evidence_id == "EV-001"
        assert dispute.payload.claimant("student-1").evidence_ids == ("EV-001",)

        verified = dispute_service.verify_evidence(
            dispute_id, "EV-001", EvidenceVerdict.VALID, "officer-1", notes="matches store records"
        )
        item = verified.payload.evidence_item("EV-001")
        assert item.verdict == EvidenceVerdict.VALID
        assert item.verified_by_id == "officer-1"

    def test_escalate_to_police(self, dispute_service, dispute_id):
        dispute = dispute_service.escalate_to_police(dispute_id, "officer-1", reason="Claimant threats")

        assert dispute.payload.police_officer_name == "Officer Kim"
        assert dispute.payload.resolution_status == ResolutionStatus.ESCALATED
        assert dispute.payload.resolution_notes[-1].endswith(
            "Escalated to police: Officer Officer Kim - Claimant threats"
        )

    def test_police_findings(self, dispute_service, dispute_id):
        dispute = dispute_service.record_police_findings(
            dispute_id, "officer-1", "R-1001", "Receipt is genuine"
        )
        assert dispute.payload.police_report_number == "R-1001"
        assert dispute.payload.police_involved is True


# =========================================================================
# Queries
# =========================================================================


class TestQueries:

    def test_disputes_for_user_and_item(self, dispute_service, dispute_id):
        assert [d.request_id for d in dispute_service.disputes_for_user("student-2")] == [dispute_id]
        assert dispute_service.disputes_for_user("student-9") == []
        assert [d.request_id for d in dispute_service.disputes_for_item("item-100")] == [dispute_id]

    def test_disputes_requiring_police(self, dispute_service, three_way_dispute_id):
        assert [d.request_id for d in dispute_service.disputes_requiring_police()] == [three_way_dispute_id]

        dispute_service.resolve_dispute(three_way_dispute_id, "student-1", "ID check", "officer-1")
        assert dispute_service.disputes_requiring_police() == []
