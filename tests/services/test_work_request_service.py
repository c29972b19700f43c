"""
Tests for WorkRequestService.

Tests cover:
- create_request: validation, chain, auto-approval of the initiator, trust
  screening, automatic priority, routing
- approve_request / reject_request: role authorization, trust outcomes,
  workload hand-off
- Cross-campus organization checks and visibility
- complete / cancel / add_note / update_variant
- Queries, statistics and SLA sweeps
- Best-effort collaborators
"""

from dataclasses import replace

import pytest

from tests.factories import (
    make_airport,
    make_claim,
    make_cross_campus,
    make_emergency,
    make_police,
    make_transit,
)
from workrequest_engines.custody import confirm_pickup
from workrequest_engines.evidence import generate_case_number
from workrequest_kernel.domain.collaborators import TrustOutcome
from workrequest_kernel.domain.payloads import CustodyLocation, RequestType
from workrequest_kernel.domain.roles import EnterpriseType, Role
from workrequest_kernel.domain.work_request import RequestPriority, RequestStatus
from workrequest_kernel.exceptions import (
    InvalidTransitionError,
    NotRequesterError,
    RequestAlreadyTerminalError,
    RequestNotFoundError,
    RequestValidationError,
    UnauthorizedApproverError,
)


# =========================================================================
# Creation
# =========================================================================


class TestCreateRequest:

    def test_claim_is_stored_pending_and_routed(self, service, notifier):
        request_id = service.create_request(make_claim())
        stored = service.get_request(request_id)

        assert stored.status == RequestStatus.PENDING
        assert stored.approval_step == 0
        assert stored.current_approver_id == "coord-a"
        assert stored.priority == RequestPriority.NORMAL
        assert notifier.transitions == [(request_id, "CREATED")]

    def test_invalid_request_is_not_stored(self, service):
        claim = make_claim()
        claim = replace(claim, payload=replace(claim.payload, claim_details=""))

        with pytest.raises(RequestValidationError):
            service.create_request(claim)
        assert service.all_requests() == []

    def test_initiator_holding_first_role_is_auto_approved(self, service):
        request_id = service.create_request(make_transit(requester_id="station-1"))
        stored = service.get_request(request_id)

        assert stored.status == RequestStatus.IN_PROGRESS
        assert stored.approval_step == 1
        assert stored.approver_ids == ("station-1",)
        assert stored.approver_names == ("Station Manager (Auto-approved as initiator)",)
        assert stored.current_approver_id == "coord-a"

    def test_emergency_is_urgent_and_goes_to_airport(self, service):
        stored = service.get_request(service.create_request(make_emergency()))

        assert stored.priority == RequestPriority.URGENT
        assert stored.current_approver_id == "airport-1"

    @pytest.mark.parametrize(
        "factory, expected",
        [
            (lambda: make_claim(value="750"), RequestPriority.HIGH),
            (lambda: make_claim(value="1500"), RequestPriority.URGENT),
            (lambda: make_police(stolen_check=True), RequestPriority.URGENT),
            (lambda: make_airport(secure_area=True, security_notes=("Found past TSA screening, gate B7",)), RequestPriority.HIGH),
        ],
    )
    def test_automatic_priority(self, service, factory, expected):
        stored = service.get_request(service.create_request(factory()))
        assert stored.priority == expected

    def test_probation_requester_is_flagged_and_raised(self, service, trust):
        trust.scores["student-1"] = 20
        stored = service.get_request(service.create_request(make_claim()))

        assert stored.priority == RequestPriority.HIGH
        assert stored.notes[0].startswith("LOW TRUST SCORE: User on PROBATION")

    def test_flag_does_not_change_priority(self, service, trust):
        trust.scores["student-1"] = 90
        trust.flagged.add("student-1")
        stored = service.get_request(service.create_request(make_claim()))

        assert stored.priority == RequestPriority.NORMAL
        assert "flagged for review" in stored.notes[0]

    def test_screening_raise_wins_over_value_priority(self, service, trust):
        """Automatic priority only applies to requests still at NORMAL."""
        trust.scores["student-1"] = 10
        stored = service.get_request(service.create_request(make_claim(value="1500")))
        assert stored.priority == RequestPriority.HIGH

    def test_unknown_score_is_neutral(self, service):
        stored = service.get_request(service.create_request(make_claim()))
        assert stored.notes == ()

    def test_created_log_carries_context(self, service, captured_logs):
        request_id = service.create_request(make_claim())

        created = [r for r in captured_logs() if r["message"] == "work_request_created"]
        assert created[0]["request_id"] == str(request_id)
        assert created[0]["actor_id"] == "student-1"
        assert created[0]["chain"] == ["CAMPUS_COORDINATOR"]


# =========================================================================
# Approval
# =========================================================================


class TestApproveRequest:

    def test_single_step_claim_is_approved(self, service, trust, routing):
        request_id = service.create_request(make_claim())
        approved = service.approve_request(request_id, "coord-a")

        assert approved.status == RequestStatus.APPROVED
        assert approved.approver_names == ("Coordinator A",)
        assert approved.current_approver_id is None
        assert routing.workload_of("coord-a") == 0
        assert trust.outcomes_for("coord-a") == [TrustOutcome.HELPED_RETURN]
        assert trust.outcomes_for("student-1") == [TrustOutcome.REQUEST_COMPLETED]

    def test_any_holder_of_the_role_may_approve(self, service):
        request_id = service.create_request(make_claim())
        assert service.approve_request(request_id, "coord-b").status == RequestStatus.APPROVED

    def test_wrong_role(self, service, captured_logs):
        request_id = service.create_request(make_claim())

        with pytest.raises(UnauthorizedApproverError) as exc_info:
            service.approve_request(request_id, "student-2")

        assert exc_info.value.required_role == "CAMPUS_COORDINATOR"
        assert service.get_request(request_id).approval_step == 0
        assert any(r["message"] == "approver_role_mismatch" for r in captured_logs())

    def test_unknown_user(self, service):
        request_id = service.create_request(make_claim())
        with pytest.raises(UnauthorizedApproverError):
            service.approve_request(request_id, "nobody")

    def test_unknown_request(self, service):
        with pytest.raises(RequestNotFoundError):
            service.approve_request(make_claim().request_id, "coord-a")

    def test_high_value_claim_walks_the_chain(self, service, notifier):
        request_id = service.create_request(make_claim(value="900", holding=EnterpriseType.AIRPORT))

        first = service.approve_request(request_id, "coord-a")
        assert first.status == RequestStatus.IN_PROGRESS
        assert first.current_approver_id == "airport-1"

        second = service.approve_request(request_id, "airport-1")
        assert second.current_approver_id == "officer-1"

        final = service.approve_request(request_id, "officer-1")
        assert final.status == RequestStatus.APPROVED
        assert [a for rid, a in notifier.transitions if rid == request_id] == [
            "CREATED", "ADVANCED", "ADVANCED", "APPROVED",
        ]

    def test_approved_request_cannot_be_approved_again(self, service):
        request_id = service.create_request(make_claim())
        service.approve_request(request_id, "coord-a")

        with pytest.raises(InvalidTransitionError):
            service.approve_request(request_id, "coord-a")

    def test_terminal_request_cannot_be_approved(self, service):
        request_id = service.create_request(make_claim())
        service.cancel_request(request_id, "student-1")

        with pytest.raises(RequestAlreadyTerminalError):
            service.approve_request(request_id, "coord-a")


# =========================================================================
# Rejection
# =========================================================================


class TestRejectRequest:

    @pytest.mark.parametrize(
        "reason, outcomes",
        [
            ("Insufficient proof of ownership", [TrustOutcome.CLAIM_REJECTED]),
            ("Suspected fraud", [TrustOutcome.FALSE_CLAIM]),
            ("Owner already collected the item", []),
        ],
    )
    def test_reason_decides_trust_penalty(self, service, trust, reason, outcomes):
        request_id = service.create_request(make_claim())
        service.reject_request(request_id, "coord-a", reason)

        assert trust.outcomes_for("student-1") == outcomes

    def test_rejection_note_and_workload(self, service, routing, notifier):
        request_id = service.create_request(make_claim())
        rejected = service.reject_request(request_id, "coord-a", "Insufficient proof")

        assert rejected.status == RequestStatus.REJECTED
        assert rejected.notes[-1] == "REJECTED: Insufficient proof - Rejected by Coordinator A"
        assert routing.workload_of("coord-a") == 0
        assert notifier.transitions[-1] == (request_id, "REJECTED")

    def test_only_current_role_may_reject(self, service):
        request_id = service.create_request(make_claim())
        with pytest.raises(UnauthorizedApproverError):
            service.reject_request(request_id, "officer-1", "no")


# =========================================================================
# Cross-campus transfers
# =========================================================================


class TestCrossCampus:

    def test_full_transfer(self, service, routing):
        request_id = service.create_request(make_cross_campus(requester_id="coord-a"))
        created = service.get_request(request_id)

        # The source coordinator created it, so step 0 is already signed.
        assert created.approval_step == 1
        assert created.current_approver_id == "coord-b"

        at_student = service.approve_request(request_id, "coord-b")
        assert at_student.current_approver_id == "student-2"

        done = service.approve_request(request_id, "student-9")
        assert done.status == RequestStatus.APPROVED
        assert routing.workload_of("student-2") == 0

    def test_target_step_needs_target_organization(self, service):
        request_id = service.create_request(make_cross_campus(requester_id="coord-a"))

        with pytest.raises(UnauthorizedApproverError) as exc_info:
            service.approve_request(request_id, "coord-a")

        assert exc_info.value.reason == "requires target organization org-south, approver is in org-north"

    def test_source_step_needs_source_organization(self, service):
        request_id = service.create_request(make_cross_campus(requester_id="admin-1"))
        assert service.get_request(request_id).current_approver_id == "coord-a"

        with pytest.raises(UnauthorizedApproverError):
            service.approve_request(request_id, "coord-b")
        assert service.approve_request(request_id, "coord-a").approval_step == 1

    def test_transit_destination_routes_to_mbta(self, service):
        request = make_cross_campus(requester_id="coord-a", destination_name="MBTA Lost Property")
        stored = service.get_request(service.create_request(request))
        assert stored.current_approver_id == "mbta-1"

    def test_visibility_by_organization(self, service):
        request_id = service.create_request(make_cross_campus(requester_id="admin-1"))

        def visible(org):
            return [r.request_id for r in service.requests_for_role(Role.CAMPUS_COORDINATOR, org)]

        assert visible("org-north") == [request_id]
        assert visible("org-south") == []
        assert visible(None) == []

        service.approve_request(request_id, "coord-a")
        assert visible("org-south") == [request_id]

    def test_claims_are_visible_to_every_organization(self, service):
        request_id = service.create_request(make_claim())
        assert [r.request_id for r in service.requests_for_role(Role.CAMPUS_COORDINATOR, "org-east")] == [request_id]


# =========================================================================
# Other transitions
# =========================================================================


class TestOtherTransitions:

    def test_complete_approved(self, service):
        request_id = service.create_request(make_claim())
        service.approve_request(request_id, "coord-a")

        completed = service.complete_request(request_id, actor_id="coord-a")
        assert completed.status == RequestStatus.COMPLETED
        assert completed.completed_at is not None

    def test_complete_pending(self, service):
        request_id = service.create_request(make_claim())
        with pytest.raises(InvalidTransitionError):
            service.complete_request(request_id)

    def test_only_requester_may_cancel(self, service):
        request_id = service.create_request(make_claim())

        with pytest.raises(NotRequesterError):
            service.cancel_request(request_id, "coord-a")

        cancelled = service.cancel_request(request_id, "student-1", reason="found it")
        assert cancelled.status == RequestStatus.CANCELLED
        assert cancelled.notes[-1] == "CANCELLED: found it"

    def test_note_on_terminal_request(self, service):
        request_id = service.create_request(make_claim())
        cancelled = service.cancel_request(request_id, "student-1")

        noted = service.add_note(request_id, "Owner called", actor_id="coord-a")
        assert noted.notes[-1] == "Owner called"
        assert noted.version == cancelled.version + 1

    def test_update_variant(self, service, notifier, captured_logs):
        request_id = service.create_request(make_emergency())

        def pickup(request, now):
            return confirm_pickup(request, "PU-7", now, actor_id="airport-1")

        updated = service.update_variant(request_id, pickup, actor_id="airport-1")

        assert updated.payload.location_status == CustodyLocation.IN_TRANSIT
        assert service.get_request(request_id) == updated
        assert notifier.transitions[-1] == (request_id, "CREATED")
        logged = [r for r in captured_logs() if r["message"] == "work_request_updated"]
        assert logged[0]["operation"] == "pickup"

    def test_unchanged_variant_writes_nothing(self, service, repository):
        request_id = service.create_request(make_police())
        numbered = service.update_variant(request_id, generate_case_number)
        attempts = repository.swap_attempts

        again = service.update_variant(request_id, generate_case_number)

        assert again == numbered
        assert repository.swap_attempts == attempts


# =========================================================================
# Queries
# =========================================================================


class TestQueries:

    def test_statistics(self, service):
        a = service.create_request(make_claim(item_id="item-1"))
        b = service.create_request(make_claim(item_id="item-2"))
        service.create_request(make_transit())
        service.approve_request(a, "coord-a")
        service.cancel_request(b, "student-1")

        stats = service.statistics()
        assert stats.total == 3
        assert stats.approved == 1
        assert stats.cancelled == 1
        assert stats.in_progress == 1
        assert stats.pending == 0

    def test_requests_for_user(self, service):
        own = service.create_request(make_claim())
        transfer = service.create_request(make_transit())

        assert {r.request_id for r in service.requests_for_user("student-1")} == {own}
        assert {r.request_id for r in service.requests_for_user("coord-a")} == {own, transfer}

    def test_pending_count_for_user(self, service):
        service.create_request(make_claim(item_id="item-1"))
        service.create_request(make_claim(item_id="item-2"))

        assert service.pending_count_for_user("coord-a") == 1
        assert service.pending_count_for_user("coord-b") == 1

    def test_requests_by_type_and_item(self, service):
        claim = service.create_request(make_claim())
        service.create_request(make_transit())

        assert [r.request_id for r in service.requests_by_type(RequestType.ITEM_CLAIM)] == [claim]
        assert [r.request_id for r in service.requests_for_item("item-100")] == [claim]
        assert [r.request_id for r in service.requests_by_status(RequestStatus.PENDING)] == [claim]

    def test_routing_recommendation_does_not_assign(self, service, routing):
        request_id = service.create_request(make_claim())
        recommendation = service.routing_recommendation(request_id)

        assert recommendation.can_route is True
        assert recommendation.approver_id == "coord-b"
        assert routing.workload_of("coord-b") == 0


# =========================================================================
# SLA
# =========================================================================


class TestSla:

    def test_sweep_reports_overdue(self, service, clock, notifier, captured_logs):
        normal = service.create_request(make_claim())
        clock.advance_hours(73)

        overdue = service.sweep_sla_breaches()

        assert [r.request_id for r in overdue] == [normal]
        assert notifier.breaches == [(normal, -1)]
        assert service.get_request(normal).status == RequestStatus.PENDING
        assert any(r["message"] == "sla_breach_detected" for r in captured_logs())

    def test_approaching(self, service, clock):
        request_id = service.create_request(make_claim(value="750"))
        clock.advance_hours(20)

        assert [r.request_id for r in service.approaching_sla_requests()] == [request_id]
        assert service.overdue_requests() == []


# =========================================================================
# Collaborator failures
# =========================================================================


class TestBestEffortCollaborators:

    def test_broken_trust_catalog(self, service, trust, captured_logs):
        trust.broken = True
        request_id = service.create_request(make_claim())
        approved = service.approve_request(request_id, "coord-a")

        assert approved.status == RequestStatus.APPROVED
        messages = [r["message"] for r in captured_logs()]
        assert "trust_screening_failed" in messages
        assert "trust_adjustment_failed" in messages

    def test_broken_notifier(self, service, notifier, clock, captured_logs):
        notifier.broken = True
        request_id = service.create_request(make_claim())
        clock.advance_hours(100)
        service.sweep_sla_breaches()

        assert service.get_request(request_id).status == RequestStatus.PENDING
        failures = [r for r in captured_logs() if r["message"] == "notification_failed"]
        assert [f["action"] for f in failures] == ["CREATED", "SLA_BREACH"]
        assert failures[0]["exc_type"] == "RuntimeError"
