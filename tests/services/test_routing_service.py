"""Tests for RoutingService workload tracking and recommendations."""

from tests.factories import T0, make_claim, make_cross_campus
from workrequest_engines.chain_resolver import resolve_chain
from workrequest_engines.lifecycle import advance, open_request
from workrequest_kernel.domain.roles import Role
from workrequest_kernel.domain.work_request import RequestPriority


class TestFindBestApprover:

    def test_least_loaded_then_user_id(self, routing):
        assert routing.find_best_approver(Role.CAMPUS_COORDINATOR, None) == "coord-a"
        assert routing.find_best_approver(Role.CAMPUS_COORDINATOR, None) == "coord-b"
        assert routing.find_best_approver(Role.CAMPUS_COORDINATOR, None) == "coord-a"
        assert routing.workload_statistics() == {"coord-a": 2, "coord-b": 1}

    def test_organization_is_preferred(self, routing):
        routing.find_best_approver(Role.CAMPUS_COORDINATOR, "org-south")
        assert routing.find_best_approver(Role.CAMPUS_COORDINATOR, "org-south") == "coord-b"
        assert routing.workload_of("coord-b") == 2

    def test_falls_back_outside_organization(self, routing):
        assert routing.find_best_approver(Role.MBTA_STATION_MANAGER, "org-south") == "mbta-1"

    def test_urgent_uses_the_same_rule(self, routing):
        routing.find_best_approver(Role.CAMPUS_COORDINATOR, None)
        chosen = routing.find_best_approver(Role.CAMPUS_COORDINATOR, None, RequestPriority.URGENT)
        assert chosen == "coord-b"

    def test_nobody_holds_the_role(self, routing, identity, captured_logs):
        del identity.users["airport-1"]

        assert routing.find_best_approver(Role.AIRPORT_LOST_FOUND_SPECIALIST, None) is None
        assert routing.has_available_approvers(Role.AIRPORT_LOST_FOUND_SPECIALIST) is False
        assert any(r["message"] == "no_approver_available" for r in captured_logs())


class TestWorkload:

    def test_release_never_goes_negative(self, routing):
        routing.release_workload("coord-a")
        routing.release_workload(None)
        assert routing.workload_of("coord-a") == 0

    def test_reset(self, routing):
        routing.find_best_approver(Role.STUDENT, None)
        routing.reset()
        assert routing.workload_statistics() == {}


class TestRecommendation:

    def test_recommends_without_assigning(self, routing):
        claim = make_claim()
        chain = resolve_chain(claim)
        recommendation = routing.routing_recommendation(open_request(claim, chain, T0), chain)

        assert recommendation.can_route is True
        assert recommendation.approver_id == "coord-a"
        assert recommendation.reason == "Best match: coord-a (workload: 0, role: CAMPUS_COORDINATOR)"
        assert routing.workload_statistics() == {}

    def test_fully_approved(self, routing):
        claim = make_claim()
        chain = resolve_chain(claim)
        approved = advance(open_request(claim, chain, T0), "coord-a", "A", Role.CAMPUS_COORDINATOR, chain, T0)

        recommendation = routing.routing_recommendation(approved, chain)
        assert recommendation.can_route is False
        assert recommendation.reason == "Request fully approved"

    def test_target_organization_is_preferred(self, routing):
        transfer = make_cross_campus()
        chain = resolve_chain(transfer)

        recommendation = routing.routing_recommendation(open_request(transfer, chain, T0), chain)
        assert recommendation.approver_id == "coord-b"
