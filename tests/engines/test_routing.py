"""Tests for pure approver selection."""

from workrequest_engines.routing import Candidate, candidate_pool, recommend, select_approver
from workrequest_kernel.domain.roles import Role

NORTH_A = Candidate("coord-a", "org-north")
NORTH_C = Candidate("coord-c", "org-north")
SOUTH_B = Candidate("coord-b", "org-south")
ALL = [NORTH_A, SOUTH_B, NORTH_C]


class TestCandidatePool:

    def test_prefers_organization(self):
        assert candidate_pool(ALL, "org-north") == [NORTH_A, NORTH_C]

    def test_falls_back_to_everyone(self):
        assert candidate_pool(ALL, "org-east") == ALL

    def test_no_organization_means_everyone(self):
        assert candidate_pool(ALL, None) == ALL


class TestSelectApprover:

    def test_least_loaded(self):
        assert select_approver(ALL, {"coord-a": 3, "coord-b": 1, "coord-c": 2}) == SOUTH_B

    def test_ties_break_by_user_id(self):
        assert select_approver([NORTH_C, NORTH_A], {}) == NORTH_A

    def test_empty_pool(self):
        assert select_approver([], {}) is None


class TestRecommend:

    def test_fully_approved(self):
        result = recommend(None, ALL, None, {})
        assert result.can_route is False
        assert result.reason == "Request fully approved"

    def test_no_candidates(self):
        result = recommend(Role.AIRPORT_SPECIALIST, [], None, {})
        assert result.can_route is False
        assert result.reason == "No approvers available for role: AIRPORT_SPECIALIST"

    def test_best_match(self):
        result = recommend(Role.CAMPUS_COORDINATOR, ALL, "org-south", {"coord-b": 4})
        assert result.can_route is True
        assert result.approver_id == "coord-b"
        assert result.reason == "Best match: coord-b (workload: 4, role: CAMPUS_COORDINATOR)"
