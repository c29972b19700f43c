"""
Approver Routing -- Pure workload-balanced approver selection.

Responsibility:
    Chooses which holder of the next required role a request is routed to.

Architecture position:
    Engines -- pure functional core, zero I/O.  Workload counters live in
    ``workrequest_services.routing_service``; candidates come from the
    identity collaborator.

Invariants enforced:
    - Candidates from the preferred organization are used when there are
      any; otherwise every holder of the role is eligible.
    - The candidate with the lowest workload wins, ties broken by user id.
      URGENT requests use the same rule: the least busy candidate.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from workrequest_kernel.domain.roles import Role


@dataclass(frozen=True)
class Candidate:
    user_id: str
    organization_id: str | None = None


@dataclass(frozen=True)
class RoutingRecommendation:
    can_route: bool
    reason: str
    approver_id: str | None = None


def candidate_pool(
    candidates: Sequence[Candidate],
    organization_id: str | None,
) -> list[Candidate]:
    """Narrow to ``organization_id`` when that leaves anyone."""
    if organization_id is None:
        return list(candidates)
    preferred = [c for c in candidates if c.organization_id == organization_id]
    return preferred or list(candidates)


def select_approver(
    candidates: Sequence[Candidate],
    workloads: Mapping[str, int],
) -> Candidate | None:
    """Least-loaded candidate, or None when there are no candidates."""
    if not candidates:
        return None
    return min(candidates, key=lambda c: (workloads.get(c.user_id, 0), c.user_id))


def recommend(
    role: Role | None,
    candidates: Sequence[Candidate],
    organization_id: str | None,
    workloads: Mapping[str, int],
) -> RoutingRecommendation:
    """Explain where a request would be routed, without assigning it."""
    if role is None:
        return RoutingRecommendation(False, "Request fully approved")

    chosen = select_approver(candidate_pool(candidates, organization_id), workloads)
    if chosen is None:
        return RoutingRecommendation(False, f"No approvers available for role: {role.value}")

    return RoutingRecommendation(
        True,
        f"Best match: {chosen.user_id} "
        f"(workload: {workloads.get(chosen.user_id, 0)}, role: {role.value})",
        chosen.user_id,
    )
