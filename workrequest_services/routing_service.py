"""
workrequest_services.routing_service -- Workload-balanced approver routing.

Responsibility:
    Holds the per-approver workload counters and asks the pure routing
    engine which holder of a role a request should go to.  Candidates come
    from the identity collaborator.

Architecture position:
    Services layer.  Selection rules live in ``workrequest_engines.routing``;
    this class owns the mutable counters.

Invariants enforced:
    - A workload never drops below zero.
    - Counters are guarded by a lock; concurrent routing never loses an
      increment.
    - ``routing_recommendation`` never changes a counter.
"""

from __future__ import annotations

import threading

from workrequest_engines.chain_resolver import next_required_role
from workrequest_engines.routing import (
    Candidate,
    RoutingRecommendation,
    candidate_pool,
    recommend,
    select_approver,
)
from workrequest_kernel.domain.collaborators import IdentityProvider
from workrequest_kernel.domain.roles import ApprovalChain, Role
from workrequest_kernel.domain.work_request import RequestPriority, WorkRequest
from workrequest_kernel.logging_config import get_logger

logger = get_logger("services.routing")


class RoutingService:
    """Chooses approvers and tracks how many requests each one holds."""

    def __init__(self, identity: IdentityProvider):
        self._identity = identity
        self._workloads: dict[str, int] = {}
        self._lock = threading.Lock()

    def _candidates(self, role: Role) -> list[Candidate]:
        return [
            Candidate(user_id, self._identity.organization_of(user_id))
            for user_id in self._identity.users_with_role(role)
        ]

    def find_best_approver(
        self,
        role: Role,
        organization_id: str | None,
        priority: RequestPriority = RequestPriority.NORMAL,
    ) -> str | None:
        """
        Pick the least-loaded holder of ``role`` and count the assignment.

        Holders in ``organization_id`` are preferred; anyone with the role
        is the fallback.  URGENT and ordinary requests use the same rule.

        Returns:
            The chosen user id, or None when nobody holds the role.
        """
        pool = candidate_pool(self._candidates(role), organization_id)
        with self._lock:
            chosen = select_approver(pool, self._workloads)
            if chosen is None:
                logger.warning(
                    "no_approver_available",
                    extra={"role": role.value, "organization_id": organization_id},
                )
                return None
            workload = self._workloads.get(chosen.user_id, 0) + 1
            self._workloads[chosen.user_id] = workload

        logger.info(
            "approver_selected",
            extra={
                "approver_id": chosen.user_id,
                "role": role.value,
                "priority": priority.value,
                "workload": workload,
            },
        )
        return chosen.user_id

    def release_workload(self, user_id: str | None) -> None:
        """Give back one unit of work when a request leaves an approver."""
        if user_id is None:
            return
        with self._lock:
            current = self._workloads.get(user_id, 0)
            if current > 0:
                self._workloads[user_id] = current - 1

    def workload_of(self, user_id: str) -> int:
        with self._lock:
            return self._workloads.get(user_id, 0)

    def workload_statistics(self) -> dict[str, int]:
        with self._lock:
            return dict(self._workloads)

    def has_available_approvers(self, role: Role) -> bool:
        return bool(self._identity.users_with_role(role))

    def routing_recommendation(
        self,
        request: WorkRequest,
        chain: ApprovalChain,
    ) -> RoutingRecommendation:
        """Where the request would go next, without assigning it."""
        role = next_required_role(chain, request.approval_step)
        if not request.is_awaiting_approval:
            role = None
        candidates = self._candidates(role) if role is not None else []
        return recommend(
            role,
            candidates,
            request.target_organization_id or request.requester_organization_id,
            self.workload_statistics(),
        )

    def reset(self) -> None:
        with self._lock:
            self._workloads.clear()
