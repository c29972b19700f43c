"""
workrequest_services.work_request_service -- Work request orchestration.

Responsibility:
    Creates, approves, rejects, completes and cancels work requests.  Each
    mutation loads the request, applies pure engine operations, and writes
    the result back with a compare-and-swap on ``version``.  Item claims
    that collide with another active claim on the same item are turned
    into (or folded into) an ownership dispute.

Architecture position:
    Services layer.  May import from workrequest_engines (pure engines),
    workrequest_kernel (domain, exceptions, logging) and workrequest_config.
    Persistence, identity, trust scores and notifications are reached only
    through the collaborator protocols.

Invariants enforced:
    - Authorization before every approver action: the approver's role must
      be the role at the current step.  Cross-campus transfers also check
      the approver's organization.
    - Lost races raise StaleRequestError; nothing is written twice.
    - Trust and notification collaborators are best effort.  Their
      failures are logged and never fail the transition.

Failure modes:
    - RequestValidationError: required variant fields missing at creation.
    - RequestNotFoundError: unknown request id.
    - UnauthorizedApproverError: wrong role or wrong organization.
    - NotRequesterError: cancel by someone other than the requester.
    - StaleRequestError: the request changed between load and swap.
    - RequestAlreadyTerminalError / InvalidTransitionError: from the
      lifecycle engine.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Callable
from uuid import UUID

from workrequest_config import EngineConfig, get_active_config
from workrequest_engines.chain_resolver import (
    needs_approval_from_role,
    next_required_role,
    resolve_chain,
)
from workrequest_engines.dispute import (
    add_claimant,
    claimant_from_claim,
    dispute_payload_for_item,
)
from workrequest_engines.lifecycle import (
    CompletionPath,
    add_note,
    advance,
    assign_approver,
    cancel,
    complete,
    open_request,
    reject,
    set_priority,
    update_payload,
)
from workrequest_engines.priority import determine_priority
from workrequest_engines.routing import RoutingRecommendation
from workrequest_engines.sla import approaching_sla_requests, hours_until_sla, overdue_requests
from workrequest_engines.trust import classify_rejection, is_probation, screen_requester
from workrequest_engines.validation import require_valid
from workrequest_kernel.domain.clock import Clock, SystemClock
from workrequest_kernel.domain.collaborators import (
    IdentityProvider,
    NotificationSink,
    TrustOutcome,
    TrustScoreAdjuster,
    WorkRequestRepository,
)
from workrequest_kernel.domain.payloads import (
    CrossCampusTransferPayload,
    ItemClaimPayload,
    RequestType,
)
from workrequest_kernel.domain.roles import ApprovalChain, Role
from workrequest_kernel.domain.work_request import (
    RequestPriority,
    RequestStatus,
    WorkRequest,
)
from workrequest_kernel.exceptions import (
    InvalidTransitionError,
    NotRequesterError,
    StaleRequestError,
    UnauthorizedApproverError,
)
from workrequest_kernel.logging_config import LogContext, get_logger
from workrequest_services.routing_service import RoutingService

logger = get_logger("services.work_request")

SYSTEM_REQUESTER_ID = "SYSTEM"
SYSTEM_REQUESTER_NAME = "Automatic Dispute Detection"
DEFAULT_TRUST_SCORE = 50.0

# Statuses in which an item claim still competes for its item.
ACTIVE_CLAIM_STATUSES = frozenset({
    RequestStatus.PENDING,
    RequestStatus.IN_PROGRESS,
    RequestStatus.APPROVED,
})

VariantOperation = Callable[[WorkRequest, datetime], WorkRequest]


@dataclass(frozen=True)
class WorkRequestStats:
    """Request counts by status."""

    total: int
    pending: int
    in_progress: int
    approved: int
    rejected: int
    completed: int
    cancelled: int


def _holder(request: WorkRequest) -> str | None:
    return request.current_approver_id if request.is_awaiting_approval else None


def _handed_off(before: WorkRequest, after: WorkRequest) -> bool:
    """True when the work unit held by ``before``'s approver is finished."""
    return _holder(before) != _holder(after) or before.approval_step != after.approval_step


class WorkRequestService:
    """
    Orchestrates the work request lifecycle over injected collaborators.

    Args:
        repository: Durable store with compare-and-swap.
        identity: Role and organization lookup.
        trust: Trust-score catalog.  Optional; screening and score
            adjustments are skipped without it.
        notifier: Notification sink.  Optional.
        routing: Approver router.  A fresh ``RoutingService`` over
            ``identity`` is created when omitted.
        clock: Time source.  ``SystemClock`` when omitted.
        config: Engine configuration.  ``get_active_config()`` when omitted.
    """

    def __init__(
        self,
        repository: WorkRequestRepository,
        identity: IdentityProvider,
        trust: TrustScoreAdjuster | None = None,
        notifier: NotificationSink | None = None,
        routing: RoutingService | None = None,
        clock: Clock | None = None,
        config: EngineConfig | None = None,
    ):
        self._repository = repository
        self._identity = identity
        self._trust = trust
        self._notifier = notifier
        self._routing = routing or RoutingService(identity)
        self._clock = clock or SystemClock()
        self._config = config or get_active_config()
        self._policy = self._config.policy

    @property
    def routing(self) -> RoutingService:
        return self._routing

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def identity(self) -> IdentityProvider:
        return self._identity

    @property
    def clock(self) -> Clock:
        return self._clock

    # =====================================================================
    # Creation
    # =====================================================================

    def create_request(self, request: WorkRequest) -> UUID:
        """
        Validate, open, prioritize, route and store a new request.

        An item claim on an item another requester is already claiming is
        not stored as a claim.  It becomes a claimant in the item's open
        dispute, or a new dispute is created from both claims; the id of
        that dispute is returned instead.

        Returns:
            The id of the stored request (or of the dispute).

        Raises:
            RequestValidationError: Required fields are missing.
            DuplicateRequestError: The request id is already stored.
        """
        now = self._clock.now()
        with LogContext.bind(request_id=str(request.request_id), actor_id=request.requester_id):
            require_valid(
                request,
                chain_policy=self._policy.chain,
                custody_policy=self._policy.custody,
            )

            if isinstance(request.payload, ItemClaimPayload):
                dispute_id = self._divert_duplicate_claim(request, now)
                if dispute_id is not None:
                    return dispute_id

            chain = resolve_chain(request, self._policy.chain)
            opened = open_request(request, chain, now)
            opened = self._apply_trust_screening(opened, now)

            if opened.priority == RequestPriority.NORMAL:
                automatic = determine_priority(opened, self._policy.priority, self._policy.chain)
                opened = set_priority(opened, automatic, now, reason="automatic")

            opened = self._auto_advance(opened, chain, now)
            opened = self._route(opened, chain, now)
            self._repository.save(opened)

            logger.info(
                "work_request_created",
                extra={
                    "request_id": str(opened.request_id),
                    "request_type": opened.request_type.value,
                    "status": opened.status.value,
                    "priority": opened.priority.value,
                    "chain": [role.value for role in chain],
                    "approval_step": opened.approval_step,
                    "current_approver_id": opened.current_approver_id,
                },
            )
            self._notify(opened, "CREATED")
            return opened.request_id

    def _apply_trust_screening(self, request: WorkRequest, now: datetime) -> WorkRequest:
        if self._trust is None:
            return request
        try:
            score = self._trust.score_of(request.requester_id)
            flagged = self._trust.is_flagged(request.requester_id)
            investigated = self._trust.is_under_investigation(request.requester_id)
        except Exception:
            logger.exception(
                "trust_screening_failed",
                extra={"requester_id": request.requester_id},
            )
            return request

        screening = screen_requester(
            DEFAULT_TRUST_SCORE if score is None else score,
            flagged,
            investigated,
            self._policy.priority,
        )
        if not screening.requires_flag:
            return request

        request = add_note(request, screening.note, now)
        logger.info(
            "low_trust_requester",
            extra={"requester_id": request.requester_id, "trust_score": screening.score},
        )
        if is_probation(screening, self._policy.priority) and request.priority == RequestPriority.NORMAL:
            request = set_priority(request, RequestPriority.HIGH, now, reason="low trust score")
        return request

    def _auto_advance(self, request: WorkRequest, chain: ApprovalChain, now: datetime) -> WorkRequest:
        """Record the requester's own approval when they hold the first role."""
        if not chain or not request.is_awaiting_approval:
            return request
        role = self._identity.role_of(request.requester_id)
        if role != chain[0]:
            return request

        name = request.requester_name or self._identity.display_name(request.requester_id)
        logger.info(
            "work_request_auto_advanced",
            extra={"request_id": str(request.request_id), "role": role.value},
        )
        return advance(
            request,
            request.requester_id,
            f"{name} (Auto-approved as initiator)",
            role,
            chain,
            now,
        )

    # =====================================================================
    # Duplicate claim detection
    # =====================================================================

    def _divert_duplicate_claim(self, claim: WorkRequest, now: datetime) -> UUID | None:
        """Dispute id the claim was folded into, or None to store it normally."""
        item_id = claim.item_id

        for dispute in self._repository.find_by_item(item_id, RequestType.MULTI_ENTERPRISE_DISPUTE):
            if dispute.is_terminal or dispute.payload.is_resolved:
                continue
            if dispute.payload.claimant(claim.requester_id) is not None:
                logger.warning(
                    "claimant_already_in_dispute",
                    extra={
                        "dispute_id": str(dispute.request_id),
                        "claimant_id": claim.requester_id,
                    },
                )
                return None
            self._join_dispute(dispute, claim, now)
            return dispute.request_id

        for existing in self._repository.find_by_item(item_id, RequestType.ITEM_CLAIM):
            if existing.requester_id == claim.requester_id:
                continue
            if existing.status not in ACTIVE_CLAIM_STATUSES:
                continue
            return self._open_dispute(existing, claim, now)

        return None

    def _join_dispute(self, dispute: WorkRequest, claim: WorkRequest, now: datetime) -> None:
        claimant = claimant_from_claim(claim, self._trust_score(claim.requester_id), now)
        updated = add_claimant(dispute, claimant, now)
        updated = add_note(
            updated,
            f"New claimant added: {claimant.name} from {claimant.enterprise_name or 'Unknown Enterprise'}",
            now,
        )

        payload = updated.payload
        if (
            len(payload.claimants) >= self._policy.dispute.escalation_claimant_count
            and updated.priority != RequestPriority.URGENT
        ):
            updated = set_priority(updated, RequestPriority.URGENT, now, reason="3+ claimants")
            updated = update_payload(
                updated,
                replace(payload, police_involved=True),
                now,
                detail="police involvement required",
            )
            updated = add_note(
                updated, "ESCALATED: 3+ claimants detected. Police involvement required.", now
            )

        self._swap(dispute, updated)
        logger.info(
            "dispute_claimant_added",
            extra={
                "dispute_id": str(dispute.request_id),
                "claimant_id": claimant.claimant_id,
                "claimant_count": len(updated.payload.claimants),
                "priority": updated.priority.value,
            },
        )
        self._notify(updated, "CLAIMANT_ADDED")

    def _open_dispute(self, existing: WorkRequest, claim: WorkRequest, now: datetime) -> UUID:
        first = claimant_from_claim(
            existing,
            self._trust_score(existing.requester_id),
            existing.created_at or now,
        )
        second = claimant_from_claim(claim, self._trust_score(claim.requester_id), now)
        claim_payload: ItemClaimPayload = existing.payload
        payload = dispute_payload_for_item(
            claim_payload, (first, second), now, self._policy.dispute
        )

        high_value = self._policy.chain.is_high_value(claim_payload.item_value)
        dispute = WorkRequest(
            payload=replace(payload, police_involved=high_value),
            requester_id=SYSTEM_REQUESTER_ID,
            requester_name=SYSTEM_REQUESTER_NAME,
            priority=RequestPriority.URGENT if high_value else RequestPriority.HIGH,
            description=(
                f"Ownership dispute for {claim_payload.item_name or claim_payload.item_id}"
                " - Multiple claimants detected"
            ),
        )

        # The first claim keeps its approval state; it only records the dispute.
        # Its swap goes first so a lost race leaves nothing stored or routed.
        noted = add_note(
            existing,
            "DISPUTE CREATED: This claim is now part of a multi-claimant dispute.",
            now,
        )
        self._swap(existing, noted)

        chain = resolve_chain(dispute, self._policy.chain)
        dispute = self._route(open_request(dispute, chain, now), chain, now)
        self._repository.save(dispute)

        logger.info(
            "dispute_created",
            extra={
                "dispute_id": str(dispute.request_id),
                "item_id": claim_payload.item_id,
                "claimants": [first.claimant_id, second.claimant_id],
                "priority": dispute.priority.value,
                "police_involved": high_value,
            },
        )
        self._notify(dispute, "CREATED")
        return dispute.request_id

    # =====================================================================
    # Approver actions
    # =====================================================================

    def approve_request(self, request_id: UUID, approver_id: str) -> WorkRequest:
        """
        Record ``approver_id``'s approval at the current step.

        Returns:
            The stored request, IN_PROGRESS and routed to the next approver,
            or APPROVED once the chain is exhausted.
        """
        now = self._clock.now()
        with LogContext.bind(request_id=str(request_id), actor_id=approver_id):
            current = self._repository.load(request_id)
            chain = resolve_chain(current, self._policy.chain)
            role = self._authorize(current, approver_id, chain)

            updated = advance(
                current,
                approver_id,
                self._identity.display_name(approver_id),
                role,
                chain,
                now,
            )
            updated = self._route(updated, chain, now)
            self._swap(current, updated)

            logger.info(
                "work_request_advanced",
                extra={
                    "request_id": str(request_id),
                    "approver_id": approver_id,
                    "role": role.value,
                    "approval_step": updated.approval_step,
                    "chain_length": len(chain),
                    "status": updated.status.value,
                    "priority": updated.priority.value,
                },
            )

            self.record_trust_outcome(approver_id, TrustOutcome.HELPED_RETURN)
            if updated.status == RequestStatus.APPROVED:
                self.record_trust_outcome(updated.requester_id, TrustOutcome.REQUEST_COMPLETED)
            self._notify(updated, "APPROVED" if updated.status == RequestStatus.APPROVED else "ADVANCED")
            return updated

    def reject_request(self, request_id: UUID, approver_id: str, reason: str) -> WorkRequest:
        """Reject at the current step; the reason decides the requester's trust penalty."""
        now = self._clock.now()
        with LogContext.bind(request_id=str(request_id), actor_id=approver_id):
            current = self._repository.load(request_id)
            chain = resolve_chain(current, self._policy.chain)
            self._authorize(current, approver_id, chain)

            name = self._identity.display_name(approver_id)
            updated = reject(current, f"{reason} - Rejected by {name}", now, actor_id=approver_id)
            self._swap(current, updated)

            outcome = classify_rejection(reason, self._policy.trust)
            logger.info(
                "work_request_rejected",
                extra={
                    "request_id": str(request_id),
                    "approver_id": approver_id,
                    "approval_step": current.approval_step,
                    "trust_outcome": outcome.value if outcome else None,
                },
            )
            if outcome is not None:
                self.record_trust_outcome(updated.requester_id, outcome)
            self._notify(updated, "REJECTED")
            return updated

    def _authorize(self, request: WorkRequest, approver_id: str, chain: ApprovalChain) -> Role:
        """The approver's role, once it is confirmed to act at the current step."""
        if not request.is_awaiting_approval:
            if request.is_terminal:
                # Let the lifecycle engine raise its terminal error.
                return self._identity.role_of(approver_id)
            raise InvalidTransitionError(
                request.request_id, request.status.value, RequestStatus.IN_PROGRESS.value
            )

        role = self._identity.role_of(approver_id)
        required = next_required_role(chain, request.approval_step)
        if required is None or role != required:
            logger.warning(
                "approver_role_mismatch",
                extra={
                    "request_id": str(request.request_id),
                    "approver_id": approver_id,
                    "required_role": required.value if required else None,
                    "actual_role": role.value if role else None,
                },
            )
            raise UnauthorizedApproverError(
                request.request_id,
                approver_id,
                required.value if required else None,
                role.value if role else None,
            )

        if isinstance(request.payload, CrossCampusTransferPayload):
            self._authorize_cross_campus(request, approver_id, role)
        return role

    def _authorize_cross_campus(self, request: WorkRequest, approver_id: str, role: Role) -> None:
        """Step 0 belongs to the source organization, step 1 to the target, step 2 to a student."""
        step = request.approval_step
        if step == 2:
            if role == Role.STUDENT:
                return
            reason = "student confirmation step"
        else:
            required_org = (
                request.requester_organization_id if step == 0 else request.target_organization_id
            )
            approver_org = self._identity.organization_of(approver_id)
            if required_org is not None and approver_org == required_org:
                return
            side = "source" if step == 0 else "target"
            reason = f"requires {side} organization {required_org}, approver is in {approver_org}"

        logger.warning(
            "cross_campus_organization_mismatch",
            extra={
                "request_id": str(request.request_id),
                "approver_id": approver_id,
                "approval_step": step,
            },
        )
        raise UnauthorizedApproverError(
            request.request_id, approver_id, role.value, role.value, reason=reason
        )

    # =====================================================================
    # Other transitions
    # =====================================================================

    def complete_request(self, request_id: UUID, actor_id: str | None = None) -> WorkRequest:
        """Fulfil an APPROVED request."""
        now = self._clock.now()
        with LogContext.bind(request_id=str(request_id), actor_id=actor_id):
            current = self._repository.load(request_id)
            updated = complete(current, now, CompletionPath.FULFILLMENT, actor_id=actor_id)
            self._swap(current, updated)
            logger.info("work_request_completed", extra={"request_id": str(request_id)})
            self._notify(updated, "COMPLETED")
            return updated

    def cancel_request(
        self,
        request_id: UUID,
        requester_id: str,
        reason: str | None = None,
    ) -> WorkRequest:
        """Withdraw a request.  Only its requester may do so."""
        now = self._clock.now()
        with LogContext.bind(request_id=str(request_id), actor_id=requester_id):
            current = self._repository.load(request_id)
            if current.requester_id != requester_id:
                raise NotRequesterError(request_id, requester_id)
            updated = cancel(current, now, actor_id=requester_id, reason=reason)
            self._swap(current, updated)
            logger.info("work_request_cancelled", extra={"request_id": str(request_id)})
            self._notify(updated, "CANCELLED")
            return updated

    def add_note(self, request_id: UUID, note: str, actor_id: str | None = None) -> WorkRequest:
        now = self._clock.now()
        current = self._repository.load(request_id)
        updated = add_note(current, note, now, actor_id=actor_id)
        self._swap(current, updated)
        return updated

    def update_variant(
        self,
        request_id: UUID,
        operation: VariantOperation,
        actor_id: str | None = None,
    ) -> WorkRequest:
        """
        Apply a variant operation and store the result.

        ``operation`` takes the loaded request and ``now``; bind other
        arguments with a lambda or ``functools.partial``, e.g.
        ``lambda r, now: confirm_pickup(r, code, now)``.  An operation that
        returns the request unchanged writes nothing.
        """
        now = self._clock.now()
        with LogContext.bind(request_id=str(request_id), actor_id=actor_id):
            current = self._repository.load(request_id)
            updated = operation(current, now)
            if updated is current:
                return current
            self._swap(current, updated)
            logger.info(
                "work_request_updated",
                extra={
                    "request_id": str(request_id),
                    "operation": getattr(operation, "__name__", repr(operation)),
                    "version": updated.version,
                    "status": updated.status.value,
                },
            )
            if updated.status != current.status:
                self._notify(updated, updated.status.value)
            return updated

    # =====================================================================
    # Queries
    # =====================================================================

    def get_request(self, request_id: UUID) -> WorkRequest:
        return self._repository.load(request_id)

    def all_requests(self) -> list[WorkRequest]:
        return self._repository.find_all()

    def requests_by_status(self, status: RequestStatus) -> list[WorkRequest]:
        return self._repository.find_by_status([status])

    def requests_by_type(self, request_type: RequestType) -> list[WorkRequest]:
        return self._repository.find_by_type(request_type)

    def requests_for_item(
        self,
        item_id: str,
        request_type: RequestType | None = None,
    ) -> list[WorkRequest]:
        return self._repository.find_by_item(item_id, request_type)

    def pending_count_for_user(self, user_id: str) -> int:
        """Requests currently routed to ``user_id``."""
        return sum(
            1
            for r in self._repository.find_by_status(
                [RequestStatus.PENDING, RequestStatus.IN_PROGRESS]
            )
            if r.current_approver_id == user_id
        )

    def requests_for_role(self, role: Role, organization_id: str | None = None) -> list[WorkRequest]:
        """Requests waiting on ``role`` that a member of ``organization_id`` may see."""
        waiting = self._repository.find_by_status(
            [RequestStatus.PENDING, RequestStatus.IN_PROGRESS]
        )
        return [
            r
            for r in waiting
            if needs_approval_from_role(r, role, self._policy.chain)
            and self._can_view(r, role, organization_id)
        ]

    @staticmethod
    def _can_view(request: WorkRequest, role: Role, organization_id: str | None) -> bool:
        if not isinstance(request.payload, CrossCampusTransferPayload):
            return True
        if organization_id is None:
            return False
        if request.requester_organization_id == organization_id:
            return True
        if request.approval_step >= 1 and request.target_organization_id == organization_id:
            return True
        return request.approval_step == 2 and role == Role.STUDENT

    def requests_for_user(self, user_id: str) -> list[WorkRequest]:
        """Requests the user created, is assigned, or could act on by role."""
        found = list(self._repository.find_by_requester(user_id))
        found += [
            r
            for r in self._repository.find_by_status(
                [RequestStatus.PENDING, RequestStatus.IN_PROGRESS]
            )
            if r.current_approver_id == user_id
        ]
        role = self._identity.role_of(user_id)
        if role is not None:
            found += self.requests_for_role(role, self._identity.organization_of(user_id))

        seen: set[UUID] = set()
        unique = []
        for request in found:
            if request.request_id not in seen:
                seen.add(request.request_id)
                unique.append(request)
        return unique

    def statistics(self) -> WorkRequestStats:
        counts = Counter(r.status for r in self._repository.find_all())
        return WorkRequestStats(
            total=sum(counts.values()),
            pending=counts[RequestStatus.PENDING],
            in_progress=counts[RequestStatus.IN_PROGRESS],
            approved=counts[RequestStatus.APPROVED],
            rejected=counts[RequestStatus.REJECTED],
            completed=counts[RequestStatus.COMPLETED],
            cancelled=counts[RequestStatus.CANCELLED],
        )

    def overdue_requests(self) -> list[WorkRequest]:
        return overdue_requests(self._repository.find_all(), self._clock.now(), self._policy.sla)

    def approaching_sla_requests(self) -> list[WorkRequest]:
        return approaching_sla_requests(
            self._repository.find_all(), self._clock.now(), self._policy.sla
        )

    def sweep_sla_breaches(self) -> list[WorkRequest]:
        """Notify the sink about every overdue request.  Requests are not changed."""
        now = self._clock.now()
        overdue = overdue_requests(self._repository.find_all(), now, self._policy.sla)
        for request in overdue:
            remaining = hours_until_sla(request, now, self._policy.sla)
            logger.warning(
                "sla_breach_detected",
                extra={
                    "request_id": str(request.request_id),
                    "priority": request.priority.value,
                    "hours_until_sla": remaining,
                },
            )
            if self._notifier is not None:
                try:
                    self._notifier.notify_sla_breach(request, remaining)
                except Exception:
                    logger.exception(
                        "notification_failed",
                        extra={"request_id": str(request.request_id), "action": "SLA_BREACH"},
                    )
        return overdue

    def routing_recommendation(self, request_id: UUID) -> RoutingRecommendation:
        request = self._repository.load(request_id)
        return self._routing.routing_recommendation(
            request, resolve_chain(request, self._policy.chain)
        )

    # =====================================================================
    # Internals
    # =====================================================================

    def _route(self, request: WorkRequest, chain: ApprovalChain, now: datetime) -> WorkRequest:
        role = next_required_role(chain, request.approval_step)
        if role is None or not request.is_awaiting_approval:
            return assign_approver(request, None, now)

        if isinstance(request.payload, CrossCampusTransferPayload) and request.approval_step == 0:
            organization_id = request.requester_organization_id
        else:
            organization_id = request.target_organization_id
        approver_id = self._routing.find_best_approver(role, organization_id, request.priority)
        return assign_approver(request, approver_id, now)

    def _swap(self, current: WorkRequest, updated: WorkRequest) -> None:
        """Write ``updated`` over ``current`` or raise StaleRequestError."""
        swapped = self._repository.compare_and_swap(current.request_id, current.version, updated)
        if not swapped:
            if _handed_off(current, updated):
                self._routing.release_workload(_holder(updated))
            raise StaleRequestError(current.request_id, current.version)
        if _handed_off(current, updated):
            self._routing.release_workload(_holder(current))

    def _trust_score(self, user_id: str) -> float:
        if self._trust is None:
            return DEFAULT_TRUST_SCORE
        try:
            score = self._trust.score_of(user_id)
        except Exception:
            logger.exception("trust_lookup_failed", extra={"user_id": user_id})
            return DEFAULT_TRUST_SCORE
        return DEFAULT_TRUST_SCORE if score is None else score

    def record_trust_outcome(self, user_id: str, outcome: TrustOutcome) -> None:
        """Report ``outcome`` to the trust catalog.  Failures are logged only."""
        if self._trust is None or user_id == SYSTEM_REQUESTER_ID:
            return
        try:
            self._trust.adjust(user_id, outcome)
        except Exception:
            logger.exception(
                "trust_adjustment_failed",
                extra={"user_id": user_id, "outcome": outcome.value},
            )

    def _notify(self, request: WorkRequest, action: str) -> None:
        if self._notifier is None:
            return
        try:
            self._notifier.notify_transition(request, action)
        except Exception:
            logger.exception(
                "notification_failed",
                extra={"request_id": str(request.request_id), "action": action},
            )
