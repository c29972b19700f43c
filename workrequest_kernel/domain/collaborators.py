"""
Collaborator protocols (``workrequest_kernel.domain.collaborators``).

The engine is pure.  Everything with side effects -- persistence, identity
lookup, trust scores, notifications -- is reached through these protocols
and injected into ``workrequest_services``.
"""

from __future__ import annotations

from enum import Enum
from typing import Protocol, Sequence
from uuid import UUID

from workrequest_kernel.domain.payloads import RequestType
from workrequest_kernel.domain.roles import Role
from workrequest_kernel.domain.work_request import RequestStatus, WorkRequest


class TrustOutcome(str, Enum):
    """Outcome codes reported to the trust-score collaborator."""

    RETURN = "RETURN"
    HELPED_RETURN = "HELPED_RETURN"
    REQUEST_COMPLETED = "REQUEST_COMPLETED"
    CLAIM_REJECTED = "CLAIM_REJECTED"
    FALSE_CLAIM = "FALSE_CLAIM"


class WorkRequestRepository(Protocol):
    """Durable store for work requests with optimistic concurrency."""

    def save(self, request: WorkRequest) -> UUID: ...

    def load(self, request_id: UUID) -> WorkRequest: ...

    def compare_and_swap(
        self,
        request_id: UUID,
        expected_version: int,
        new_request: WorkRequest,
    ) -> bool: ...

    def find_by_status(self, statuses: Sequence[RequestStatus]) -> list[WorkRequest]: ...

    def find_by_type(self, request_type: RequestType) -> list[WorkRequest]: ...

    def find_by_requester(self, requester_id: str) -> list[WorkRequest]: ...

    def find_by_item(
        self,
        item_id: str,
        request_type: RequestType | None = None,
    ) -> list[WorkRequest]: ...

    def find_all(self) -> list[WorkRequest]: ...


class IdentityProvider(Protocol):
    """Role and affiliation lookup for authorization."""

    def role_of(self, user_id: str) -> Role | None: ...

    def display_name(self, user_id: str) -> str: ...

    def organization_of(self, user_id: str) -> str | None: ...

    def users_with_role(self, role: Role) -> Sequence[str]: ...


class TrustScoreAdjuster(Protocol):
    """Trust-score catalog."""

    def score_of(self, user_id: str) -> float | None: ...

    def is_flagged(self, user_id: str) -> bool: ...

    def is_under_investigation(self, user_id: str) -> bool: ...

    def adjust(self, user_id: str, outcome: TrustOutcome) -> None: ...


class NotificationSink(Protocol):
    """Fire-and-forget notification channel."""

    def notify_transition(self, request: WorkRequest, action: str) -> None: ...

    def notify_sla_breach(self, request: WorkRequest, hours_until_sla: int) -> None: ...
