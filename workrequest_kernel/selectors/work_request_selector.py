"""
Module: workrequest_kernel.selectors.work_request_selector
Responsibility: Read-only queries over stored work requests.  Filters run
    on the denormalized columns; results are decoded from the document.
Architecture position: Kernel > Selectors.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, select

from workrequest_kernel.domain.payloads import RequestType
from workrequest_kernel.domain.work_request import RequestStatus, WorkRequest
from workrequest_kernel.models.work_request import WorkRequestModel
from workrequest_kernel.selectors.base import BaseSelector


class WorkRequestSelector(BaseSelector):
    """Queries returning ``WorkRequest`` snapshots, oldest first."""

    def _fetch(self, *criteria) -> list[WorkRequest]:
        stmt = (
            select(WorkRequestModel)
            .where(*criteria)
            .order_by(WorkRequestModel.created_at, WorkRequestModel.id)
            .execution_options(populate_existing=True)
        )
        return [m.to_dto() for m in self.session.scalars(stmt)]

    def get(self, request_id: UUID) -> WorkRequest | None:
        stmt = (
            select(WorkRequestModel)
            .where(WorkRequestModel.request_id == request_id)
            .execution_options(populate_existing=True)
        )
        model = self.session.scalars(stmt).one_or_none()
        return model.to_dto() if model is not None else None

    def exists(self, request_id: UUID) -> bool:
        stmt = select(func.count()).where(WorkRequestModel.request_id == request_id)
        return self.session.scalar(stmt) > 0

    def find_all(self) -> list[WorkRequest]:
        return self._fetch()

    def find_by_status(self, statuses: Sequence[RequestStatus]) -> list[WorkRequest]:
        return self._fetch(WorkRequestModel.status.in_([s.value for s in statuses]))

    def find_by_type(self, request_type: RequestType) -> list[WorkRequest]:
        return self._fetch(WorkRequestModel.request_type == request_type.value)

    def find_by_requester(self, requester_id: str) -> list[WorkRequest]:
        return self._fetch(WorkRequestModel.requester_id == requester_id)

    def find_by_item(
        self,
        item_id: str,
        request_type: RequestType | None = None,
    ) -> list[WorkRequest]:
        criteria = [WorkRequestModel.item_id == item_id]
        if request_type is not None:
            criteria.append(WorkRequestModel.request_type == request_type.value)
        return self._fetch(*criteria)

    def find_assigned_to(self, approver_id: str) -> list[WorkRequest]:
        return self._fetch(
            WorkRequestModel.current_approver_id == approver_id,
            WorkRequestModel.status.in_(
                [RequestStatus.PENDING.value, RequestStatus.IN_PROGRESS.value]
            ),
        )

    def count_by_status(self) -> dict[RequestStatus, int]:
        """Counts for every status, zero-filled."""
        stmt = select(WorkRequestModel.status, func.count()).group_by(WorkRequestModel.status)
        counts = {status: 0 for status in RequestStatus}
        for status, count in self.session.execute(stmt):
            counts[RequestStatus(status)] = count
        return counts
