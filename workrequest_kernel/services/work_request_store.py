"""
WorkRequestStore -- SQLAlchemy-backed work request repository.

Responsibility:
    Durable save/load of ``WorkRequest`` aggregates and the optimistic
    compare-and-swap that serializes concurrent mutations of one request.

Architecture position:
    Kernel > Services -- imperative shell.  Implements the
    ``WorkRequestRepository`` protocol used by ``workrequest_services``.

Invariants enforced:
    - Compare-and-swap is a single ``UPDATE ... WHERE request_id = :id AND
      version = :expected``.  Of two writers holding the same version,
      exactly one sees rowcount 1.
    - A swapped-in request must carry a version above ``expected``; one
      service call may apply several engine revisions before it swaps.
    - The store flushes and never commits; the caller owns the transaction.

Failure modes:
    - RequestNotFoundError from ``load`` on an unknown id.
    - DuplicateRequestError from ``save`` on an id that is already stored.
    - InternalConsistencyError when a caller swaps in a request whose
      version does not move past the expected one.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from workrequest_kernel.domain.payloads import RequestType
from workrequest_kernel.domain.work_request import RequestStatus, WorkRequest
from workrequest_kernel.exceptions import (
    DuplicateRequestError,
    InternalConsistencyError,
    RequestNotFoundError,
)
from workrequest_kernel.logging_config import get_logger
from workrequest_kernel.models.work_request import WorkRequestModel
from workrequest_kernel.selectors.work_request_selector import WorkRequestSelector
from workrequest_kernel.services.base import BaseService

logger = get_logger("services.work_request_store")


class WorkRequestStore(BaseService):
    """Repository over the ``work_requests`` table."""

    def __init__(self, session: Session):
        super().__init__(session)
        self._selector = WorkRequestSelector(session)

    def save(self, request: WorkRequest) -> UUID:
        """Insert a new request.  Use ``compare_and_swap`` for updates."""
        if self._selector.exists(request.request_id):
            raise DuplicateRequestError(request.request_id)
        self.session.add(WorkRequestModel.from_dto(request))
        self.session.flush()
        logger.debug(
            "work_request_saved",
            extra={
                "request_id": str(request.request_id),
                "request_type": request.request_type.value,
                "version": request.version,
            },
        )
        return request.request_id

    def load(self, request_id: UUID) -> WorkRequest:
        request = self._selector.get(request_id)
        if request is None:
            raise RequestNotFoundError(request_id)
        return request

    def compare_and_swap(
        self,
        request_id: UUID,
        expected_version: int,
        new_request: WorkRequest,
    ) -> bool:
        """Replace the stored request if it is still at ``expected_version``."""
        if new_request.request_id != request_id:
            raise InternalConsistencyError(
                request_id, f"swap carries request {new_request.request_id}"
            )
        if new_request.version <= expected_version:
            raise InternalConsistencyError(
                request_id,
                f"swap version {new_request.version} does not follow {expected_version}",
            )

        stmt = (
            update(WorkRequestModel)
            .where(
                WorkRequestModel.request_id == request_id,
                WorkRequestModel.version == expected_version,
            )
            .values(**WorkRequestModel.column_values(new_request))
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(stmt)
        swapped = result.rowcount == 1

        if swapped:
            logger.debug(
                "work_request_swapped",
                extra={
                    "request_id": str(request_id),
                    "version": new_request.version,
                    "status": new_request.status.value,
                },
            )
        else:
            logger.info(
                "work_request_swap_conflict",
                extra={
                    "request_id": str(request_id),
                    "expected_version": expected_version,
                },
            )
        return swapped

    # Queries delegate to the selector so the store satisfies the repository protocol.

    def find_all(self) -> list[WorkRequest]:
        return self._selector.find_all()

    def find_by_status(self, statuses: Sequence[RequestStatus]) -> list[WorkRequest]:
        return self._selector.find_by_status(statuses)

    def find_by_type(self, request_type: RequestType) -> list[WorkRequest]:
        return self._selector.find_by_type(request_type)

    def find_by_requester(self, requester_id: str) -> list[WorkRequest]:
        return self._selector.find_by_requester(requester_id)

    def find_by_item(
        self,
        item_id: str,
        request_type: RequestType | None = None,
    ) -> list[WorkRequest]:
        return self._selector.find_by_item(item_id, request_type)
