"""
Module: workrequest_kernel.models.work_request
Responsibility: ORM persistence for work request documents.

Architecture position: Kernel > Models.  May import from db/base.py and the
    document codec.

Invariants enforced:
    - The full aggregate lives in ``document``; the scalar columns beside
      it are denormalized copies used for filtering and must always be
      written together with the document (``apply_request``).
    - ``version`` mirrors ``WorkRequest.version`` and keys compare-and-swap.
    - ``document_hash`` is recomputed on every write and verified on load.

Failure modes:
    - IntegrityError on a duplicate ``request_id``.
    - InternalConsistencyError if a loaded document does not match its hash.
"""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from sqlalchemy import JSON, CheckConstraint, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from workrequest_kernel.db.base import Base, UUIDString
from workrequest_kernel.documents import (
    document_hash,
    request_from_document,
    request_to_document,
)
from workrequest_kernel.exceptions import InternalConsistencyError

if TYPE_CHECKING:
    from workrequest_kernel.domain.work_request import WorkRequest


class WorkRequestModel(Base):
    """Persistent work request document."""

    __tablename__ = "work_requests"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'IN_PROGRESS', 'APPROVED', 'REJECTED', "
            "'COMPLETED', 'CANCELLED')",
            name="ck_work_requests_valid_status",
        ),
        CheckConstraint("approval_step >= 0", name="ck_work_requests_step_non_negative"),
        Index("idx_work_requests_status", "status"),
        Index("idx_work_requests_type_status", "request_type", "status"),
        Index("idx_work_requests_requester", "requester_id"),
        Index("idx_work_requests_item", "item_id"),
    )

    request_id: Mapped[UUID] = mapped_column(UUIDString(), unique=True, nullable=False)
    request_type: Mapped[str] = mapped_column(String(50), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    priority: Mapped[str] = mapped_column(String(10), nullable=False)
    requester_id: Mapped[str] = mapped_column(String(100), nullable=False)
    item_id: Mapped[str] = mapped_column(String(100), nullable=False)
    current_approver_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    approval_step: Mapped[int] = mapped_column(nullable=False, default=0)
    version: Mapped[int] = mapped_column(nullable=False, default=0)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)
    last_updated_at: Mapped[datetime | None] = mapped_column(nullable=True)
    document: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    document_hash: Mapped[str] = mapped_column(String(64), nullable=False)

    def to_dto(self) -> WorkRequest:
        """Convert ORM model to frozen domain object."""
        if document_hash(self.document) != self.document_hash:
            raise InternalConsistencyError(
                self.request_id, "stored document does not match its hash"
            )
        return request_from_document(self.document)

    @classmethod
    def from_dto(cls, request: WorkRequest) -> WorkRequestModel:
        """Create ORM model from domain object."""
        model = cls(request_id=request.request_id)
        model.apply_request(request)
        return model

    @staticmethod
    def column_values(request: WorkRequest) -> dict[str, Any]:
        """Column values for ``request``, shared by inserts and conditional updates."""
        doc = request_to_document(request)
        return {
            "request_type": request.request_type.value,
            "status": request.status.value,
            "priority": request.priority.value,
            "requester_id": request.requester_id,
            "item_id": request.item_id,
            "current_approver_id": request.current_approver_id,
            "approval_step": request.approval_step,
            "version": request.version,
            "created_at": request.created_at,
            "last_updated_at": request.last_updated_at,
            "document": doc,
            "document_hash": document_hash(doc),
        }

    def apply_request(self, request: WorkRequest) -> None:
        for key, value in self.column_values(request).items():
            setattr(self, key, value)

    def __repr__(self) -> str:
        return (
            f"<WorkRequestModel {self.request_id} {self.request_type} "
            f"{self.status} v{self.version}>"
        )
