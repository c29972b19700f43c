"""
BaseService -- abstract base for kernel services that write.

Responsibility:
    Common constructor for services that receive a SQLAlchemy ``Session``
    and persist through ``session.flush()``, never ``session.commit()``.

Invariants enforced:
    Services flush within the caller's transaction and never commit or
    roll back themselves.  The caller (``session_scope`` or a test
    fixture) owns the transaction.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """Abstract base class for kernel services."""

    def __init__(self, session: Session):
        self.session = session
