"""ORM models.  Importing this package registers every table on Base.metadata."""

from workrequest_kernel.models.work_request import WorkRequestModel

__all__ = ["WorkRequestModel"]
