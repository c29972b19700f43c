"""Kernel services: persistence of work requests."""

from workrequest_kernel.services.work_request_store import WorkRequestStore

__all__ = ["WorkRequestStore"]
