"""Read-only query selectors."""

from workrequest_kernel.selectors.work_request_selector import WorkRequestSelector

__all__ = ["WorkRequestSelector"]
