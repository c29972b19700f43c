"""
workrequest_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the pure engines: the only layer that holds
    collaborators (repository, identity, trust, notifications), reads the
    clock, and keeps mutable routing state.

Architecture position:
    Services -- stateful orchestration over engines + kernel.

    Dependency direction:
        workrequest_services/ -> workrequest_engines/  (allowed)
        workrequest_services/ -> workrequest_kernel/   (allowed)
        workrequest_services/ -> workrequest_config/   (allowed)
        workrequest_engines/  -> workrequest_services/ (FORBIDDEN)
        workrequest_kernel/   -> workrequest_services/ (FORBIDDEN)

Invariants enforced:
    - Every mutation is load, apply, compare-and-swap.  Lost races surface
      as ``StaleRequestError``; ``apply_with_retry`` is the caller-side
      reload-and-reapply loop.
"""

from workrequest_services.dispute_service import DisputeService
from workrequest_services.retry import MAX_CONFLICT_RETRIES, apply_with_retry
from workrequest_services.routing_service import RoutingService
from workrequest_services.work_request_service import WorkRequestService, WorkRequestStats

__all__ = [
    "MAX_CONFLICT_RETRIES",
    "DisputeService",
    "RoutingService",
    "WorkRequestService",
    "WorkRequestStats",
    "apply_with_retry",
]
