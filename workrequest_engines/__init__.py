"""
Module: workrequest_engines
Responsibility:
    Package entrypoint re-exporting the pure engine functions.  This is
    the import surface for ``workrequest_services``.

Architecture position:
    Engines -- pure functional layer, zero I/O.
    May only import workrequest_kernel (domain, exceptions, logging).
    MUST NOT import workrequest_services or workrequest_config.

Invariants enforced:
    - Purity: engines never read the wall clock.  ``now`` is an argument.
    - Immutability: every mutating operation returns a new ``WorkRequest``
      with ``version`` incremented and an audit record appended.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from workrequest_engines import resolve_chain, advance, record_panel_vote
    from workrequest_engines.sla import overdue_requests
    from workrequest_engines.custody import confirm_delivery
"""

from workrequest_engines.chain_resolver import (
    needs_approval_from_role,
    next_required_role,
    requires_police_verification,
    resolve_chain,
)
from workrequest_engines.describe import describe_chain, summarize_request
from workrequest_engines.dispute import (
    add_claimant,
    add_evidence,
    add_panel_member,
    award_to_claimant,
    determine_resolution,
    dispute_status_summary,
    escalate_to_police,
    record_panel_vote,
    record_police_findings,
    require_winner,
    set_manual_resolution,
    tally_votes,
    verify_evidence,
)
from workrequest_engines.lifecycle import (
    CompletionPath,
    add_note,
    advance,
    assign_approver,
    cancel,
    check_invariants,
    complete,
    open_request,
    reject,
    set_priority,
    update_payload,
)
from workrequest_engines.priority import determine_priority
from workrequest_engines.routing import Candidate, RoutingRecommendation, select_approver
from workrequest_engines.sla import (
    SlaStatus,
    approaching_sla_requests,
    evaluate_sla,
    hours_until_sla,
    is_overdue,
    overdue_requests,
)
from workrequest_engines.trust import (
    TrustScreening,
    apply_outcome,
    classify_rejection,
    screen_requester,
)
from workrequest_engines.validation import ValidationResult, require_valid, validate_request

__all__ = [
    "Candidate",
    "CompletionPath",
    "RoutingRecommendation",
    "SlaStatus",
    "TrustScreening",
    "ValidationResult",
    "add_claimant",
    "add_evidence",
    "add_note",
    "add_panel_member",
    "advance",
    "apply_outcome",
    "approaching_sla_requests",
    "assign_approver",
    "award_to_claimant",
    "cancel",
    "check_invariants",
    "classify_rejection",
    "complete",
    "describe_chain",
    "determine_priority",
    "determine_resolution",
    "dispute_status_summary",
    "escalate_to_police",
    "evaluate_sla",
    "hours_until_sla",
    "is_overdue",
    "needs_approval_from_role",
    "next_required_role",
    "open_request",
    "overdue_requests",
    "record_panel_vote",
    "record_police_findings",
    "reject",
    "require_valid",
    "require_winner",
    "requires_police_verification",
    "resolve_chain",
    "screen_requester",
    "select_approver",
    "set_manual_resolution",
    "set_priority",
    "summarize_request",
    "tally_votes",
    "update_payload",
    "validate_request",
]
