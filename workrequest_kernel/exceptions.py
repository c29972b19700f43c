"""
Typed Exception Hierarchy for the Work Request Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Approval workflows have to tell callers precisely *why* an action failed:
a missing field is surfaced to the user, a wrong-role approval is refused,
a lost race is retried by reloading the request.  Parsing message strings to
tell these apart is fragile, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        service.approve_request(request_id, approver_id)
    except StaleRequestError as e:
        retry_later(e.request_id)
    except UnauthorizedApproverError as e:
        api_response(code=e.code, required=e.required_role, actual=e.actual_role)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    WorkRequestError (base)
    |
    +-- ValidationError
    |   +-- RequestValidationError
    |   +-- DuplicateClaimantError
    |   +-- DuplicatePanelMemberError
    |   +-- UnknownClaimantError
    |   +-- PanelMemberNotFoundError
    |   +-- EvidenceNotFoundError
    |   +-- DuplicateEvidenceError
    |   +-- WrongRequestTypeError
    |
    +-- AuthorizationError
    |   +-- UnauthorizedApproverError
    |   +-- NotRequesterError
    |
    +-- StateConflictError
    |   +-- StaleRequestError
    |   +-- DuplicateVoteError
    |   +-- RequestAlreadyTerminalError
    |   +-- InvalidTransitionError
    |   +-- DisputeClosedError
    |
    +-- PolicyAmbiguityError
    +-- RequestNotFoundError
    +-- DuplicateRequestError
    +-- InternalConsistencyError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Validation      | REQUEST_VALIDATION_FAILED   | Required variant fields missing
                | DUPLICATE_CLAIMANT          | Claimant already in the dispute
                | DUPLICATE_PANEL_MEMBER      | Member already seated
                | UNKNOWN_CLAIMANT            | Vote/evidence targets unknown claimant
                | PANEL_MEMBER_NOT_FOUND      | Voter is not seated on the panel
                | EVIDENCE_NOT_FOUND          | Evidence id not in the dispute
                | DUPLICATE_EVIDENCE          | Evidence id already registered
                | WRONG_REQUEST_TYPE          | Operation applied to the wrong variant
----------------|-----------------------------|-----------------------------------------
Authorization   | UNAUTHORIZED_APPROVER       | Role is not chain[approval_step]
                | NOT_REQUESTER               | Cancel by someone other than requester
----------------|-----------------------------|-----------------------------------------
State conflict  | STALE_REQUEST               | Compare-and-swap lost the race
                | DUPLICATE_VOTE              | Panel member already voted
                | REQUEST_ALREADY_TERMINAL    | Mutation on REJECTED/COMPLETED/CANCELLED
                | INVALID_TRANSITION          | Transition not in REQUEST_TRANSITIONS
                | DISPUTE_CLOSED              | Vote after the dispute was resolved
----------------|-----------------------------|-----------------------------------------
Policy          | POLICY_AMBIGUITY            | Dispute escalated, no winner to act on
----------------|-----------------------------|-----------------------------------------
Lookup          | REQUEST_NOT_FOUND           | No request with the given id
                | DUPLICATE_REQUEST           | save() of an id that already exists
----------------|-----------------------------|-----------------------------------------
Fatal           | INTERNAL_CONSISTENCY        | approval_step/approver mismatch etc.

===============================================================================
HANDLING PATTERNS
===============================================================================

1. ValidationError and AuthorizationError are surfaced to the caller
   immediately and never retried.

2. StateConflictError is retried by the caller (reload-and-reapply, see
   workrequest_services.retry) and never swallowed.

3. PolicyAmbiguityError is an escalation signal, not a failure: the
   dispute is in ESCALATED and needs a human or police decision.

4. InternalConsistencyError is fatal.  Log it and stop processing the
   request; do not retry.
===============================================================================
"""

from uuid import UUID


class WorkRequestError(Exception):
    """
    Base exception for all work request engine errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "WORK_REQUEST_ERROR"


# Validation exceptions


class ValidationError(WorkRequestError):
    """Base exception for precondition failures on caller input."""

    code: str = "VALIDATION_ERROR"


class RequestValidationError(ValidationError):
    """Request payload is missing required fields for its variant."""

    code: str = "REQUEST_VALIDATION_FAILED"

    def __init__(self, request_type: str, missing_fields: list[str]):
        self.request_type = request_type
        self.missing_fields = missing_fields
        super().__init__(
            f"Invalid {request_type} request: missing or invalid "
            f"{', '.join(missing_fields)}"
        )


class DuplicateClaimantError(ValidationError):
    """Claimant is already registered on the dispute."""

    code: str = "DUPLICATE_CLAIMANT"

    def __init__(self, claimant_id: str):
        self.claimant_id = claimant_id
        super().__init__(f"Claimant already registered: {claimant_id}")


class DuplicatePanelMemberError(ValidationError):
    """Panel member already holds a seat on the dispute panel."""

    code: str = "DUPLICATE_PANEL_MEMBER"

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Panel member already seated: {member_id}")


class UnknownClaimantError(ValidationError):
    """Referenced claimant does not exist on the dispute."""

    code: str = "UNKNOWN_CLAIMANT"

    def __init__(self, claimant_id: str):
        self.claimant_id = claimant_id
        super().__init__(f"Unknown claimant: {claimant_id}")


class PanelMemberNotFoundError(ValidationError):
    """Voter is not seated on the dispute panel."""

    code: str = "PANEL_MEMBER_NOT_FOUND"

    def __init__(self, member_id: str):
        self.member_id = member_id
        super().__init__(f"Panel member not found: {member_id}")


class EvidenceNotFoundError(ValidationError):
    """Evidence id is not registered on the dispute."""

    code: str = "EVIDENCE_NOT_FOUND"

    def __init__(self, evidence_id: str):
        self.evidence_id = evidence_id
        super().__init__(f"Evidence not found: {evidence_id}")


class DuplicateEvidenceError(ValidationError):
    """Evidence id is already registered on the dispute."""

    code: str = "DUPLICATE_EVIDENCE"

    def __init__(self, evidence_id: str):
        self.evidence_id = evidence_id
        super().__init__(f"Evidence already registered: {evidence_id}")


class WrongRequestTypeError(ValidationError):
    """A variant-specific operation was applied to another variant."""

    code: str = "WRONG_REQUEST_TYPE"

    def __init__(self, request_id: UUID | str, expected: str, actual: str):
        self.request_id = str(request_id)
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Request {request_id} is {actual}, operation requires {expected}"
        )


# Authorization exceptions


class AuthorizationError(WorkRequestError):
    """Base exception for actors attempting actions they may not take."""

    code: str = "AUTHORIZATION_ERROR"


class UnauthorizedApproverError(AuthorizationError):
    """Approver's role does not match the role required at the current step."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(
        self,
        request_id: UUID | str,
        approver_id: str,
        required_role: str | None,
        actual_role: str | None,
        reason: str | None = None,
    ):
        self.request_id = str(request_id)
        self.approver_id = approver_id
        self.required_role = required_role
        self.actual_role = actual_role
        self.reason = reason
        msg = (
            f"User {approver_id} with role {actual_role} cannot act on "
            f"request {request_id}; required role is {required_role}"
        )
        if reason:
            msg = f"{msg} ({reason})"
        super().__init__(msg)


class NotRequesterError(AuthorizationError):
    """Only the requester may withdraw their own request."""

    code: str = "NOT_REQUESTER"

    def __init__(self, request_id: UUID | str, actor_id: str):
        self.request_id = str(request_id)
        self.actor_id = actor_id
        super().__init__(
            f"User {actor_id} is not the requester of request {request_id}"
        )


# State conflict exceptions


class StateConflictError(WorkRequestError):
    """Base exception for stale or conflicting state.  Callers reload and retry."""

    code: str = "STATE_CONFLICT"


class StaleRequestError(StateConflictError):
    """Compare-and-swap lost: the request changed since it was loaded."""

    code: str = "STALE_REQUEST"

    def __init__(self, request_id: UUID | str, expected_version: int):
        self.request_id = str(request_id)
        self.expected_version = expected_version
        super().__init__(
            f"Request {request_id} was modified concurrently "
            f"(expected version {expected_version}); reload and retry"
        )


class DuplicateVoteError(StateConflictError):
    """Panel member has already voted on this dispute."""

    code: str = "DUPLICATE_VOTE"

    def __init__(self, member_id: str, voted_for: str | None):
        self.member_id = member_id
        self.voted_for = voted_for
        super().__init__(
            f"Panel member {member_id} already voted for {voted_for}"
        )


class RequestAlreadyTerminalError(StateConflictError):
    """Request is REJECTED, COMPLETED or CANCELLED and cannot change."""

    code: str = "REQUEST_ALREADY_TERMINAL"

    def __init__(self, request_id: UUID | str, status: str, action: str):
        self.request_id = str(request_id)
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot {action} request {request_id}: status is {status}"
        )


class InvalidTransitionError(StateConflictError):
    """Requested status transition is not in the transition table."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, request_id: UUID | str, from_status: str, to_status: str):
        self.request_id = str(request_id)
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition for request {request_id}: "
            f"{from_status} -> {to_status}"
        )


class DisputeClosedError(StateConflictError):
    """Dispute is already resolved and accepts no further votes."""

    code: str = "DISPUTE_CLOSED"

    def __init__(self, request_id: UUID | str, resolution_status: str):
        self.request_id = str(request_id)
        self.resolution_status = resolution_status
        super().__init__(
            f"Dispute {request_id} is {resolution_status}; no further votes accepted"
        )


# Escalation signal


class PolicyAmbiguityError(WorkRequestError):
    """
    Dispute has no majority winner.

    Not a failure: the dispute is ESCALATED and awaits a manual or police
    decision.  Raised only when a caller demands a winner that does not exist.
    """

    code: str = "POLICY_AMBIGUITY"

    def __init__(self, request_id: UUID | str, resolution_status: str, tally: dict[str, int]):
        self.request_id = str(request_id)
        self.resolution_status = resolution_status
        self.tally = tally
        super().__init__(
            f"Dispute {request_id} has no majority winner "
            f"(status {resolution_status}, tally {tally})"
        )


# Lookup exceptions


class RequestNotFoundError(WorkRequestError):
    """Work request with given ID was not found."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, request_id: UUID | str):
        self.request_id = str(request_id)
        super().__init__(f"Work request not found: {request_id}")


class DuplicateRequestError(WorkRequestError):
    """A request with this id is already stored."""

    code: str = "DUPLICATE_REQUEST"

    def __init__(self, request_id: UUID | str):
        self.request_id = str(request_id)
        super().__init__(f"Work request already exists: {request_id}")


# Fatal


class InternalConsistencyError(WorkRequestError):
    """
    An engine invariant does not hold on a request that reached it.

    Fatal.  Never swallowed or retried.
    """

    code: str = "INTERNAL_CONSISTENCY"

    def __init__(self, request_id: UUID | str | None, detail: str):
        self.request_id = str(request_id) if request_id is not None else None
        self.detail = detail
        super().__init__(f"Internal consistency fault on {request_id}: {detail}")
