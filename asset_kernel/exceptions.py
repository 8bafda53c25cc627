"""
Typed Exception Hierarchy for the Asset Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A request lifecycle fails for a handful of well-understood reasons: the
request or asset does not exist, the request is in the wrong state, or a
structural precondition does not hold.  Callers must be able to react to
each of those without parsing message text, so:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Every exception has a KIND attribute (NOT_FOUND, INVALID_STATE,
     VALIDATION_FAILED, CONFLICT) used by the lifecycle result channel
  4. Exceptions carry structured DATA (not just a message string)

Inside the kernel, preconditions raise these exceptions.  At the public
lifecycle boundary ``RequestLifecycleService`` converts them into an
explicit ``LifecycleResult`` so that callers handle failure paths as
values.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    AssetKernelError (base)
    |
    +-- NotFoundError                         kind=NOT_FOUND
    |   +-- RequestNotFoundError
    |   +-- AssetNotFoundError
    |   +-- OutboxEntryNotFoundError
    |
    +-- InvalidStateError                     kind=INVALID_STATE
    |   +-- RequestNotDraftError
    |   +-- ApprovalNotStartedError
    |   +-- RequestNotAwaitingApprovalError
    |   +-- RequestNotApprovedError
    |   +-- OutboxEntryAlreadyProcessedError
    |
    +-- ValidationFailedError                 kind=VALIDATION_FAILED
    |   +-- InvalidInputError
    |   +-- EmptyRequestError
    |   +-- DuplicateAssetError
    |   +-- CostCenterMismatchError
    |   +-- MissingDocumentError
    |   +-- UnsupportedOperationError
    |   +-- UnauthorizedApproverError
    |
    +-- ConcurrencyError                      kind=CONFLICT
    |   +-- OptimisticLockError
    |
    +-- ImmutabilityError
    |   +-- ImmutabilityViolationError
    |
    +-- AuditError
    |   +-- AuditChainBrokenError
    |
    +-- ConfigurationError
        +-- FlowNotConfiguredError

ImmutabilityError, AuditError and ConfigurationError have no kind: they
signal defects, not caller mistakes, and always propagate.

===============================================================================
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Failure categories reported to lifecycle callers."""

    NOT_FOUND = "not_found"
    INVALID_STATE = "invalid_state"
    VALIDATION_FAILED = "validation_failed"
    CONFLICT = "conflict"


class AssetKernelError(Exception):
    """
    Base exception for all asset kernel errors.

    All subclasses must have a ``code`` class attribute for
    machine-readable error identification.
    """

    code: str = "ASSET_KERNEL_ERROR"
    kind: ErrorKind | None = None


# Not-found exceptions


class NotFoundError(AssetKernelError):
    """Base exception for missing entities."""

    code: str = "NOT_FOUND"
    kind = ErrorKind.NOT_FOUND


class RequestNotFoundError(NotFoundError):
    """Request with given ID does not exist for the variant."""

    code: str = "REQUEST_NOT_FOUND"

    def __init__(self, variant: str, request_id: str):
        self.variant = variant
        self.request_id = request_id
        super().__init__(f"{variant.title()} request not found: {request_id}")


class AssetNotFoundError(NotFoundError):
    """Asset referenced by a request is not in the catalog."""

    code: str = "ASSET_NOT_FOUND"

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"Asset not found: {asset_id}")


class OutboxEntryNotFoundError(NotFoundError):
    """Sync outbox entry does not exist."""

    code: str = "OUTBOX_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Sync outbox entry not found: {entry_id}")


# Invalid-state exceptions


class InvalidStateError(AssetKernelError):
    """Base exception for operations not permitted in the current state."""

    code: str = "INVALID_STATE"
    kind = ErrorKind.INVALID_STATE


class RequestNotDraftError(InvalidStateError):
    """Operation is only allowed while the request is in DRAFT."""

    code: str = "REQUEST_NOT_DRAFT"

    def __init__(self, request_no: str, status: str, operation: str):
        self.request_no = request_no
        self.status = status
        self.operation = operation
        super().__init__(
            f"Cannot {operation} on {request_no}: only DRAFT requests "
            f"may be changed (status is {status})"
        )


class ApprovalNotStartedError(InvalidStateError):
    """Approval action on a request that was never submitted."""

    code: str = "APPROVAL_NOT_STARTED"

    def __init__(self, request_no: str):
        self.request_no = request_no
        super().__init__(f"Request {request_no} is not submitted")


class RequestNotAwaitingApprovalError(InvalidStateError):
    """Approval action on a request that is not SUBMITTED or PENDING."""

    code: str = "REQUEST_NOT_AWAITING_APPROVAL"

    def __init__(self, request_no: str, status: str):
        self.request_no = request_no
        self.status = status
        super().__init__(
            f"Invalid status for approval on {request_no}: {status}"
        )


class RequestNotApprovedError(InvalidStateError):
    """Receipt attempted on a request that is not APPROVED."""

    code: str = "REQUEST_NOT_APPROVED"

    def __init__(self, request_no: str, status: str):
        self.request_no = request_no
        self.status = status
        super().__init__(
            f"Only APPROVED requests can be received: {request_no} is {status}"
        )


class OutboxEntryAlreadyProcessedError(InvalidStateError):
    """Result marked on an outbox entry that is no longer PENDING."""

    code: str = "OUTBOX_ENTRY_ALREADY_PROCESSED"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(
            f"Sync outbox entry {entry_id} already processed ({status})"
        )


# Validation exceptions


class ValidationFailedError(AssetKernelError):
    """Base exception for violated structural preconditions."""

    code: str = "VALIDATION_FAILED"
    kind = ErrorKind.VALIDATION_FAILED


class InvalidInputError(ValidationFailedError):
    """A required input field is missing or blank."""

    code: str = "INVALID_INPUT"

    def __init__(self, field_name: str, reason: str = "is required"):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"{field_name} {reason}")


class EmptyRequestError(ValidationFailedError):
    """Submit attempted with no items."""

    code: str = "EMPTY_REQUEST"

    def __init__(self, request_no: str):
        self.request_no = request_no
        super().__init__(f"Please add at least one item to {request_no}")


class DuplicateAssetError(ValidationFailedError):
    """Asset is already an item of the request."""

    code: str = "DUPLICATE_ASSET"

    def __init__(self, request_no: str, asset_id: str):
        self.request_no = request_no
        self.asset_id = asset_id
        super().__init__(f"Asset {asset_id} already added to {request_no}")


class CostCenterMismatchError(ValidationFailedError):
    """Transfer item whose asset is not in the source cost center."""

    code: str = "COST_CENTER_MISMATCH"

    def __init__(self, asset_no: str, asset_cost_center: str, expected: str):
        self.asset_no = asset_no
        self.asset_cost_center = asset_cost_center
        self.expected = expected
        super().__init__(
            f"Asset {asset_no} cost center {asset_cost_center} must match "
            f"source cost center {expected}"
        )


class MissingDocumentError(ValidationFailedError):
    """A document type required for submission is not attached."""

    code: str = "MISSING_DOCUMENT"

    def __init__(self, request_no: str, doc_type: str, reason: str = ""):
        self.request_no = request_no
        self.doc_type = doc_type
        self.reason = reason
        message = f"{doc_type} is required for {request_no}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnsupportedOperationError(ValidationFailedError):
    """Operation does not exist for this request variant."""

    code: str = "UNSUPPORTED_OPERATION"

    def __init__(self, variant: str, operation: str):
        self.variant = variant
        self.operation = operation
        super().__init__(f"{operation} is not supported for {variant} requests")


class UnauthorizedApproverError(ValidationFailedError):
    """Actor lacks the role required by the current approval step."""

    code: str = "UNAUTHORIZED_APPROVER"

    def __init__(self, actor_name: str, required_role: str, step_name: str):
        self.actor_name = actor_name
        self.required_role = required_role
        self.step_name = step_name
        super().__init__(
            f"{actor_name} cannot act on step '{step_name}': "
            f"role {required_role} required"
        )


# Concurrency exceptions


class ConcurrencyError(AssetKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"
    kind = ErrorKind.CONFLICT


class OptimisticLockError(ConcurrencyError):
    """Optimistic locking conflict detected."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(
        self,
        entity_type: str,
        entity_id: str,
        expected_version: int | None = None,
        actual_version: int | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"Optimistic lock conflict on {entity_type} {entity_id}: "
            "entity was modified by another transaction"
        )


# Immutability exceptions


class ImmutabilityError(AssetKernelError):
    """Base exception for immutability-related errors."""

    code: str = "IMMUTABILITY_ERROR"


class ImmutabilityViolationError(ImmutabilityError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )


# Audit exceptions


class AuditError(AssetKernelError):
    """Base exception for audit-related errors."""

    code: str = "AUDIT_ERROR"


class AuditChainBrokenError(AuditError):
    """Approval history hash chain validation failed."""

    code: str = "AUDIT_CHAIN_BROKEN"

    def __init__(self, request_no: str, seq: int, expected_hash: str, actual_hash: str):
        self.request_no = request_no
        self.seq = seq
        self.expected_hash = expected_hash
        self.actual_hash = actual_hash
        super().__init__(
            f"Approval history chain broken for {request_no} at entry {seq}: "
            f"expected {expected_hash}, got {actual_hash}"
        )


# Configuration exceptions


class ConfigurationError(AssetKernelError):
    """Base exception for configuration defects."""

    code: str = "CONFIGURATION_ERROR"


class FlowNotConfiguredError(ConfigurationError):
    """No approval flow matches the variant and amount."""

    code: str = "FLOW_NOT_CONFIGURED"

    def __init__(self, variant: str, amount: str):
        self.variant = variant
        self.amount = amount
        super().__init__(
            f"No approval flow configured for {variant} with total {amount}"
        )


class BudgetThresholdMismatchError(ConfigurationError):
    """Demolish flow boundary disagrees with the budget-document threshold."""

    code: str = "BUDGET_THRESHOLD_MISMATCH"

    def __init__(self, threshold: str, boundaries: list[str]):
        self.threshold = threshold
        self.boundaries = boundaries
        super().__init__(
            f"Demolish flows split at {', '.join(boundaries)} "
            f"but budget_doc_threshold is {threshold}"
        )
