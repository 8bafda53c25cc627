"""
RequestLifecycleService -- the approval-driven request lifecycle engine.

Responsibility:
    Runs every state-changing operation on an asset request: draft
    creation, item and document attachment, submission into an approval
    chain, approval decisions, and receipt.  One engine serves both request
    variants; everything variant specific comes from a ``VariantPolicy``.

Architecture position:
    Kernel > Services.  Composes the request store, request number
    allocator, approval flow resolver, audit trail builder, and the
    ``AssetCatalog`` / ``SyncTrigger`` collaborators.  Variant facades in
    ``asset_modules`` are thin wrappers around this class.

Invariants enforced:
    - Each public operation owns the transaction boundary: commit on
      success, rollback on failure or exception.
    - Validation always precedes mutation; a failed operation leaves the
      request, the catalog and the outbox untouched.
    - Allowed (state, action) pairs come from the policy's ``Workflow``.
    - Every approval action appends a hash-chained history entry that
      records the step active before the action.
    - ``total_book_value`` equals the sum of item book values, rounded
      half-up to cents.
    - Every write bumps ``version``; concurrent writers lose with CONFLICT.

Failure modes:
    - Kernel errors with a kind (NOT_FOUND, INVALID_STATE,
      VALIDATION_FAILED, CONFLICT) -> ``LifecycleResult`` with
      ``is_success == False``; session rolled back.
    - Configuration defects and unexpected exceptions -> session rolled
      back, exception re-raised.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, replace
from uuid import UUID, uuid4

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from asset_engines.approval_flow import ApprovalFlowResolver
from asset_kernel.domain.approval import (
    APPROVED_STEP_NAME,
    DECISION_ACTIONS,
    ApprovalAction,
    ApprovalHistoryEntry,
    ApprovalState,
)
from asset_kernel.domain.asset import AssetCatalog
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.ids import IdProvider, UUID4Provider
from asset_kernel.domain.policy import (
    LifecycleAction,
    LifecycleEffects,
    VariantPolicy,
)
from asset_kernel.domain.request import (
    AssetRequest,
    DocumentType,
    RequestStatus,
    RequestSummary,
    TransferDetails,
    quantize_total,
)
from asset_kernel.domain.sync import SyncTrigger
from asset_kernel.exceptions import (
    ApprovalNotStartedError,
    AssetKernelError,
    AssetNotFoundError,
    DuplicateAssetError,
    EmptyRequestError,
    ErrorKind,
    InvalidInputError,
    OptimisticLockError,
    RequestNotApprovedError,
    RequestNotAwaitingApprovalError,
    RequestNotDraftError,
    UnauthorizedApproverError,
    UnsupportedOperationError,
)
from asset_kernel.logging_config import LogContext, get_logger
from asset_kernel.models.request import (
    ApprovalHistoryModel,
    AssetRequestDocumentModel,
    AssetRequestItemModel,
    AssetRequestModel,
)
from asset_kernel.services.asset_catalog import SqlAssetCatalog
from asset_kernel.services.audit_trail import AuditTrailBuilder
from asset_kernel.services.request_number_service import RequestNumberAllocator
from asset_kernel.services.request_store import RequestStore
from asset_kernel.services.sync_outbox_service import SyncOutboxService

logger = get_logger("services.lifecycle")

SUBMITTED_COMMENT = "Submitted to approval"
RECEIVED_COMMENT = "Supplies received"

# Accepted as "no filter" by the list operations.
ALL_STATUSES = "ALL"

# Workflow guards the engine knows how to evaluate, by guard name.
GUARD_CHECKS: dict[str, Callable[[AssetRequest], bool]] = {
    "has_items": lambda request: bool(request.items),
    "last_step": lambda request: request.approval is not None and request.approval.is_last_step,
    "not_last_step": lambda request: (
        request.approval is not None and not request.approval.is_last_step
    ),
}


@dataclass(frozen=True)
class LifecycleResult:
    """Outcome of a lifecycle operation.

    On success ``request`` is the post-operation snapshot.  On failure
    ``error_kind``/``error_code``/``message`` describe the first violated
    precondition and nothing was written.
    """

    operation: str
    request: AssetRequest | None = None
    error_kind: ErrorKind | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(cls, operation: str, request: AssetRequest | None) -> LifecycleResult:
        return cls(operation=operation, request=request)

    @classmethod
    def failure(cls, operation: str, error: AssetKernelError) -> LifecycleResult:
        return cls(
            operation=operation,
            error_kind=error.kind,
            error_code=error.code,
            message=str(error),
        )


def _require(field_name: str, value: str | None) -> str:
    if value is None or not str(value).strip():
        raise InvalidInputError(field_name)
    return value


class RequestLifecycleService:
    """
    Generic lifecycle engine, parameterized by a variant policy.

    Contract:
        Mutating operations return ``LifecycleResult``; callers inspect
        ``result.is_success``.  Read operations return snapshots directly.

    Non-goals:
        - Does NOT authenticate actors; ``actor_roles`` is trusted input.
        - Does NOT deliver sync entries; it only enqueues them.
    """

    def __init__(
        self,
        session: Session,
        policy: VariantPolicy,
        resolver: ApprovalFlowResolver,
        catalog: AssetCatalog | None = None,
        sync: SyncTrigger | None = None,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ):
        self._session = session
        self._policy = policy
        self._resolver = resolver
        self._clock = clock or SystemClock()
        self._ids = id_provider or UUID4Provider()
        self._catalog = catalog or SqlAssetCatalog(session, self._clock)
        self._sync = sync or SyncOutboxService(session, self._clock, self._ids)

        self._store = RequestStore(session)
        self._numbers = RequestNumberAllocator(session, self._clock)
        self._audit = AuditTrailBuilder(self._clock, self._ids)
        self._effects = LifecycleEffects(catalog=self._catalog, sync=self._sync)

    @property
    def policy(self) -> VariantPolicy:
        return self._policy

    @property
    def audit_trail(self) -> AuditTrailBuilder:
        return self._audit

    # =========================================================================
    # Transaction boundary
    # =========================================================================

    def _run(
        self,
        operation: str,
        fn: Callable[[], AssetRequest | None],
        *,
        request_id: UUID | None = None,
        actor_name: str | None = None,
    ) -> LifecycleResult:
        t0 = time.monotonic()
        with LogContext.bind(
            correlation_id=str(uuid4()),
            operation=operation,
            request_id=str(request_id) if request_id is not None else None,
            actor_name=actor_name,
            variant=self._policy.variant.value,
        ):
            logger.info("lifecycle_operation_started")
            try:
                try:
                    request = fn()
                    self._session.commit()
                except StaleDataError as exc:
                    # Autoflush or commit lost the version race.
                    raise OptimisticLockError(
                        "AssetRequest", str(request_id),
                    ) from exc
            except AssetKernelError as exc:
                self._session.rollback()
                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                if exc.kind is None:
                    logger.error(
                        "lifecycle_operation_failed",
                        extra={"duration_ms": duration_ms},
                        exc_info=True,
                    )
                    raise
                logger.warning(
                    "lifecycle_operation_rejected",
                    extra={
                        "error_kind": exc.kind.value,
                        "error_code": exc.code,
                        "reason": str(exc),
                        "duration_ms": duration_ms,
                    },
                )
                return LifecycleResult.failure(operation, exc)
            except Exception:
                self._session.rollback()
                logger.error(
                    "lifecycle_operation_failed",
                    extra={
                        "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                    },
                    exc_info=True,
                )
                raise

            logger.info(
                "lifecycle_operation_completed",
                extra={
                    "request_no": request.request_no if request else None,
                    "status": request.status.value if request else None,
                    "version": request.version if request else None,
                    "duration_ms": round((time.monotonic() - t0) * 1000, 2),
                },
            )
            return LifecycleResult.success(operation, request)

    # =========================================================================
    # Guards
    # =========================================================================

    def _load(
        self, request_id: UUID, expected_version: int | None,
    ) -> AssetRequestModel:
        model = self._store.get(self._policy.variant, request_id)
        if expected_version is not None and model.version != expected_version:
            raise OptimisticLockError(
                "AssetRequest",
                str(request_id),
                expected_version=expected_version,
                actual_version=model.version,
            )
        return model

    def _allows(self, model: AssetRequestModel, action: LifecycleAction) -> bool:
        return self._policy.workflow.allows(model.status, action.value)

    def _target(self, request: AssetRequest, action: LifecycleAction) -> RequestStatus | None:
        target = self._policy.workflow.target(
            request.status.value,
            action.value,
            lambda guard: GUARD_CHECKS[guard.name](request),
        )
        return RequestStatus(target) if target is not None else None

    def _require_draft(self, model: AssetRequestModel, action: LifecycleAction) -> None:
        if not self._allows(model, action):
            raise RequestNotDraftError(model.request_no, model.status, action.value)

    def _require_supported(self, supported: bool, operation: str) -> None:
        if not supported:
            raise UnsupportedOperationError(self._policy.variant.value, operation)

    def _history_row(self, entry: ApprovalHistoryEntry) -> ApprovalHistoryModel:
        return ApprovalHistoryModel(
            id=entry.entry_id,
            seq=entry.seq,
            step_order=entry.step_order,
            step_name=entry.step_name,
            action=entry.action.value,
            actor_name=entry.actor_name,
            acted_at=entry.acted_at,
            comment=entry.comment,
            prev_hash=entry.prev_hash,
            entry_hash=entry.entry_hash,
        )

    def _write(self, model: AssetRequestModel) -> AssetRequest:
        model.bump_version(self._clock.now())
        self._store.save(model)
        return model.to_dto()

    # =========================================================================
    # Draft
    # =========================================================================

    def create_draft(
        self,
        company_id: str,
        plant_id: str,
        created_by_name: str,
        details: TransferDetails | None = None,
    ) -> LifecycleResult:
        """
        Create a request in DRAFT with a freshly allocated request number.

        Preconditions:
            - ``company_id``, ``plant_id``, ``created_by_name`` non-blank.
            - Variant-specific ``details`` valid for the policy.
        Postconditions:
            - Request in the workflow's initial state, total 0.00, no items,
              documents or history, version 1.
        """

        def op() -> AssetRequest:
            _require("company_id", company_id)
            _require("plant_id", plant_id)
            _require("created_by_name", created_by_name)
            transfer = self._policy.normalize_details(details)

            variant = self._policy.variant
            request_no = self._numbers.allocate(
                self._policy.request_no_prefix,
                self._store.request_numbers(variant),
            )
            now = self._clock.now()
            model = AssetRequestModel(
                id=self._ids.new_id(),
                variant=variant.value,
                request_no=request_no,
                company_id=company_id,
                plant_id=plant_id,
                created_by_name=created_by_name,
                created_at=now,
                updated_at=now,
                status=self._policy.workflow.initial_state,
                total_book_value=quantize_total(()),
                version=1,
            )
            if transfer is not None:
                model.from_cost_center = transfer.from_cost_center
                model.to_cost_center = transfer.to_cost_center
                model.to_location = transfer.to_location
                model.to_owner_name = transfer.to_owner_name
                model.to_owner_email = transfer.to_owner_email
            self._store.add(model)
            return model.to_dto()

        return self._run("create_draft", op, actor_name=created_by_name)

    def add_item(
        self,
        request_id: UUID,
        asset_id: UUID,
        note: str | None = None,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        """
        Attach an asset to a draft, freezing its current book value.

        Failure order: request not found, not DRAFT, asset not found,
        asset already on the request, variant rule (transfer cost center).
        """

        def op() -> AssetRequest:
            model = self._load(request_id, expected_version)
            self._require_draft(model, LifecycleAction.ADD_ITEM)

            asset = self._catalog.lookup(asset_id)
            if asset is None:
                raise AssetNotFoundError(str(asset_id))

            request = model.to_dto()
            if asset_id in request.asset_ids:
                raise DuplicateAssetError(request.request_no, str(asset_id))
            self._policy.validate_item(request, asset)

            model.items.append(
                AssetRequestItemModel(
                    id=self._ids.new_id(),
                    position=len(model.items) + 1,
                    asset_id=asset.asset_id,
                    asset_no=asset.asset_no,
                    asset_name=asset.name,
                    book_value_at_request=asset.book_value,
                    note=note,
                )
            )
            model.total_book_value = quantize_total(
                item.book_value_at_request for item in model.items
            )
            return self._write(model)

        return self._run("add_item", op, request_id=request_id)

    def add_document(
        self,
        request_id: UUID,
        doc_type: DocumentType | str,
        file_name: str,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        """Attach a supporting document record to a draft."""

        def op() -> AssetRequest:
            model = self._load(request_id, expected_version)
            self._require_supported(self._policy.supports_documents, "add_document")
            self._require_draft(model, LifecycleAction.ADD_DOCUMENT)

            try:
                kind = DocumentType(doc_type)
            except ValueError:
                raise InvalidInputError(
                    "doc_type", f"is not a known document type: {doc_type}",
                ) from None
            _require("file_name", file_name)

            model.documents.append(
                AssetRequestDocumentModel(
                    id=self._ids.new_id(),
                    position=len(model.documents) + 1,
                    doc_type=kind.value,
                    file_name=file_name,
                    uploaded_at=self._clock.now(),
                )
            )
            return self._write(model)

        return self._run("add_document", op, request_id=request_id)

    # =========================================================================
    # Approval
    # =========================================================================

    def submit(
        self,
        request_id: UUID,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        """
        Move a draft into its approval chain.

        Postconditions:
            - Approval resolved from the current total, positioned on step 1.
            - Status SUBMITTED.
            - One COMMENT history entry by the creator.
        """

        def op() -> AssetRequest:
            model = self._load(request_id, expected_version)
            self._require_draft(model, LifecycleAction.SUBMIT)

            request = model.to_dto()
            if self._target(request, LifecycleAction.SUBMIT) is None:
                raise EmptyRequestError(request.request_no)
            self._policy.validate_submission(request)

            resolved = self._resolver.resolve(
                variant=request.variant.value,
                total_book_value=request.total_book_value,
            )
            approval = ApprovalState(
                flow_code=resolved.flow_code,
                steps=resolved.steps,
                current_step_order=1,
                current_step_name=resolved.steps[0].name,
            )
            entry = self._audit.append(
                replace(request, approval=approval),
                ApprovalAction.COMMENT,
                request.created_by_name,
                SUBMITTED_COMMENT,
            )

            model.approval_flow_code = approval.flow_code
            model.approval_steps = [step.to_dict() for step in approval.steps]
            model.current_step_order = approval.current_step_order
            model.current_step_name = approval.current_step_name
            model.status = RequestStatus.SUBMITTED.value
            model.history.append(self._history_row(entry))
            return self._write(model)

        return self._run("submit", op, request_id=request_id)

    def act_on_approval(
        self,
        request_id: UUID,
        action: ApprovalAction | str,
        actor_name: str,
        comment: str | None = None,
        actor_roles: frozenset[str] | set[str] | tuple[str, ...] | None = None,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        """
        Approve or reject the current step.

        The history entry is appended first and records the step the action
        was taken on.  REJECT is terminal.  APPROVE advances to the next
        step (PENDING) or, on the last step, sets APPROVED and runs the
        policy's final-approval side effects.

        When ``actor_roles`` is given it must contain the current step's
        approver role.
        """

        def op() -> AssetRequest:
            try:
                decision = ApprovalAction(action)
            except ValueError:
                decision = None
            if decision not in DECISION_ACTIONS:
                raise InvalidInputError("action", "must be APPROVE or REJECT")
            _require("actor_name", actor_name)

            model = self._load(request_id, expected_version)
            if model.approval_flow_code is None:
                raise ApprovalNotStartedError(model.request_no)
            lifecycle_action = (
                LifecycleAction.APPROVE
                if decision == ApprovalAction.APPROVE
                else LifecycleAction.REJECT
            )
            if not self._allows(model, lifecycle_action):
                raise RequestNotAwaitingApprovalError(model.request_no, model.status)

            request = model.to_dto()
            approval = request.approval
            step = approval.current_step
            if actor_roles is not None and step.approver_role not in actor_roles:
                raise UnauthorizedApproverError(actor_name, step.approver_role, step.name)

            new_status = self._target(request, lifecycle_action)
            finalizing = new_status == RequestStatus.APPROVED
            if finalizing:
                self._policy.prepare_final_approval(request, self._catalog)

            entry = self._audit.append(request, decision, actor_name, comment)
            model.history.append(self._history_row(entry))

            model.status = new_status.value
            if new_status == RequestStatus.PENDING:
                next_order = approval.current_step_order + 1
                model.current_step_order = next_order
                model.current_step_name = approval.steps[next_order - 1].name
            elif finalizing:
                model.current_step_name = APPROVED_STEP_NAME
                self._policy.on_final_approval(model.to_dto(), self._effects)

            logger.info(
                "approval_action_recorded",
                extra={
                    "request_no": model.request_no,
                    "action": decision.value,
                    "step_order": entry.step_order,
                    "step_name": entry.step_name,
                    "new_status": model.status,
                },
            )
            return self._write(model)

        return self._run("act_on_approval", op, request_id=request_id, actor_name=actor_name)

    def receive(
        self,
        request_id: UUID,
        actor_name: str,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        """Confirm receipt of an approved request and hand it to sync."""

        def op() -> AssetRequest:
            _require("actor_name", actor_name)
            model = self._load(request_id, expected_version)
            self._require_supported(self._policy.supports_receipt, "receive")
            if not self._allows(model, LifecycleAction.RECEIVE):
                raise RequestNotApprovedError(model.request_no, model.status)

            request = model.to_dto()
            entry = self._audit.append(
                request, ApprovalAction.COMMENT, actor_name, RECEIVED_COMMENT,
            )
            model.history.append(self._history_row(entry))
            model.status = RequestStatus.RECEIVED.value
            model.received_at = self._clock.now()
            model.received_by = actor_name
            self._policy.on_receipt(model.to_dto(), self._effects)
            return self._write(model)

        return self._run("receive", op, request_id=request_id, actor_name=actor_name)

    # =========================================================================
    # Read side
    # =========================================================================

    def get_request(self, request_id: UUID) -> LifecycleResult:
        def op() -> AssetRequest:
            return self._store.get(
                self._policy.variant, request_id, for_update=False,
            ).to_dto()

        return self._run("get_request", op, request_id=request_id)

    def list_requests(self, status: RequestStatus | str | None = None) -> list[AssetRequest]:
        """Requests of this variant, newest first."""
        status_filter = None
        if status is not None and status != ALL_STATUSES:
            try:
                status_filter = RequestStatus(status)
            except ValueError:
                raise InvalidInputError(
                    "status", f"unknown status {status!r}",
                ) from None
        models = self._store.list_all(self._policy.variant, status_filter)
        return [model.to_dto() for model in models]

    def list_summaries(self, status: RequestStatus | str | None = None) -> list[RequestSummary]:
        return [self.summarize(request) for request in self.list_requests(status)]

    def summarize(self, request: AssetRequest) -> RequestSummary:
        transfer = request.transfer
        return RequestSummary(
            request_id=request.request_id,
            variant=request.variant,
            request_no=request.request_no,
            status=request.status,
            total_book_value=request.total_book_value,
            created_at=request.created_at,
            created_by_name=request.created_by_name,
            item_count=len(request.items),
            current_approver=self._policy.current_approver_label(request),
            from_cost_center=transfer.from_cost_center if transfer else None,
            to_cost_center=transfer.to_cost_center if transfer else None,
            to_owner_name=transfer.to_owner_name if transfer else None,
            to_owner_email=transfer.to_owner_email if transfer else None,
        )

    def status_options(self) -> tuple[str, ...]:
        return self._policy.status_options()

    def verify_history(self, request_id: UUID) -> bool:
        """Recompute the history hash chain; raises AuditChainBrokenError."""
        model = self._store.get(self._policy.variant, request_id, for_update=False)
        return self._audit.verify(model.to_dto())
