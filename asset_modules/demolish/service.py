"""
Demolish Module Service (``asset_modules.demolish.service``).

Responsibility
--------------
Public entry point for demolish (write-off) requests: drafts, assets,
supporting documents, submission, approval decisions, receipt, and the
list views.

Architecture position
---------------------
**Modules layer** -- thin glue.  Every operation is delegated to the
kernel ``RequestLifecycleService`` configured with ``DemolishPolicy``.

Invariants enforced
-------------------
* Each mutating method owns the transaction boundary (commit on success,
  rollback on failure) through the lifecycle engine.
* Sync entries are written in the same transaction as the receipt.

Usage::

    service = DemolishService(session, clock=clock)
    draft = service.create_draft("C01", "P01", "Somchai").request
    service.add_item(draft.request_id, asset_id)
    service.add_document(draft.request_id, DocumentType.APPROVAL_DOC, "memo.pdf")
    result = service.submit(draft.request_id)
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from uuid import UUID

from sqlalchemy.orm import Session

from asset_config import ApprovalFlowSet, get_approval_flows
from asset_engines.approval_flow import ApprovalFlowResolver
from asset_kernel.domain.approval import ApprovalAction, ApprovalFlow
from asset_kernel.domain.asset import AssetCatalog
from asset_kernel.domain.clock import Clock
from asset_kernel.domain.ids import IdProvider
from asset_kernel.domain.request import (
    AssetRequest,
    DocumentType,
    RequestStatus,
    RequestSummary,
)
from asset_kernel.domain.sync import SyncTrigger
from asset_kernel.exceptions import BudgetThresholdMismatchError
from asset_kernel.logging_config import get_logger
from asset_kernel.services.lifecycle_service import (
    LifecycleResult,
    RequestLifecycleService,
)
from asset_modules.demolish.config import DemolishConfig
from asset_modules.demolish.policy import DemolishPolicy

logger = get_logger("modules.demolish.service")


def check_budget_threshold(flows: Iterable[ApprovalFlow], threshold: Decimal) -> None:
    """Every amount bound of the demolish flows must equal ``threshold``."""
    boundaries = sorted(
        {bound for flow in flows for bound in (flow.up_to, flow.above) if bound is not None}
    )
    if any(bound != threshold for bound in boundaries):
        raise BudgetThresholdMismatchError(
            str(threshold), [str(bound) for bound in boundaries],
        )


class DemolishService:
    """
    Orchestrates demolish requests through the lifecycle engine.

    Contract
    --------
    * Mutating methods return ``LifecycleResult``; callers inspect
      ``result.is_success``.
    * Approval flows default to ``asset_config.get_approval_flows()``.
    """

    def __init__(
        self,
        session: Session,
        flows: ApprovalFlowSet | None = None,
        config: DemolishConfig | None = None,
        catalog: AssetCatalog | None = None,
        sync: SyncTrigger | None = None,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ):
        flow_set = flows or get_approval_flows()
        self._policy = DemolishPolicy(config)
        demolish_flows = flow_set.for_variant(self._policy.variant)
        check_budget_threshold(demolish_flows, self._policy.config.budget_doc_threshold)
        self._lifecycle = RequestLifecycleService(
            session=session,
            policy=self._policy,
            resolver=ApprovalFlowResolver(demolish_flows),
            catalog=catalog,
            sync=sync,
            clock=clock,
            id_provider=id_provider,
        )
        logger.info(
            "demolish_service_initialized",
            extra={
                "flow_checksum": flow_set.checksum,
                "budget_doc_threshold": str(self._policy.config.budget_doc_threshold),
            },
        )

    @property
    def lifecycle(self) -> RequestLifecycleService:
        return self._lifecycle

    def create_draft(
        self, company_id: str, plant_id: str, created_by_name: str,
    ) -> LifecycleResult:
        return self._lifecycle.create_draft(company_id, plant_id, created_by_name)

    def add_item(
        self,
        request_id: UUID,
        asset_id: UUID,
        note: str | None = None,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.add_item(
            request_id, asset_id, note=note, expected_version=expected_version,
        )

    def add_document(
        self,
        request_id: UUID,
        doc_type: DocumentType | str,
        file_name: str,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.add_document(
            request_id, doc_type, file_name, expected_version=expected_version,
        )

    def submit(
        self, request_id: UUID, expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.submit(request_id, expected_version=expected_version)

    def act_on_approval(
        self,
        request_id: UUID,
        action: ApprovalAction | str,
        actor_name: str,
        comment: str | None = None,
        actor_roles: frozenset[str] | set[str] | tuple[str, ...] | None = None,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.act_on_approval(
            request_id,
            action,
            actor_name,
            comment=comment,
            actor_roles=actor_roles,
            expected_version=expected_version,
        )

    def receive(
        self,
        request_id: UUID,
        actor_name: str,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.receive(
            request_id, actor_name, expected_version=expected_version,
        )

    def get_request(self, request_id: UUID) -> LifecycleResult:
        return self._lifecycle.get_request(request_id)

    def list_requests(self, status: RequestStatus | str | None = None) -> list[AssetRequest]:
        return self._lifecycle.list_requests(status)

    def list_summaries(self, status: RequestStatus | str | None = None) -> list[RequestSummary]:
        return self._lifecycle.list_summaries(status)

    def status_options(self) -> tuple[str, ...]:
        return self._lifecycle.status_options()

    def verify_history(self, request_id: UUID) -> bool:
        return self._lifecycle.verify_history(request_id)
