"""
Transfer Module Service (``asset_modules.transfer.service``).

Responsibility
--------------
Public entry point for transfer requests: drafts with their destination
data, assets, submission, approval decisions, and the list views.  Final
approval moves the assets and queues the sync entry in one transaction.

Architecture position
---------------------
**Modules layer** -- thin glue over the kernel ``RequestLifecycleService``
configured with ``TransferPolicy``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy.orm import Session

from asset_config import ApprovalFlowSet, get_approval_flows
from asset_engines.approval_flow import ApprovalFlowResolver
from asset_kernel.domain.approval import ApprovalAction
from asset_kernel.domain.asset import AssetCatalog
from asset_kernel.domain.clock import Clock
from asset_kernel.domain.ids import IdProvider
from asset_kernel.domain.request import (
    AssetRequest,
    RequestStatus,
    RequestSummary,
    TransferDetails,
)
from asset_kernel.domain.sync import SyncTrigger
from asset_kernel.logging_config import get_logger
from asset_kernel.services.lifecycle_service import (
    LifecycleResult,
    RequestLifecycleService,
)
from asset_modules.transfer.config import TransferConfig
from asset_modules.transfer.policy import TransferPolicy

logger = get_logger("modules.transfer.service")


class TransferService:
    """Orchestrates transfer requests through the lifecycle engine."""

    def __init__(
        self,
        session: Session,
        flows: ApprovalFlowSet | None = None,
        config: TransferConfig | None = None,
        catalog: AssetCatalog | None = None,
        sync: SyncTrigger | None = None,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ):
        flow_set = flows or get_approval_flows()
        self._policy = TransferPolicy(config)
        self._lifecycle = RequestLifecycleService(
            session=session,
            policy=self._policy,
            resolver=ApprovalFlowResolver(flow_set.for_variant(self._policy.variant)),
            catalog=catalog,
            sync=sync,
            clock=clock,
            id_provider=id_provider,
        )
        logger.info(
            "transfer_service_initialized",
            extra={"flow_checksum": flow_set.checksum},
        )

    @property
    def lifecycle(self) -> RequestLifecycleService:
        return self._lifecycle

    def create_draft(
        self,
        company_id: str,
        plant_id: str,
        created_by_name: str,
        from_cost_center: str,
        to_cost_center: str,
        to_location: str,
        to_owner_name: str | None = None,
        to_owner_email: str | None = None,
    ) -> LifecycleResult:
        details = TransferDetails(
            from_cost_center=from_cost_center,
            to_cost_center=to_cost_center,
            to_location=to_location,
            to_owner_name=to_owner_name,
            to_owner_email=to_owner_email,
        )
        return self._lifecycle.create_draft(
            company_id, plant_id, created_by_name, details=details,
        )

    def add_item(
        self,
        request_id: UUID,
        asset_id: UUID,
        expected_version: int | None = None,
    ) -> LifecycleResult:
        return self._lifecycle.add_item(
            request_id, asset_id, expected_version=expected_version,
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
