"""
Demolish variant policy (``asset_modules.demolish.policy``).

Demolish requests carry supporting documents, need an APPROVAL_DOC (and a
BUDGET_DOC above the configured threshold) before submission, and go
through a receipt step after final approval.  Receipt hands the request to
the downstream sync queue.
"""

from __future__ import annotations

from asset_kernel.domain.policy import LifecycleEffects, VariantPolicy
from asset_kernel.domain.request import (
    AssetRequest,
    DocumentType,
    RequestStatus,
    RequestVariant,
)
from asset_kernel.domain.sync import SyncRefType
from asset_kernel.exceptions import MissingDocumentError
from asset_kernel.logging_config import get_logger
from asset_modules.demolish.config import DemolishConfig
from asset_modules.demolish.workflows import DEMOLISH_WORKFLOW

logger = get_logger("modules.demolish.policy")

RECEIVED_LABEL = "Supplies Received"
AWAITING_RECEIPT_LABEL = "Waiting for Supplies Receive"


class DemolishPolicy(VariantPolicy):
    """Rules of the demolish variant."""

    variant = RequestVariant.DEMOLISH
    request_no_prefix = "DM"
    workflow = DEMOLISH_WORKFLOW
    supports_documents = True
    supports_receipt = True

    def __init__(self, config: DemolishConfig | None = None):
        self.config = config or DemolishConfig.with_defaults()

    def validate_submission(self, request: AssetRequest) -> None:
        if not request.has_document(DocumentType.APPROVAL_DOC):
            raise MissingDocumentError(request.request_no, DocumentType.APPROVAL_DOC.value)

        threshold = self.config.budget_doc_threshold
        if (
            request.total_book_value > threshold
            and not request.has_document(DocumentType.BUDGET_DOC)
        ):
            raise MissingDocumentError(
                request.request_no,
                DocumentType.BUDGET_DOC.value,
                f"total {request.total_book_value} exceeds {threshold}",
            )

    def on_receipt(self, request: AssetRequest, effects: LifecycleEffects) -> None:
        effects.sync.enqueue(SyncRefType.DEMOLISH, request.request_no)
        logger.info(
            "demolish_sync_requested",
            extra={"request_no": request.request_no},
        )

    def current_approver_label(self, request: AssetRequest) -> str:
        if request.status == RequestStatus.RECEIVED:
            return RECEIVED_LABEL
        if request.status == RequestStatus.APPROVED:
            return AWAITING_RECEIPT_LABEL
        return super().current_approver_label(request)
