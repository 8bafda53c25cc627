"""
Transfer variant policy (``asset_modules.transfer.policy``).

A transfer moves assets from one cost center to another.  Only assets that
currently sit in the source cost center may be added.  Final approval is
terminal: every asset is moved to the destination cost center and location
and one sync entry is queued, addressed to the receiver.
"""

from __future__ import annotations

from asset_kernel.domain.asset import AssetCatalog, AssetSnapshot
from asset_kernel.domain.policy import LifecycleEffects, VariantPolicy
from asset_kernel.domain.request import (
    AssetRequest,
    RequestStatus,
    RequestVariant,
    TransferDetails,
)
from asset_kernel.domain.sync import SyncRefType
from asset_kernel.exceptions import (
    AssetNotFoundError,
    CostCenterMismatchError,
    InvalidInputError,
)
from asset_kernel.logging_config import get_logger
from asset_modules.transfer.config import TransferConfig
from asset_modules.transfer.workflows import TRANSFER_WORKFLOW

logger = get_logger("modules.transfer.policy")

AWAITING_SYNC_LABEL = "Waiting Sync"


def _blank(value: str | None) -> bool:
    return value is None or not value.strip()


class TransferPolicy(VariantPolicy):
    """Rules of the transfer variant."""

    variant = RequestVariant.TRANSFER
    request_no_prefix = "TR"
    workflow = TRANSFER_WORKFLOW

    def __init__(self, config: TransferConfig | None = None):
        self.config = config or TransferConfig.with_defaults()

    def normalize_details(
        self, details: TransferDetails | None,
    ) -> TransferDetails:
        if details is None:
            raise InvalidInputError("details", "are required for a transfer")
        for field_name in ("from_cost_center", "to_cost_center", "to_location"):
            if _blank(getattr(details, field_name)):
                raise InvalidInputError(field_name)

        return TransferDetails(
            from_cost_center=details.from_cost_center,
            to_cost_center=details.to_cost_center,
            to_location=details.to_location,
            to_owner_name=(
                self.config.default_owner_name
                if _blank(details.to_owner_name) else details.to_owner_name
            ),
            to_owner_email=(
                self.config.default_owner_email
                if _blank(details.to_owner_email) else details.to_owner_email
            ),
        )

    def validate_item(self, request: AssetRequest, asset: AssetSnapshot) -> None:
        expected = request.transfer.from_cost_center
        if asset.cost_center != expected:
            raise CostCenterMismatchError(asset.asset_no, asset.cost_center, expected)

    def prepare_final_approval(
        self, request: AssetRequest, catalog: AssetCatalog,
    ) -> None:
        # Every asset must still exist before any of them is moved
        for item in request.items:
            if catalog.lookup(item.asset_id) is None:
                raise AssetNotFoundError(str(item.asset_id))

    def on_final_approval(
        self, request: AssetRequest, effects: LifecycleEffects,
    ) -> None:
        transfer = request.transfer
        for item in request.items:
            effects.catalog.mutate_fields(
                item.asset_id,
                cost_center=transfer.to_cost_center,
                location=transfer.to_location,
            )
        effects.sync.enqueue(
            SyncRefType.TRANSFER,
            request.request_no,
            notify_email=transfer.to_owner_email,
        )
        logger.info(
            "transfer_assets_moved",
            extra={
                "request_no": request.request_no,
                "asset_count": len(request.items),
                "to_cost_center": transfer.to_cost_center,
            },
        )

    def current_approver_label(self, request: AssetRequest) -> str:
        if request.status == RequestStatus.APPROVED:
            return AWAITING_SYNC_LABEL
        return super().current_approver_label(request)
