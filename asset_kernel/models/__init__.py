"""ORM models for the asset kernel."""

from asset_kernel.models.asset import AssetModel
from asset_kernel.models.request import (
    ApprovalHistoryModel,
    AssetRequestDocumentModel,
    AssetRequestItemModel,
    AssetRequestModel,
)
from asset_kernel.models.sync_outbox import SyncOutboxModel

__all__ = [
    "ApprovalHistoryModel",
    "AssetModel",
    "AssetRequestDocumentModel",
    "AssetRequestItemModel",
    "AssetRequestModel",
    "SyncOutboxModel",
]
