"""Services for the asset kernel (write side)."""

from asset_kernel.services.asset_catalog import SqlAssetCatalog
from asset_kernel.services.audit_trail import AuditTrailBuilder
from asset_kernel.services.lifecycle_service import (
    LifecycleResult,
    RequestLifecycleService,
)
from asset_kernel.services.request_number_service import RequestNumberAllocator
from asset_kernel.services.request_store import RequestStore
from asset_kernel.services.sequence_service import SequenceService
from asset_kernel.services.sync_outbox_service import SyncOutboxService

__all__ = [
    "AuditTrailBuilder",
    "LifecycleResult",
    "RequestLifecycleService",
    "RequestNumberAllocator",
    "RequestStore",
    "SequenceService",
    "SqlAssetCatalog",
    "SyncOutboxService",
]
