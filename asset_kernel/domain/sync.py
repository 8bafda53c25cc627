"""
Sync trigger boundary types.

Completed requests are handed to a downstream queue for nightly
propagation.  Delivery guarantees belong to the queue, not the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Protocol
from uuid import UUID


class SyncRefType(str, Enum):
    """Kind of request a sync entry refers to."""

    DEMOLISH = "DEMOLISH"
    TRANSFER = "TRANSFER"


class SyncStatus(str, Enum):
    """Outbox delivery states."""

    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


@dataclass(frozen=True)
class SyncOutboxEntry:
    """A queued notification for the downstream system."""

    entry_id: UUID
    ref_type: SyncRefType
    ref_no: str
    status: SyncStatus
    created_at: datetime
    notify_email: str | None = None
    processed_at: datetime | None = None
    error_message: str | None = None


class SyncTrigger(Protocol):
    """Receives completed-request notifications (fire-and-forget)."""

    def enqueue(
        self,
        ref_type: SyncRefType,
        ref_no: str,
        notify_email: str | None = None,
    ) -> None:
        ...
