"""
Module: asset_kernel.models.sync_outbox
Responsibility: ORM persistence for sync outbox entries handed to the
    downstream nightly job.

Architecture position: Kernel > Models.  Written by ``SyncOutboxService``
    in the same session as the request that triggered it.

Invariants enforced:
    - ``status`` moves PENDING -> SUCCESS | FAIL exactly once.
    - ``processed_at`` is set iff status is not PENDING.
"""

from datetime import datetime

from sqlalchemy import CheckConstraint, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from asset_kernel.db.base import Base, as_aware
from asset_kernel.domain.sync import SyncOutboxEntry, SyncRefType, SyncStatus


class SyncOutboxModel(Base):
    """A queued notification for the downstream system."""

    __tablename__ = "sync_outbox"

    __table_args__ = (
        CheckConstraint(
            "ref_type IN ('DEMOLISH', 'TRANSFER')",
            name="ck_sync_outbox_valid_ref_type",
        ),
        CheckConstraint(
            "status IN ('PENDING', 'SUCCESS', 'FAIL')",
            name="ck_sync_outbox_valid_status",
        ),
        Index("ix_sync_outbox_status_created", "status", "created_at"),
    )

    ref_type: Mapped[str] = mapped_column(String(20), nullable=False)
    ref_no: Mapped[str] = mapped_column(String(30), nullable=False)
    notify_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="PENDING")
    created_at: Mapped[datetime] = mapped_column(nullable=False)
    processed_at: Mapped[datetime | None] = mapped_column(nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<SyncOutbox {self.ref_type} {self.ref_no} {self.status}>"

    def to_dto(self) -> SyncOutboxEntry:
        return SyncOutboxEntry(
            entry_id=self.id,
            ref_type=SyncRefType(self.ref_type),
            ref_no=self.ref_no,
            status=SyncStatus(self.status),
            created_at=as_aware(self.created_at),
            notify_email=self.notify_email,
            processed_at=as_aware(self.processed_at),
            error_message=self.error_message,
        )
