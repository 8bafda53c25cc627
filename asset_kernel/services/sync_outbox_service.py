"""
SyncOutboxService -- outbox table behind the ``SyncTrigger`` boundary.

Responsibility:
    Records one PENDING row per completed request for the downstream
    nightly job, lists the queue, and records the job's outcome.

Architecture position:
    Kernel > Services.  Shares the lifecycle's session, so an entry is
    committed atomically with the request transition that produced it.

Invariants enforced:
    - Entries are created PENDING and resolved exactly once to SUCCESS or
      FAIL; ``processed_at`` is stamped on resolution.

Failure modes:
    - OutboxEntryNotFoundError: unknown entry id.
    - OutboxEntryAlreadyProcessedError: entry is no longer PENDING.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.ids import IdProvider, UUID4Provider
from asset_kernel.domain.sync import SyncOutboxEntry, SyncRefType, SyncStatus
from asset_kernel.exceptions import (
    OutboxEntryAlreadyProcessedError,
    OutboxEntryNotFoundError,
)
from asset_kernel.logging_config import get_logger
from asset_kernel.models.sync_outbox import SyncOutboxModel

logger = get_logger("services.sync_outbox")


class SyncOutboxService:
    """
    Reference ``SyncTrigger`` implementation backed by the outbox table.

    Non-goals:
        - Does NOT deliver anything; the downstream job polls the table.
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._ids = id_provider or UUID4Provider()

    def enqueue(
        self,
        ref_type: SyncRefType,
        ref_no: str,
        notify_email: str | None = None,
    ) -> None:
        entry = SyncOutboxModel(
            id=self._ids.new_id(),
            ref_type=SyncRefType(ref_type).value,
            ref_no=ref_no,
            notify_email=notify_email,
            status=SyncStatus.PENDING.value,
            created_at=self._clock.now(),
        )
        self._session.add(entry)
        self._session.flush()

        logger.info(
            "sync_entry_enqueued",
            extra={
                "entry_id": str(entry.id),
                "ref_type": entry.ref_type,
                "ref_no": ref_no,
                "has_notify_email": notify_email is not None,
            },
        )

    def list_entries(self, status: SyncStatus | None = None) -> list[SyncOutboxEntry]:
        """Outbox entries, oldest first, optionally filtered by status."""
        stmt = select(SyncOutboxModel).order_by(
            SyncOutboxModel.created_at, SyncOutboxModel.id,
        )
        if status is not None:
            stmt = stmt.where(SyncOutboxModel.status == SyncStatus(status).value)
        return [row.to_dto() for row in self._session.scalars(stmt)]

    def mark_result(
        self,
        entry_id: UUID,
        success: bool,
        error_message: str | None = None,
    ) -> SyncOutboxEntry:
        """
        Record the downstream outcome of a PENDING entry.

        Raises:
            OutboxEntryNotFoundError: Unknown entry.
            OutboxEntryAlreadyProcessedError: Entry is not PENDING.
        """
        entry = self._session.execute(
            select(SyncOutboxModel)
            .where(SyncOutboxModel.id == entry_id)
            .with_for_update()
        ).scalar_one_or_none()
        if entry is None:
            raise OutboxEntryNotFoundError(str(entry_id))
        if entry.status != SyncStatus.PENDING.value:
            raise OutboxEntryAlreadyProcessedError(str(entry_id), entry.status)

        entry.status = SyncStatus.SUCCESS.value if success else SyncStatus.FAIL.value
        entry.processed_at = self._clock.now()
        entry.error_message = None if success else error_message
        self._session.flush()

        log = logger.info if success else logger.warning
        log(
            "sync_entry_processed",
            extra={
                "entry_id": str(entry_id),
                "ref_no": entry.ref_no,
                "status": entry.status,
            },
        )
        return entry.to_dto()
