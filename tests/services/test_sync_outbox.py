"""
Tests for the sync outbox (``SyncOutboxService``).

Entries are created PENDING and resolved exactly once by the downstream
job via ``mark_result``.
"""

from uuid import uuid4

import pytest

from asset_kernel.domain.sync import SyncRefType, SyncStatus
from asset_kernel.exceptions import (
    OutboxEntryAlreadyProcessedError,
    OutboxEntryNotFoundError,
)


class TestEnqueue:

    def test_entry_is_pending(self, outbox):
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00001")
        (entry,) = outbox.list_entries()
        assert entry.status == SyncStatus.PENDING
        assert entry.ref_type == SyncRefType.DEMOLISH
        assert entry.ref_no == "DM-2026-00001"
        assert entry.notify_email is None
        assert entry.processed_at is None

    def test_notify_email_kept(self, outbox):
        outbox.enqueue(SyncRefType.TRANSFER, "TR-2026-00001", notify_email="a@example.com")
        assert outbox.list_entries()[0].notify_email == "a@example.com"

    def test_accepts_plain_string_ref_type(self, outbox):
        outbox.enqueue("TRANSFER", "TR-2026-00002")
        assert outbox.list_entries()[0].ref_type == SyncRefType.TRANSFER

    def test_oldest_first(self, outbox, clock):
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00001")
        clock.advance(60)
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00002")
        assert [e.ref_no for e in outbox.list_entries()] == [
            "DM-2026-00001",
            "DM-2026-00002",
        ]


class TestMarkResult:

    def test_success(self, outbox, clock):
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00001")
        entry = outbox.list_entries()[0]
        clock.advance(3600)

        done = outbox.mark_result(entry.entry_id, success=True, error_message="ignored")
        assert done.status == SyncStatus.SUCCESS
        assert done.processed_at == clock.now()
        assert done.error_message is None

    def test_failure_keeps_message(self, outbox):
        outbox.enqueue(SyncRefType.TRANSFER, "TR-2026-00001")
        entry = outbox.list_entries()[0]

        done = outbox.mark_result(entry.entry_id, success=False, error_message="timeout")
        assert done.status == SyncStatus.FAIL
        assert done.error_message == "timeout"

    def test_status_filter(self, outbox):
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00001")
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00002")
        first = outbox.list_entries()[0]
        outbox.mark_result(first.entry_id, success=True)

        pending = outbox.list_entries(SyncStatus.PENDING)
        assert [e.ref_no for e in pending] == ["DM-2026-00002"]
        assert len(outbox.list_entries(SyncStatus.SUCCESS)) == 1

    def test_resolved_only_once(self, outbox):
        outbox.enqueue(SyncRefType.DEMOLISH, "DM-2026-00001")
        entry = outbox.list_entries()[0]
        outbox.mark_result(entry.entry_id, success=False, error_message="down")

        with pytest.raises(OutboxEntryAlreadyProcessedError) as exc_info:
            outbox.mark_result(entry.entry_id, success=True)
        assert exc_info.value.status == "FAIL"

    def test_unknown_entry(self, outbox):
        with pytest.raises(OutboxEntryNotFoundError):
            outbox.mark_result(uuid4(), success=True)
