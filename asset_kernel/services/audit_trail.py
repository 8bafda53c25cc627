"""
AuditTrailBuilder -- hash-chained approval history entries.

Responsibility:
    Builds the immutable history entry for every state-changing action on
    a request and verifies the resulting chain.  Each entry captures the
    approval step that was active *before* the action, a per-request
    sequence number, and ``entry_hash = H(canonical entry + prev_hash)``.

Architecture position:
    Kernel > Services.  Pure apart from the injected clock and id
    provider; persistence of the entry is the caller's job.

Invariants enforced:
    - ``seq == len(history) + 1``; history is never truncated or reordered.
    - ``prev_hash`` is the predecessor's ``entry_hash`` (None for the first).
    - Without approval state the entry records step 0 / ``"SUBMIT"``.

Failure modes:
    - AuditChainBrokenError from ``verify()`` when a stored entry no longer
      matches its recomputed hash or its predecessor link.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from asset_kernel.domain.approval import (
    SUBMIT_STEP_NAME,
    ApprovalAction,
    ApprovalHistoryEntry,
)
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.domain.ids import IdProvider, UUID4Provider
from asset_kernel.domain.request import AssetRequest
from asset_kernel.exceptions import AuditChainBrokenError
from asset_kernel.logging_config import get_logger
from asset_kernel.utils.hashing import hash_payload

logger = get_logger("services.audit_trail")


def _entry_payload(
    request_no: str,
    entry: ApprovalHistoryEntry,
) -> dict[str, Any]:
    return {
        "request_no": request_no,
        "entry_id": entry.entry_id,
        "seq": entry.seq,
        "step_order": entry.step_order,
        "step_name": entry.step_name,
        "action": entry.action.value,
        "actor_name": entry.actor_name,
        "acted_at": entry.acted_at,
        "comment": entry.comment,
        "prev_hash": entry.prev_hash,
    }


def compute_entry_hash(request_no: str, entry: ApprovalHistoryEntry) -> str:
    """Hash of a history entry; ``entry_hash`` itself is excluded."""
    return hash_payload(_entry_payload(request_no, entry))


class AuditTrailBuilder:
    """
    Creates and validates approval history entries.

    Non-goals:
        - Does NOT persist entries or touch the session.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        id_provider: IdProvider | None = None,
    ):
        self._clock = clock or SystemClock()
        self._ids = id_provider or UUID4Provider()

    def append(
        self,
        request: AssetRequest,
        action: ApprovalAction,
        actor_name: str,
        comment: str | None = None,
    ) -> ApprovalHistoryEntry:
        """
        Build the next history entry for ``request``.

        Postconditions:
            - Returned entry has ``seq = len(request.history) + 1`` and is
              linked to the last existing entry.
        """
        if request.approval is not None:
            step_order = request.approval.current_step_order
            step_name = request.approval.current_step_name
        else:
            step_order = 0
            step_name = SUBMIT_STEP_NAME

        prev_hash = request.history[-1].entry_hash if request.history else None

        unsigned = ApprovalHistoryEntry(
            entry_id=self._ids.new_id(),
            seq=len(request.history) + 1,
            step_order=step_order,
            step_name=step_name,
            action=action,
            actor_name=actor_name,
            acted_at=self._clock.now(),
            comment=comment,
            prev_hash=prev_hash,
        )
        entry = replace(
            unsigned, entry_hash=compute_entry_hash(request.request_no, unsigned),
        )

        logger.debug(
            "history_entry_built",
            extra={
                "request_no": request.request_no,
                "seq": entry.seq,
                "action": action.value,
                "step_order": step_order,
            },
        )
        return entry

    def verify(self, request: AssetRequest) -> bool:
        """
        Recompute the chain of ``request.history``.

        Raises:
            AuditChainBrokenError: On the first entry whose sequence, link
                or hash does not match.
        """
        prev_hash: str | None = None
        for expected_seq, entry in enumerate(request.history, start=1):
            if entry.seq != expected_seq:
                raise AuditChainBrokenError(
                    request.request_no, entry.seq,
                    f"seq {expected_seq}", f"seq {entry.seq}",
                )
            if entry.prev_hash != prev_hash:
                raise AuditChainBrokenError(
                    request.request_no, entry.seq,
                    prev_hash or "GENESIS", entry.prev_hash or "GENESIS",
                )
            expected = compute_entry_hash(request.request_no, entry)
            if entry.entry_hash != expected:
                logger.critical(
                    "audit_chain_broken",
                    extra={"request_no": request.request_no, "seq": entry.seq},
                )
                raise AuditChainBrokenError(
                    request.request_no, entry.seq, expected, entry.entry_hash or "",
                )
            prev_hash = entry.entry_hash
        return True
