"""
RequestNumberAllocator -- human-readable request numbers.

Responsibility:
    Allocates ``{PREFIX}-{year}-{seq:05d}`` numbers.  The year comes from
    the injected clock.  The sequence is the larger of the locked counter
    for ``{PREFIX}-{year}`` and the highest number already in use, plus one.

Architecture position:
    Kernel > Services.  Combines the pure scan in
    ``asset_engines.request_number`` with ``SequenceService``.

Invariants enforced:
    - Sequential allocations give the same result as the plain scan.
    - Concurrent allocations serialize on the counter row, so two
      transactions never hand out the same number; the UNIQUE
      (variant, request_no) constraint backs this up.
    - The sequence restarts every calendar year (new counter name).
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy.orm import Session

from asset_engines.request_number import format_request_no, max_sequence
from asset_kernel.domain.clock import Clock, SystemClock
from asset_kernel.logging_config import get_logger
from asset_kernel.services.sequence_service import SequenceService

logger = get_logger("services.request_number")


class RequestNumberAllocator:
    """Allocates request numbers for one session/transaction."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    @staticmethod
    def counter_name(prefix: str, year: int) -> str:
        return f"{prefix}-{year:04d}"

    def allocate(self, prefix: str, existing: Iterable[str] = ()) -> str:
        """
        Allocate the next request number for ``prefix``.

        Args:
            prefix: ``DM`` or ``TR``.
            existing: Request numbers already stored for the variant.
        """
        year = self._clock.current_year()
        scanned = max_sequence(prefix, year, existing)
        seq = self._sequences.next_value(self.counter_name(prefix, year), floor=scanned)
        request_no = format_request_no(prefix, year, seq)

        logger.info(
            "request_number_allocated",
            extra={"prefix": prefix, "year": year, "request_no": request_no},
        )
        return request_no
