"""
SequenceService -- monotonic sequence allocation via locked counter rows.

Responsibility:
    Provides strictly increasing sequence numbers per named counter (one
    counter per request-number prefix and year, e.g. ``DM-2026``).  Uses a
    dedicated counter table with row-level locking (``SELECT ... FOR
    UPDATE``) so concurrent writers serialize on the counter row.

Architecture position:
    Kernel > Services -- imperative shell infrastructure.
    Called by RequestNumberAllocator.

Invariants enforced:
    - Values are strictly increasing per counter name.
    - ``floor`` lets callers fold in numbers that already exist outside the
      counter (seeded or imported rows): the next value is always greater
      than both the counter and the floor.
    - Transactional: an increment is only visible after the caller's
      transaction commits.

Failure modes:
    - IntegrityError: concurrent counter creation race (handled via
      savepoint rollback and retry).
"""

from sqlalchemy import BigInteger, String, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Mapped, Session, mapped_column

from asset_kernel.db.base import Base
from asset_kernel.logging_config import get_logger

logger = get_logger("services.sequence")


class SequenceCounter(Base):
    """
    Sequence counter table.

    Each row represents a named sequence with its current value.
    """

    __tablename__ = "sequence_counters"

    # Counter name (e.g., "DM-2026", "TR-2026")
    name: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
    )

    current_value: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
        default=0,
    )


class SequenceService:
    """
    Service for generating transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    def __init__(self, session: Session):
        self._session = session

    def _locked_counter(self, sequence_name: str) -> SequenceCounter | None:
        return self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def next_value(self, sequence_name: str, floor: int = 0) -> int:
        """
        Get the next value for a named sequence.

        Postconditions:
            - Returns ``max(current, floor) + 1`` and stores it as the new
              current value.
            - The counter row is locked until the transaction completes.

        Args:
            sequence_name: Name of the sequence.
            floor: Highest value already in use outside the counter.

        Returns:
            The next sequence value (always > 0).
        """
        counter = self._locked_counter(sequence_name)

        if counter is None:
            # First use of this counter.  Another writer may create it at
            # the same time, so insert inside a savepoint.
            savepoint = self._session.begin_nested()
            try:
                value = max(floor, 0) + 1
                counter = SequenceCounter(name=sequence_name, current_value=value)
                self._session.add(counter)
                self._session.flush()
                savepoint.commit()
                logger.debug(
                    "sequence_allocated",
                    extra={"sequence_name": sequence_name, "value": value},
                )
                return value
            except IntegrityError:
                logger.debug(
                    "sequence_counter_race_retry",
                    extra={"sequence_name": sequence_name},
                )
                savepoint.rollback()
                counter = self._locked_counter(sequence_name)
                if counter is None:
                    raise

        counter.current_value = max(counter.current_value, floor) + 1
        self._session.flush()
        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": counter.current_value},
        )
        return counter.current_value

    def current_value(self, sequence_name: str) -> int | None:
        """Current value of a sequence, or None if it was never used."""
        counter = self._session.execute(
            select(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
        ).scalar_one_or_none()

        return counter.current_value if counter else None
