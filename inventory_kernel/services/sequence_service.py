"""
SequenceService -- monotonic sequence allocation via counter rows.

Responsibility:
    Hands out strictly increasing numbers per named sequence.  The audit
    trail uses them to order entries written in the same clock tick.

Invariants enforced:
    - Monotonic: the counter row is incremented with an UPDATE before it
      is read, so the write lock is held from the first statement until
      the caller's transaction ends.  Never max()+1 over the audit table.
    - Transactional: a rolled-back transaction gives its value back.

Failure modes:
    - IntegrityError: two transactions creating the same counter row on
      first use.  The loser's transaction fails like any other storage
      error.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.sequence_counter import SequenceCounter

logger = get_logger("services.sequence")


class SequenceService:
    """
    Transactional sequence numbers.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
    """

    AUDIT_ENTRY = "audit_entry"

    def __init__(self, session: Session):
        self._session = session

    def next_value(self, sequence_name: str) -> int:
        """Increment the named counter and return its new value (>= 1)."""
        result = self._session.execute(
            update(SequenceCounter)
            .where(SequenceCounter.name == sequence_name)
            .values(current_value=SequenceCounter.current_value + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # First use of this sequence
            self._session.add(SequenceCounter(name=sequence_name, current_value=1))
            self._session.flush()
            value = 1
        else:
            value = self._session.execute(
                select(SequenceCounter.current_value)
                .where(SequenceCounter.name == sequence_name)
            ).scalar_one()

        logger.debug(
            "sequence_allocated",
            extra={"sequence_name": sequence_name, "value": value},
        )
        return value
