"""
BaseService -- abstract base for all kernel services.

Responsibility:
    Provides the common constructor and session-handling contract for
    every write service, plus the cycle lookups every operation starts
    with.  Services use ``session.flush()`` -- never ``session.commit()``.

Invariants enforced:
    Transaction boundaries: services flush within the caller's transaction
    and never commit or roll back.  InventoryEngine owns commit/rollback,
    which is what makes a scan, its discrepancy and its audit entry atomic.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.exceptions import CycleClosedError, CycleNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.cycle import InventoryCycle

logger = get_logger("services.base")


class BaseService(ABC):
    """
    Abstract base class for all kernel services.

    Non-goals:
        - Does NOT manage transaction lifecycle (commit/rollback).
        - Does NOT provide query-only (read) methods -- those belong
          in ``inventory_kernel/selectors/``.
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self.session = session
        self._clock = clock or SystemClock()

    def _get_cycle(
        self,
        cycle_id: UUID,
        for_update: bool = False,
        shared: bool = False,
    ) -> InventoryCycle:
        """
        Load a cycle or raise CycleNotFoundError.

        ``for_update`` takes an exclusive row lock (closing); ``shared``
        takes FOR SHARE, which every writer into the cycle holds so that a
        concurrent close waits for it.  SQLite ignores both.
        """
        stmt = select(InventoryCycle).where(InventoryCycle.id == cycle_id)
        if for_update:
            stmt = stmt.with_for_update()
        elif shared:
            stmt = stmt.with_for_update(read=True)
        cycle = self.session.execute(stmt).scalar_one_or_none()
        if cycle is None:
            raise CycleNotFoundError(str(cycle_id))
        return cycle

    def _require_open_cycle(self, cycle_id: UUID) -> InventoryCycle:
        """Share-lock a cycle and reject the operation if it is closed."""
        cycle = self._get_cycle(cycle_id, shared=True)
        if cycle.closed:
            logger.warning(
                "closed_cycle_rejected",
                extra={"cycle_id": str(cycle_id)},
            )
            raise CycleClosedError(str(cycle_id))
        return cycle
