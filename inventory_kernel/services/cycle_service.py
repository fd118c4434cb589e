"""
CycleService -- inventory cycle lifecycle.

Responsibility:
    Creates cycles, evaluates the closing gate and closes cycles.

Invariants enforced:
    - At most one open cycle.  Checked up front, and backed by the partial
      unique index uq_inventory_cycles_single_open for concurrent creators.
    - Close gate: every expected location verified and every discrepancy
      confirmed, and no expected item left without an OK scan or a MISSING
      record.  Re-evaluated inside the closing transaction with the cycle
      row locked FOR UPDATE; writers hold FOR SHARE on the same row, so a
      close waits for in-flight scans and later scans see it closed.
    - Closing is irreversible.

Failure modes:
    - OpenCycleExistsError, CycleNotFoundError, CycleClosedError,
      NotReadyError (carries the unmet conditions).
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain import reconciliation
from inventory_kernel.domain.dtos import ClosureReadiness, CycleInfo
from inventory_kernel.domain.values import ActingUser
from inventory_kernel.exceptions import (
    CycleClosedError,
    NotReadyError,
    OpenCycleExistsError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.cycle import InventoryCycle
from inventory_kernel.selectors.cycle_selector import CycleSelector
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService

logger = get_logger("services.cycle")


class CycleService(BaseService):
    """Inventory cycle manager."""

    def __init__(self, session, clock=None, auditor: AuditorService | None = None):
        super().__init__(session, clock)
        self._auditor = auditor or AuditorService(session, self._clock)

    def create_cycle(self, actor: ActingUser) -> CycleInfo:
        open_id = self.session.execute(
            select(InventoryCycle.id).where(InventoryCycle.closed.is_(False))
        ).scalar_one_or_none()
        if open_id is not None:
            logger.warning(
                "open_cycle_exists",
                extra={"open_cycle_id": str(open_id)},
            )
            raise OpenCycleExistsError(str(open_id))

        cycle = InventoryCycle(
            created_at=self._clock.now(),
            created_by_id=actor.id,
            closed=False,
        )
        self.session.add(cycle)
        try:
            self.session.flush()
        except IntegrityError as exc:
            logger.warning("open_cycle_constraint")
            raise OpenCycleExistsError() from exc

        self._auditor.record_cycle_created(cycle.id, actor)
        logger.info("cycle_created", extra={"cycle_id": str(cycle.id)})
        return CycleInfo.from_model(cycle)

    def get_closure_readiness(self, cycle_id: UUID) -> ClosureReadiness:
        """Evaluate the closing gate without changing anything."""
        self._get_cycle(cycle_id)
        stats = CycleSelector(self.session).closure_stats(cycle_id)
        reasons = reconciliation.closure_reasons(stats)
        return ClosureReadiness(
            cycle_id=cycle_id,
            can_close=not reasons,
            reasons=tuple(reasons),
            stats=stats,
        )

    def close_cycle(self, cycle_id: UUID, actor: ActingUser) -> CycleInfo:
        cycle = self._get_cycle(cycle_id, for_update=True)
        if cycle.closed:
            raise CycleClosedError(str(cycle_id))

        readiness = self.get_closure_readiness(cycle_id)
        if not readiness.can_close:
            logger.warning(
                "cycle_close_rejected",
                extra={"reasons": list(readiness.reasons)},
            )
            raise NotReadyError(str(cycle_id), list(readiness.reasons))

        cycle.close(actor.id, self._clock.now())
        self.session.flush()

        self._auditor.record_cycle_closed(cycle_id, actor, readiness.stats.as_dict())
        logger.info(
            "cycle_closed",
            extra={"cycle_id": str(cycle_id), **readiness.stats.as_dict()},
        )
        return CycleInfo.from_model(cycle)
