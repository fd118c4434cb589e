"""
Module: inventory_kernel.selectors.base
Responsibility: Abstract base class for all read-only query selectors.
    Selectors form the "Q" side of the services/selectors split, providing
    structured read access without mutation capability.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/.  MUST NOT import from services/.

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.commit(), or session.flush().
    - DTO return convention: selectors return frozen dataclasses, never
      ORM instances.
    - Derived state: completion counts, readiness and statistics are
      computed at query time; nothing is cached or stored.
"""

from abc import ABC
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from inventory_kernel.exceptions import CycleNotFoundError
from inventory_kernel.models.cycle import InventoryCycle


class BaseSelector(ABC):
    """Abstract base class for all selectors."""

    def __init__(self, session: Session):
        self.session = session

    def _ensure_cycle(self, cycle_id: UUID) -> InventoryCycle:
        """Raise CycleNotFoundError unless the cycle exists."""
        cycle = self.session.execute(
            select(InventoryCycle).where(InventoryCycle.id == cycle_id)
        ).scalar_one_or_none()
        if cycle is None:
            raise CycleNotFoundError(str(cycle_id))
        return cycle
