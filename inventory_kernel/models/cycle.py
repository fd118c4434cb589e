"""
Module: inventory_kernel.models.cycle
Responsibility: ORM persistence for the inventory cycle -- the root of one
    inventory-taking exercise.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - At most one cycle with closed = false (partial unique index
      uq_inventory_cycles_single_open).
    - closed -> true is irreversible (ORM listener in db/immutability.py).

Audit relevance:
    Creating and closing a cycle produce CYCLE_CREATED and CYCLE_CLOSED
    audit entries.  Everything else in a cycle references it by id; the
    cycle holds no collections.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, Index, text
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class InventoryCycle(Base):
    """One inventory-taking exercise, open or closed."""

    __tablename__ = "inventory_cycles"

    __table_args__ = (
        Index(
            "uq_inventory_cycles_single_open",
            "closed",
            unique=True,
            postgresql_where=text("closed = false"),
            sqlite_where=text("closed = 0"),
        ),
        Index("idx_cycle_created", "created_at"),
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    created_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    closed: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    closed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    closed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        state = "closed" if self.closed else "open"
        return f"<InventoryCycle {self.id}: {state}>"

    def close(self, actor_id: UUID, closed_at: datetime) -> None:
        """Close the cycle.

        Raises: ValueError if the cycle is already closed.
        """
        if self.closed:
            raise ValueError(f"Cycle {self.id} is already closed")
        self.closed = True
        self.closed_at = closed_at
        self.closed_by_id = actor_id
