"""
Module: inventory_kernel.models.discrepancy
Responsibility: ORM persistence for recorded SOLL/IST mismatches.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - confirmed_by_id and confirmed_at are both null (open) or both set
      (confirmed): ck_discrepancy_confirmation_pair.
    - (cycle_id, primary_key, kind) is unique.  One key may hold a
      WRONG_LOCATION and a MISSING discrepancy at the same time, never two
      of the same kind.
    - Never deleted (ORM listener).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import CheckConstraint, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class Discrepancy(Base):
    """One anomaly tied to a primary key, open or confirmed."""

    __tablename__ = "discrepancies"

    __table_args__ = (
        UniqueConstraint(
            "cycle_id", "primary_key", "kind", name="uq_discrepancy_cycle_key_kind"
        ),
        CheckConstraint(
            "(confirmed_by_id IS NULL AND confirmed_at IS NULL) OR "
            "(confirmed_by_id IS NOT NULL AND confirmed_at IS NOT NULL)",
            name="ck_discrepancy_confirmation_pair",
        ),
        Index("idx_discrepancy_cycle", "cycle_id"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_cycles.id"),
        nullable=False,
    )

    primary_key: Mapped[str] = mapped_column(String(100), nullable=False)

    # DiscrepancyKind value
    kind: Mapped[str] = mapped_column(String(20), nullable=False)

    comment: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    confirmed_by_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    confirmed_at: Mapped[datetime | None] = mapped_column(nullable=True)

    created_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<Discrepancy {self.kind} {self.primary_key}>"

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None

    def confirm(self, actor_id: UUID, confirmed_at: datetime, comment: str | None = None) -> None:
        """Sign off the discrepancy, overwriting the comment when one is given."""
        self.confirmed_by_id = actor_id
        self.confirmed_at = confirmed_at
        if comment:
            self.comment = comment
