"""
Module: inventory_kernel.models.scanned_item
Responsibility: ORM persistence for IST rows -- one physical scan event.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (cycle_id, primary_key) is unique: a physical item is scanned at most
      once per cycle.  Concurrent scans of the same key are serialized by
      this constraint; the loser sees DuplicateScanError.
    - Append-only: never updated or deleted (ORM listener).
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class ScannedItem(Base):
    """One scan of one physical item."""

    __tablename__ = "scanned_items"

    __table_args__ = (
        UniqueConstraint("cycle_id", "primary_key", name="uq_scanned_cycle_key"),
        Index("idx_scanned_cycle_location", "cycle_id", "location_code"),
        Index("idx_scanned_at", "scanned_at"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_cycles.id"),
        nullable=False,
    )

    primary_key: Mapped[str] = mapped_column(String(100), nullable=False)

    # Where the item was physically found
    location_code: Mapped[str] = mapped_column(String(100), nullable=False)

    scanned_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    # ScanOutcome value
    outcome: Mapped[str] = mapped_column(String(20), nullable=False)

    scanned_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<ScannedItem {self.primary_key} @ {self.location_code}: {self.outcome}>"
