"""
Module: inventory_kernel.models.expected_item
Responsibility: ORM persistence for SOLL rows -- what the external system
    says should be on the shelves.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (cycle_id, primary_key) is unique within a cycle's expected set.

Lifecycle:
    Bulk-created by ExpectedStockService; bulk-deleted and replaced on
    re-import; read-only otherwise.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString
from inventory_kernel.domain.values import ItemCategory


class ExpectedItem(Base):
    """One expected item at one location within a cycle."""

    __tablename__ = "expected_items"

    __table_args__ = (
        UniqueConstraint("cycle_id", "primary_key", name="uq_expected_cycle_key"),
        Index("idx_expected_cycle_location", "cycle_id", "location_code"),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_cycles.id"),
        nullable=False,
    )

    # Barcode / identifier
    primary_key: Mapped[str] = mapped_column(String(100), nullable=False)

    location_code: Mapped[str] = mapped_column(String(100), nullable=False)

    room: Mapped[str | None] = mapped_column(String(100), nullable=True)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    temperature: Mapped[str | None] = mapped_column(String(50), nullable=True)

    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    category: Mapped[ItemCategory] = mapped_column(
        String(20),
        default=ItemCategory.SAMPLE,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<ExpectedItem {self.primary_key} @ {self.location_code}>"
