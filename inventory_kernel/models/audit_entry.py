"""
Module: inventory_kernel.models.audit_entry
Responsibility: ORM persistence for the append-only audit trail.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Append-only: no UPDATE or DELETE (ORM listener in db/immutability.py).
    - seq is unique and increasing in write order (SequenceService), so
      entries from the same clock tick still sort deterministically.

Audit relevance:
    AuditEntry IS the audit trail.  Every state-changing action produces
    exactly one entry:
    - CYCLE_CREATED, CYCLE_CLOSED
    - EXPECTED_ITEMS_IMPORTED
    - ITEM_SCANNED
    - LOCATION_VERIFIED, LOCATION_REOPENED
    - DISCREPANCY_CONFIRMED, MISSING_DERIVED
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import JSON, BigInteger, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class AuditAction(str, Enum):
    """Types of auditable actions."""

    # Cycle lifecycle
    CYCLE_CREATED = "cycle_created"
    CYCLE_CLOSED = "cycle_closed"

    # Expected stock
    EXPECTED_ITEMS_IMPORTED = "expected_items_imported"

    # Scanning
    ITEM_SCANNED = "item_scanned"

    # Locations
    LOCATION_VERIFIED = "location_verified"
    LOCATION_REOPENED = "location_reopened"

    # Discrepancies
    DISCREPANCY_CONFIRMED = "discrepancy_confirmed"
    MISSING_DERIVED = "missing_derived"


class AuditEntry(Base):
    """One recorded state-changing action."""

    __tablename__ = "audit_entries"

    __table_args__ = (
        Index("idx_audit_cycle", "cycle_id"),
        Index("idx_audit_action", "action"),
        Index("idx_audit_occurred", "occurred_at"),
        Index("idx_audit_seq", "seq"),
    )

    # Monotonic sequence for ordering
    seq: Mapped[int] = mapped_column(BigInteger, nullable=False, unique=True)

    actor_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    actor_name: Mapped[str | None] = mapped_column(String(200), nullable=True)

    actor_role: Mapped[str | None] = mapped_column(String(20), nullable=True)

    action: Mapped[str] = mapped_column(String(50), nullable=False)

    # e.g. "inventory_cycle", "scanned_item", "discrepancy", "location"
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # UUID or location code of the affected entity
    entity_ref: Mapped[str | None] = mapped_column(String(100), nullable=True)

    cycle_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_cycles.id"),
        nullable=True,
    )

    details: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    occurred_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<AuditEntry {self.action} on {self.entity_type}:{self.entity_ref}>"
