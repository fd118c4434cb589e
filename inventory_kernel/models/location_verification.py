"""
Module: inventory_kernel.models.location_verification
Responsibility: ORM persistence for explicit "location checked" attestations.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (cycle_id, location_code) is unique.

Lifecycle:
    Created by LocationService.confirm_location(); hard-deleted by
    LocationService.reopen_location().
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from inventory_kernel.db.base import Base, UUIDString


class LocationVerification(Base):
    """A location marked as reviewed within a cycle."""

    __tablename__ = "location_verifications"

    __table_args__ = (
        UniqueConstraint(
            "cycle_id", "location_code", name="uq_verification_cycle_location"
        ),
    )

    cycle_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("inventory_cycles.id"),
        nullable=False,
    )

    location_code: Mapped[str] = mapped_column(String(100), nullable=False)

    verified_by_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    verified_at: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<LocationVerification {self.location_code}>"
