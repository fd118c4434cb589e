"""
Module: inventory_kernel.selectors.audit_selector
Responsibility: Read access to the audit trail for the audit viewer.
Architecture position: Kernel > Selectors.
"""

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain.dtos import AuditEntryInfo
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.selectors.base import BaseSelector


class AuditSelector(BaseSelector):
    """Queries over audit entries."""

    def list_entries(
        self,
        cycle_id: UUID | None = None,
        action: AuditAction | None = None,
        limit: int = 100,
    ) -> list[AuditEntryInfo]:
        """
        Newest entries first, optionally filtered by cycle and/or action.

        Ordered by the audit sequence, which follows write order even when
        several entries share a clock tick.
        """
        stmt = select(AuditEntry)
        if cycle_id is not None:
            stmt = stmt.where(AuditEntry.cycle_id == cycle_id)
        if action is not None:
            stmt = stmt.where(AuditEntry.action == AuditAction(action).value)
        stmt = stmt.order_by(AuditEntry.seq.desc()).limit(limit)
        return [AuditEntryInfo.from_model(e) for e in self.session.execute(stmt).scalars()]
