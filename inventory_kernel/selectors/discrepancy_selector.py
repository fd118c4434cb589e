"""
Module: inventory_kernel.selectors.discrepancy_selector
Responsibility: Enriched discrepancy listings and per-cycle statistics.
Architecture position: Kernel > Selectors.

The location shown for a discrepancy comes from the expected item when
there is one, and from the scan otherwise (UNEXPECTED items have no
expected row).
"""

from uuid import UUID

from sqlalchemy import and_, case, select

from inventory_kernel.domain.dtos import DiscrepancyStatistics, DiscrepancyView
from inventory_kernel.domain.values import DiscrepancyKind
from inventory_kernel.exceptions import DiscrepancyNotFoundError
from inventory_kernel.models.discrepancy import Discrepancy
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.selectors.base import BaseSelector

# Listing order
_KIND_ORDER = {
    DiscrepancyKind.MISSING.value: 0,
    DiscrepancyKind.WRONG_LOCATION.value: 1,
    DiscrepancyKind.UNEXPECTED.value: 2,
}


class DiscrepancySelector(BaseSelector):
    """Queries over discrepancies."""

    def _enriched(self):
        return (
            select(
                Discrepancy,
                ExpectedItem.location_code.label("expected_location"),
                ExpectedItem.description.label("description"),
                ScannedItem.location_code.label("scanned_location"),
            )
            .outerjoin(
                ExpectedItem,
                and_(
                    ExpectedItem.cycle_id == Discrepancy.cycle_id,
                    ExpectedItem.primary_key == Discrepancy.primary_key,
                ),
            )
            .outerjoin(
                ScannedItem,
                and_(
                    ScannedItem.cycle_id == Discrepancy.cycle_id,
                    ScannedItem.primary_key == Discrepancy.primary_key,
                ),
            )
        )

    @staticmethod
    def _to_view(row) -> DiscrepancyView:
        d = row.Discrepancy
        return DiscrepancyView(
            id=d.id,
            cycle_id=d.cycle_id,
            primary_key=d.primary_key,
            kind=DiscrepancyKind(d.kind),
            comment=d.comment,
            confirmed_by_id=d.confirmed_by_id,
            confirmed_at=d.confirmed_at,
            location_code=row.expected_location or row.scanned_location,
            description=row.description,
        )

    def list_discrepancies(self, cycle_id: UUID) -> list[DiscrepancyView]:
        """All discrepancies of a cycle, ordered by kind then primary key."""
        self._ensure_cycle(cycle_id)
        kind_order = case(_KIND_ORDER, value=Discrepancy.kind, else_=99)
        rows = self.session.execute(
            self._enriched()
            .where(Discrepancy.cycle_id == cycle_id)
            .order_by(kind_order, Discrepancy.primary_key)
        ).all()
        return [self._to_view(row) for row in rows]

    def get_discrepancy(self, discrepancy_id: UUID) -> DiscrepancyView:
        row = self.session.execute(
            self._enriched().where(Discrepancy.id == discrepancy_id)
        ).first()
        if row is None:
            raise DiscrepancyNotFoundError(str(discrepancy_id))
        return self._to_view(row)

    def get_statistics(self, cycle_id: UUID) -> DiscrepancyStatistics:
        """Totals and a per-kind breakdown with every kind present."""
        self._ensure_cycle(cycle_id)
        rows = self.session.execute(
            select(Discrepancy.kind, Discrepancy.confirmed_at)
            .where(Discrepancy.cycle_id == cycle_id)
        ).all()

        by_kind = {kind: 0 for kind in DiscrepancyKind}
        confirmed = 0
        for row in rows:
            by_kind[DiscrepancyKind(row.kind)] += 1
            if row.confirmed_at is not None:
                confirmed += 1

        return DiscrepancyStatistics(
            total=len(rows),
            confirmed=confirmed,
            open=len(rows) - confirmed,
            by_kind=by_kind,
        )
