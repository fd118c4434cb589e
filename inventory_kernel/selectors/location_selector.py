"""
Module: inventory_kernel.selectors.location_selector
Responsibility: Per-location completion summaries and location checklists.
Architecture position: Kernel > Selectors.

Only OK scans count toward a location's completion; see
domain.reconciliation.summarize_locations.
"""

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain import reconciliation
from inventory_kernel.domain.dtos import LocationItem, LocationSummary
from inventory_kernel.domain.values import ScanOutcome
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.location_verification import LocationVerification
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.selectors.base import BaseSelector


class LocationSelector(BaseSelector):
    """Queries over locations within a cycle."""

    def get_location_summaries(self, cycle_id: UUID) -> list[LocationSummary]:
        self._ensure_cycle(cycle_id)

        expected = self.session.execute(
            select(ExpectedItem.location_code, ExpectedItem.room)
            .where(ExpectedItem.cycle_id == cycle_id)
            .order_by(ExpectedItem.primary_key)
        ).all()
        ok_locations = self.session.execute(
            select(ScannedItem.location_code).where(
                ScannedItem.cycle_id == cycle_id,
                ScannedItem.outcome == ScanOutcome.OK.value,
            )
        ).scalars()
        verified = self.session.execute(
            select(LocationVerification.location_code)
            .where(LocationVerification.cycle_id == cycle_id)
        ).scalars()

        return reconciliation.summarize_locations(
            ((row.location_code, row.room) for row in expected),
            ok_locations,
            verified,
        )


    def get_items_for_location(self, cycle_id: UUID, location_code: str) -> list[LocationItem]:
        """
        Checklist for one location.

        Expected items at the location with their scan status, followed by
        items scanned here that are not in the expected set at all.
        """
        self._ensure_cycle(cycle_id)

        expected = self.session.execute(
            select(ExpectedItem)
            .where(
                ExpectedItem.cycle_id == cycle_id,
                ExpectedItem.location_code == location_code,
            )
            .order_by(ExpectedItem.primary_key)
        ).scalars().all()
        scans = {
            scan.primary_key: scan
            for scan in self.session.execute(
                select(ScannedItem).where(
                    ScannedItem.cycle_id == cycle_id,
                    ScannedItem.location_code == location_code,
                )
            ).scalars()
        }

        items = [
            LocationItem(
                primary_key=item.primary_key,
                description=item.description,
                temperature=item.temperature,
                scanned=item.primary_key in scans,
                outcome=(
                    ScanOutcome(scans[item.primary_key].outcome)
                    if item.primary_key in scans
                    else None
                ),
                is_unexpected=False,
            )
            for item in expected
        ]

        expected_keys = {item.primary_key for item in expected}
        for key in sorted(scans):
            if key not in expected_keys:
                items.append(
                    LocationItem(
                        primary_key=key,
                        description=None,
                        temperature=None,
                        scanned=True,
                        outcome=ScanOutcome(scans[key].outcome),
                        is_unexpected=True,
                    )
                )
        return items
