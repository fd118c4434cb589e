"""
Module: inventory_kernel.selectors.cycle_selector
Responsibility: Read-only cycle queries: metadata, the active cycle, the
    counts behind the closing gate, and the cross-cycle dashboard.
Architecture position: Kernel > Selectors.
"""

from datetime import datetime, time, timezone
from uuid import UUID

from sqlalchemy import case, func, select

from inventory_kernel.domain import reconciliation
from inventory_kernel.domain.dtos import (
    ClosureStats,
    CycleInfo,
    CycleListItem,
    DashboardStats,
)
from inventory_kernel.domain.values import DiscrepancyKind, ScanOutcome
from inventory_kernel.models.cycle import InventoryCycle
from inventory_kernel.models.discrepancy import Discrepancy
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.location_verification import LocationVerification
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.selectors.base import BaseSelector


class CycleSelector(BaseSelector):
    """Queries over inventory cycles."""

    def get_cycle(self, cycle_id: UUID) -> CycleInfo:
        return CycleInfo.from_model(self._ensure_cycle(cycle_id))

    def get_active_cycle(self) -> CycleListItem | None:
        """The open cycle, if any, with its expected and scan counts."""
        cycle = self.session.execute(
            select(InventoryCycle)
            .where(InventoryCycle.closed.is_(False))
            .order_by(InventoryCycle.created_at.desc())
            .limit(1)
        ).scalar_one_or_none()
        if cycle is None:
            return None
        [item] = self._with_counts([cycle])
        return item

    def list_cycles(self, limit: int = 10) -> list[CycleListItem]:
        """Most recent cycles first."""
        cycles = self.session.execute(
            select(InventoryCycle)
            .order_by(InventoryCycle.created_at.desc())
            .limit(limit)
        ).scalars().all()
        return self._with_counts(cycles)

    def _with_counts(self, cycles) -> list[CycleListItem]:
        """Attach expected, scan and OK-scan counts with one grouped query each."""
        ids = [c.id for c in cycles]
        if not ids:
            return []

        expected = dict(
            self.session.execute(
                select(ExpectedItem.cycle_id, func.count(ExpectedItem.id))
                .where(ExpectedItem.cycle_id.in_(ids))
                .group_by(ExpectedItem.cycle_id)
            ).all()
        )
        scan_counts = {
            row.cycle_id: (row.scans, int(row.ok_scans or 0))
            for row in self.session.execute(
                select(
                    ScannedItem.cycle_id,
                    func.count(ScannedItem.id).label("scans"),
                    func.sum(
                        case((ScannedItem.outcome == ScanOutcome.OK.value, 1), else_=0)
                    ).label("ok_scans"),
                )
                .where(ScannedItem.cycle_id.in_(ids))
                .group_by(ScannedItem.cycle_id)
            )
        }

        items = []
        for c in cycles:
            scanned, ok = scan_counts.get(c.id, (0, 0))
            items.append(
                CycleListItem.from_counts(c, expected.get(c.id, 0), scanned, ok)
            )
        return items

    def closure_stats(self, cycle_id: UUID) -> ClosureStats:
        """
        Counts behind the closing gate.

        Verifications for locations that are no longer in the expected set
        (after a re-import) do not count as verified locations.
        """
        self._ensure_cycle(cycle_id)

        expected_rows = self.session.execute(
            select(ExpectedItem.primary_key, ExpectedItem.location_code)
            .where(ExpectedItem.cycle_id == cycle_id)
        ).all()
        locations = {row.location_code for row in expected_rows}

        scans = self.session.execute(
            select(func.count(ScannedItem.id)).where(ScannedItem.cycle_id == cycle_id)
        ).scalar_one()

        ok_keys = self.session.execute(
            select(ScannedItem.primary_key).where(
                ScannedItem.cycle_id == cycle_id,
                ScannedItem.outcome == ScanOutcome.OK.value,
            )
        ).scalars().all()

        verified = set(
            self.session.execute(
                select(LocationVerification.location_code)
                .where(LocationVerification.cycle_id == cycle_id)
            ).scalars()
        )

        discrepancy_rows = self.session.execute(
            select(Discrepancy.primary_key, Discrepancy.kind, Discrepancy.confirmed_at)
            .where(Discrepancy.cycle_id == cycle_id)
        ).all()
        open_count = sum(1 for row in discrepancy_rows if row.confirmed_at is None)
        missing_recorded = [
            row.primary_key
            for row in discrepancy_rows
            if row.kind == DiscrepancyKind.MISSING.value
        ]

        return ClosureStats(
            expected_items=len(expected_rows),
            scans=scans,
            locations_total=len(locations),
            locations_verified=len(locations & verified),
            discrepancies_total=len(discrepancy_rows),
            discrepancies_open=open_count,
            unrecorded_missing=len(
                reconciliation.missing_keys(
                    (row.primary_key for row in expected_rows),
                    ok_keys,
                    missing_recorded,
                )
            ),
        )

    def dashboard_stats(self, now: datetime) -> DashboardStats:
        """
        Cross-cycle overview.

        Args:
            now: Current time from the caller's clock; "this year" and
                "today" are evaluated in UTC relative to it.
        """
        now_utc = now.astimezone(timezone.utc)
        year_start = datetime(now_utc.year, 1, 1, tzinfo=timezone.utc)
        day_start = datetime.combine(now_utc.date(), time.min, tzinfo=timezone.utc)

        open_cycles = self.session.execute(
            select(func.count(InventoryCycle.id)).where(InventoryCycle.closed.is_(False))
        ).scalar_one()
        closed_this_year = self.session.execute(
            select(func.count(InventoryCycle.id)).where(
                InventoryCycle.closed.is_(True),
                InventoryCycle.closed_at >= year_start,
            )
        ).scalar_one()
        open_discrepancies = self.session.execute(
            select(func.count(Discrepancy.id)).where(Discrepancy.confirmed_at.is_(None))
        ).scalar_one()
        scanned_today = self.session.execute(
            select(func.count(ScannedItem.id)).where(ScannedItem.scanned_at >= day_start)
        ).scalar_one()

        return DashboardStats(
            open_cycles=open_cycles,
            cycles_closed_this_year=closed_this_year,
            open_discrepancies=open_discrepancies,
            scanned_today=scanned_today,
        )
