"""
Module: inventory_kernel.selectors.report_selector
Responsibility: Assemble everything the reporting collaborator renders for
    one cycle.  Rendering itself happens elsewhere.
Architecture position: Kernel > Selectors.  Composes the other selectors.
"""

from uuid import UUID

from inventory_kernel.domain.dtos import CycleInfo, CycleReport
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.cycle_selector import CycleSelector
from inventory_kernel.selectors.discrepancy_selector import DiscrepancySelector


class ReportSelector(BaseSelector):

    def get_report(self, cycle_id: UUID) -> CycleReport:
        cycle = self._ensure_cycle(cycle_id)
        stats = CycleSelector(self.session).closure_stats(cycle_id)
        discrepancies = DiscrepancySelector(self.session)

        return CycleReport(
            cycle=CycleInfo.from_model(cycle),
            expected_items=stats.expected_items,
            scans=stats.scans,
            locations=stats.locations_total,
            statistics=discrepancies.get_statistics(cycle_id),
            discrepancies=tuple(discrepancies.list_discrepancies(cycle_id)),
        )
