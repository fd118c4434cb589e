"""Read-only selectors returning DTOs."""

from inventory_kernel.selectors.audit_selector import AuditSelector
from inventory_kernel.selectors.base import BaseSelector
from inventory_kernel.selectors.cycle_selector import CycleSelector
from inventory_kernel.selectors.discrepancy_selector import DiscrepancySelector
from inventory_kernel.selectors.location_selector import LocationSelector
from inventory_kernel.selectors.report_selector import ReportSelector

__all__ = [
    "AuditSelector",
    "BaseSelector",
    "CycleSelector",
    "DiscrepancySelector",
    "LocationSelector",
    "ReportSelector",
]
