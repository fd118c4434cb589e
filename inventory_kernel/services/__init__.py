"""Write services and the InventoryEngine facade."""

from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.cycle_service import CycleService
from inventory_kernel.services.discrepancy_service import DiscrepancyService
from inventory_kernel.services.expected_stock_service import ExpectedStockService
from inventory_kernel.services.inventory_engine import InventoryEngine
from inventory_kernel.services.location_service import LocationService
from inventory_kernel.services.scan_service import ScanService

__all__ = [
    "AuditorService",
    "BaseService",
    "CycleService",
    "DiscrepancyService",
    "ExpectedStockService",
    "InventoryEngine",
    "LocationService",
    "ScanService",
]
