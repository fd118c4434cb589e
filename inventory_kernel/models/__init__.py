"""ORM models for the inventory kernel."""

from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.models.cycle import InventoryCycle
from inventory_kernel.models.discrepancy import Discrepancy
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.location_verification import LocationVerification
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.models.sequence_counter import SequenceCounter

__all__ = [
    "AuditAction",
    "AuditEntry",
    "Discrepancy",
    "ExpectedItem",
    "InventoryCycle",
    "LocationVerification",
    "ScannedItem",
    "SequenceCounter",
]
