"""
Kernel Invariants Contract.

These invariants are structural law for an inventory cycle. They are
enforced by unique constraints in the schema, by the ORM immutability
listeners, and by the services that perform read-then-write sequences.
No caller flag may switch them off.

This module exists solely to declare these invariants explicitly.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    SINGLE_OPEN_CYCLE = "single_open_cycle"
    """At most one inventory cycle is open at any time. Enforced by
    CycleService and a partial unique index on inventory_cycles."""

    SINGLE_SCAN_PER_KEY = "single_scan_per_key"
    """A physical item is scanned at most once per cycle. Enforced by
    ScanService and the uq_scanned_cycle_key constraint."""

    SINGLE_VERIFICATION_PER_LOCATION = "single_verification_per_location"
    """A location is verified at most once per cycle until reopened.
    Enforced by LocationService and uq_verification_cycle_location."""

    CONFIRMATION_PAIRING = "confirmation_pairing"
    """A discrepancy's confirming user and confirmation timestamp are
    either both null or both set. Enforced by a check constraint."""

    ATOMIC_SCAN = "atomic_scan"
    """A scan, its discrepancy and its audit entry commit together or not
    at all. Enforced by the InventoryEngine transaction boundary."""

    CLOSE_GATE = "close_gate"
    """A cycle closes only when every location is verified and every
    discrepancy is confirmed, re-checked inside the closing transaction."""

    IRREVERSIBLE_CLOSE = "irreversible_close"
    """A closed cycle is never reopened. Enforced by ORM listeners."""

    APPEND_ONLY_AUDIT = "append_only_audit"
    """Audit entries and scanned items are never updated or deleted.
    Enforced by ORM listeners."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)
