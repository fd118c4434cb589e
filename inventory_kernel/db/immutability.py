"""
ORM-Level Immutability Enforcement.

===============================================================================
WHY THIS EXISTS
===============================================================================

Reconciliation results are only trustworthy if the evidence behind them
cannot be rewritten afterwards.  A scan that has been recorded is a fact
about the warehouse; an audit entry is a fact about who did what.  Neither
may change once written, and a closed cycle must stay closed.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  The listeners below intercept them and raise
ImmutabilityViolationError, which aborts the flush and the transaction.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | Rule
------------------|----------------------------------------------------------
ScannedItem       | Never updated, never deleted
AuditEntry        | Never updated, never deleted
Discrepancy       | Never deleted (confirmation is an update and is allowed)
InventoryCycle    | Never deleted; no change once closed (no reopen)

===============================================================================
USAGE
===============================================================================

    from inventory_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()  # once at startup; idempotent

To temporarily disable (TESTS ONLY):

    unregister_immutability_listeners()
"""

from sqlalchemy import event
from sqlalchemy.orm.attributes import get_history

from inventory_kernel.exceptions import ImmutabilityViolationError
from inventory_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _block(entity_type: str, target, operation: str, reason: str) -> None:
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_scanned_item_update(mapper, connection, target):
    _block("ScannedItem", target, "UPDATE", "Scans are immutable once recorded")


def _check_scanned_item_delete(mapper, connection, target):
    _block("ScannedItem", target, "DELETE", "Scans cannot be deleted")


def _check_audit_entry_update(mapper, connection, target):
    _block("AuditEntry", target, "UPDATE", "Audit entries are immutable")


def _check_audit_entry_delete(mapper, connection, target):
    _block("AuditEntry", target, "DELETE", "Audit entries cannot be deleted")


def _check_discrepancy_delete(mapper, connection, target):
    _block("Discrepancy", target, "DELETE", "Discrepancies cannot be deleted")


def _check_cycle_update(mapper, connection, target):
    """
    Block any change to a cycle that was already closed.

    The open -> closed transition itself is allowed: history.deleted holds
    the value loaded from the database, so only a cycle whose stored value
    was True is frozen.
    """
    closed_history = get_history(target, "closed")
    if closed_history.deleted:
        was_closed = bool(closed_history.deleted[0])
    elif not closed_history.added:
        was_closed = bool(target.closed)
    else:
        was_closed = False

    if was_closed:
        _block("InventoryCycle", target, "UPDATE", "Closed cycles cannot be modified or reopened")


def _check_cycle_delete(mapper, connection, target):
    _block("InventoryCycle", target, "DELETE", "Cycles are never deleted")


def _listeners():
    from inventory_kernel.models.audit_entry import AuditEntry
    from inventory_kernel.models.cycle import InventoryCycle
    from inventory_kernel.models.discrepancy import Discrepancy
    from inventory_kernel.models.scanned_item import ScannedItem

    return (
        (ScannedItem, "before_update", _check_scanned_item_update),
        (ScannedItem, "before_delete", _check_scanned_item_delete),
        (AuditEntry, "before_update", _check_audit_entry_update),
        (AuditEntry, "before_delete", _check_audit_entry_delete),
        (Discrepancy, "before_delete", _check_discrepancy_delete),
        (InventoryCycle, "before_update", _check_cycle_update),
        (InventoryCycle, "before_delete", _check_cycle_delete),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    for target, name, fn in _listeners():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn)


def unregister_immutability_listeners() -> None:
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that must bypass the rules.
    """
    for target, name, fn in _listeners():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
