"""
Typed Exception Hierarchy for the Inventory Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Every expected failure of a reconciliation operation is a user-recoverable
condition: the scanner scanned a barcode twice, the operator tried to close a
cycle that still has open discrepancies, someone verified the same location
twice. The presentation layer must react to each of these differently, so
each one is a distinct exception type with:

  1. A CODE class attribute (machine-readable, API-safe)
  2. Structured DATA attributes (not just a message string)

Example - WRONG way to handle errors:
    try:
        engine.classify_scan(cycle_id, "L1", "A1", actor)
    except Exception as e:
        if "already scanned" in str(e):  # FRAGILE
            ...

Example - RIGHT way:
    try:
        engine.classify_scan(cycle_id, "L1", "A1", actor)
    except DuplicateScanError as e:
        show_warning(f"{e.primary_key} was already scanned")

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InventoryKernelError (base)
    |
    +-- PreconditionError
    |   +-- DuplicateScanError
    |   +-- OpenCycleExistsError
    |   +-- AlreadyVerifiedError
    |   +-- LocationVerifiedError
    |   +-- CycleClosedError
    |   +-- NotReadyError
    |   +-- DuplicateExpectedItemError
    |
    +-- ValidationError
    |   +-- InvalidScanInputError
    |   +-- InvalidExpectedItemError
    |
    +-- NotFoundError
    |   +-- CycleNotFoundError
    |   +-- DiscrepancyNotFoundError
    |   +-- LocationNotFoundError
    |   +-- LocationNotVerifiedError
    |
    +-- ImmutabilityViolationError
    |
    +-- InfrastructureError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                      | When Raised
--------------|---------------------------|-----------------------------------
Precondition  | DUPLICATE_SCAN            | Key already scanned in this cycle
              | OPEN_CYCLE_EXISTS         | Creating a cycle while one is open
              | ALREADY_VERIFIED          | Location already verified
              | LOCATION_VERIFIED         | Scanning into a verified location
              | CYCLE_CLOSED              | Mutating a closed cycle
              | NOT_READY                 | Close gate not satisfied
              | DUPLICATE_EXPECTED_ITEM   | Import batch repeats a key
--------------|---------------------------|-----------------------------------
Validation    | INVALID_SCAN_INPUT        | Blank barcode or location
              | INVALID_EXPECTED_ITEM     | Import row without key/location
--------------|---------------------------|-----------------------------------
Not found     | CYCLE_NOT_FOUND           | Cycle ID doesn't exist
              | DISCREPANCY_NOT_FOUND     | Discrepancy ID doesn't exist
              | LOCATION_NOT_FOUND        | Location not in the expected set
              | LOCATION_NOT_VERIFIED     | Reopening an unverified location
--------------|---------------------------|-----------------------------------
Immutability  | IMMUTABILITY_VIOLATION    | Updating/deleting append-only rows
--------------|---------------------------|-----------------------------------
Infrastructure| INFRASTRUCTURE_ERROR      | Storage or transport failure

===============================================================================
"""


class InventoryKernelError(Exception):
    """
    Base exception for all inventory kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "INVENTORY_KERNEL_ERROR"


# Precondition violations


class PreconditionError(InventoryKernelError):
    """Base exception for expected, user-recoverable precondition failures."""

    code: str = "PRECONDITION_FAILED"


class DuplicateScanError(PreconditionError):
    """The key has already been scanned in this cycle."""

    code: str = "DUPLICATE_SCAN"

    def __init__(self, cycle_id: str, primary_key: str):
        self.cycle_id = cycle_id
        self.primary_key = primary_key
        super().__init__(
            f"Item {primary_key} has already been scanned in cycle {cycle_id}"
        )


class OpenCycleExistsError(PreconditionError):
    """Another inventory cycle is still open."""

    code: str = "OPEN_CYCLE_EXISTS"

    def __init__(self, open_cycle_id: str | None = None):
        self.open_cycle_id = open_cycle_id
        if open_cycle_id:
            message = (
                f"Cycle {open_cycle_id} is still open; close it before "
                f"creating a new one"
            )
        else:
            message = "An open cycle already exists; close it before creating a new one"
        super().__init__(message)


class AlreadyVerifiedError(PreconditionError):
    """The location has already been verified in this cycle."""

    code: str = "ALREADY_VERIFIED"

    def __init__(self, cycle_id: str, location_code: str):
        self.cycle_id = cycle_id
        self.location_code = location_code
        super().__init__(
            f"Location {location_code} is already verified in cycle {cycle_id}"
        )


class LocationVerifiedError(PreconditionError):
    """The location is verified; it takes scans again only after a reopen."""

    code: str = "LOCATION_VERIFIED"

    def __init__(self, cycle_id: str, location_code: str):
        self.cycle_id = cycle_id
        self.location_code = location_code
        super().__init__(
            f"Location {location_code} is verified in cycle {cycle_id}; "
            f"reopen it before scanning"
        )


class CycleClosedError(PreconditionError):
    """The cycle is closed and accepts no further changes."""

    code: str = "CYCLE_CLOSED"

    def __init__(self, cycle_id: str):
        self.cycle_id = cycle_id
        super().__init__(f"Cycle {cycle_id} is closed")


class NotReadyError(PreconditionError):
    """The closing gate is not satisfied."""

    code: str = "NOT_READY"

    def __init__(self, cycle_id: str, reasons: list[str]):
        self.cycle_id = cycle_id
        self.reasons = list(reasons)
        super().__init__(
            f"Cycle {cycle_id} cannot be closed yet: " + "; ".join(self.reasons)
        )


class DuplicateExpectedItemError(PreconditionError):
    """An expected-stock import repeats one or more primary keys."""

    code: str = "DUPLICATE_EXPECTED_ITEM"

    def __init__(self, cycle_id: str, primary_keys: list[str]):
        self.cycle_id = cycle_id
        self.primary_keys = list(primary_keys)
        super().__init__(
            f"Import for cycle {cycle_id} repeats keys: "
            + ", ".join(self.primary_keys)
        )


# Validation errors


class ValidationError(InventoryKernelError):
    """Base exception for malformed input."""

    code: str = "VALIDATION_ERROR"


class InvalidScanInputError(ValidationError):
    """A scan was submitted without a barcode or without a location."""

    code: str = "INVALID_SCAN_INPUT"

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Scan input '{field}' must not be blank")


class InvalidExpectedItemError(ValidationError):
    """An expected item is missing its primary key or location."""

    code: str = "INVALID_EXPECTED_ITEM"

    def __init__(self, index: int, field: str):
        self.index = index
        self.field = field
        super().__init__(f"Expected item #{index}: '{field}' must not be blank")


# Not-found conditions


class NotFoundError(InventoryKernelError):
    """Base exception for references to entities that do not exist."""

    code: str = "NOT_FOUND"


class CycleNotFoundError(NotFoundError):
    """Inventory cycle with given ID was not found."""

    code: str = "CYCLE_NOT_FOUND"

    def __init__(self, cycle_id: str):
        self.cycle_id = cycle_id
        super().__init__(f"Cycle not found: {cycle_id}")


class DiscrepancyNotFoundError(NotFoundError):
    """Discrepancy with given ID was not found."""

    code: str = "DISCREPANCY_NOT_FOUND"

    def __init__(self, discrepancy_id: str):
        self.discrepancy_id = discrepancy_id
        super().__init__(f"Discrepancy not found: {discrepancy_id}")


class LocationNotFoundError(NotFoundError):
    """The location code is not part of the cycle's expected set."""

    code: str = "LOCATION_NOT_FOUND"

    def __init__(self, cycle_id: str, location_code: str):
        self.cycle_id = cycle_id
        self.location_code = location_code
        super().__init__(
            f"Location {location_code} has no expected items in cycle {cycle_id}"
        )


class LocationNotVerifiedError(NotFoundError):
    """No verification exists for the location, so it cannot be reopened."""

    code: str = "LOCATION_NOT_VERIFIED"

    def __init__(self, cycle_id: str, location_code: str):
        self.cycle_id = cycle_id
        self.location_code = location_code
        super().__init__(
            f"Location {location_code} is not verified in cycle {cycle_id}"
        )


# Immutability


class ImmutabilityViolationError(InventoryKernelError):
    """Attempted to modify or delete an append-only record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Cannot modify {entity_type} {entity_id}: {reason}"
        )


# Infrastructure


class InfrastructureError(InventoryKernelError):
    """
    Storage or transport failure.

    Reported to the user as an unexpected error. The transaction that
    raised it has been rolled back, so no partial state remains.
    """

    code: str = "INFRASTRUCTURE_ERROR"

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause_type = type(cause).__name__ if cause is not None else None
        super().__init__(f"Unexpected storage error during {operation}")
