"""
ExpectedStockService -- full replace of a cycle's SOLL rows.

Responsibility:
    Entry point for the external importer.  Validates a batch of expected
    items, deletes the cycle's previous expected set and inserts the new
    one in the caller's transaction.

Invariants enforced:
    - (cycle, primary_key) unique: duplicate keys inside a batch are
      rejected before anything is deleted.
    - Only open cycles accept imports.

Existing scans are left untouched; their outcomes were classified against
the previous set, which the returned summary reports as a warning.
"""

from collections import Counter
from typing import Sequence
from uuid import UUID

from sqlalchemy import delete, func, select

from inventory_kernel.domain.dtos import ExpectedItemInput, ImportSummary
from inventory_kernel.domain.values import ActingUser, ItemCategory
from inventory_kernel.exceptions import (
    DuplicateExpectedItemError,
    InvalidExpectedItemError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService

logger = get_logger("services.expected_stock")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


class ExpectedStockService(BaseService):
    """Expected-stock importer target."""

    def __init__(self, session, clock=None, auditor: AuditorService | None = None):
        super().__init__(session, clock)
        self._auditor = auditor or AuditorService(session, self._clock)

    def replace_expected_items(
        self,
        cycle_id: UUID,
        items: Sequence[ExpectedItemInput],
        actor: ActingUser,
    ) -> ImportSummary:
        """
        Replace the cycle's expected items with ``items``.

        Raises:
            InvalidExpectedItemError: an item has a blank key or location.
            DuplicateExpectedItemError: the batch repeats a key.
        """
        self._require_open_cycle(cycle_id)
        rows = self._validate(cycle_id, items)

        replaced = self.session.execute(
            delete(ExpectedItem).where(ExpectedItem.cycle_id == cycle_id)
        ).rowcount or 0

        self.session.add_all(rows)
        self.session.flush()

        existing_scans = self.session.execute(
            select(func.count(ScannedItem.id)).where(ScannedItem.cycle_id == cycle_id)
        ).scalar_one()

        self._auditor.record_expected_items_imported(
            cycle_id, actor, imported=len(rows), replaced=replaced
        )

        summary = ImportSummary(
            cycle_id=cycle_id,
            imported=len(rows),
            replaced=replaced,
            existing_scans=existing_scans,
        )
        if summary.warning:
            logger.warning(
                "expected_items_replaced_after_scanning",
                extra={"existing_scans": existing_scans},
            )
        logger.info(
            "expected_items_imported",
            extra={"imported": len(rows), "replaced": replaced},
        )
        return summary

    def _validate(
        self, cycle_id: UUID, items: Sequence[ExpectedItemInput]
    ) -> list[ExpectedItem]:
        rows: list[ExpectedItem] = []
        for index, item in enumerate(items):
            primary_key = _clean(item.primary_key)
            location_code = _clean(item.location_code)
            if primary_key is None:
                raise InvalidExpectedItemError(index, "primary_key")
            if location_code is None:
                raise InvalidExpectedItemError(index, "location_code")

            category = item.category or ItemCategory.from_primary_key(primary_key)
            rows.append(
                ExpectedItem(
                    cycle_id=cycle_id,
                    primary_key=primary_key,
                    location_code=location_code,
                    room=_clean(item.room),
                    description=_clean(item.description),
                    temperature=_clean(item.temperature),
                    expiry_date=item.expiry_date,
                    category=category.value,
                )
            )

        duplicates = sorted(
            key for key, n in Counter(r.primary_key for r in rows).items() if n > 1
        )
        if duplicates:
            logger.warning(
                "duplicate_expected_items_rejected",
                extra={"primary_keys": duplicates},
            )
            raise DuplicateExpectedItemError(str(cycle_id), duplicates)
        return rows
