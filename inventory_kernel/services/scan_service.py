"""
ScanService -- classify and record a single scan.

Responsibility:
    Turns one barcode scan at a claimed location into exactly one
    ScannedItem, at most one Discrepancy and one audit entry, all inside
    the caller's transaction.

Invariants enforced:
    - A key is scanned at most once per cycle.  Checked up front for a
      clear error, and backed by the uq_scanned_cycle_key constraint for
      concurrent scanners.
    - A verified location takes no scans until it is reopened.
    - Atomicity: the scan, its discrepancy and its audit entry are flushed
      in one transaction; the engine commits or rolls back all three.

Failure modes:
    - InvalidScanInputError: blank key or location.
    - CycleNotFoundError / CycleClosedError.
    - LocationVerifiedError: the claimed location is verified.
    - DuplicateScanError: the key already has a scan in this cycle.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain import reconciliation
from inventory_kernel.domain.dtos import ScanResult
from inventory_kernel.domain.values import ActingUser
from inventory_kernel.exceptions import (
    DuplicateScanError,
    InvalidScanInputError,
    LocationVerifiedError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.discrepancy import Discrepancy
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.location_verification import LocationVerification
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService

logger = get_logger("services.scan")


class ScanService(BaseService):
    """Scan classifier."""

    def __init__(self, session, clock=None, auditor: AuditorService | None = None):
        super().__init__(session, clock)
        self._auditor = auditor or AuditorService(session, self._clock)

    def classify_scan(
        self,
        cycle_id: UUID,
        claimed_location: str,
        scanned_key: str,
        actor: ActingUser,
    ) -> ScanResult:
        """
        Classify a scan and record it.

        Args:
            cycle_id: Cycle being counted.
            claimed_location: Location code the scanner reports.
            scanned_key: Barcode of the physical item.
            actor: User performing the scan.

        Returns:
            ScanResult with the outcome and the ids of the rows written.
        """
        primary_key = (scanned_key or "").strip()
        location_code = (claimed_location or "").strip()
        if not primary_key:
            raise InvalidScanInputError("scanned_key")
        if not location_code:
            raise InvalidScanInputError("claimed_location")

        self._require_open_cycle(cycle_id)

        if self._location_verified(cycle_id, location_code):
            logger.warning(
                "verified_location_scan_rejected",
                extra={"location_code": location_code},
            )
            raise LocationVerifiedError(str(cycle_id), location_code)

        if self._already_scanned(cycle_id, primary_key):
            logger.warning(
                "duplicate_scan_rejected",
                extra={"primary_key": primary_key},
            )
            raise DuplicateScanError(str(cycle_id), primary_key)

        expected = self.session.execute(
            select(ExpectedItem).where(
                ExpectedItem.cycle_id == cycle_id,
                ExpectedItem.primary_key == primary_key,
            )
        ).scalar_one_or_none()
        expected_location = expected.location_code if expected else None

        outcome = reconciliation.classify_scan(expected_location, location_code)
        now = self._clock.now()

        scan = ScannedItem(
            cycle_id=cycle_id,
            primary_key=primary_key,
            location_code=location_code,
            scanned_by_id=actor.id,
            outcome=outcome.value,
            scanned_at=now,
        )
        self.session.add(scan)
        try:
            self.session.flush()
        except IntegrityError as exc:
            # Lost the race against a concurrent scanner of the same key
            logger.warning(
                "duplicate_scan_constraint",
                extra={"primary_key": primary_key},
            )
            raise DuplicateScanError(str(cycle_id), primary_key) from exc

        discrepancy_id = None
        kind = reconciliation.discrepancy_kind_for(outcome)
        if kind is not None:
            comment = None
            if expected_location is not None:
                comment = reconciliation.wrong_location_comment(
                    expected_location, location_code
                )
            discrepancy = Discrepancy(
                cycle_id=cycle_id,
                primary_key=primary_key,
                kind=kind.value,
                comment=comment,
                created_at=now,
            )
            self.session.add(discrepancy)
            self.session.flush()
            discrepancy_id = discrepancy.id

        self._auditor.record_item_scanned(
            cycle_id=cycle_id,
            scanned_item_id=scan.id,
            actor=actor,
            primary_key=primary_key,
            location_code=location_code,
            outcome=outcome,
            discrepancy_id=discrepancy_id,
        )

        logger.info(
            "item_scanned",
            extra={
                "primary_key": primary_key,
                "outcome": outcome.value,
                "expected_location": expected_location,
                "discrepancy_id": str(discrepancy_id) if discrepancy_id else None,
            },
        )

        return ScanResult(
            outcome=outcome,
            primary_key=primary_key,
            location_code=location_code,
            scanned_item_id=scan.id,
            discrepancy_id=discrepancy_id,
            expected_location=expected_location,
            message=reconciliation.scan_message(outcome, expected_location),
        )

    def _already_scanned(self, cycle_id: UUID, primary_key: str) -> bool:
        return self.session.execute(
            select(ScannedItem.id).where(
                ScannedItem.cycle_id == cycle_id,
                ScannedItem.primary_key == primary_key,
            )
        ).first() is not None

    def _location_verified(self, cycle_id: UUID, location_code: str) -> bool:
        return self.session.execute(
            select(LocationVerification.id).where(
                LocationVerification.cycle_id == cycle_id,
                LocationVerification.location_code == location_code,
            )
        ).first() is not None
