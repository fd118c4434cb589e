"""
LocationService -- explicit location verification and reopen.

Responsibility:
    Records that a location has been checked, derives the MISSING
    discrepancies for it, and removes the verification again on reopen.

Invariants enforced:
    - At most one verification per (cycle, location), backed by the
      uq_verification_cycle_location constraint.
    - Reopening removes only the verification; MISSING discrepancies
      derived earlier stay in the ledger.

Failure modes:
    - LocationNotFoundError: the location has no expected items.
    - AlreadyVerifiedError / LocationNotVerifiedError.
    - CycleNotFoundError / CycleClosedError.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from inventory_kernel.domain.dtos import LocationConfirmation
from inventory_kernel.domain.values import ActingUser
from inventory_kernel.exceptions import (
    AlreadyVerifiedError,
    LocationNotFoundError,
    LocationNotVerifiedError,
)
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.location_verification import LocationVerification
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService
from inventory_kernel.services.discrepancy_service import DiscrepancyService

logger = get_logger("services.location")


class LocationService(BaseService):
    """Location completion tracker writes."""

    def __init__(self, session, clock=None, auditor: AuditorService | None = None):
        super().__init__(session, clock)
        self._auditor = auditor or AuditorService(session, self._clock)
        self._discrepancies = DiscrepancyService(session, self._clock, self._auditor)

    def confirm_location(
        self, cycle_id: UUID, location_code: str, actor: ActingUser
    ) -> LocationConfirmation:
        location_code = (location_code or "").strip()
        self._require_open_cycle(cycle_id)

        if self._find_verification(cycle_id, location_code) is not None:
            logger.warning(
                "location_already_verified",
                extra={"location_code": location_code},
            )
            raise AlreadyVerifiedError(str(cycle_id), location_code)

        known = self.session.execute(
            select(ExpectedItem.id).where(
                ExpectedItem.cycle_id == cycle_id,
                ExpectedItem.location_code == location_code,
            )
        ).first()
        if known is None:
            raise LocationNotFoundError(str(cycle_id), location_code)

        verification = LocationVerification(
            cycle_id=cycle_id,
            location_code=location_code,
            verified_by_id=actor.id,
            verified_at=self._clock.now(),
        )
        self.session.add(verification)
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise AlreadyVerifiedError(str(cycle_id), location_code) from exc

        created = self._discrepancies.create_missing(cycle_id, location_code)
        missing = [d.primary_key for d in created]

        self._auditor.record_location_verified(
            cycle_id=cycle_id,
            location_code=location_code,
            actor=actor,
            missing_keys=missing,
        )
        logger.info(
            "location_verified",
            extra={"location_code": location_code, "missing_count": len(missing)},
        )

        return LocationConfirmation(
            cycle_id=cycle_id,
            location_code=location_code,
            verification_id=verification.id,
            verified_at=verification.verified_at,
            missing_keys=tuple(missing),
            created_discrepancy_ids=tuple(d.id for d in created),
        )

    def reopen_location(
        self, cycle_id: UUID, location_code: str, actor: ActingUser
    ) -> None:
        location_code = (location_code or "").strip()
        self._require_open_cycle(cycle_id)

        verification = self._find_verification(cycle_id, location_code)
        if verification is None:
            raise LocationNotVerifiedError(str(cycle_id), location_code)

        self.session.delete(verification)
        self.session.flush()

        self._auditor.record_location_reopened(cycle_id, location_code, actor)
        logger.info("location_reopened", extra={"location_code": location_code})

    def _find_verification(
        self, cycle_id: UUID, location_code: str
    ) -> LocationVerification | None:
        return self.session.execute(
            select(LocationVerification).where(
                LocationVerification.cycle_id == cycle_id,
                LocationVerification.location_code == location_code,
            )
        ).scalar_one_or_none()
