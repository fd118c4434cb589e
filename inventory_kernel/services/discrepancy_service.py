"""
DiscrepancyService -- discrepancy sign-off and MISSING derivation.

Responsibility:
    Confirms discrepancies (with an optional comment) and derives MISSING
    discrepancies for expected items that never received an OK scan.

Invariants enforced:
    - One discrepancy per (cycle, key, kind): derivation skips keys that
      already hold a MISSING discrepancy, so it can run repeatedly.
    - confirmed_by_id and confirmed_at are always set together.
    - A closed cycle accepts no confirmations and no new discrepancies.
"""

from uuid import UUID

from sqlalchemy import select

from inventory_kernel.domain import reconciliation
from inventory_kernel.domain.values import ActingUser, DiscrepancyKind, ScanOutcome
from inventory_kernel.exceptions import DiscrepancyNotFoundError
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.discrepancy import Discrepancy
from inventory_kernel.models.expected_item import ExpectedItem
from inventory_kernel.models.scanned_item import ScannedItem
from inventory_kernel.services.auditor_service import AuditorService
from inventory_kernel.services.base import BaseService

logger = get_logger("services.discrepancy")


class DiscrepancyService(BaseService):
    """Discrepancy ledger writes."""

    def __init__(self, session, clock=None, auditor: AuditorService | None = None):
        super().__init__(session, clock)
        self._auditor = auditor or AuditorService(session, self._clock)

    def confirm_discrepancy(
        self,
        discrepancy_id: UUID,
        actor: ActingUser,
        comment: str | None = None,
    ) -> Discrepancy:
        """
        Sign off a discrepancy.

        Re-confirming an already confirmed discrepancy is allowed; it
        records the new confirmer and time, and the audit entry is flagged
        ``reconfirmed``.
        """
        discrepancy = self.session.execute(
            select(Discrepancy).where(Discrepancy.id == discrepancy_id)
        ).scalar_one_or_none()
        if discrepancy is None:
            raise DiscrepancyNotFoundError(str(discrepancy_id))

        self._require_open_cycle(discrepancy.cycle_id)

        comment = (comment or "").strip() or None
        reconfirmed = discrepancy.is_confirmed
        discrepancy.confirm(actor.id, self._clock.now(), comment)
        self.session.flush()

        self._auditor.record_discrepancy_confirmed(
            cycle_id=discrepancy.cycle_id,
            discrepancy_id=discrepancy.id,
            actor=actor,
            primary_key=discrepancy.primary_key,
            kind=DiscrepancyKind(discrepancy.kind),
            comment=comment,
            reconfirmed=reconfirmed,
        )

        logger.info(
            "discrepancy_confirmed",
            extra={
                "discrepancy_id": str(discrepancy.id),
                "primary_key": discrepancy.primary_key,
                "kind": discrepancy.kind,
                "reconfirmed": reconfirmed,
            },
        )
        return discrepancy

    def derive_missing(
        self,
        cycle_id: UUID,
        actor: ActingUser,
        location_code: str | None = None,
    ) -> list[Discrepancy]:
        """
        Record MISSING for expected items without an OK scan.

        Args:
            cycle_id: Cycle to derive for.
            actor: User triggering the derivation.
            location_code: Restrict to one location; None covers the cycle.

        Returns:
            The discrepancies created by this call (empty when nothing new
            was missing).
        """
        self._require_open_cycle(cycle_id)
        created = self.create_missing(cycle_id, location_code)

        keys = [d.primary_key for d in created]
        self._auditor.record_missing_derived(
            cycle_id=cycle_id,
            actor=actor,
            location_code=location_code,
            missing_keys=keys,
        )
        logger.info(
            "missing_derived",
            extra={"location_code": location_code, "count": len(keys)},
        )
        return created

    def create_missing(
        self, cycle_id: UUID, location_code: str | None = None
    ) -> list[Discrepancy]:
        """
        Insert the MISSING rows without auditing.

        Used by LocationService, whose LOCATION_VERIFIED entry lists the
        keys itself.  The caller has already checked the cycle is open.
        """
        expected_stmt = select(ExpectedItem.primary_key).where(
            ExpectedItem.cycle_id == cycle_id
        )
        if location_code is not None:
            expected_stmt = expected_stmt.where(ExpectedItem.location_code == location_code)
        expected_keys = self.session.execute(expected_stmt).scalars().all()

        ok_keys = self.session.execute(
            select(ScannedItem.primary_key).where(
                ScannedItem.cycle_id == cycle_id,
                ScannedItem.outcome == ScanOutcome.OK.value,
            )
        ).scalars()
        already_missing = self.session.execute(
            select(Discrepancy.primary_key).where(
                Discrepancy.cycle_id == cycle_id,
                Discrepancy.kind == DiscrepancyKind.MISSING.value,
            )
        ).scalars()

        now = self._clock.now()
        created = [
            Discrepancy(
                cycle_id=cycle_id,
                primary_key=key,
                kind=DiscrepancyKind.MISSING.value,
                comment=None,
                created_at=now,
            )
            for key in reconciliation.missing_keys(expected_keys, ok_keys, already_missing)
        ]
        if created:
            self.session.add_all(created)
            self.session.flush()
        return created
