"""
AuditorService -- append-only audit trail.

Responsibility:
    Creates one immutable ``AuditEntry`` for every state-changing action in
    the kernel.  Peer services call the domain-specific ``record_*``
    methods; nothing else writes audit rows.

Invariants enforced:
    Append-only: audit entries are never modified or deleted (ORM listener
    on the AuditEntry model).
    Ordering: every entry takes the next value of the audit_entry sequence.

Failure modes:
    - IntegrityError if the referenced cycle does not exist (FK).
"""

from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.values import ActingUser, DiscrepancyKind, ScanOutcome
from inventory_kernel.logging_config import get_logger
from inventory_kernel.models.audit_entry import AuditAction, AuditEntry
from inventory_kernel.services.sequence_service import SequenceService

logger = get_logger("services.auditor")


class AuditorService:
    """
    Service for recording audit entries.

    Non-goals:
        - Does NOT call ``session.commit()`` -- caller controls boundaries.
        - Does NOT read the trail (that is AuditSelector).
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    def _record(
        self,
        actor: ActingUser,
        action: AuditAction,
        entity_type: str,
        entity_ref: str | None,
        cycle_id: UUID | None,
        details: dict[str, Any] | None = None,
    ) -> AuditEntry:
        seq = self._sequence_service.next_value(SequenceService.AUDIT_ENTRY)
        entry = AuditEntry(
            seq=seq,
            actor_id=actor.id,
            actor_name=actor.name or None,
            actor_role=actor.role.value,
            action=action.value,
            entity_type=entity_type,
            entity_ref=entity_ref,
            cycle_id=cycle_id,
            details=details or {},
            occurred_at=self._clock.now(),
        )
        self._session.add(entry)
        self._session.flush()

        logger.info(
            "audit_entry_created",
            extra={
                "action": action.value,
                "entity_type": entity_type,
                "entity_ref": entity_ref,
                "seq": seq,
            },
        )
        return entry

    # Domain-specific recording methods

    def record_cycle_created(self, cycle_id: UUID, actor: ActingUser) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.CYCLE_CREATED,
            "inventory_cycle",
            str(cycle_id),
            cycle_id,
            {"created_by": actor.name},
        )

    def record_cycle_closed(
        self, cycle_id: UUID, actor: ActingUser, stats: dict[str, int]
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.CYCLE_CLOSED,
            "inventory_cycle",
            str(cycle_id),
            cycle_id,
            dict(stats),
        )

    def record_expected_items_imported(
        self, cycle_id: UUID, actor: ActingUser, imported: int, replaced: int
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.EXPECTED_ITEMS_IMPORTED,
            "inventory_cycle",
            str(cycle_id),
            cycle_id,
            {"imported": imported, "replaced": replaced},
        )

    def record_item_scanned(
        self,
        cycle_id: UUID,
        scanned_item_id: UUID,
        actor: ActingUser,
        primary_key: str,
        location_code: str,
        outcome: ScanOutcome,
        discrepancy_id: UUID | None,
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.ITEM_SCANNED,
            "scanned_item",
            str(scanned_item_id),
            cycle_id,
            {
                "primary_key": primary_key,
                "location_code": location_code,
                "outcome": outcome.value,
                "discrepancy_id": str(discrepancy_id) if discrepancy_id else None,
            },
        )

    def record_location_verified(
        self,
        cycle_id: UUID,
        location_code: str,
        actor: ActingUser,
        missing_keys: list[str],
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.LOCATION_VERIFIED,
            "location",
            location_code,
            cycle_id,
            {"location_code": location_code, "missing_keys": list(missing_keys)},
        )

    def record_location_reopened(
        self, cycle_id: UUID, location_code: str, actor: ActingUser
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.LOCATION_REOPENED,
            "location",
            location_code,
            cycle_id,
            {"location_code": location_code},
        )

    def record_discrepancy_confirmed(
        self,
        cycle_id: UUID,
        discrepancy_id: UUID,
        actor: ActingUser,
        primary_key: str,
        kind: DiscrepancyKind,
        comment: str | None,
        reconfirmed: bool,
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.DISCREPANCY_CONFIRMED,
            "discrepancy",
            str(discrepancy_id),
            cycle_id,
            {
                "primary_key": primary_key,
                "kind": kind.value,
                "comment": comment,
                "reconfirmed": reconfirmed,
            },
        )

    def record_missing_derived(
        self,
        cycle_id: UUID,
        actor: ActingUser,
        location_code: str | None,
        missing_keys: list[str],
    ) -> AuditEntry:
        return self._record(
            actor,
            AuditAction.MISSING_DERIVED,
            "inventory_cycle",
            str(cycle_id),
            cycle_id,
            {"location_code": location_code, "missing_keys": list(missing_keys)},
        )
