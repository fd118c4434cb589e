"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Defines the immutable data structures returned by services and
    selectors: cycle metadata, scan results, location summaries, closure
    readiness, enriched discrepancies, statistics, audit entries and the
    cycle report.  Callers never receive ORM entities.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    ``from_model()`` class methods are boundary converters invoked only
    from the service and selector layers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID

from inventory_kernel.domain.values import (
    DiscrepancyKind,
    ItemCategory,
    ScanOutcome,
)

if TYPE_CHECKING:
    from inventory_kernel.models.audit_entry import AuditEntry as AuditEntryModel
    from inventory_kernel.models.cycle import InventoryCycle as InventoryCycleModel


@dataclass(frozen=True)
class CycleInfo:
    """Metadata of one inventory cycle."""

    id: UUID
    created_at: datetime
    created_by_id: UUID
    closed: bool
    closed_at: datetime | None = None
    closed_by_id: UUID | None = None

    @classmethod
    def from_model(cls, cycle: InventoryCycleModel) -> CycleInfo:
        return cls(
            id=cycle.id,
            created_at=cycle.created_at,
            created_by_id=cycle.created_by_id,
            closed=cycle.closed,
            closed_at=cycle.closed_at,
            closed_by_id=cycle.closed_by_id,
        )


@dataclass(frozen=True)
class CycleListItem(CycleInfo):
    """Cycle metadata with its expected and scanned counts, for listings."""

    expected_items: int = 0
    scans: int = 0
    ok_scans: int = 0

    @classmethod
    def from_counts(
        cls,
        cycle: InventoryCycleModel,
        expected_items: int,
        scans: int,
        ok_scans: int,
    ) -> CycleListItem:
        info = CycleInfo.from_model(cycle)
        return cls(
            id=info.id,
            created_at=info.created_at,
            created_by_id=info.created_by_id,
            closed=info.closed,
            closed_at=info.closed_at,
            closed_by_id=info.closed_by_id,
            expected_items=expected_items,
            scans=scans,
            ok_scans=ok_scans,
        )


@dataclass(frozen=True)
class ExpectedItemInput:
    """One SOLL row handed over by the expected-stock importer."""

    primary_key: str
    location_code: str
    room: str | None = None
    description: str | None = None
    temperature: str | None = None
    expiry_date: date | None = None
    category: ItemCategory | None = None


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of a full replace of a cycle's expected items."""

    cycle_id: UUID
    imported: int
    replaced: int
    existing_scans: int

    @property
    def warning(self) -> str | None:
        if self.existing_scans == 0:
            return None
        return (
            f"{self.existing_scans} scans already exist for this cycle; their "
            f"outcomes were classified against the previous expected set"
        )


@dataclass(frozen=True)
class ScanResult:
    """Result of classifying one scan."""

    outcome: ScanOutcome
    primary_key: str
    location_code: str
    scanned_item_id: UUID
    discrepancy_id: UUID | None = None
    expected_location: str | None = None
    message: str = ""

    @property
    def is_ok(self) -> bool:
        return self.outcome is ScanOutcome.OK


@dataclass(frozen=True)
class LocationSummary:
    """Expected-vs-scanned counts for one location."""

    location_code: str
    room: str | None
    expected_count: int
    scanned_count: int
    is_verified: bool

    @property
    def is_complete(self) -> bool:
        return self.scanned_count >= self.expected_count


@dataclass(frozen=True)
class LocationItem:
    """An item shown on a location's checklist."""

    primary_key: str
    description: str | None
    temperature: str | None
    scanned: bool
    outcome: ScanOutcome | None
    is_unexpected: bool


@dataclass(frozen=True)
class LocationConfirmation:
    """Result of verifying a location."""

    cycle_id: UUID
    location_code: str
    verification_id: UUID
    verified_at: datetime
    missing_keys: tuple[str, ...]
    created_discrepancy_ids: tuple[UUID, ...]


@dataclass(frozen=True)
class ClosureStats:
    """Counts behind the closing gate."""

    expected_items: int
    scans: int
    locations_total: int
    locations_verified: int
    discrepancies_total: int
    discrepancies_open: int
    unrecorded_missing: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "expected_items": self.expected_items,
            "scans": self.scans,
            "locations_total": self.locations_total,
            "locations_verified": self.locations_verified,
            "discrepancies_total": self.discrepancies_total,
            "discrepancies_open": self.discrepancies_open,
            "unrecorded_missing": self.unrecorded_missing,
        }


@dataclass(frozen=True)
class ClosureReadiness:
    """Whether a cycle may be closed, and why not."""

    cycle_id: UUID
    can_close: bool
    reasons: tuple[str, ...]
    stats: ClosureStats


@dataclass(frozen=True)
class DiscrepancyView:
    """A discrepancy enriched with expected/scanned item data."""

    id: UUID
    cycle_id: UUID
    primary_key: str
    kind: DiscrepancyKind
    comment: str | None
    confirmed_by_id: UUID | None
    confirmed_at: datetime | None
    location_code: str | None
    description: str | None

    @property
    def is_confirmed(self) -> bool:
        return self.confirmed_at is not None


@dataclass(frozen=True)
class DiscrepancyStatistics:
    """Aggregate counts over a cycle's discrepancies."""

    total: int
    confirmed: int
    open: int
    by_kind: dict[DiscrepancyKind, int] = field(default_factory=dict)


@dataclass(frozen=True)
class AuditEntryInfo:
    """A single audit trail row."""

    id: UUID
    seq: int
    occurred_at: datetime
    actor_id: UUID
    actor_name: str | None
    actor_role: str | None
    action: str
    entity_type: str
    entity_ref: str | None
    cycle_id: UUID | None
    details: dict[str, Any]

    @classmethod
    def from_model(cls, entry: AuditEntryModel) -> AuditEntryInfo:
        return cls(
            id=entry.id,
            seq=entry.seq,
            occurred_at=entry.occurred_at,
            actor_id=entry.actor_id,
            actor_name=entry.actor_name,
            actor_role=entry.actor_role,
            action=entry.action,
            entity_type=entry.entity_type,
            entity_ref=entry.entity_ref,
            cycle_id=entry.cycle_id,
            details=dict(entry.details or {}),
        )


@dataclass(frozen=True)
class DashboardStats:
    """Cross-cycle overview."""

    open_cycles: int
    cycles_closed_this_year: int
    open_discrepancies: int
    scanned_today: int


@dataclass(frozen=True)
class CycleReport:
    """Everything the reporting collaborator needs for one cycle."""

    cycle: CycleInfo
    expected_items: int
    scans: int
    locations: int
    statistics: DiscrepancyStatistics
    discrepancies: tuple[DiscrepancyView, ...]
