"""
InventoryEngine -- single entry point for callers of the kernel.

Responsibility:
    Exposes every reconciliation operation as a single-shot call.  Each
    call runs in its own transaction: commit on success, rollback on any
    error.  That boundary is what keeps a scan, its discrepancy and its
    audit entry together.

Error contract:
    Typed kernel errors (``InventoryKernelError`` subclasses) pass through
    unchanged.  Any other ``SQLAlchemyError`` is logged and re-raised as
    ``InfrastructureError``; the transaction has been rolled back and no
    partial state remains.

Usage:
    database = Database.from_settings(load_settings())
    engine = InventoryEngine(database)
    cycle = engine.create_cycle(actor)
    result = engine.classify_scan(cycle.id, "L1", "A1", actor)
"""

import time
from typing import Callable, Sequence, TypeVar
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from inventory_kernel.db.engine import Database
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.dtos import (
    AuditEntryInfo,
    ClosureReadiness,
    CycleInfo,
    CycleListItem,
    CycleReport,
    DashboardStats,
    DiscrepancyStatistics,
    DiscrepancyView,
    ExpectedItemInput,
    ImportSummary,
    LocationConfirmation,
    LocationItem,
    LocationSummary,
    ScanResult,
)
from inventory_kernel.domain.values import ActingUser
from inventory_kernel.exceptions import InfrastructureError, InventoryKernelError
from inventory_kernel.logging_config import LogContext, get_logger
from inventory_kernel.models.audit_entry import AuditAction
from inventory_kernel.selectors.audit_selector import AuditSelector
from inventory_kernel.selectors.cycle_selector import CycleSelector
from inventory_kernel.selectors.discrepancy_selector import DiscrepancySelector
from inventory_kernel.selectors.location_selector import LocationSelector
from inventory_kernel.selectors.report_selector import ReportSelector
from inventory_kernel.services.cycle_service import CycleService
from inventory_kernel.services.discrepancy_service import DiscrepancyService
from inventory_kernel.services.expected_stock_service import ExpectedStockService
from inventory_kernel.services.location_service import LocationService
from inventory_kernel.services.scan_service import ScanService

logger = get_logger("services.inventory_engine")

T = TypeVar("T")


class InventoryEngine:
    """
    Transactional facade over the kernel services and selectors.

    The storage handle is injected; the engine never creates its own.
    """

    def __init__(self, database: Database, clock: Clock | None = None):
        self._database = database
        self._clock = clock or SystemClock()
        register_immutability_listeners()

    @property
    def database(self) -> Database:
        return self._database

    @property
    def clock(self) -> Clock:
        return self._clock

    def _run(
        self,
        operation: str,
        work: Callable[[Session], T],
        *,
        cycle_id: UUID | None = None,
        actor: ActingUser | None = None,
        location_code: str | None = None,
        write: bool = True,
    ) -> T:
        """Run ``work`` in one transaction with the log context bound."""
        correlation_id = LogContext.get_all().get("correlation_id") or str(uuid4())
        with LogContext.bind(
            correlation_id=correlation_id,
            cycle_id=str(cycle_id) if cycle_id else None,
            actor_id=str(actor.id) if actor else None,
            location_code=location_code,
        ):
            start = time.monotonic()
            try:
                with self._database.session_scope() as session:
                    result = work(session)
            except InventoryKernelError as exc:
                logger.info(
                    "operation_rejected",
                    extra={"operation": operation, "error_code": exc.code},
                )
                raise
            except SQLAlchemyError as exc:
                logger.exception(
                    "operation_failed",
                    extra={"operation": operation, "error_type": type(exc).__name__},
                )
                raise InfrastructureError(operation, exc) from exc

            if write:
                logger.info(
                    "operation_completed",
                    extra={
                        "operation": operation,
                        "duration_ms": round((time.monotonic() - start) * 1000, 2),
                    },
                )
            return result

    # Cycle manager

    def create_cycle(self, actor: ActingUser) -> CycleInfo:
        return self._run(
            "create_cycle",
            lambda s: CycleService(s, self._clock).create_cycle(actor),
            actor=actor,
        )

    def get_cycle(self, cycle_id: UUID) -> CycleInfo:
        return self._run(
            "get_cycle",
            lambda s: CycleSelector(s).get_cycle(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def get_active_cycle(self) -> CycleListItem | None:
        return self._run(
            "get_active_cycle",
            lambda s: CycleSelector(s).get_active_cycle(),
            write=False,
        )

    def list_cycles(self, limit: int = 10) -> list[CycleListItem]:
        return self._run(
            "list_cycles",
            lambda s: CycleSelector(s).list_cycles(limit),
            write=False,
        )

    def get_closure_readiness(self, cycle_id: UUID) -> ClosureReadiness:
        return self._run(
            "get_closure_readiness",
            lambda s: CycleService(s, self._clock).get_closure_readiness(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def close_cycle(self, cycle_id: UUID, actor: ActingUser) -> CycleInfo:
        return self._run(
            "close_cycle",
            lambda s: CycleService(s, self._clock).close_cycle(cycle_id, actor),
            cycle_id=cycle_id,
            actor=actor,
        )

    def get_dashboard_stats(self) -> DashboardStats:
        return self._run(
            "get_dashboard_stats",
            lambda s: CycleSelector(s).dashboard_stats(self._clock.now()),
            write=False,
        )

    # Expected stock

    def replace_expected_items(
        self,
        cycle_id: UUID,
        items: Sequence[ExpectedItemInput],
        actor: ActingUser,
    ) -> ImportSummary:
        return self._run(
            "replace_expected_items",
            lambda s: ExpectedStockService(s, self._clock).replace_expected_items(
                cycle_id, items, actor
            ),
            cycle_id=cycle_id,
            actor=actor,
        )

    # Scanning

    def classify_scan(
        self,
        cycle_id: UUID,
        claimed_location: str,
        scanned_key: str,
        actor: ActingUser,
    ) -> ScanResult:
        return self._run(
            "classify_scan",
            lambda s: ScanService(s, self._clock).classify_scan(
                cycle_id, claimed_location, scanned_key, actor
            ),
            cycle_id=cycle_id,
            actor=actor,
            location_code=claimed_location,
        )

    # Locations

    def get_location_summaries(self, cycle_id: UUID) -> list[LocationSummary]:
        return self._run(
            "get_location_summaries",
            lambda s: LocationSelector(s).get_location_summaries(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def get_items_for_location(
        self, cycle_id: UUID, location_code: str
    ) -> list[LocationItem]:
        return self._run(
            "get_items_for_location",
            lambda s: LocationSelector(s).get_items_for_location(cycle_id, location_code),
            cycle_id=cycle_id,
            location_code=location_code,
            write=False,
        )

    def confirm_location(
        self, cycle_id: UUID, location_code: str, actor: ActingUser
    ) -> LocationConfirmation:
        return self._run(
            "confirm_location",
            lambda s: LocationService(s, self._clock).confirm_location(
                cycle_id, location_code, actor
            ),
            cycle_id=cycle_id,
            actor=actor,
            location_code=location_code,
        )

    def reopen_location(
        self, cycle_id: UUID, location_code: str, actor: ActingUser
    ) -> None:
        self._run(
            "reopen_location",
            lambda s: LocationService(s, self._clock).reopen_location(
                cycle_id, location_code, actor
            ),
            cycle_id=cycle_id,
            actor=actor,
            location_code=location_code,
        )

    # Discrepancies

    def list_discrepancies(self, cycle_id: UUID) -> list[DiscrepancyView]:
        return self._run(
            "list_discrepancies",
            lambda s: DiscrepancySelector(s).list_discrepancies(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def get_statistics(self, cycle_id: UUID) -> DiscrepancyStatistics:
        return self._run(
            "get_statistics",
            lambda s: DiscrepancySelector(s).get_statistics(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def confirm_discrepancy(
        self,
        discrepancy_id: UUID,
        actor: ActingUser,
        comment: str | None = None,
    ) -> DiscrepancyView:
        def work(session: Session) -> DiscrepancyView:
            DiscrepancyService(session, self._clock).confirm_discrepancy(
                discrepancy_id, actor, comment
            )
            return DiscrepancySelector(session).get_discrepancy(discrepancy_id)

        return self._run("confirm_discrepancy", work, actor=actor)

    def derive_missing(
        self,
        cycle_id: UUID,
        actor: ActingUser,
        location_code: str | None = None,
    ) -> list[str]:
        """Record MISSING discrepancies; returns the newly missing keys."""
        return self._run(
            "derive_missing",
            lambda s: [
                d.primary_key
                for d in DiscrepancyService(s, self._clock).derive_missing(
                    cycle_id, actor, location_code
                )
            ],
            cycle_id=cycle_id,
            actor=actor,
            location_code=location_code,
        )

    # Audit and reporting

    def list_audit_entries(
        self,
        cycle_id: UUID | None = None,
        action: AuditAction | None = None,
        limit: int = 100,
    ) -> list[AuditEntryInfo]:
        return self._run(
            "list_audit_entries",
            lambda s: AuditSelector(s).list_entries(cycle_id, action, limit),
            cycle_id=cycle_id,
            write=False,
        )

    def get_report(self, cycle_id: UUID) -> CycleReport:
        return self._run(
            "get_report",
            lambda s: ReportSelector(s).get_report(cycle_id),
            cycle_id=cycle_id,
            write=False,
        )

    def __repr__(self) -> str:
        return f"<InventoryEngine dialect={self._database.dialect_name}>"

