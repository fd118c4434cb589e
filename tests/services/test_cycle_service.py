"""Tests for the inventory cycle lifecycle: create, readiness, close."""

from uuid import uuid4

import pytest

from inventory_kernel.exceptions import (
    CycleClosedError,
    CycleNotFoundError,
    NotReadyError,
    OpenCycleExistsError,
)
from inventory_kernel.models.audit_entry import AuditAction


def _finish(engine, cycle_id, actor):
    """Verify every location and confirm every discrepancy."""
    for summary in engine.get_location_summaries(cycle_id):
        if not summary.is_verified:
            engine.confirm_location(cycle_id, summary.location_code, actor)
    for d in engine.list_discrepancies(cycle_id):
        if not d.is_confirmed:
            engine.confirm_discrepancy(d.id, actor)


class TestCreateCycle:

    def test_create_cycle(self, engine, admin, clock):
        cycle = engine.create_cycle(admin)

        assert not cycle.closed
        assert cycle.created_by_id == admin.id
        assert cycle.created_at == clock.now()
        assert engine.get_active_cycle().id == cycle.id

    def test_second_open_cycle_rejected(self, engine, admin):
        first = engine.create_cycle(admin)
        with pytest.raises(OpenCycleExistsError) as exc_info:
            engine.create_cycle(admin)
        assert exc_info.value.open_cycle_id == str(first.id)

    def test_new_cycle_after_close(self, engine, admin, clock):
        first = engine.create_cycle(admin)
        engine.close_cycle(first.id, admin)
        clock.advance(60)

        second = engine.create_cycle(admin)

        assert second.id != first.id
        assert engine.get_active_cycle().id == second.id

    def test_creation_is_audited(self, engine, admin):
        cycle = engine.create_cycle(admin)
        [entry] = engine.list_audit_entries(cycle.id, AuditAction.CYCLE_CREATED)
        assert entry.actor_id == admin.id
        assert entry.actor_name == "Ada Admin"

    def test_list_cycles_newest_first(self, engine, admin, clock):
        ids = []
        for _ in range(3):
            cycle = engine.create_cycle(admin)
            engine.close_cycle(cycle.id, admin)
            ids.append(cycle.id)
            clock.advance(60)

        assert [c.id for c in engine.list_cycles()] == list(reversed(ids))
        assert len(engine.list_cycles(limit=2)) == 2


class TestClosureReadiness:

    def test_fresh_cycle_with_items_not_ready(self, engine, scenario_cycle):
        readiness = engine.get_closure_readiness(scenario_cycle.id)

        assert not readiness.can_close
        assert readiness.reasons == ("2 locations are not verified yet",)
        assert readiness.stats.expected_items == 3
        assert readiness.stats.locations_total == 2
        assert readiness.stats.locations_verified == 0

    def test_open_discrepancy_blocks(self, engine, scenario_cycle, scanner, responsible):
        engine.classify_scan(scenario_cycle.id, "L1", "B9", scanner)
        readiness = engine.get_closure_readiness(scenario_cycle.id)
        assert "1 discrepancies are not confirmed yet" in readiness.reasons

    def test_unrecorded_missing_counted(self, engine, scenario_cycle, scanner):
        engine.classify_scan(scenario_cycle.id, "L1", "A1", scanner)
        readiness = engine.get_closure_readiness(scenario_cycle.id)
        assert readiness.stats.unrecorded_missing == 2
        # Still covered by the unverified-locations reason
        assert readiness.reasons == ("2 locations are not verified yet",)

    def test_reimport_after_verification_blocks_close(
        self, engine, open_cycle, seed_expected, scanner, responsible, admin
    ):
        seed_expected(open_cycle.id, ("A1", "L1"))
        engine.classify_scan(open_cycle.id, "L1", "A1", scanner)
        engine.confirm_location(open_cycle.id, "L1", responsible)
        seed_expected(open_cycle.id, ("A1", "L1"), ("A5", "L1"))

        with pytest.raises(NotReadyError) as exc_info:
            engine.close_cycle(open_cycle.id, admin)
        assert exc_info.value.reasons == [
            "1 expected items have no OK scan and no MISSING discrepancy"
        ]

        assert engine.derive_missing(open_cycle.id, responsible) == ["A5"]
        _finish(engine, open_cycle.id, responsible)
        assert engine.close_cycle(open_cycle.id, admin).closed

    def test_ready_after_everything_done(self, engine, scenario_cycle, responsible):
        _finish(engine, scenario_cycle.id, responsible)
        readiness = engine.get_closure_readiness(scenario_cycle.id)
        assert readiness.can_close
        assert readiness.reasons == ()
        assert readiness.stats.discrepancies_total == 3
        assert readiness.stats.discrepancies_open == 0

    def test_unknown_cycle(self, engine):
        with pytest.raises(CycleNotFoundError):
            engine.get_closure_readiness(uuid4())


class TestCloseCycle:

    def test_close_when_not_ready(self, engine, scenario_cycle, admin):
        with pytest.raises(NotReadyError) as exc_info:
            engine.close_cycle(scenario_cycle.id, admin)

        assert exc_info.value.reasons == ["2 locations are not verified yet"]
        assert not engine.get_cycle(scenario_cycle.id).closed

    def test_close_when_ready(self, engine, scenario_cycle, admin, responsible, clock):
        _finish(engine, scenario_cycle.id, responsible)
        clock.advance(120)

        closed = engine.close_cycle(scenario_cycle.id, admin)

        assert closed.closed
        assert closed.closed_at == clock.now()
        assert closed.closed_by_id == admin.id
        assert engine.get_active_cycle() is None

    def test_close_audit_carries_final_stats(self, engine, scenario_cycle, admin, responsible):
        _finish(engine, scenario_cycle.id, responsible)
        engine.close_cycle(scenario_cycle.id, admin)

        [entry] = engine.list_audit_entries(scenario_cycle.id, AuditAction.CYCLE_CLOSED)
        assert entry.details["expected_items"] == 3
        assert entry.details["discrepancies_total"] == 3
        assert entry.details["locations_verified"] == 2

    def test_close_twice_rejected(self, engine, open_cycle, admin):
        engine.close_cycle(open_cycle.id, admin)
        with pytest.raises(CycleClosedError):
            engine.close_cycle(open_cycle.id, admin)

    def test_location_outside_expected_set_does_not_block(self, engine, scenario_cycle, scanner, responsible, admin):
        # Items scanned at a location nobody expected stock at
        engine.classify_scan(scenario_cycle.id, "L9", "B9", scanner)
        _finish(engine, scenario_cycle.id, responsible)
        assert engine.close_cycle(scenario_cycle.id, admin).closed


class TestDashboard:

    def test_dashboard_stats(self, engine, admin, scanner, responsible, clock, seed_expected):
        first = engine.create_cycle(admin)
        engine.close_cycle(first.id, admin)

        second = engine.create_cycle(admin)
        seed_expected(second.id, ("A1", "L1"))
        engine.classify_scan(second.id, "L1", "A1", scanner)
        engine.classify_scan(second.id, "L1", "B9", scanner)

        stats = engine.get_dashboard_stats()

        assert stats.open_cycles == 1
        assert stats.cycles_closed_this_year == 1
        assert stats.open_discrepancies == 1
        assert stats.scanned_today == 2

    def test_scans_from_yesterday_not_counted(self, engine, open_cycle, scanner, clock):
        engine.classify_scan(open_cycle.id, "L1", "B9", scanner)
        clock.advance(24 * 3600)
        assert engine.get_dashboard_stats().scanned_today == 0
