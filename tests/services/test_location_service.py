"""Tests for location completion, verification and reopen."""

import pytest

from inventory_kernel.domain.values import DiscrepancyKind
from inventory_kernel.exceptions import (
    AlreadyVerifiedError,
    CycleClosedError,
    LocationNotFoundError,
    LocationNotVerifiedError,
)
from inventory_kernel.models.audit_entry import AuditAction


class TestLocationSummaries:

    def test_summaries_before_scanning(self, engine, scenario_cycle):
        summaries = engine.get_location_summaries(scenario_cycle.id)

        assert [(s.location_code, s.expected_count, s.scanned_count) for s in summaries] == [
            ("L1", 2, 0),
            ("L2", 1, 0),
        ]
        assert not any(s.is_complete or s.is_verified for s in summaries)

    def test_only_ok_scans_count(self, engine, scenario_cycle, scanner):
        engine.classify_scan(scenario_cycle.id, "L1", "A1", scanner)
        engine.classify_scan(scenario_cycle.id, "L1", "A3", scanner)  # wrong location
        engine.classify_scan(scenario_cycle.id, "L1", "B9", scanner)  # unexpected

        by_code = {s.location_code: s for s in engine.get_location_summaries(scenario_cycle.id)}
        assert by_code["L1"].scanned_count == 1
        assert by_code["L2"].scanned_count == 0

    def test_complete_location(self, engine, scenario_cycle, scanner):
        engine.classify_scan(scenario_cycle.id, "L2", "A3", scanner)
        by_code = {s.location_code: s for s in engine.get_location_summaries(scenario_cycle.id)}
        assert by_code["L2"].is_complete
        assert not by_code["L1"].is_complete

    def test_rooms_are_reported(self, engine, open_cycle, admin):
        from inventory_kernel.domain.dtos import ExpectedItemInput

        engine.replace_expected_items(
            open_cycle.id,
            [ExpectedItemInput("A1", "L1", room="Freezer 2")],
            admin,
        )
        [summary] = engine.get_location_summaries(open_cycle.id)
        assert summary.room == "Freezer 2"


class TestItemsForLocation:

    def test_lists_expected_and_unexpected_items(self, engine, scenario_cycle, scanner):
        engine.classify_scan(scenario_cycle.id, "L1", "A1", scanner)
        engine.classify_scan(scenario_cycle.id, "L1", "B9", scanner)

        items = engine.get_items_for_location(scenario_cycle.id, "L1")

        assert [(i.primary_key, i.scanned, i.is_unexpected) for i in items] == [
            ("A1", True, False),
            ("A2", False, False),
            ("B9", True, True),
        ]

    def test_wrong_location_scan_shows_at_scanned_location(self, engine, scenario_cycle, scanner):
        engine.classify_scan(scenario_cycle.id, "L2", "A2", scanner)

        l2 = {i.primary_key: i for i in engine.get_items_for_location(scenario_cycle.id, "L2")}
        l1 = {i.primary_key: i for i in engine.get_items_for_location(scenario_cycle.id, "L1")}

        assert l2["A2"].is_unexpected
        assert not l1["A2"].scanned


class TestConfirmLocation:

    def test_derives_missing_for_unscanned_items(self, engine, scenario_cycle, scanner, responsible):
        engine.classify_scan(scenario_cycle.id, "L1", "A1", scanner)

        result = engine.confirm_location(scenario_cycle.id, "L1", responsible)

        assert result.missing_keys == ("A2",)
        assert len(result.created_discrepancy_ids) == 1
        [missing] = engine.list_discrepancies(scenario_cycle.id)
        assert missing.kind is DiscrepancyKind.MISSING
        assert missing.primary_key == "A2"
        assert missing.location_code == "L1"

    def test_three_expected_one_ok_scan_gives_two_missing(
        self, engine, open_cycle, seed_expected, scanner, responsible
    ):
        seed_expected(open_cycle.id, ("K1", "L1"), ("K2", "L1"), ("K3", "L1"))
        engine.classify_scan(open_cycle.id, "L1", "K1", scanner)

        first = engine.confirm_location(open_cycle.id, "L1", responsible)
        assert first.missing_keys == ("K2", "K3")
        assert len(first.created_discrepancy_ids) == 2

        engine.reopen_location(open_cycle.id, "L1", responsible)
        second = engine.confirm_location(open_cycle.id, "L1", responsible)
        assert second.created_discrepancy_ids == ()
        assert engine.derive_missing(open_cycle.id, responsible, "L1") == []

        missing = [
            d for d in engine.list_discrepancies(open_cycle.id)
            if d.kind is DiscrepancyKind.MISSING
        ]
        assert len(missing) == 2

    def test_fully_scanned_location_creates_nothing(self, engine, scenario_cycle, scanner, responsible):
        engine.classify_scan(scenario_cycle.id, "L2", "A3", scanner)
        result = engine.confirm_location(scenario_cycle.id, "L2", responsible)
        assert result.missing_keys == ()
        assert engine.list_discrepancies(scenario_cycle.id) == []

    def test_wrong_location_item_is_also_missing(self, engine, scenario_cycle, scanner, responsible):
        engine.classify_scan(scenario_cycle.id, "L2", "A2", scanner)
        engine.confirm_location(scenario_cycle.id, "L1", responsible)

        kinds = sorted(
            d.kind.value
            for d in engine.list_discrepancies(scenario_cycle.id)
            if d.primary_key == "A2"
        )
        assert kinds == ["missing", "wrong_location"]

    def test_marks_location_verified(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L2", responsible)
        by_code = {s.location_code: s for s in engine.get_location_summaries(scenario_cycle.id)}
        assert by_code["L2"].is_verified
        assert not by_code["L1"].is_verified

    def test_second_confirmation_rejected(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L1", responsible)
        with pytest.raises(AlreadyVerifiedError) as exc_info:
            engine.confirm_location(scenario_cycle.id, "L1", responsible)
        assert exc_info.value.location_code == "L1"

    def test_unknown_location_rejected(self, engine, scenario_cycle, responsible):
        with pytest.raises(LocationNotFoundError):
            engine.confirm_location(scenario_cycle.id, "L99", responsible)

    def test_audit_entry_lists_missing_keys(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L1", responsible)

        [entry] = engine.list_audit_entries(scenario_cycle.id, AuditAction.LOCATION_VERIFIED)
        assert entry.entity_ref == "L1"
        assert entry.details["missing_keys"] == ["A1", "A2"]
        assert entry.actor_role == "responsible"

    def test_closed_cycle_rejected(self, engine, scenario_cycle, admin, responsible):
        engine.confirm_location(scenario_cycle.id, "L1", responsible)
        engine.confirm_location(scenario_cycle.id, "L2", responsible)
        for d in engine.list_discrepancies(scenario_cycle.id):
            engine.confirm_discrepancy(d.id, responsible)
        engine.close_cycle(scenario_cycle.id, admin)

        with pytest.raises(CycleClosedError):
            engine.reopen_location(scenario_cycle.id, "L1", responsible)


class TestReopenLocation:

    def test_reopen_removes_verification_keeps_missing(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L2", responsible)

        engine.reopen_location(scenario_cycle.id, "L2", responsible)

        by_code = {s.location_code: s for s in engine.get_location_summaries(scenario_cycle.id)}
        assert not by_code["L2"].is_verified
        [missing] = engine.list_discrepancies(scenario_cycle.id)
        assert missing.primary_key == "A3"

    def test_reconfirm_after_reopen_is_idempotent(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L2", responsible)
        engine.reopen_location(scenario_cycle.id, "L2", responsible)

        result = engine.confirm_location(scenario_cycle.id, "L2", responsible)

        assert result.missing_keys == ()
        assert len(engine.list_discrepancies(scenario_cycle.id)) == 1

    def test_reopen_unverified_location(self, engine, scenario_cycle, responsible):
        with pytest.raises(LocationNotVerifiedError):
            engine.reopen_location(scenario_cycle.id, "L1", responsible)

    def test_reopen_is_audited(self, engine, scenario_cycle, responsible):
        engine.confirm_location(scenario_cycle.id, "L1", responsible)
        engine.reopen_location(scenario_cycle.id, "L1", responsible)

        [entry] = engine.list_audit_entries(scenario_cycle.id, AuditAction.LOCATION_REOPENED)
        assert entry.details == {"location_code": "L1"}
