"""Tests for the full-replace expected stock import."""

from datetime import date
from uuid import uuid4

import pytest
from sqlalchemy import select

from inventory_kernel.domain.dtos import ExpectedItemInput
from inventory_kernel.domain.values import ItemCategory
from inventory_kernel.exceptions import (
    CycleClosedError,
    CycleNotFoundError,
    DuplicateExpectedItemError,
    InvalidExpectedItemError,
)
from inventory_kernel.models.audit_entry import AuditAction
from inventory_kernel.models.expected_item import ExpectedItem


def _rows(session, cycle_id):
    return session.execute(
        select(ExpectedItem)
        .where(ExpectedItem.cycle_id == cycle_id)
        .order_by(ExpectedItem.primary_key)
    ).scalars().all()


class TestReplaceExpectedItems:

    def test_initial_import(self, engine, open_cycle, admin, session):
        summary = engine.replace_expected_items(
            open_cycle.id,
            [
                ExpectedItemInput(
                    "M-1", "L1", room="R1", description="Plasma",
                    temperature="-80", expiry_date=date(2026, 5, 1),
                ),
                ExpectedItemInput("S-1", "L2"),
            ],
            admin,
        )

        assert (summary.imported, summary.replaced, summary.existing_scans) == (2, 0, 0)
        assert summary.warning is None

        m1, s1 = _rows(session, open_cycle.id)
        assert m1.room == "R1"
        assert m1.expiry_date == date(2026, 5, 1)
        assert m1.category == ItemCategory.SAMPLE.value
        assert s1.category == ItemCategory.SUBSTANCE.value

    def test_explicit_category_wins(self, engine, open_cycle, admin, session):
        engine.replace_expected_items(
            open_cycle.id,
            [ExpectedItemInput("M-1", "L1", category=ItemCategory.SUBSTANCE)],
            admin,
        )
        [row] = _rows(session, open_cycle.id)
        assert row.category == ItemCategory.SUBSTANCE.value

    def test_reimport_replaces_everything(self, engine, scenario_cycle, admin, session):
        summary = engine.replace_expected_items(
            scenario_cycle.id, [ExpectedItemInput("A9", "L3")], admin
        )

        assert summary.replaced == 3
        assert [r.primary_key for r in _rows(session, scenario_cycle.id)] == ["A9"]
        assert [s.location_code for s in engine.get_location_summaries(scenario_cycle.id)] == ["L3"]

    def test_reimport_after_scanning_warns_and_keeps_scans(self, engine, scenario_cycle, admin, scanner):
        engine.classify_scan(scenario_cycle.id, "L1", "A1", scanner)

        summary = engine.replace_expected_items(
            scenario_cycle.id, [ExpectedItemInput("A1", "L2")], admin
        )

        assert summary.existing_scans == 1
        assert summary.warning is not None
        assert engine.get_closure_readiness(scenario_cycle.id).stats.scans == 1

    def test_values_are_trimmed(self, engine, open_cycle, admin, session):
        engine.replace_expected_items(
            open_cycle.id, [ExpectedItemInput(" A1 ", " L1 ", room="  ")], admin
        )
        [row] = _rows(session, open_cycle.id)
        assert (row.primary_key, row.location_code, row.room) == ("A1", "L1", None)

    def test_import_is_audited(self, engine, open_cycle, admin):
        engine.replace_expected_items(open_cycle.id, [ExpectedItemInput("A1", "L1")], admin)
        [entry] = engine.list_audit_entries(open_cycle.id, AuditAction.EXPECTED_ITEMS_IMPORTED)
        assert entry.details == {"imported": 1, "replaced": 0}


class TestRejectedImports:

    def test_duplicate_keys_rejected_and_previous_set_kept(self, engine, scenario_cycle, admin, session):
        with pytest.raises(DuplicateExpectedItemError) as exc_info:
            engine.replace_expected_items(
                scenario_cycle.id,
                [ExpectedItemInput("X1", "L1"), ExpectedItemInput("X1", "L2")],
                admin,
            )

        assert exc_info.value.primary_keys == ["X1"]
        assert len(_rows(session, scenario_cycle.id)) == 3

    @pytest.mark.parametrize(
        "row,field",
        [
            (ExpectedItemInput("", "L1"), "primary_key"),
            (ExpectedItemInput("A1", "  "), "location_code"),
        ],
    )
    def test_blank_required_fields(self, engine, open_cycle, admin, row, field):
        with pytest.raises(InvalidExpectedItemError) as exc_info:
            engine.replace_expected_items(open_cycle.id, [ExpectedItemInput("A0", "L0"), row], admin)
        assert exc_info.value.index == 1
        assert exc_info.value.field == field

    def test_closed_cycle(self, engine, open_cycle, admin):
        engine.close_cycle(open_cycle.id, admin)
        with pytest.raises(CycleClosedError):
            engine.replace_expected_items(open_cycle.id, [ExpectedItemInput("A1", "L1")], admin)

    def test_unknown_cycle(self, engine, admin):
        with pytest.raises(CycleNotFoundError):
            engine.replace_expected_items(uuid4(), [], admin)
