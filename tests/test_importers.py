"""Tests for reading expected-stock exports (CSV and XLSX)."""

from datetime import date, datetime

import openpyxl
import pytest

from inventory_kernel.domain.values import ItemCategory
from inventory_kernel.importers import read_expected_items


class TestCsv:

    def test_reads_rows(self, tmp_path):
        path = tmp_path / "stock.csv"
        path.write_text(
            "primary_key,location_code,room,description,temperature,expiry_date,category\n"
            "M-1,L1,R1,Plasma,-80,2026-05-01,\n"
            "S-1,L2,,,,,substance\n",
            encoding="utf-8",
        )

        first, second = read_expected_items(path)

        assert first.primary_key == "M-1"
        assert first.expiry_date == date(2026, 5, 1)
        assert first.temperature == "-80"
        assert first.category is None
        assert second.room is None
        assert second.category is ItemCategory.SUBSTANCE

    def test_bom_is_ignored(self, tmp_path):
        path = tmp_path / "stock.csv"
        path.write_bytes("\ufeffprimary_key,location_code\nA1,L1\n".encode("utf-8"))
        [row] = read_expected_items(path)
        assert row.primary_key == "A1"

    def test_missing_required_column(self, tmp_path):
        path = tmp_path / "stock.csv"
        path.write_text("primary_key,room\nA1,R1\n")
        with pytest.raises(ValueError, match="location_code"):
            read_expected_items(path)

    def test_bad_date(self, tmp_path):
        path = tmp_path / "stock.csv"
        path.write_text("primary_key,location_code,expiry_date\nA1,L1,01.05.2026\n")
        with pytest.raises(ValueError):
            read_expected_items(path)


class TestXlsx:

    def test_reads_first_sheet(self, tmp_path):
        path = tmp_path / "stock.xlsx"
        wb = openpyxl.Workbook()
        ws = wb.active
        ws.append(["Primary_Key", "location_code", "room", "expiry_date"])
        ws.append(["A1", "L1", "R1", datetime(2026, 5, 1)])
        ws.append([None, None, None, None])
        ws.append([1001, "L2", None, None])
        wb.save(path)

        first, second = read_expected_items(path)

        assert (first.primary_key, first.location_code, first.room) == ("A1", "L1", "R1")
        assert first.expiry_date == date(2026, 5, 1)
        # Numeric barcodes are read as text without a trailing ".0"
        assert second.primary_key == "1001"


def test_unsupported_extension(tmp_path):
    path = tmp_path / "stock.json"
    path.write_text("[]")
    with pytest.raises(ValueError, match="Unsupported"):
        read_expected_items(path)
