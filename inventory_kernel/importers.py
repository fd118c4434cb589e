"""
Expected-stock file readers (CSV and XLSX).

Turns an exported expected-stock file into ``ExpectedItemInput`` rows for
``InventoryEngine.replace_expected_items``.  The first row is the header
and must use the canonical column names below; no column guessing is done.

Columns:
    primary_key, location_code    required
    room, description, temperature, expiry_date, category    optional

expiry_date accepts ISO dates (YYYY-MM-DD) or native spreadsheet dates.
"""

from __future__ import annotations

import csv
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator

import openpyxl

from inventory_kernel.domain.dtos import ExpectedItemInput
from inventory_kernel.domain.values import ItemCategory
from inventory_kernel.logging_config import get_logger

logger = get_logger("importers")

REQUIRED_COLUMNS = ("primary_key", "location_code")


def _text(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, float) and value == int(value):
        value = int(value)
    s = str(value).strip()
    return s or None


def _date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


def _category(value: Any) -> ItemCategory | None:
    s = _text(value)
    return ItemCategory(s.lower()) if s else None


def _read_csv(path: Path) -> Iterator[dict[str, Any]]:
    # utf-8-sig strips the BOM spreadsheet tools prepend
    with path.open("r", encoding="utf-8-sig", newline="") as f:
        for row in csv.DictReader(f):
            yield {(k or "").strip().lower(): v for k, v in row.items()}


def _read_xlsx(path: Path) -> Iterator[dict[str, Any]]:
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        rows = wb.active.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return
        names = [(_text(h) or "").lower() for h in header]
        for values in rows:
            if not any(v not in (None, "") for v in values):
                continue
            yield dict(zip(names, values))
    finally:
        wb.close()


def read_expected_items(path: str | Path) -> list[ExpectedItemInput]:
    """
    Read an expected-stock export.

    Raises:
        ValueError: unsupported file type, a required column is absent,
            or a date/category cell cannot be parsed.
    """
    path = Path(path)
    suffix = path.suffix.lower()
    if suffix == ".csv":
        rows = _read_csv(path)
    elif suffix == ".xlsx":
        rows = _read_xlsx(path)
    else:
        raise ValueError(f"Unsupported expected-stock file type: {suffix or path.name}")

    items: list[ExpectedItemInput] = []
    for row in rows:
        missing = [c for c in REQUIRED_COLUMNS if c not in row]
        if missing:
            raise ValueError(f"{path.name}: missing columns {', '.join(missing)}")
        items.append(
            ExpectedItemInput(
                primary_key=_text(row.get("primary_key")) or "",
                location_code=_text(row.get("location_code")) or "",
                room=_text(row.get("room")),
                description=_text(row.get("description")),
                temperature=_text(row.get("temperature")),
                expiry_date=_date(row.get("expiry_date")),
                category=_category(row.get("category")),
            )
        )

    logger.info(
        "expected_items_read",
        extra={"file": path.name, "format": suffix.lstrip("."), "rows": len(items)},
    )
    return items
