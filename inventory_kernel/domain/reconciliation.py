"""
Reconciliation -- pure rules for classifying scans and gating the close.

Responsibility:
    Everything the engine decides, without touching storage: how a scan is
    classified, which discrepancy a classification produces, how location
    completion is computed, which expected items count as missing, and
    whether a cycle may be closed.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Services load the
    rows, call into this module, and persist the outcome.
"""

from collections import Counter
from typing import Iterable

from inventory_kernel.domain.dtos import ClosureStats, LocationSummary
from inventory_kernel.domain.values import DiscrepancyKind, ScanOutcome


def classify_scan(expected_location: str | None, claimed_location: str) -> ScanOutcome:
    """
    Classify a scan against the expected location of its key.

    Args:
        expected_location: Location code of the matching expected item,
            or None when the key is not in the expected set.
        claimed_location: Location the scanner reports.
    """
    if expected_location is None:
        return ScanOutcome.UNEXPECTED
    if expected_location != claimed_location:
        return ScanOutcome.WRONG_LOCATION
    return ScanOutcome.OK


def discrepancy_kind_for(outcome: ScanOutcome) -> DiscrepancyKind | None:
    """Map a scan outcome to the discrepancy it creates, if any."""
    match outcome:
        case ScanOutcome.OK:
            return None
        case ScanOutcome.WRONG_LOCATION:
            return DiscrepancyKind.WRONG_LOCATION
        case ScanOutcome.UNEXPECTED:
            return DiscrepancyKind.UNEXPECTED
        case _:
            raise ValueError(f"Unknown scan outcome: {outcome}")


def wrong_location_comment(expected_location: str, found_location: str) -> str:
    return f"Expected: {expected_location}, found: {found_location}"


def scan_message(outcome: ScanOutcome, expected_location: str | None) -> str:
    """Human-readable feedback for the scanning client."""
    match outcome:
        case ScanOutcome.OK:
            return "Item recorded"
        case ScanOutcome.WRONG_LOCATION:
            return f"Item at wrong location - expected: {expected_location}"
        case ScanOutcome.UNEXPECTED:
            return "Item not in expected stock - recorded as unexpected"
        case _:
            raise ValueError(f"Unknown scan outcome: {outcome}")


def summarize_locations(
    expected: Iterable[tuple[str, str | None]],
    ok_scan_locations: Iterable[str],
    verified_locations: Iterable[str],
) -> list[LocationSummary]:
    """
    Build per-location completion summaries.

    Only OK scans count toward a location.  Wrong-location and unexpected
    scans are not confirmations that an expected item is present at the
    location where it belongs.

    Args:
        expected: (location_code, room) for every expected item.
        ok_scan_locations: location_code of every OK scan.
        verified_locations: location codes holding a verification.

    Returns:
        Summaries for locations in the expected set, sorted by code.
    """
    expected_counts: Counter[str] = Counter()
    rooms: dict[str, str | None] = {}
    for location_code, room in expected:
        expected_counts[location_code] += 1
        # First non-empty room wins
        if rooms.get(location_code) is None:
            rooms[location_code] = room

    scanned_counts = Counter(ok_scan_locations)
    verified = set(verified_locations)

    return [
        LocationSummary(
            location_code=code,
            room=rooms.get(code),
            expected_count=expected_counts[code],
            scanned_count=scanned_counts.get(code, 0),
            is_verified=code in verified,
        )
        for code in sorted(expected_counts)
    ]


def missing_keys(
    expected_keys: Iterable[str],
    ok_scanned_keys: Iterable[str],
    keys_with_missing: Iterable[str] = (),
) -> list[str]:
    """
    Expected keys with no OK scan that do not yet hold a MISSING discrepancy.

    A key scanned at the wrong location is still missing from the location
    it was expected at, so it is included here even though it was scanned.
    """
    ok = set(ok_scanned_keys)
    already = set(keys_with_missing)
    return sorted(k for k in set(expected_keys) if k not in ok and k not in already)


def closure_reasons(stats: ClosureStats) -> list[str]:
    """One human-readable reason per unmet closing condition."""
    reasons: list[str] = []
    unverified = stats.locations_total - stats.locations_verified
    if unverified > 0:
        reasons.append(f"{unverified} locations are not verified yet")
    if stats.discrepancies_open > 0:
        reasons.append(f"{stats.discrepancies_open} discrepancies are not confirmed yet")
    # Verifying a location records its MISSING items; leftovers come from a
    # re-import after verification.
    if unverified <= 0 and stats.unrecorded_missing > 0:
        reasons.append(
            f"{stats.unrecorded_missing} expected items have no OK scan"
            " and no MISSING discrepancy"
        )
    return reasons
