"""
Inventory Kernel - warehouse inventory reconciliation.

Compares an expected inventory (SOLL) against physically scanned items (IST)
and tracks the resulting discrepancies to resolution:
- Scan classification (OK / wrong location / unexpected)
- Per-location completion and explicit verification
- Discrepancy sign-off
- Gated, irreversible cycle close
- Append-only audit trail
"""

__version__ = "0.1.0"
