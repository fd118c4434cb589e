#!/usr/bin/env python3
"""
Command-line front end for the inventory kernel.

Every subcommand opens the configured database, runs one engine operation
and prints a plain-text result.  Kernel errors are printed with their code
and the process exits with status 1.

Usage:
  python -m inventory_kernel.cli [--config FILE] [--database-url URL] \\
      [--actor NAME] [--role admin|responsible|user] COMMAND ...

  init-db                               create tables
  create-cycle                          open a new cycle
  cycles [--limit N]                    recent cycles with their counts
  import CYCLE_ID FILE                  replace the expected items (.csv or .xlsx)
  scan CYCLE_ID LOCATION KEY            classify one scan
  locations CYCLE_ID                    per-location completion
  confirm-location CYCLE_ID LOCATION    verify a location
  reopen-location CYCLE_ID LOCATION     remove a verification
  discrepancies CYCLE_ID                list discrepancies
  confirm DISCREPANCY_ID [--comment C]  confirm a discrepancy
  readiness CYCLE_ID                    closing gate
  close CYCLE_ID                        close the cycle
  audit [--cycle CYCLE_ID] [--action A] [--limit N]

See inventory_kernel.importers for the expected-stock file columns.
"""

from __future__ import annotations

import argparse
import os
import sys
from typing import Sequence
from uuid import NAMESPACE_URL, UUID, uuid5

from inventory_kernel.db.engine import Database
from inventory_kernel.domain.values import ActingUser, UserRole
from inventory_kernel.exceptions import InventoryKernelError
from inventory_kernel.importers import read_expected_items
from inventory_kernel.logging_config import configure_logging
from inventory_kernel.models.audit_entry import AuditAction
from inventory_kernel.services.inventory_engine import InventoryEngine
from inventory_kernel.settings import load_settings


def _actor(name: str, role: str) -> ActingUser:
    # Stable id per user name until a real identity provider is wired in
    return ActingUser(
        id=uuid5(NAMESPACE_URL, f"inventory-kernel:user:{name}"),
        name=name,
        role=UserRole(role),
    )


def _cmd_init_db(engine: InventoryEngine, args, actor) -> None:
    engine.database.create_tables()
    print("Tables created")


def _cmd_create_cycle(engine: InventoryEngine, args, actor) -> None:
    cycle = engine.create_cycle(actor)
    print(f"Cycle {cycle.id} opened at {cycle.created_at.isoformat()}")


def _cmd_cycles(engine: InventoryEngine, args, actor) -> None:
    for c in engine.list_cycles(args.limit):
        status = "closed" if c.closed else "open"
        print(
            f"{c.id}  {c.created_at.date().isoformat()}  {status:<6} "
            f"expected {c.expected_items}  scanned {c.scans} ({c.ok_scans} ok)"
        )


def _cmd_import(engine: InventoryEngine, args, actor) -> None:
    items = read_expected_items(args.file)
    summary = engine.replace_expected_items(args.cycle_id, items, actor)
    print(f"Imported {summary.imported} items (replaced {summary.replaced})")
    if summary.warning:
        print(f"Warning: {summary.warning}")


def _cmd_scan(engine: InventoryEngine, args, actor) -> None:
    result = engine.classify_scan(args.cycle_id, args.location, args.key, actor)
    print(f"{result.outcome.value.upper()}: {result.message}")


def _cmd_locations(engine: InventoryEngine, args, actor) -> None:
    for loc in engine.get_location_summaries(args.cycle_id):
        flags = []
        if loc.is_complete:
            flags.append("complete")
        if loc.is_verified:
            flags.append("verified")
        print(
            f"{loc.location_code:<12} {loc.room or '-':<10} "
            f"{loc.scanned_count}/{loc.expected_count} {' '.join(flags)}".rstrip()
        )


def _cmd_confirm_location(engine: InventoryEngine, args, actor) -> None:
    result = engine.confirm_location(args.cycle_id, args.location, actor)
    print(f"Location {result.location_code} verified")
    if result.missing_keys:
        print("Missing: " + ", ".join(result.missing_keys))


def _cmd_reopen_location(engine: InventoryEngine, args, actor) -> None:
    engine.reopen_location(args.cycle_id, args.location, actor)
    print(f"Location {args.location} reopened")


def _cmd_discrepancies(engine: InventoryEngine, args, actor) -> None:
    for d in engine.list_discrepancies(args.cycle_id):
        status = "confirmed" if d.is_confirmed else "open"
        print(
            f"{d.id}  {d.kind.value:<15} {d.primary_key:<12} "
            f"{d.location_code or '-':<10} {status}  {d.comment or ''}".rstrip()
        )


def _cmd_confirm(engine: InventoryEngine, args, actor) -> None:
    view = engine.confirm_discrepancy(args.discrepancy_id, actor, args.comment)
    print(f"Discrepancy {view.id} ({view.kind.value} {view.primary_key}) confirmed")


def _cmd_readiness(engine: InventoryEngine, args, actor) -> None:
    readiness = engine.get_closure_readiness(args.cycle_id)
    print("Ready to close" if readiness.can_close else "Not ready to close")
    for reason in readiness.reasons:
        print(f"  - {reason}")
    for key, value in readiness.stats.as_dict().items():
        print(f"  {key}: {value}")


def _cmd_close(engine: InventoryEngine, args, actor) -> None:
    cycle = engine.close_cycle(args.cycle_id, actor)
    print(f"Cycle {cycle.id} closed at {cycle.closed_at.isoformat()}")


def _cmd_audit(engine: InventoryEngine, args, actor) -> None:
    action = AuditAction(args.action) if args.action else None
    for entry in engine.list_audit_entries(args.cycle, action, args.limit):
        print(
            f"{entry.occurred_at.isoformat()}  {entry.action:<24} "
            f"{entry.actor_name or entry.actor_id}  {entry.entity_type}:{entry.entity_ref}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="inventory-kernel",
        description="Inventory reconciliation: cycles, scans, locations, discrepancies",
    )
    parser.add_argument("--config", help="YAML settings file")
    parser.add_argument("--database-url", help="Override the configured database URL")
    parser.add_argument("--actor", help="Acting user name (defaults to $USER)")
    parser.add_argument(
        "--role",
        default=UserRole.USER.value,
        choices=[r.value for r in UserRole],
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db").set_defaults(func=_cmd_init_db)
    sub.add_parser("create-cycle").set_defaults(func=_cmd_create_cycle)

    p = sub.add_parser("cycles")
    p.add_argument("--limit", type=int, default=10)
    p.set_defaults(func=_cmd_cycles)

    p = sub.add_parser("import")
    p.add_argument("cycle_id", type=UUID)
    p.add_argument("file")
    p.set_defaults(func=_cmd_import)

    p = sub.add_parser("scan")
    p.add_argument("cycle_id", type=UUID)
    p.add_argument("location")
    p.add_argument("key")
    p.set_defaults(func=_cmd_scan)

    p = sub.add_parser("locations")
    p.add_argument("cycle_id", type=UUID)
    p.set_defaults(func=_cmd_locations)

    for name, func in (
        ("confirm-location", _cmd_confirm_location),
        ("reopen-location", _cmd_reopen_location),
    ):
        p = sub.add_parser(name)
        p.add_argument("cycle_id", type=UUID)
        p.add_argument("location")
        p.set_defaults(func=func)

    p = sub.add_parser("discrepancies")
    p.add_argument("cycle_id", type=UUID)
    p.set_defaults(func=_cmd_discrepancies)

    p = sub.add_parser("confirm")
    p.add_argument("discrepancy_id", type=UUID)
    p.add_argument("--comment")
    p.set_defaults(func=_cmd_confirm)

    p = sub.add_parser("readiness")
    p.add_argument("cycle_id", type=UUID)
    p.set_defaults(func=_cmd_readiness)

    p = sub.add_parser("close")
    p.add_argument("cycle_id", type=UUID)
    p.set_defaults(func=_cmd_close)

    p = sub.add_parser("audit")
    p.add_argument("--cycle", type=UUID)
    p.add_argument("--action", choices=[a.value for a in AuditAction])
    p.add_argument("--limit", type=int, default=50)
    p.set_defaults(func=_cmd_audit)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    environ = None
    if args.database_url:
        environ = {**os.environ, "INVENTORY_DATABASE_URL": args.database_url}
    settings = load_settings(args.config, environ=environ)
    configure_logging(level=settings.log_level)

    actor = _actor(args.actor or os.environ.get("USER") or "cli", args.role)
    with Database.from_settings(settings) as database:
        engine = InventoryEngine(database)
        try:
            args.func(engine, args, actor)
        except InventoryKernelError as exc:
            print(f"error [{exc.code}]: {exc}", file=sys.stderr)
            return 1
        except (OSError, ValueError) as exc:
            print(f"error: {exc}", file=sys.stderr)
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
