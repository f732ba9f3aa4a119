#!/usr/bin/env python3
"""
Command-line tool for bus fleet maintenance status.

Commands:
  list    - Show units and their component status
  stats   - Show ready / partial / workshop counts
  add     - Add a unit
  toggle  - Flip one component between listo and taller
  set     - Set one component to a given status
  delete  - Remove a unit
  clear   - Remove every unit
  export  - Write the fleet as CSV
"""

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List

from tabulate import tabulate

from fleet import (
    COMPONENT_NAMES,
    ComponentStatus,
    SnapshotPersistence,
    Unit,
    UnitStore,
    UnitUpdate,
    export_filename,
    filter_units,
    fleet_stats,
    units_to_csv,
)
from fleet.config import configure_logging
from fleet.exceptions import FleetError
from fleet.filters import ALL, STATUS_FILTERS
from fleet.snapshot import format_timestamp
from fleet.validation import (
    ensure_unique_number,
    parse_component,
    parse_status,
    parse_unit_number,
)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_status(status: ComponentStatus) -> str:
    """Short cell text: listo is shown as a dot, taller stands out."""
    return "." if status is ComponentStatus.LISTO else "TALLER"


def make_units_table(units: List[Unit]) -> List[List[str]]:
    """Convert units to table rows."""
    rows = []
    for unit in units:
        rows.append(
            [str(unit.unit_number)]
            + [format_status(unit.status(name)) for name in COMPONENT_NAMES]
            + [f"{unit.ready_count}/{len(COMPONENT_NAMES)}"]
        )
    return rows


def find_unit(store: UnitStore, number: str) -> Unit:
    """Look up a unit by its bus number or raise FleetError."""
    unit_number = parse_unit_number(number)
    unit = store.get_by_number(unit_number)
    if unit is None:
        raise FleetError(f"Unit {unit_number} not found")
    return unit


# =============================================================================
# Commands
# =============================================================================


def cmd_list(store: UnitStore, args) -> int:
    """Show units and their component status."""
    units = store.list_all()
    component = args.component if args.component == ALL else args.component.upper()
    shown = filter_units(
        units, search=args.search, status=args.status, component=component
    )

    print(f"Units: {len(units)}")
    if len(shown) != len(units):
        print(f"Showing: {len(shown)} (filtered)")
    print()

    if not shown:
        print("No units found.")
        return 0

    headers = ["Unit"] + list(COMPONENT_NAMES) + ["Ready"]
    print(tabulate(make_units_table(shown), headers=headers, tablefmt="simple"))
    return 0


def cmd_stats(store: UnitStore, args) -> int:
    """Show ready / partial / workshop counts."""
    stats = fleet_stats(store.list_all())
    rows = [
        ["Total", stats.total],
        ["Ready", stats.ready],
        ["Partial", stats.partial],
        ["Workshop", stats.workshop],
    ]
    print(tabulate(rows, tablefmt="simple"))

    last_updated = getattr(store.persistence, "last_updated", None)
    if last_updated is not None:
        print()
        print(f"Last updated: {format_timestamp(last_updated)}")
    return 0


def cmd_add(store: UnitStore, args) -> int:
    """Add a unit, optionally with some components already in the workshop."""
    unit_number = parse_unit_number(args.unit_number)
    ensure_unique_number(store, unit_number)
    in_workshop = {parse_component(c.upper()): ComponentStatus.TALLER for c in args.taller}

    unit = store.create(UnitUpdate(unit_number=unit_number, **in_workshop))
    print(f"Added unit {unit.unit_number} (id {unit.id})")
    return 0


def cmd_toggle(store: UnitStore, args) -> int:
    """Flip one component between listo and taller."""
    unit = find_unit(store, args.unit_number)
    component = parse_component(args.component.upper())
    new_status = unit.status(component).toggled()

    store.update(unit.id, UnitUpdate.for_component(component, new_status))
    print(f"Unit {unit.unit_number} {component}: {new_status.value}")
    return 0


def cmd_set(store: UnitStore, args) -> int:
    """Set one component to a given status."""
    unit = find_unit(store, args.unit_number)
    component = parse_component(args.component.upper())
    status = parse_status(args.status.lower())

    store.update(unit.id, UnitUpdate.for_component(component, status))
    print(f"Unit {unit.unit_number} {component}: {status.value}")
    return 0


def cmd_delete(store: UnitStore, args) -> int:
    """Remove a unit."""
    unit = find_unit(store, args.unit_number)
    store.delete_one(unit.id)
    print(f"Deleted unit {unit.unit_number}")
    return 0


def cmd_clear(store: UnitStore, args) -> int:
    """Remove every unit."""
    count = store.count()
    if not args.yes:
        print(f"This would delete {count} units. Re-run with --yes to confirm.")
        return 1
    store.delete_all()
    print(f"Deleted {count} units")
    return 0


def cmd_export(store: UnitStore, args) -> int:
    """Write the fleet as CSV."""
    content = units_to_csv(store.list_all())
    output = args.output or Path(export_filename(date.today()))
    output.write_text(content + "\n", encoding="utf-8")
    print(f"Exported {store.count()} units to {output}")
    return 0


COMMANDS = {
    "list": cmd_list,
    "stats": cmd_stats,
    "add": cmd_add,
    "toggle": cmd_toggle,
    "set": cmd_set,
    "delete": cmd_delete,
    "clear": cmd_clear,
    "export": cmd_export,
}

# Only these may start a new snapshot file
CREATING_COMMANDS = {"add"}


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bus fleet maintenance status",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s data/units.json list
  %(prog)s data/units.json list --status partial
  %(prog)s data/units.json list --component FRE
  %(prog)s data/units.json add 101 --taller FRE SUS
  %(prog)s data/units.json toggle 101 FRE
  %(prog)s data/units.json set 101 MOT taller
  %(prog)s data/units.json export --output fleet.csv
""",
    )
    parser.add_argument(
        "snapshot_file",
        type=Path,
        help="Path to fleet snapshot JSON file (add creates it if missing)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log snapshot and store activity",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="Show units and component status")
    list_parser.add_argument(
        "--search",
        type=str,
        default="",
        help="Only units whose number contains this text",
    )
    list_parser.add_argument(
        "--status",
        choices=[ALL] + list(STATUS_FILTERS),
        default=ALL,
        help="Filter by overall unit state (default: all)",
    )
    list_parser.add_argument(
        "--component",
        default=ALL,
        help="Only units with this component in the workshop (e.g., FRE)",
    )

    subparsers.add_parser("stats", help="Show ready / partial / workshop counts")

    add_parser = subparsers.add_parser("add", help="Add a unit")
    add_parser.add_argument("unit_number", type=str, help="Bus number (1-9999)")
    add_parser.add_argument(
        "--taller",
        nargs="+",
        default=[],
        metavar="COMPONENT",
        help="Components that start in the workshop (default: all listo)",
    )

    toggle_parser = subparsers.add_parser(
        "toggle", help="Flip a component between listo and taller"
    )
    toggle_parser.add_argument("unit_number", type=str, help="Bus number")
    toggle_parser.add_argument("component", type=str, help="Component (e.g., FRE)")

    set_parser = subparsers.add_parser("set", help="Set a component status")
    set_parser.add_argument("unit_number", type=str, help="Bus number")
    set_parser.add_argument("component", type=str, help="Component (e.g., MOT)")
    set_parser.add_argument("status", type=str, help="listo or taller")

    delete_parser = subparsers.add_parser("delete", help="Remove a unit")
    delete_parser.add_argument("unit_number", type=str, help="Bus number")

    clear_parser = subparsers.add_parser("clear", help="Remove every unit")
    clear_parser.add_argument(
        "--yes",
        action="store_true",
        help="Confirm deleting all units",
    )

    export_parser = subparsers.add_parser("export", help="Write the fleet as CSV")
    export_parser.add_argument(
        "--output",
        type=Path,
        help="Output file (default: unidades_autobus_<date>.csv)",
    )

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    configure_logging("DEBUG" if args.verbose else "WARNING")
    logging.getLogger(__name__).debug("Using snapshot %s", args.snapshot_file)

    if args.command not in CREATING_COMMANDS and not args.snapshot_file.exists():
        print(f"Error: File not found: {args.snapshot_file}")
        return 1

    store = UnitStore(SnapshotPersistence(args.snapshot_file))

    try:
        return COMMANDS[args.command](store, args)
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
