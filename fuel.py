#!/usr/bin/env python3
"""
Unified CLI for fuel log tracking.

Commands:
  vehicles       - List vehicles in the store
  add-vehicle    - Add a vehicle
  edit-vehicle   - Rename a vehicle or change its purchase price
  delete-vehicle - Delete a vehicle and its log
  log            - Add a fuel entry
  edit-log       - Replace a fuel entry
  edit-all       - Replace the whole log from an edited file
  delete-entry   - Delete a fuel entry
  clear          - Delete every fuel entry of a vehicle
  history        - View the fuel log with derived values
  stats          - Show fuel statistics
  cost           - Show total cost of ownership
  import         - Replace a vehicle's log from a JSON or CSV file
  export         - Export a vehicle's log or statistics
  units          - Show or switch the unit system
"""

import argparse
import logging
import sys
from pathlib import Path
from tabulate import tabulate
from typing import List, Optional

from fuellog import (
    FuelLogError,
    OwnershipReport,
    Session,
    SortConfig,
    UnitSystem,
    add_entry,
    add_vehicle,
    build_dashboard,
    clear_entries,
    delete_entry,
    delete_vehicle,
    load_store,
    make_entry,
    set_unit_system,
    update_entry,
    update_vehicle,
)
from fuellog.config import configure_logging
from fuellog.session import LogRow, SORT_KEYS
from fuellog.statistics import CATEGORY_DESCRIPTIONS
from fuellog.store import KEEP
from fuellog.transfer import edit_log, export, export_filename, import_log

logger = logging.getLogger(__name__)

# =============================================================================
# Formatting helpers
# =============================================================================


def format_number(value: Optional[float], decimals: int = 2, unit: str = "") -> str:
    """Format a value to fixed decimals, with an optional unit."""
    if value is None:
        return "N/A"
    text = f"{value:,.{decimals}f}"
    return f"{text} {unit}" if unit else text


def format_price(price: Optional[float]) -> str:
    """Format a purchase price for display."""
    return f"{price:,.2f}" if price is not None else "-"


def entry_flags(row: LogRow) -> str:
    """Markers for the log table: baseline and invalid entries."""
    flags = []
    if row.entry.is_first:
        flags.append("first")
    if row.entry.is_invalid:
        flags.append("INVALID")
    return ", ".join(flags)


# =============================================================================
# History command
# =============================================================================


def make_log_table(rows: List[LogRow], units: UnitSystem) -> List[List[str]]:
    """Convert log rows to table rows."""
    dist = units.distance_unit
    vol = units.volume_unit
    table = []
    for row in rows:
        entry = row.entry
        table.append(
            [
                str(row.index),
                entry.date or "N/A",
                format_number(entry.odometer_reading, 2, dist),
                format_number(entry.distance_traveled, 2, dist),
                format_number(entry.fuel, 2, vol),
                format_number(entry.price, 3, f"/{vol}"),
                format_number(entry.total_spend, 2),
                entry_flags(row),
            ]
        )
    return table


def cmd_history(args):
    """View the fuel log with derived values."""
    store = load_store(args.store_file)
    session = Session(
        current_vehicle=args.vehicle,
        sort=SortConfig(args.sort, "desc" if args.desc else "asc"),
    )
    store.get_vehicle(args.vehicle)
    dashboard = build_dashboard(store, session)

    print(f"Vehicle: {dashboard.vehicle.name}")
    print(f"Units: {store.unit_system.value}")
    print(f"Entries: {len(dashboard.rows)}")
    print()

    if not dashboard.rows:
        print("No fuel entries yet.")
        return 0

    headers = ["#", "Date", "Odometer", "Distance", "Fuel", "Price", "Spend", ""]
    print(
        tabulate(
            make_log_table(dashboard.rows, store.unit_system),
            headers=headers,
            tablefmt="simple",
        )
    )
    print()
    for notice in dashboard.notices:
        prefix = "Error: " if notice.level == "error" else "Note: "
        print(prefix + notice.text)

    return 0


# =============================================================================
# Stats and cost commands
# =============================================================================


def make_stats_tables(categories) -> List[str]:
    """Render each statistics category as its own table."""
    tables = []
    for category, stats in categories.items():
        title = category
        if category in CATEGORY_DESCRIPTIONS:
            title += f" - {CATEGORY_DESCRIPTIONS[category]}"
        rows = [[name, value] for name, value in stats.items()]
        tables.append(f"{title}\n{tabulate(rows, tablefmt='simple')}")
    return tables


def cmd_stats(args):
    """Show fuel statistics."""
    store = load_store(args.store_file)
    store.get_vehicle(args.vehicle)
    dashboard = build_dashboard(store, Session(current_vehicle=args.vehicle))

    print(f"Vehicle: {dashboard.vehicle.name}")
    print(f"Usable entries: {dashboard.statistics.usable_count}")
    print()

    if dashboard.stats_notice:
        print(dashboard.stats_notice)
        return 0

    for table in make_stats_tables(dashboard.statistics.report.categories()):
        print(table)
        print()

    return 0


def cmd_cost(args):
    """Show total cost of ownership."""
    store = load_store(args.store_file)
    store.get_vehicle(args.vehicle)
    dashboard = build_dashboard(store, Session(current_vehicle=args.vehicle))

    print(f"Vehicle: {dashboard.vehicle.name}")
    print()

    ownership = dashboard.ownership
    if not isinstance(ownership, OwnershipReport):
        print(ownership.message)
        return 0

    print(tabulate(ownership.rows(), tablefmt="simple"))
    print(f"\nTracked over {ownership.days} days")
    return 0


# =============================================================================
# Vehicle commands
# =============================================================================


def cmd_vehicles(args):
    """List vehicles in the store."""
    store = load_store(args.store_file)

    print(f"Units: {store.unit_system.value}")
    print(f"Vehicles: {len(store.vehicles)}")
    print()

    if not store.vehicles:
        print("No vehicles yet. Add one with add-vehicle.")
        return 0

    rows = []
    for vehicle in store.vehicles.values():
        result = vehicle.process()
        rows.append(
            [
                vehicle.name,
                format_price(vehicle.purchase_price),
                len(result.entries),
                len(result.usable),
                "yes" if result.has_invalid_entries else "",
            ]
        )
    headers = ["Vehicle", "Price", "Entries", "Usable", "Invalid data"]
    print(tabulate(rows, headers=headers, tablefmt="simple"))
    return 0


def cmd_add_vehicle(args):
    """Add a vehicle."""
    vehicle = add_vehicle(args.store_file, args.name, args.price)
    print(f"Added vehicle: {vehicle.name}")
    return 0


def cmd_edit_vehicle(args):
    """Rename a vehicle or change its purchase price."""
    price = KEEP
    if args.clear_price:
        price = None
    elif args.price is not None:
        price = args.price

    vehicle = update_vehicle(args.store_file, args.name, args.rename, price)
    print(f"Vehicle: {vehicle.name}")
    print(f"Price:   {format_price(vehicle.purchase_price)}")
    return 0


def cmd_delete_vehicle(args):
    """Delete a vehicle and its log."""
    store = load_store(args.store_file)
    vehicle = store.get_vehicle(args.name)
    if not args.yes:
        print(
            f'Delete "{vehicle.name}" and all {len(vehicle.entries)} entries? '
            "Re-run with --yes to confirm."
        )
        return 1
    delete_vehicle(args.store_file, args.name)
    print(f"Deleted vehicle: {args.name}")
    return 0


# =============================================================================
# Entry commands
# =============================================================================


def print_entry(entry, units: UnitSystem) -> None:
    print(f"  Date:     {entry.date}")
    print(f"  Odometer: {entry.odometer_reading:,.2f} {units.distance_unit}")
    print(f"  Fuel:     {entry.fuel:,.2f} {units.volume_unit}")
    print(f"  Price:    {entry.price:,.3f} per {units.volume_unit}")


def cmd_log(args):
    """Add a fuel entry."""
    store = load_store(args.store_file)
    store.get_vehicle(args.vehicle)
    entry = make_entry(args.date, args.odometer, args.fuel, args.price)

    print(f"Adding fuel entry to {args.vehicle}:")
    print_entry(entry, store.unit_system)
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    add_entry(args.store_file, args.vehicle, entry)
    print("Entry saved.")
    return 0


def cmd_edit_log(args):
    """Replace a fuel entry."""
    store = load_store(args.store_file)
    vehicle = store.get_vehicle(args.vehicle)
    if not 0 <= args.index < len(vehicle.entries):
        print(f"Error: No entry #{args.index} (see history for entry numbers)")
        return 1

    current = vehicle.entries[args.index]
    entry = make_entry(
        args.date if args.date is not None else current.date,
        args.odometer if args.odometer is not None else current.odometer_reading,
        args.fuel if args.fuel is not None else current.fuel,
        args.price if args.price is not None else current.price,
    )
    update_entry(args.store_file, args.vehicle, args.index, entry)
    print(f"Updated entry #{args.index}:")
    print_entry(entry, store.unit_system)
    return 0


def cmd_edit_all(args):
    """Replace a vehicle's whole log from an edited YAML/JSON file."""
    load_store(args.store_file).get_vehicle(args.vehicle)
    entries = edit_log(args.store_file, args.vehicle, args.file)
    print(f"Saved {len(entries)} entries for {args.vehicle}.")
    return 0


def cmd_delete_entry(args):
    """Delete a fuel entry."""
    store = load_store(args.store_file)
    vehicle = store.get_vehicle(args.vehicle)
    if not 0 <= args.index < len(vehicle.entries):
        print(f"Error: No entry #{args.index} (see history for entry numbers)")
        return 1
    delete_entry(args.store_file, args.vehicle, args.index)
    print(f"Deleted entry #{args.index}.")
    return 0


def cmd_clear(args):
    """Delete every fuel entry of a vehicle."""
    store = load_store(args.store_file)
    vehicle = store.get_vehicle(args.vehicle)
    if not args.yes:
        print(
            f'Clear all {len(vehicle.entries)} fuel entries for "{vehicle.name}"? '
            "Re-run with --yes to confirm."
        )
        return 1
    clear_entries(args.store_file, args.vehicle)
    print("Log cleared.")
    return 0


# =============================================================================
# Import / export / units
# =============================================================================


def cmd_import(args):
    """Replace a vehicle's log from a JSON or CSV file."""
    load_store(args.store_file).get_vehicle(args.vehicle)
    entries = import_log(args.store_file, args.vehicle, args.file)
    print(f"Successfully replaced log with {len(entries)} imported entries!")
    return 0


def cmd_export(args):
    """Export a vehicle's log or statistics."""
    store = load_store(args.store_file)
    vehicle = store.get_vehicle(args.vehicle)
    content = export(vehicle, args.kind, args.format, store.unit_system)

    output = args.output
    if output is None:
        output = Path(export_filename(vehicle.name, args.kind, args.format))
    if str(output) == "-":
        sys.stdout.write(content)
        return 0

    output.write_text(content, encoding="utf-8")
    print(f"Exported {args.kind} to {output}")
    return 0


def cmd_units(args):
    """Show or switch the unit system."""
    if args.system is None:
        store = load_store(args.store_file)
        units = store.unit_system
        print(f"Units: {units.value} ({units.distance_unit}, {units.volume_unit}, "
              f"{units.efficiency_unit})")
        return 0

    units = UnitSystem.parse(args.system)
    if set_unit_system(args.store_file, units):
        print(f"Converted all entries to {units.value}.")
    else:
        print(f"Already using {units.value}.")
    return 0


# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Fuel log tracker",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s fuel_log.yaml add-vehicle Civic --price 20000
  %(prog)s fuel_log.yaml log Civic --date 2024-01-10 --odometer 1400 \\
      --fuel 40 --price 1.50
  %(prog)s fuel_log.yaml history Civic --sort fuel --desc
  %(prog)s fuel_log.yaml stats Civic
  %(prog)s fuel_log.yaml cost Civic
  %(prog)s fuel_log.yaml import Civic civic.csv
  %(prog)s fuel_log.yaml export Civic stats csv
  %(prog)s fuel_log.yaml units imperial
""",
    )
    parser.add_argument(
        "store_file",
        type=Path,
        help="Path to the fuel log YAML file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Log more detail (-v info, -vv debug)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Vehicles
    subparsers.add_parser("vehicles", help="List vehicles in the store")

    add_vehicle_parser = subparsers.add_parser("add-vehicle", help="Add a vehicle")
    add_vehicle_parser.add_argument("name", type=str, help="Vehicle name")
    add_vehicle_parser.add_argument(
        "--price", type=str, help="Purchase price (optional)"
    )

    edit_vehicle_parser = subparsers.add_parser(
        "edit-vehicle", help="Rename a vehicle or change its purchase price"
    )
    edit_vehicle_parser.add_argument("name", type=str, help="Vehicle name")
    edit_vehicle_parser.add_argument("--rename", type=str, help="New vehicle name")
    edit_vehicle_parser.add_argument("--price", type=str, help="New purchase price")
    edit_vehicle_parser.add_argument(
        "--clear-price", action="store_true", help="Remove the purchase price"
    )

    delete_vehicle_parser = subparsers.add_parser(
        "delete-vehicle", help="Delete a vehicle and its log"
    )
    delete_vehicle_parser.add_argument("name", type=str, help="Vehicle name")
    delete_vehicle_parser.add_argument(
        "--yes", action="store_true", help="Confirm deletion"
    )

    # Entries
    log_parser = subparsers.add_parser("log", help="Add a fuel entry")
    log_parser.add_argument("vehicle", type=str, help="Vehicle name")
    log_parser.add_argument(
        "--date", type=str, required=True, help="Fill-up date (YYYY-MM-DD)"
    )
    log_parser.add_argument(
        "--odometer", type=str, required=True, help="Odometer reading"
    )
    log_parser.add_argument("--fuel", type=str, required=True, help="Fuel volume")
    log_parser.add_argument(
        "--price", type=str, required=True, help="Price per unit of fuel"
    )
    log_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    edit_log_parser = subparsers.add_parser("edit-log", help="Replace a fuel entry")
    edit_log_parser.add_argument("vehicle", type=str, help="Vehicle name")
    edit_log_parser.add_argument("index", type=int, help="Entry number from history")
    edit_log_parser.add_argument("--date", type=str, help="Fill-up date (YYYY-MM-DD)")
    edit_log_parser.add_argument("--odometer", type=str, help="Odometer reading")
    edit_log_parser.add_argument("--fuel", type=str, help="Fuel volume")
    edit_log_parser.add_argument("--price", type=str, help="Price per unit of fuel")

    edit_all_parser = subparsers.add_parser(
        "edit-all", help="Replace the whole log from an edited file"
    )
    edit_all_parser.add_argument("vehicle", type=str, help="Vehicle name")
    edit_all_parser.add_argument(
        "file", type=Path, help="YAML or JSON list of entries (e.g. a JSON log export)"
    )

    delete_entry_parser = subparsers.add_parser(
        "delete-entry", help="Delete a fuel entry"
    )
    delete_entry_parser.add_argument("vehicle", type=str, help="Vehicle name")
    delete_entry_parser.add_argument(
        "index", type=int, help="Entry number from history"
    )

    clear_parser = subparsers.add_parser(
        "clear", help="Delete every fuel entry of a vehicle"
    )
    clear_parser.add_argument("vehicle", type=str, help="Vehicle name")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm clearing")

    # Views
    history_parser = subparsers.add_parser(
        "history", help="View the fuel log with derived values"
    )
    history_parser.add_argument("vehicle", type=str, help="Vehicle name")
    history_parser.add_argument(
        "--sort",
        choices=list(SORT_KEYS),
        default="date",
        help="Sort column (default: date)",
    )
    history_parser.add_argument(
        "--desc", action="store_true", help="Sort descending instead of ascending"
    )

    stats_parser = subparsers.add_parser("stats", help="Show fuel statistics")
    stats_parser.add_argument("vehicle", type=str, help="Vehicle name")

    cost_parser = subparsers.add_parser("cost", help="Show total cost of ownership")
    cost_parser.add_argument("vehicle", type=str, help="Vehicle name")

    # Import / export
    import_parser = subparsers.add_parser(
        "import", help="Replace a vehicle's log from a JSON or CSV file"
    )
    import_parser.add_argument("vehicle", type=str, help="Vehicle name")
    import_parser.add_argument("file", type=Path, help="File to import (.json/.csv)")

    export_parser = subparsers.add_parser(
        "export", help="Export a vehicle's log or statistics"
    )
    export_parser.add_argument("vehicle", type=str, help="Vehicle name")
    export_parser.add_argument("kind", choices=["log", "stats"], help="What to export")
    export_parser.add_argument("format", choices=["json", "csv"], help="File format")
    export_parser.add_argument(
        "--output",
        "-o",
        type=Path,
        help="Output file, '-' for stdout (default: <vehicle>_<kind>.<format>)",
    )

    units_parser = subparsers.add_parser(
        "units", help="Show or switch the unit system"
    )
    units_parser.add_argument(
        "system",
        nargs="?",
        choices=[u.value for u in UnitSystem],
        help="Unit system to convert all entries to",
    )

    return parser


COMMANDS = {
    "vehicles": cmd_vehicles,
    "add-vehicle": cmd_add_vehicle,
    "edit-vehicle": cmd_edit_vehicle,
    "delete-vehicle": cmd_delete_vehicle,
    "log": cmd_log,
    "edit-log": cmd_edit_log,
    "edit-all": cmd_edit_all,
    "delete-entry": cmd_delete_entry,
    "clear": cmd_clear,
    "history": cmd_history,
    "stats": cmd_stats,
    "cost": cmd_cost,
    "import": cmd_import,
    "export": cmd_export,
    "units": cmd_units,
}


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        {0: logging.WARNING, 1: logging.INFO}.get(args.verbose, logging.DEBUG)
    )

    try:
        return COMMANDS[args.command](args)
    except FuelLogError as e:
        print(f"Error: {e}")
        return 1
    except ValueError as e:
        logger.debug("Rejected input", exc_info=True)
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
