#!/usr/bin/env python3
"""
Unified CLI for vehicle rental fleet management.

Commands:
  list     - List vehicles, optionally filtered
  add      - Register a new cargo or passenger vehicle
  show     - Show one vehicle with its rental periods
  remove   - Delete a vehicle and its rental periods
  check    - Check whether a vehicle is free for a date range
  rent     - Book a vehicle for a date range
  extend   - Move the end date of an existing rental
  finish   - End a rental and mark the vehicle available
  periods  - List booked periods for a vehicle
  invoice  - Print the rental invoice for a vehicle
  compare  - Compare the rental cost of two vehicles
  stats    - Fleet statistics
"""

import argparse
import dataclasses
import logging
import sys
from datetime import date
from pathlib import Path
from tabulate import tabulate
from typing import Callable, Dict, List, Optional

from fleet import (
    FleetCoordinator,
    FleetError,
    Vehicle,
    load_config,
    make_kind,
    open_fleet,
)
from fleet.invoice import comparison_report, format_money, rental_summary
from fleet.rental_tracker import Periods

# =============================================================================
# Formatting helpers
# =============================================================================


def parse_date(value: str) -> date:
    """argparse type for YYYY-MM-DD dates."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date '{value}' (use YYYY-MM-DD)")


def format_price(price: Optional[float]) -> str:
    """Format a price for display."""
    return format_money(price) if price is not None else "-"


def format_available(vehicle: Vehicle) -> str:
    return "yes" if vehicle.available else "rented"


def make_vehicle_table(vehicles: List[Vehicle]) -> List[List[str]]:
    """Convert vehicles to table rows."""
    rows = []
    for vehicle in vehicles:
        rows.append(
            [
                vehicle.plate,
                vehicle.model,
                str(vehicle.year),
                vehicle.type_name,
                vehicle.kind.capacity_display,
                format_price(vehicle.daily_price),
                str(vehicle.rental_days),
                format_available(vehicle),
            ]
        )
    return rows


def make_periods_table(periods: Periods) -> List[List[str]]:
    """Convert a start->end mapping to table rows."""
    return [
        [start.isoformat(), end.isoformat(), str((end - start).days + 1)]
        for start, end in periods.items()
    ]


VEHICLE_HEADERS = [
    "Plate",
    "Model",
    "Year",
    "Type",
    "Capacity",
    "Daily Price",
    "Days",
    "Available",
]
PERIOD_HEADERS = ["Start", "End", "Days"]


def require_vehicle(fleet: FleetCoordinator, plate: str) -> Optional[Vehicle]:
    vehicle = fleet.registry.find(plate)
    if vehicle is None:
        print(f"Error: No vehicle with plate '{plate}'")
    return vehicle


# =============================================================================
# Fleet commands
# =============================================================================


def cmd_list(fleet: FleetCoordinator, args) -> int:
    """List vehicles, optionally filtered."""
    vehicles = fleet.registry.query(
        year=args.year,
        min_price=args.min_price,
        max_price=args.max_price,
        vehicle_type=args.type,
    )
    if args.long_term:
        vehicles = [v for v in vehicles if v.is_long_term]
    if args.available:
        vehicles = [v for v in vehicles if v.available]

    vehicles.sort(key=lambda v: v.plate)
    print(f"Vehicles: {len(vehicles)} of {fleet.registry.count()}")
    print()
    if not vehicles:
        print("No vehicles found.")
        return 0
    rows = make_vehicle_table(vehicles)
    print(tabulate(rows, headers=VEHICLE_HEADERS, tablefmt="simple"))
    return 0


def cmd_add(fleet: FleetCoordinator, args) -> int:
    """Register a new vehicle."""
    vehicle = Vehicle(
        plate=args.plate,
        model=args.model,
        year=args.year,
        daily_price=args.price,
        rental_days=args.days,
        kind=make_kind(args.type, args.capacity),
    )

    print(f"Adding vehicle to {fleet.registry.store.path}:")
    print(f"  Plate:    {vehicle.plate}")
    print(f"  Model:    {vehicle.model} ({vehicle.year})")
    print(f"  Type:     {vehicle.type_name}, {vehicle.kind.capacity_display}")
    print(f"  Price:    {format_price(vehicle.daily_price)} / day")
    print()

    if args.dry_run:
        print("(dry run - no changes made)")
        return 0

    fleet.add_vehicle(vehicle)
    print("Vehicle saved.")
    return 0


def cmd_show(fleet: FleetCoordinator, args) -> int:
    """Show one vehicle with its rental periods."""
    vehicle = require_vehicle(fleet, args.plate)
    if vehicle is None:
        return 1

    print(f"Vehicle: {vehicle.name}")
    print(f"Type: {vehicle.type_name} ({vehicle.kind.capacity_display})")
    print(f"Daily price: {format_price(vehicle.daily_price)}")
    print(f"Rental days: {vehicle.rental_days}")
    print(f"Status: {vehicle.status.name}")
    print()

    periods = fleet.get_vehicle_rental_periods(vehicle.plate)
    if periods:
        print(tabulate(make_periods_table(periods), headers=PERIOD_HEADERS))
    else:
        print("No rental periods booked.")
    return 0


def cmd_remove(fleet: FleetCoordinator, args) -> int:
    """Delete a vehicle and its rental periods."""
    if not fleet.remove_vehicle(args.plate):
        print(f"Error: No vehicle with plate '{args.plate}'")
        return 1
    print(f"Removed {args.plate.upper()}.")
    return 0


# =============================================================================
# Rental commands
# =============================================================================


def cmd_check(fleet: FleetCoordinator, args) -> int:
    """Check whether a vehicle is free for a date range."""
    if require_vehicle(fleet, args.plate) is None:
        return 1
    if fleet.is_vehicle_available(args.plate, args.start, args.end):
        print(f"{args.plate.upper()} is available from {args.start} to {args.end}.")
        return 0
    print(f"{args.plate.upper()} is NOT available from {args.start} to {args.end}.")
    return 1


def cmd_rent(fleet: FleetCoordinator, args) -> int:
    """Book a vehicle for a date range."""
    if require_vehicle(fleet, args.plate) is None:
        return 1
    if not fleet.rent_vehicle(args.plate, args.start, args.end):
        plate = args.plate.upper()
        print(f"Error: Could not rent {plate} for {args.start}..{args.end}")
        return 1
    vehicle = fleet.registry.find(args.plate)
    print(f"Rented {vehicle.plate} for {vehicle.rental_days} day(s).")
    print()
    print(rental_summary(vehicle))
    return 0


def cmd_extend(fleet: FleetCoordinator, args) -> int:
    """Move the end date of an existing rental."""
    if require_vehicle(fleet, args.plate) is None:
        return 1
    if not fleet.extend_rental(args.plate, args.original_end, args.new_end):
        print(
            f"Error: Could not move {args.plate.upper()} rental ending "
            f"{args.original_end} to {args.new_end}"
        )
        return 1
    vehicle = fleet.registry.find(args.plate)
    print(f"Rental now ends {args.new_end} ({vehicle.rental_days} day(s)).")
    return 0


def cmd_finish(fleet: FleetCoordinator, args) -> int:
    """End a rental and mark the vehicle available."""
    if require_vehicle(fleet, args.plate) is None:
        return 1
    if not fleet.finish_rental(args.plate, args.start):
        print(f"Error: No active {args.plate.upper()} rental starting {args.start}")
        return 1
    print(f"Finished {args.plate.upper()} rental starting {args.start}.")
    return 0


def cmd_periods(fleet: FleetCoordinator, args) -> int:
    """List booked periods for a vehicle."""
    if require_vehicle(fleet, args.plate) is None:
        return 1
    periods = fleet.get_vehicle_rental_periods(args.plate)
    if not periods:
        print("No rental periods booked.")
        return 0
    print(tabulate(make_periods_table(periods), headers=PERIOD_HEADERS))
    return 0


def cmd_invoice(fleet: FleetCoordinator, args) -> int:
    """Print the rental invoice for a vehicle."""
    vehicle = require_vehicle(fleet, args.plate)
    if vehicle is None:
        return 1
    print(rental_summary(vehicle))
    return 0


def cmd_compare(fleet: FleetCoordinator, args) -> int:
    """Compare the rental cost of two vehicles."""
    first = require_vehicle(fleet, args.first)
    second = require_vehicle(fleet, args.second)
    if first is None or second is None:
        return 1
    print(comparison_report(first, second))
    return 0


def cmd_stats(fleet: FleetCoordinator, args) -> int:
    """Fleet statistics."""
    registry = fleet.registry
    prices = registry.price_statistics()

    print(f"Vehicles: {registry.count()}")
    print(f"Long-term rentals: {len(registry.long_term_rentals())}")
    print()

    rows = [[name, count] for name, count in registry.count_by_type().items()]
    print(tabulate(rows, headers=["Type", "Count"], tablefmt="simple"))
    print()

    rows = [[year, count] for year, count in registry.count_by_year().items()]
    if rows:
        print(tabulate(rows, headers=["Year", "Count"], tablefmt="simple"))
        print()

    rows = [
        ["Minimum", format_price(prices.minimum)],
        ["Maximum", format_price(prices.maximum)],
        ["Average", format_price(prices.average)],
    ]
    print(tabulate(rows, headers=["Daily Price", ""], tablefmt="simple"))
    return 0


COMMANDS: Dict[str, Callable[[FleetCoordinator, argparse.Namespace], int]] = {
    "list": cmd_list,
    "add": cmd_add,
    "show": cmd_show,
    "remove": cmd_remove,
    "check": cmd_check,
    "rent": cmd_rent,
    "extend": cmd_extend,
    "finish": cmd_finish,
    "periods": cmd_periods,
    "invoice": cmd_invoice,
    "compare": cmd_compare,
    "stats": cmd_stats,
}

# =============================================================================
# Main
# =============================================================================


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Vehicle rental fleet manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s add cargo ABCD12 "Volvo FH" 2020 10000 --capacity 8000
  %(prog)s list --type passenger --max-price 50000
  %(prog)s rent ABCD12 2024-03-01 2024-03-05
  %(prog)s extend ABCD12 2024-03-05 2024-03-10
  %(prog)s finish ABCD12 2024-03-01
  %(prog)s compare ABCD12 XY1234
""",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML config file (default: fleet.yaml if present)",
    )
    parser.add_argument(
        "--data-file",
        type=Path,
        help="Vehicle data file (overrides config)",
    )
    parser.add_argument(
        "--rentals-file",
        type=Path,
        help="Rental periods file (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # List subcommand
    list_parser = subparsers.add_parser("list", help="List vehicles")
    list_parser.add_argument("--year", type=int, help="Only this model year")
    list_parser.add_argument("--min-price", type=float, help="Minimum daily price")
    list_parser.add_argument("--max-price", type=float, help="Maximum daily price")
    list_parser.add_argument(
        "--type", choices=["cargo", "passenger"], help="Only this vehicle type"
    )
    list_parser.add_argument(
        "--long-term",
        action="store_true",
        help="Only vehicles with rentals of 7 days or more",
    )
    list_parser.add_argument(
        "--available", action="store_true", help="Only vehicles not rented"
    )

    # Add subcommand
    add_parser = subparsers.add_parser("add", help="Register a new vehicle")
    add_parser.add_argument("type", choices=["cargo", "passenger"])
    add_parser.add_argument("plate", help="License plate (e.g., ABCD12)")
    add_parser.add_argument("model", help="Model name")
    add_parser.add_argument("year", type=int, help="Model year")
    add_parser.add_argument("price", type=float, help="Daily price")
    add_parser.add_argument(
        "--capacity",
        type=int,
        required=True,
        help="Load capacity in kg (cargo) or seats (passenger)",
    )
    add_parser.add_argument(
        "--days", type=int, default=1, help="Initial rental days (default: 1)"
    )
    add_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be added without saving",
    )

    # Single-vehicle subcommands
    for name, help_text in (
        ("show", "Show a vehicle and its rental periods"),
        ("remove", "Delete a vehicle and its rental periods"),
        ("periods", "List booked rental periods"),
        ("invoice", "Print the rental invoice"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("plate", help="License plate")

    # Date-range subcommands
    for name, help_text in (
        ("check", "Check whether a vehicle is free for a date range"),
        ("rent", "Book a vehicle for a date range"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("plate", help="License plate")
        sub.add_argument("start", type=parse_date, help="First day (YYYY-MM-DD)")
        sub.add_argument("end", type=parse_date, help="Last day (YYYY-MM-DD)")

    # Extend subcommand
    extend_parser = subparsers.add_parser(
        "extend", help="Move the end date of a rental"
    )
    extend_parser.add_argument("plate", help="License plate")
    extend_parser.add_argument(
        "original_end", type=parse_date, help="Current last day (YYYY-MM-DD)"
    )
    extend_parser.add_argument(
        "new_end", type=parse_date, help="New last day (YYYY-MM-DD)"
    )

    # Finish subcommand
    finish_parser = subparsers.add_parser("finish", help="End a rental")
    finish_parser.add_argument("plate", help="License plate")
    finish_parser.add_argument(
        "start", type=parse_date, help="First day of the rental (YYYY-MM-DD)"
    )

    # Compare subcommand
    compare_parser = subparsers.add_parser(
        "compare", help="Compare the rental cost of two vehicles"
    )
    compare_parser.add_argument("first", help="First license plate")
    compare_parser.add_argument("second", help="Second license plate")

    # Stats subcommand
    subparsers.add_parser("stats", help="Fleet statistics")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
    except FleetError as e:
        print(f"Error: {e}")
        return 1

    overrides = {}
    if args.data_file:
        overrides["data_file"] = args.data_file
    if args.rentals_file:
        overrides["rentals_file"] = args.rentals_file
    if overrides:
        config = dataclasses.replace(config, **overrides)

    logging.basicConfig(
        level=config.log_level, format="%(levelname)s %(name)s: %(message)s"
    )

    try:
        fleet = open_fleet(config)
        return COMMANDS[args.command](fleet, args)
    except FleetError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main() or 0)
