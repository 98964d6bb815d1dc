"""
Vehicle rental fleet models.

This package provides the fleet's data model and booking logic:
- Vehicle, Cargo, Passenger: Fleet records and their type-specific capacity
- RentalStatus: Whether a vehicle is available or rented
- RentalInterval: A closed, booked date range
- RentalPeriodTracker: Non-overlapping intervals per vehicle
- VehicleRegistry: Vehicle CRUD and queries over a VehicleStore
- FleetCoordinator: Bookings that keep vehicles and intervals consistent
"""

from .errors import (
    FleetError,
    InvalidVehicleError,
    InvalidRentalPeriodError,
    DuplicatePlateError,
    VehicleNotFoundError,
    PersistenceError,
    ConfigError,
)
from .status import RentalStatus
from .kind import Cargo, Passenger, VehicleKind, make_kind
from .vehicle import Vehicle, Invoice, normalize_plate
from .rental_interval import RentalInterval
from .calculations import calc_rental_days, calc_end_date
from .validation import validate_vehicle, check_vehicle
from .rental_tracker import RentalPeriodTracker
from .store import VehicleStore
from .rental_store import RentalStore
from .registry import VehicleRegistry, PriceStatistics
from .coordinator import FleetCoordinator
from .config import FleetConfig, load_config

__all__ = [
    "FleetError",
    "InvalidVehicleError",
    "InvalidRentalPeriodError",
    "DuplicatePlateError",
    "VehicleNotFoundError",
    "PersistenceError",
    "ConfigError",
    "RentalStatus",
    "Cargo",
    "Passenger",
    "VehicleKind",
    "make_kind",
    "Vehicle",
    "Invoice",
    "normalize_plate",
    "RentalInterval",
    "calc_rental_days",
    "calc_end_date",
    "validate_vehicle",
    "check_vehicle",
    "RentalPeriodTracker",
    "VehicleStore",
    "RentalStore",
    "VehicleRegistry",
    "PriceStatistics",
    "FleetCoordinator",
    "FleetConfig",
    "load_config",
    "open_fleet",
]


def open_fleet(config: FleetConfig) -> FleetCoordinator:
    """Build a coordinator over the files named in `config`."""
    registry = VehicleRegistry(VehicleStore(config.data_file))
    rental_store = RentalStore(config.rentals_file) if config.persist_rentals else None
    return FleetCoordinator(registry, rental_store=rental_store)
