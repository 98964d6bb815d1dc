"""Field validation for vehicle records."""

import math
import re
from datetime import date
from typing import Dict, Optional

from .calculations import MAX_RENTAL_DAYS
from .errors import InvalidVehicleError
from .kind import Cargo, Passenger
from .vehicle import Vehicle

PLATE_PATTERN = re.compile(r"^[A-Za-z]{2,4}\d{2,4}$")
MIN_YEAR = 1900
MAX_LOAD_CAPACITY = 20000
MAX_PASSENGER_CAPACITY = 50


def plate_error(plate: Optional[str]) -> Optional[str]:
    if plate is None or not plate.strip():
        return "License plate cannot be empty"
    if not PLATE_PATTERN.match(plate):
        return "License plate must look like ABCD12 or AB1234"
    return None


def year_error(year: int, today: Optional[date] = None) -> Optional[str]:
    current_year = (today or date.today()).year
    if year < MIN_YEAR:
        return f"Year cannot be earlier than {MIN_YEAR}"
    if year > current_year:
        return f"Year cannot be later than the current year ({current_year})"
    return None


def price_error(price: float) -> Optional[str]:
    if math.isnan(price) or math.isinf(price):
        return "Daily price is not a valid number"
    if price <= 0:
        return "Daily price must be greater than zero"
    return None


def rental_days_error(days: int) -> Optional[str]:
    if days <= 0:
        return "Rental days must be greater than zero"
    if days > MAX_RENTAL_DAYS:
        return f"Rental days cannot exceed {MAX_RENTAL_DAYS}"
    return None


def model_error(model: Optional[str]) -> Optional[str]:
    if model is None or not model.strip():
        return "Model cannot be empty"
    if ";" in model or "\n" in model:
        return "Model cannot contain ';' or line breaks"
    return None


def capacity_error(vehicle: Vehicle) -> Optional[str]:
    kind = vehicle.kind
    if isinstance(kind, Cargo):
        if not 0 < kind.load_capacity <= MAX_LOAD_CAPACITY:
            return f"Load capacity must be between 1 and {MAX_LOAD_CAPACITY} kg"
    elif isinstance(kind, Passenger):
        if not 0 < kind.passenger_capacity <= MAX_PASSENGER_CAPACITY:
            return (
                f"Passenger capacity must be between 1 and {MAX_PASSENGER_CAPACITY}"
            )
    return None


def validate_vehicle(vehicle: Vehicle, today: Optional[date] = None) -> Dict[str, str]:
    """Collect per-field error messages. Empty dict means valid."""
    checks = {
        "plate": plate_error(vehicle.plate),
        "model": model_error(vehicle.model),
        "year": year_error(vehicle.year, today),
        "dailyPrice": price_error(vehicle.daily_price),
        "rentalDays": rental_days_error(vehicle.rental_days),
        "capacity": capacity_error(vehicle),
    }
    return {field: msg for field, msg in checks.items() if msg is not None}


def check_vehicle(vehicle: Vehicle, today: Optional[date] = None) -> None:
    """Raise InvalidVehicleError if any field is invalid."""
    errors = validate_vehicle(vehicle, today)
    if errors:
        details = "; ".join(f"{field}: {msg}" for field, msg in errors.items())
        raise InvalidVehicleError(f"Invalid vehicle {vehicle.plate}: {details}", errors)
