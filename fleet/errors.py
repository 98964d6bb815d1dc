"""Exception hierarchy for fleet rental operations."""

from typing import Dict, Optional


class FleetError(Exception):
    """Base exception for all fleet errors."""


class InvalidVehicleError(FleetError):
    """One or more vehicle fields failed validation."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None):
        self.errors = errors or {}
        super().__init__(message)


class InvalidRentalPeriodError(FleetError):
    """Requested rental dates are inverted or exceed the allowed length."""


class DuplicatePlateError(FleetError):
    """A vehicle with the same license plate is already registered."""


class VehicleNotFoundError(FleetError):
    """No vehicle is registered under the given license plate."""


class PersistenceError(FleetError):
    """Reading or writing a data file failed."""


class ConfigError(FleetError):
    """Configuration file is unreadable or does not match the schema."""
