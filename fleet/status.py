"""RentalStatus enum for vehicle availability."""

from enum import Enum


class RentalStatus(Enum):
    """Rental state of a vehicle."""

    AVAILABLE = 1
    RENTED = 2
