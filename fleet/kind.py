"""Vehicle kinds: the type-specific half of a vehicle record."""

from dataclasses import dataclass
from typing import Union

from .calculations import CARGO_DISCOUNT_RATE, PASSENGER_DISCOUNT_RATE

CARGO_TYPE = "CARGO"
PASSENGER_TYPE = "PASSENGER"


@dataclass(frozen=True)
class Cargo:
    """Cargo vehicle, sized by load capacity in kilograms."""

    load_capacity: int

    tag = CARGO_TYPE
    label = "Cargo"

    @property
    def capacity(self) -> int:
        return self.load_capacity

    @property
    def capacity_display(self) -> str:
        return f"{self.load_capacity:,} kg"

    def discount(self, subtotal: float, long_term: bool) -> float:
        """7% off, plus 5000 for heavy haulers on long rentals."""
        discount = subtotal * CARGO_DISCOUNT_RATE
        if long_term and self.load_capacity > 5000:
            discount += 5000
        return discount


@dataclass(frozen=True)
class Passenger:
    """Passenger vehicle, sized by seat count."""

    passenger_capacity: int

    tag = PASSENGER_TYPE
    label = "Passenger"

    @property
    def capacity(self) -> int:
        return self.passenger_capacity

    @property
    def capacity_display(self) -> str:
        return f"{self.passenger_capacity} passengers"

    def discount(self, subtotal: float, long_term: bool) -> float:
        """
        12% off, plus a capacity bonus:
        - long rental and more than 15 seats: 8000
        - otherwise more than 8 seats: 3000
        """
        discount = subtotal * PASSENGER_DISCOUNT_RATE
        if long_term and self.passenger_capacity > 15:
            discount += 8000
        elif self.passenger_capacity > 8:
            discount += 3000
        return discount


VehicleKind = Union[Cargo, Passenger]


def make_kind(type_name: str, capacity: int) -> VehicleKind:
    """Build a kind from its type tag ("cargo"/"passenger", any case)."""
    normalized = type_name.strip().upper()
    if normalized == CARGO_TYPE:
        return Cargo(capacity)
    if normalized == PASSENGER_TYPE:
        return Passenger(capacity)
    raise ValueError(f"Unknown vehicle type '{type_name}'")
