"""Vehicle class - a fleet record plus its invoice calculations."""

from dataclasses import dataclass

from .kind import VehicleKind
from .status import RentalStatus
from .calculations import calc_subtotal, calc_vat, calc_total, is_long_term


def normalize_plate(plate: str) -> str:
    """Uppercase a license plate and strip any whitespace."""
    return "".join(plate.split()).upper()


@dataclass
class Invoice:
    """Computed charges for a vehicle's current rental length."""

    subtotal: float
    vat: float
    discount: float
    total: float


class Vehicle:
    """A rentable vehicle identified by its license plate."""

    def __init__(
        self,
        plate: str,
        model: str,
        year: int,
        daily_price: float,
        rental_days: int,
        kind: VehicleKind,
        available: bool = True,
    ):
        self.plate = normalize_plate(plate)
        self.model = model
        self.year = year
        self.daily_price = daily_price
        self.rental_days = rental_days
        self.kind = kind
        self.available = available

    @property
    def status(self) -> RentalStatus:
        return RentalStatus.AVAILABLE if self.available else RentalStatus.RENTED

    @property
    def type_name(self) -> str:
        return self.kind.label

    @property
    def capacity(self) -> int:
        return self.kind.capacity

    @property
    def is_long_term(self) -> bool:
        return is_long_term(self.rental_days)

    @property
    def name(self) -> str:
        """Human-readable vehicle name."""
        return f"{self.plate} - {self.model} ({self.year})"

    def calculate_invoice(self) -> Invoice:
        subtotal = calc_subtotal(self.daily_price, self.rental_days)
        vat = calc_vat(subtotal)
        discount = self.kind.discount(subtotal, self.is_long_term)
        return Invoice(
            subtotal=subtotal,
            vat=vat,
            discount=discount,
            total=calc_total(subtotal, vat, discount),
        )

    def copy(self) -> "Vehicle":
        return Vehicle(
            self.plate,
            self.model,
            self.year,
            self.daily_price,
            self.rental_days,
            self.kind,
            self.available,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Vehicle):
            return NotImplemented
        return (
            self.plate == other.plate
            and self.model == other.model
            and self.year == other.year
            and self.daily_price == other.daily_price
            and self.rental_days == other.rental_days
            and self.kind == other.kind
            and self.available == other.available
        )

    def __repr__(self) -> str:
        return (
            f"Vehicle({self.plate!r}, {self.model!r}, {self.year}, "
            f"{self.daily_price}, {self.rental_days}, {self.kind!r}, "
            f"available={self.available})"
        )
