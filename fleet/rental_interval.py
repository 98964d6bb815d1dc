"""RentalInterval dataclass for a single booked date range."""

from dataclasses import dataclass
from datetime import date

from .calculations import calc_rental_days


@dataclass(frozen=True)
class RentalInterval:
    """A closed date range [start, end], both days inclusive."""

    start: date
    end: date

    @property
    def days(self) -> int:
        return calc_rental_days(self.start, self.end)

    def overlaps(self, start: date, end: date) -> bool:
        """Shared days overlap; adjacent days (end + 1 == start) do not."""
        return not (end < self.start or start > self.end)
