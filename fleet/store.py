"""Flat-file storage for vehicle records.

One vehicle per line, semicolon separated:

    TYPE;PLATE;MODEL;YEAR;DAILY_PRICE;RENTAL_DAYS;CAPACITY

where TYPE is CARGO or PASSENGER.
"""

import logging
import os
import tempfile
from contextlib import suppress
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .errors import PersistenceError
from .kind import make_kind
from .vehicle import Vehicle, normalize_plate

_logger = logging.getLogger(__name__)

FIELD_SEPARATOR = ";"
FIELD_COUNT = 7


def replace_file(path: Path, text: str) -> None:
    """
    Write `text` to a temp file beside `path`, then rename it over `path`.

    A failed write leaves the previous file intact. Raises OSError.
    """
    fp = tempfile.NamedTemporaryFile(
        "w",
        encoding="utf-8",
        dir=path.parent,
        prefix=path.name + ".",
        suffix=".tmp",
        delete=False,
    )
    try:
        with fp:
            fp.write(text)
        os.replace(fp.name, path)
    except OSError:
        with suppress(OSError):
            os.unlink(fp.name)
        raise


def vehicle_to_line(vehicle: Vehicle) -> str:
    """Serialize a Vehicle to its delimited line (no trailing newline)."""
    fields = [
        vehicle.kind.tag,
        vehicle.plate,
        vehicle.model,
        str(vehicle.year),
        str(float(vehicle.daily_price)),
        str(vehicle.rental_days),
        str(vehicle.capacity),
    ]
    return FIELD_SEPARATOR.join(fields)


def line_to_vehicle(line: str) -> Vehicle:
    """Parse a delimited line into a Vehicle."""
    fields = line.strip().split(FIELD_SEPARATOR)
    if len(fields) < FIELD_COUNT:
        raise PersistenceError(f"Malformed vehicle line: {line!r}")

    type_name, plate, model = fields[0], fields[1], fields[2]
    try:
        year = int(fields[3])
        daily_price = float(fields[4])
        rental_days = int(fields[5])
        capacity = int(fields[6])
    except ValueError as e:
        raise PersistenceError(f"Bad number in vehicle line {line!r}: {e}") from e

    try:
        kind = make_kind(type_name, capacity)
    except ValueError as e:
        raise PersistenceError(f"Unknown vehicle type in line {line!r}") from e

    return Vehicle(plate, model, year, daily_price, rental_days, kind)


class VehicleStore:
    """Reads and writes the vehicle data file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def load_all(self) -> List[Vehicle]:
        """Load every vehicle. A missing file is an empty fleet."""
        if not self.path.is_file():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as fp:
                lines = fp.readlines()
        except OSError as e:
            raise PersistenceError(f"Error reading {self.path}: {e}") from e
        return [line_to_vehicle(line) for line in lines if line.strip()]

    def save_all(self, vehicles: Iterable[Vehicle]) -> None:
        """Overwrite the file with the given vehicles."""
        self._write([vehicle_to_line(v) for v in vehicles], append=False)

    def save_one(self, vehicle: Vehicle, append: bool = True) -> None:
        """Write a single vehicle, appending by default."""
        self._write([vehicle_to_line(vehicle)], append=append)

    def update(self, vehicle: Vehicle) -> None:
        """Replace the stored record with the same plate."""
        vehicles = self.load_all()
        found = False
        for i, stored in enumerate(vehicles):
            if stored.plate == vehicle.plate:
                vehicles[i] = vehicle
                found = True
        if not found:
            raise PersistenceError(f"No stored vehicle with plate {vehicle.plate}")
        self.save_all(vehicles)

    def delete(self, plate: str) -> bool:
        """Remove the stored record for `plate`. Returns whether it existed."""
        plate = normalize_plate(plate)
        vehicles = self.load_all()
        remaining = [v for v in vehicles if v.plate != plate]
        if len(remaining) == len(vehicles):
            return False
        self.save_all(remaining)
        return True

    def find(self, plate: str) -> Optional[Vehicle]:
        plate = normalize_plate(plate)
        for vehicle in self.load_all():
            if vehicle.plate == plate:
                return vehicle
        return None

    def _write(self, lines: List[str], append: bool) -> None:
        try:
            if append:
                with open(self.path, "a", encoding="utf-8") as fp:
                    for line in lines:
                        fp.write(line + "\n")
            else:
                replace_file(self.path, "".join(line + "\n" for line in lines))
        except OSError as e:
            raise PersistenceError(f"Error writing {self.path}: {e}") from e
        _logger.debug("Wrote %d vehicle line(s) to %s", len(lines), self.path)
