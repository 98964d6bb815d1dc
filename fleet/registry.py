"""VehicleRegistry - the fleet's vehicle records and their queries."""

import logging
import threading
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

from .errors import DuplicatePlateError, VehicleNotFoundError, PersistenceError
from .kind import make_kind
from .store import VehicleStore
from .validation import check_vehicle
from .vehicle import Vehicle, normalize_plate

_logger = logging.getLogger(__name__)


@dataclass
class PriceStatistics:
    """Summary of daily prices across the fleet."""

    count: int = 0
    minimum: float = 0.0
    maximum: float = 0.0
    average: float = 0.0
    total: float = 0.0


class VehicleRegistry:
    """
    Holds the fleet in memory and writes every change through to a store.

    Plates are unique case-insensitively. Returned vehicles are the live
    records; callers that mutate one must pass it back through update().
    """

    def __init__(self, store: VehicleStore, load: bool = True):
        self.store = store
        self._lock = threading.RLock()
        self._vehicles: Dict[str, Vehicle] = {}
        if load:
            self.load()

    def load(self) -> None:
        """Replace in-memory records with the store's contents."""
        loaded = self.store.load_all()
        with self._lock:
            self._vehicles = {}
            for vehicle in loaded:
                if vehicle.plate in self._vehicles:
                    _logger.warning("Duplicate plate %s in store", vehicle.plate)
                self._vehicles[vehicle.plate] = vehicle
        _logger.debug("Loaded %d vehicle(s)", len(loaded))

    def save_all(self) -> None:
        with self._lock:
            self.store.save_all(list(self._vehicles.values()))

    # -------------------------------------------------------------------------
    # CRUD
    # -------------------------------------------------------------------------

    def add(self, vehicle: Vehicle) -> None:
        """Register a new vehicle and append it to the store."""
        check_vehicle(vehicle)
        with self._lock:
            if vehicle.plate in self._vehicles:
                raise DuplicatePlateError(
                    f"A vehicle with plate {vehicle.plate} already exists"
                )
            self._vehicles[vehicle.plate] = vehicle
            try:
                self.store.save_one(vehicle, append=True)
            except PersistenceError:
                del self._vehicles[vehicle.plate]
                raise
        _logger.debug("Registered %s", vehicle.plate)

    def list(self) -> List[Vehicle]:
        with self._lock:
            return list(self._vehicles.values())

    def find(self, plate: str) -> Optional[Vehicle]:
        with self._lock:
            return self._vehicles.get(normalize_plate(plate))

    def exists(self, plate: str) -> bool:
        return self.find(plate) is not None

    def update(self, vehicle: Vehicle) -> None:
        """Replace the record with the same plate and persist it."""
        check_vehicle(vehicle)
        with self._lock:
            previous = self._vehicles.get(vehicle.plate)
            if previous is None:
                raise VehicleNotFoundError(f"No vehicle with plate {vehicle.plate}")
            self._vehicles[vehicle.plate] = vehicle
            try:
                self.store.update(vehicle)
            except PersistenceError:
                self._vehicles[vehicle.plate] = previous
                raise

    def remove(self, plate: str) -> bool:
        """Delete a vehicle. Returns False if the plate is unknown."""
        plate = normalize_plate(plate)
        with self._lock:
            vehicle = self._vehicles.pop(plate, None)
            if vehicle is None:
                return False
            try:
                self.store.delete(plate)
            except PersistenceError:
                self._vehicles[plate] = vehicle
                raise
        _logger.debug("Removed %s", plate)
        return True

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def query(
        self,
        year: Optional[int] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        vehicle_type: Optional[str] = None,
    ) -> List[Vehicle]:
        """Filter vehicles. Criteria left as None are not applied."""
        tag = make_kind(vehicle_type, 1).tag if vehicle_type else None
        return [
            v
            for v in self.list()
            if (year is None or v.year == year)
            and (min_price is None or v.daily_price >= min_price)
            and (max_price is None or v.daily_price <= max_price)
            and (tag is None or v.kind.tag == tag)
        ]

    def count(self) -> int:
        with self._lock:
            return len(self._vehicles)

    def long_term_rentals(self) -> List[Vehicle]:
        return [v for v in self.list() if v.is_long_term]

    def count_by_type(self) -> Dict[str, int]:
        counts = {"Cargo": 0, "Passenger": 0}
        counts.update(Counter(v.type_name for v in self.list()))
        return counts

    def count_by_year(self) -> Dict[int, int]:
        return dict(sorted(Counter(v.year for v in self.list()).items()))

    def price_statistics(self) -> PriceStatistics:
        prices = [v.daily_price for v in self.list()]
        if not prices:
            return PriceStatistics()
        total = sum(prices)
        return PriceStatistics(
            count=len(prices),
            minimum=min(prices),
            maximum=max(prices),
            average=total / len(prices),
            total=total,
        )
