"""
FleetCoordinator - keeps vehicle records in step with booked periods.

A vehicle's `rental_days` and `available` flag are derived from the
tracker's intervals. Every booking action follows the same sequence:

1. Check the vehicle exists and is in the right state
2. Apply the interval change in the tracker
3. Write the updated vehicle (and the rental periods, if stored)
4. If any write fails, undo step 2 and leave the vehicle as it was

A call returns True only when every step succeeded.
"""

import logging
import threading
from datetime import date
from typing import Dict, Optional

from .calculations import MAX_RENTAL_DAYS, calc_end_date, calc_rental_days
from .errors import FleetError, InvalidRentalPeriodError, PersistenceError
from .registry import VehicleRegistry
from .rental_store import RentalStore
from .rental_tracker import Periods, RentalPeriodTracker
from .vehicle import Vehicle, normalize_plate

_logger = logging.getLogger(__name__)


def check_rental_period(start: date, end: date) -> int:
    """Validate a requested rental range. Returns its length in days."""
    if end < start:
        raise InvalidRentalPeriodError(f"End date {end} is before start date {start}")
    days = calc_rental_days(start, end)
    if days > MAX_RENTAL_DAYS:
        raise InvalidRentalPeriodError(
            f"Rental of {days} days exceeds the maximum of {MAX_RENTAL_DAYS}"
        )
    return days


class FleetCoordinator:
    """Booking surface over a VehicleRegistry and a RentalPeriodTracker."""

    def __init__(
        self,
        registry: VehicleRegistry,
        tracker: Optional[RentalPeriodTracker] = None,
        rental_store: Optional[RentalStore] = None,
    ):
        self.registry = registry
        self.tracker = tracker if tracker is not None else RentalPeriodTracker()
        self.rental_store = rental_store
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()
        self._rentals_lock = threading.Lock()
        if rental_store is not None:
            self.restore_rentals()

    def restore_rentals(self) -> None:
        """
        Load stored periods into the tracker.

        Periods for plates no longer registered are dropped, as are periods
        the tracker rejects (inverted or overlapping). Vehicles with any
        restored period are marked rented.
        """
        periods = self.rental_store.load()
        known = {}
        for plate, intervals in periods.items():
            vehicle = self.registry.find(plate)
            if vehicle is None:
                _logger.warning("Dropping rental periods for unknown plate %s", plate)
                continue
            known[vehicle.plate] = intervals
        self.tracker.restore(known)
        for plate in known:
            # Availability is not a column in the vehicle file
            self.registry.find(plate).available = not self.tracker.get_periods(plate)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_vehicle_available(self, plate: str, start: date, end: date) -> bool:
        """False for unknown or rented vehicles, else whether the range is free."""
        vehicle = self.registry.find(plate)
        if vehicle is None or not vehicle.available:
            return False
        return self.tracker.is_available(vehicle.plate, start, end)

    def get_vehicle_rental_periods(self, plate: str) -> Periods:
        return self.tracker.get_periods(normalize_plate(plate))

    # -------------------------------------------------------------------------
    # Booking actions
    # -------------------------------------------------------------------------

    def rent_vehicle(self, plate: str, start: date, end: date) -> bool:
        """Book [start, end] for an available vehicle and mark it rented."""
        plate = normalize_plate(plate)
        days = check_rental_period(start, end)
        with self._vehicle_lock(plate):
            vehicle = self.registry.find(plate)
            if vehicle is None:
                _logger.warning("Cannot rent %s: no such vehicle", plate)
                return False
            if not vehicle.available:
                _logger.warning("Cannot rent %s: already rented", plate)
                return False
            if not self.tracker.book(plate, start, end):
                return False

            updated = vehicle.copy()
            updated.rental_days = days
            updated.available = False
            if not self._commit(vehicle, updated):
                self.tracker.cancel(plate, start)
                self._resync_rentals()
                return False

        _logger.info("Rented %s from %s to %s", plate, start, end)
        return True

    def rent_vehicle_until(
        self, plate: str, until: date, today: Optional[date] = None
    ) -> bool:
        """Rent from today through `until`."""
        return self.rent_vehicle(plate, today or date.today(), until)

    def rent_vehicle_from(self, plate: str, start: date, duration_days: int) -> bool:
        """Rent for `duration_days` days from `start` (open-ended if <= 0)."""
        return self.rent_vehicle(plate, start, calc_end_date(start, duration_days))

    def extend_rental(self, plate: str, original_end: date, new_end: date) -> bool:
        """Move the end of the rental that ends on `original_end`."""
        plate = normalize_plate(plate)
        with self._vehicle_lock(plate):
            vehicle = self.registry.find(plate)
            if vehicle is None:
                _logger.warning("Cannot extend %s: no such vehicle", plate)
                return False

            starts = [
                s
                for s, e in self.tracker.get_periods(plate).items()
                if e == original_end
            ]
            days = vehicle.rental_days
            if len(starts) == 1 and new_end >= starts[0]:
                days = check_rental_period(starts[0], new_end)
            if not self.tracker.extend(plate, original_end, new_end):
                return False

            updated = vehicle.copy()
            updated.rental_days = days
            if not self._commit(vehicle, updated):
                if not self.tracker.extend(plate, new_end, original_end):
                    _logger.error(
                        "Could not restore %s rental end to %s", plate, original_end
                    )
                self._resync_rentals()
                return False

        _logger.info("Extended %s rental to %s", plate, new_end)
        return True

    def finish_rental(self, plate: str, start: date) -> bool:
        """End the rental starting on `start` and mark the vehicle available."""
        plate = normalize_plate(plate)
        with self._vehicle_lock(plate):
            vehicle = self.registry.find(plate)
            if vehicle is None or vehicle.available:
                _logger.warning("Cannot finish %s rental: vehicle not rented", plate)
                return False

            end = self.tracker.get_periods(plate).get(start)
            if not self.tracker.cancel(plate, start):
                return False

            updated = vehicle.copy()
            updated.available = True
            if not self._commit(vehicle, updated):
                if not self.tracker.book(plate, start, end):
                    _logger.error("Could not restore %s rental %s", plate, start)
                current = self.registry.find(plate)
                if current is not None and self.tracker.get_periods(plate):
                    current.available = False
                self._resync_rentals()
                return False

        _logger.info("Finished %s rental starting %s", plate, start)
        return True

    # -------------------------------------------------------------------------
    # Fleet maintenance
    # -------------------------------------------------------------------------

    def add_vehicle(self, vehicle: Vehicle) -> None:
        self.registry.add(vehicle)

    def remove_vehicle(self, plate: str) -> bool:
        """Delete a vehicle and every rental period booked for it."""
        plate = normalize_plate(plate)
        with self._vehicle_lock(plate):
            if not self.registry.remove(plate):
                return False
            if self.tracker.clear(plate):
                try:
                    self._save_rentals()
                except PersistenceError as e:
                    # Stale periods for unknown plates are dropped on restore
                    _logger.error(
                        "Could not save rentals after removing %s: %s", plate, e
                    )
        with self._locks_guard:
            self._locks.pop(plate, None)
        return True

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _vehicle_lock(self, plate: str) -> threading.Lock:
        """Shared lock for a registered plate; a throwaway one otherwise."""
        with self._locks_guard:
            lock = self._locks.get(plate)
            if lock is None:
                lock = threading.Lock()
                if self.registry.exists(plate):
                    self._locks[plate] = lock
            return lock

    def _save_rentals(self) -> None:
        """Write the tracker's current periods, if a rental store is set."""
        if self.rental_store is None:
            return
        # Newer snapshots always land after older ones
        with self._rentals_lock:
            self.rental_store.save(self.tracker.snapshot())

    def _resync_rentals(self) -> None:
        """Rewrite the periods after a rollback."""
        # A save from another plate may have captured the undone change
        try:
            self._save_rentals()
        except PersistenceError as e:
            _logger.error("Could not save rentals after rollback: %s", e)

    def _commit(self, previous: Vehicle, updated: Vehicle) -> bool:
        """
        Write `updated` and the tracker's periods.

        On failure the registry holds `previous` again; the caller reverts
        the tracker.
        """
        try:
            self.registry.update(updated)
        except FleetError as e:
            _logger.warning("Rolling back %s: %s", updated.plate, e)
            return False

        try:
            self._save_rentals()
        except PersistenceError as e:
            _logger.warning("Rolling back %s: %s", updated.plate, e)
            try:
                self.registry.update(previous)
            except FleetError as restore_error:
                _logger.error(
                    "Could not restore %s record: %s", previous.plate, restore_error
                )
            return False
        return True
