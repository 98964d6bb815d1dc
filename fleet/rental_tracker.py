"""
Per-vehicle rental period bookkeeping.

Each vehicle id maps to a set of closed, non-overlapping date intervals
keyed by start date. All operations report success as a boolean; an
overlap is an expected outcome, never an exception.
"""

import logging
import threading
from datetime import date, timedelta
from typing import Dict, List, Optional

from .rental_interval import RentalInterval

_logger = logging.getLogger(__name__)

Periods = Dict[date, date]


class RentalPeriodTracker:
    """In-memory store of booked intervals, guarded by a single lock."""

    def __init__(self, periods: Optional[Dict[str, Periods]] = None):
        self._lock = threading.Lock()
        self._periods: Dict[str, Periods] = {}
        if periods:
            self.restore(periods)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_available(self, vehicle_id: str, start: date, end: date) -> bool:
        """True if no stored interval for the vehicle overlaps [start, end]."""
        with self._lock:
            return self._is_free(vehicle_id, start, end)

    def get_periods(self, vehicle_id: str) -> Periods:
        """Independent copy of the vehicle's intervals, ordered by start."""
        with self._lock:
            return dict(sorted(self._periods.get(vehicle_id, {}).items()))

    def get_intervals(self, vehicle_id: str) -> List[RentalInterval]:
        return [RentalInterval(s, e) for s, e in self.get_periods(vehicle_id).items()]

    def snapshot(self) -> Dict[str, Periods]:
        """Copy of every vehicle's intervals. Vehicles with none are omitted."""
        with self._lock:
            return {
                vehicle_id: dict(sorted(periods.items()))
                for vehicle_id, periods in sorted(self._periods.items())
                if periods
            }

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def book(self, vehicle_id: str, start: date, end: date) -> bool:
        """Insert [start, end] unless it overlaps an existing interval."""
        with self._lock:
            if not self._is_free(vehicle_id, start, end):
                _logger.debug(
                    "Booking %s %s..%s rejected: overlap", vehicle_id, start, end
                )
                return False
            self._periods.setdefault(vehicle_id, {})[start] = end
            _logger.debug("Booked %s %s..%s", vehicle_id, start, end)
            return True

    def extend(self, vehicle_id: str, original_end: date, new_end: date) -> bool:
        """
        Move the end of the interval that currently ends on `original_end`.

        - No interval ends on original_end: rejected
        - More than one does: rejected as ambiguous
        - new_end later: the added days must be free
        - new_end earlier but not before the start: interval is shortened
        - new_end before the start: rejected
        """
        with self._lock:
            periods = self._periods.get(vehicle_id)
            if not periods:
                return False

            starts = [s for s, e in periods.items() if e == original_end]
            if not starts:
                return False
            if len(starts) > 1:
                _logger.warning(
                    "Cannot extend %s: %d rentals end on %s",
                    vehicle_id,
                    len(starts),
                    original_end,
                )
                return False

            start = starts[0]
            if new_end < start:
                _logger.warning(
                    "Cannot move end of %s rental %s to %s: before its start",
                    vehicle_id,
                    start,
                    new_end,
                )
                return False
            if new_end > original_end and not self._is_free(
                vehicle_id, original_end + timedelta(days=1), new_end
            ):
                _logger.debug(
                    "Extension of %s to %s rejected: overlap", vehicle_id, new_end
                )
                return False

            periods[start] = new_end
            _logger.debug(
                "Moved end of %s rental %s from %s to %s",
                vehicle_id,
                start,
                original_end,
                new_end,
            )
            return True

    def cancel(self, vehicle_id: str, start: date) -> bool:
        """Remove the interval starting on `start`, if present."""
        with self._lock:
            periods = self._periods.get(vehicle_id)
            if not periods or start not in periods:
                return False
            del periods[start]
            if not periods:
                del self._periods[vehicle_id]
            _logger.debug("Cancelled %s rental starting %s", vehicle_id, start)
            return True

    def clear(self, vehicle_id: str) -> bool:
        """Drop every interval for a vehicle. Returns whether any existed."""
        with self._lock:
            return bool(self._periods.pop(vehicle_id, None))

    def restore(self, periods: Dict[str, Periods]) -> int:
        """
        Replace all state with a copy of `periods`.

        Intervals are inserted in start order under the same rules as
        book(); inverted or overlapping ones are dropped with a warning.
        Returns the number dropped.
        """
        dropped = 0
        with self._lock:
            self._periods = {}
            for vehicle_id, intervals in periods.items():
                for start, end in sorted(intervals.items()):
                    if end < start or not self._is_free(vehicle_id, start, end):
                        _logger.warning(
                            "Dropping %s rental %s..%s: invalid or overlapping",
                            vehicle_id,
                            start,
                            end,
                        )
                        dropped += 1
                        continue
                    self._periods.setdefault(vehicle_id, {})[start] = end
        return dropped

    # -------------------------------------------------------------------------
    # Internals (caller holds the lock)
    # -------------------------------------------------------------------------

    def _is_free(self, vehicle_id: str, start: date, end: date) -> bool:
        periods = self._periods.get(vehicle_id)
        if not periods:
            return True
        return not any(
            RentalInterval(s, e).overlaps(start, end) for s, e in periods.items()
        )
