"""YAML storage for booked rental periods.

File layout:

    rentals:
      ABCD12:
        - start: '2024-03-01'
          end: '2024-03-05'
"""

import logging
import threading
from datetime import date
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .errors import PersistenceError
from .rental_tracker import Periods
from .schema import schema_errors
from .store import replace_file

_logger = logging.getLogger(__name__)


def _iso(value: Any) -> Any:
    # Unquoted dates in hand-edited files load as date objects
    return value.isoformat() if isinstance(value, date) else value


def normalize_dates(data: Dict[str, Any]) -> Dict[str, Any]:
    rentals = data.get("rentals")
    if not isinstance(rentals, dict):
        return data
    for intervals in rentals.values():
        if isinstance(intervals, list):
            for entry in intervals:
                if isinstance(entry, dict):
                    for key in ("start", "end"):
                        if key in entry:
                            entry[key] = _iso(entry[key])
    return data


class RentalStore:
    """Reads and writes the rental periods file."""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.Lock()

    def load(self) -> Dict[str, Periods]:
        """Load all periods. A missing or empty file means no rentals."""
        if not self.path.is_file():
            return {}
        try:
            with open(self.path, "r") as fp:
                data = yaml.load(fp, Loader=yaml.SafeLoader)
        except yaml.YAMLError as e:
            raise PersistenceError(f"YAML parse error in {self.path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Error reading {self.path}: {e}") from e

        if data is None:
            return {}
        data = normalize_dates(data) if isinstance(data, dict) else data
        errors = schema_errors(data, "rentals")
        if errors:
            raise PersistenceError(f"Invalid rentals file {self.path}: {errors[0]}")

        periods: Dict[str, Periods] = {}
        try:
            for plate, intervals in data["rentals"].items():
                periods[plate] = {
                    date.fromisoformat(entry["start"]): date.fromisoformat(entry["end"])
                    for entry in intervals
                }
        except ValueError as e:
            raise PersistenceError(f"Bad date in {self.path}: {e}") from e
        return periods

    def save(self, periods: Dict[str, Periods]) -> None:
        """Overwrite the file with the given periods.

        A failed write leaves the previous file intact.
        """
        data = {
            "rentals": {
                plate: [
                    {"start": start.isoformat(), "end": end.isoformat()}
                    for start, end in sorted(intervals.items())
                ]
                for plate, intervals in sorted(periods.items())
                if intervals
            }
        }
        text = yaml.dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )
        with self._lock:
            try:
                replace_file(self.path, text)
            except OSError as e:
                raise PersistenceError(f"Error writing {self.path}: {e}") from e
        _logger.debug("Saved rental periods for %d vehicle(s)", len(data["rentals"]))
