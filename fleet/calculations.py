"""Helper functions for rental length and invoice arithmetic."""

from datetime import date
from dateutil.relativedelta import relativedelta

VAT_RATE = 0.19
CARGO_DISCOUNT_RATE = 0.07
PASSENGER_DISCOUNT_RATE = 0.12
LONG_TERM_DAYS = 7
MAX_RENTAL_DAYS = 365


def calc_rental_days(start: date, end: date) -> int:
    """Number of days in a closed interval, both ends inclusive."""
    return (end - start).days + 1


def calc_end_date(start: date, duration_days: int) -> date:
    """
    Inclusive end date for a rental lasting `duration_days` days.

    Zero or negative duration means open-ended, booked for the maximum
    rental length.
    """
    if duration_days <= 0:
        duration_days = MAX_RENTAL_DAYS
    return start + relativedelta(days=duration_days - 1)


def calc_subtotal(daily_price: float, rental_days: int) -> float:
    return daily_price * rental_days


def calc_vat(subtotal: float) -> float:
    return subtotal * VAT_RATE


def calc_total(subtotal: float, vat: float, discount: float) -> float:
    return subtotal + vat - discount


def is_long_term(rental_days: int) -> bool:
    """Rentals of a week or more qualify for long-term bonuses."""
    return rental_days >= LONG_TERM_DAYS
