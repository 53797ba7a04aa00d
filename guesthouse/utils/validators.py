"""
Input validation helpers for guest-submitted booking data
"""

import re
from datetime import date, datetime, timedelta
from typing import Iterator, Optional

MOBILE_PATTERN = re.compile(r"^[6-9][0-9]{9}$")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
DATE_PATTERN = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def is_valid_mobile(mobile: str) -> bool:
    """
    Local mobile number: exactly 10 digits, starting with 6, 7, 8 or 9.
    No country code, spaces or dashes.
    """
    return bool(MOBILE_PATTERN.match(mobile))


def is_valid_email(email: str, max_length: int = 255) -> bool:
    return len(email) <= max_length and bool(EMAIL_PATTERN.match(email))


def parse_date_only(value: str) -> Optional[date]:
    """
    Strict YYYY-MM-DD parsing.
    Returns None for any other shape or for impossible dates (2025-02-30).
    """
    if not DATE_PATTERN.match(value):
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        return None


def count_nights(check_in: date, check_out: date) -> int:
    return (check_out - check_in).days


def iter_nights(check_in: date, check_out: date) -> Iterator[date]:
    """Occupied nights: check-in through the day before check-out."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)


def last_night(check_out: date) -> date:
    return check_out - timedelta(days=1)
