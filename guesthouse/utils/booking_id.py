import uuid
from datetime import date, datetime, timezone
from typing import Optional

SUFFIX_LENGTH = 10


def generate_booking_id(prefix: str = "GC", today: Optional[date] = None) -> str:
    """
    Human-readable booking reference, e.g. ``GC20250301-3f9c0a7b12``.

    The 10 hex chars come from a random UUID (40 bits per day), and the
    column is unique in storage anyway.
    """
    today = today or datetime.now(timezone.utc).date()
    suffix = uuid.uuid4().hex[:SUFFIX_LENGTH]
    return f"{prefix}{today:%Y%m%d}-{suffix}"
