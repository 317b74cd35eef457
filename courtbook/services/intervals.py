"""Time-of-day helpers and half-open interval overlap."""
from datetime import time as dt_time


def to_minutes(value) -> int:
    """Convert "HH:MM" or a datetime.time to minutes since midnight."""
    if isinstance(value, dt_time):
        return value.hour * 60 + value.minute
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def from_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_time(minutes: int) -> dt_time:
    return dt_time(hour=minutes // 60, minute=minutes % 60)


def overlaps(start_a: int, end_a: int, start_b: int, end_b: int) -> bool:
    """True iff [start_a, end_a) and [start_b, end_b) share an instant."""
    return start_a < end_b and start_b < end_a
