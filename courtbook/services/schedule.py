"""Per-day court calendar: operating hours, booking horizon and maintenance windows."""
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional, Tuple

import pytz

from courtbook.core.config import settings
from courtbook.core.errors import ValidationError
from courtbook.services.intervals import to_minutes

WEEKDAYS = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]

_CLOSED = object()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read back from backends that drop tzinfo."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def local_now(court, now: datetime) -> datetime:
    """Current wall-clock time in the court's venue timezone."""
    tz_name = (court.venue.timezone if court.venue else None) or settings.DEFAULT_TIMEZONE
    return as_utc(now).astimezone(pytz.timezone(tz_name))


def _day_entry(hours, weekday: str):
    """Return the configured entry for weekday, _CLOSED, or None when unset."""
    if not hours or weekday not in hours:
        return None
    entry = hours[weekday]
    if entry is None or entry.get("closed") or entry.get("is_open") is False:
        return _CLOSED
    return entry


# Latest representable close; a "24:00" close has no time-of-day value
LAST_MINUTE = 23 * 60 + 59


def _window(open_text, close_text, court_id) -> Tuple[int, int]:
    """Parse a configured {open, close} pair, rejecting unusable hours."""
    try:
        open_minute, close_minute = to_minutes(open_text), to_minutes(close_text)
    except (AttributeError, TypeError, ValueError):
        raise ValidationError(f"Court {court_id} has malformed operating hours")
    if not 0 <= open_minute < close_minute <= LAST_MINUTE:
        raise ValidationError(
            f"Court {court_id} operating hours {open_text}-{close_text} are invalid; "
            f"closing time must be after opening and no later than 23:59"
        )
    return open_minute, close_minute


def resolve_hours(court, day: date) -> Optional[Tuple[int, int]]:
    """
    Operating window for day as (open, close) minutes, or None when closed.

    Court hours win over venue hours, which win over the configured defaults.

    Raises:
        ValidationError: The configured hours cannot be scheduled
    """
    weekday = WEEKDAYS[day.weekday()]
    venue_hours = court.venue.operating_hours if court.venue else None
    for hours in (court.operating_hours, venue_hours):
        entry = _day_entry(hours, weekday)
        if entry is _CLOSED:
            return None
        if entry is not None:
            return _window(entry.get("open"), entry.get("close"), court.id)
    return _window(settings.DEFAULT_OPEN_TIME, settings.DEFAULT_CLOSE_TIME, court.id)


def maintenance_windows(court, day: date) -> List[Tuple[int, int]]:
    windows = []
    for window in court.maintenance_windows or []:
        window_date = window.get("date")
        if window_date and date.fromisoformat(window_date) != day:
            continue
        windows.append((to_minutes(window["start"]), to_minutes(window["end"])))
    return windows


def check_booking_date(court, day: date, now: datetime) -> date:
    """Reject past dates and dates beyond the court's horizon. Returns today's local date."""
    today = local_now(court, now).date()
    if day < today:
        raise ValidationError(f"Date {day.isoformat()} is in the past")
    horizon = court.advance_booking_days
    if horizon is None:
        horizon = settings.DEFAULT_ADVANCE_BOOKING_DAYS
    if day > today + timedelta(days=horizon):
        raise ValidationError(
            f"Date {day.isoformat()} is beyond the {horizon}-day booking horizon"
        )
    return today


def check_participants(court, participants: Optional[int]) -> None:
    if participants is None:
        return
    if participants < 1:
        raise ValidationError("Participants must be at least 1")
    if court.capacity is not None and participants > court.capacity:
        raise ValidationError(
            f"Court {court.id} holds at most {court.capacity} participants"
        )
