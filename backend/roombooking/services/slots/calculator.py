# backend/roombooking/services/slots/calculator.py
"""
Slot grid for a branch business day.

A business day is [open, close) interpreted in the fixed business timezone.
close <= open means the branch closes after midnight, so close moves to the
next calendar day. Slots are consecutive 1-hour windows starting at open; a
trailing partial window (e.g. open 09:30, close 22:00) is emitted truncated
at close.

Pure functions, no storage access.
"""

from dataclasses import dataclass, replace
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional, Union

from .config import BookingConfig, get_booking_config, time_str_to_hm

TimeOfDay = tuple[int, int]


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    available: bool = True

    def blocked(self) -> "Slot":
        return replace(self, available=False)


def parse_time_of_day(
    value: Union[str, time, None],
    fallback: TimeOfDay,
) -> TimeOfDay:
    """
    Parse a branch open/close value into (hour, minute).

    None, "" and anything unparsable return the fallback.
    """
    if value is None:
        return fallback
    if isinstance(value, time):
        return value.hour, value.minute
    if not str(value).strip():
        return fallback
    try:
        return time_str_to_hm(str(value))
    except ValueError:
        return fallback


def local_instant(target_date: date, hm: TimeOfDay, tz: tzinfo) -> datetime:
    return datetime.combine(target_date, time(hm[0], hm[1]), tzinfo=tz)


def _bounds(target_date: date, open_hm: TimeOfDay, close_hm: TimeOfDay, tz: tzinfo):
    start = local_instant(target_date, open_hm, tz)
    end = local_instant(target_date, close_hm, tz)
    if end <= start:
        # closes after midnight
        end += timedelta(days=1)
    return start, end


def day_bounds(
    target_date: date,
    open_time: Union[str, time, None] = None,
    close_time: Union[str, time, None] = None,
    config: Optional[BookingConfig] = None,
) -> tuple[datetime, datetime]:
    """
    Absolute [start, end) of the business day.

    Falls back to the default hours rather than returning an empty range.
    """
    config = config or get_booking_config()

    open_hm = parse_time_of_day(open_time, config.default_open)
    close_hm = parse_time_of_day(close_time, config.default_close)

    start, end = _bounds(target_date, open_hm, close_hm, config.tz)
    if end <= start:
        start, end = _bounds(target_date, config.default_open, config.default_close, config.tz)

    return start, end


def build_day_slots(
    target_date: date,
    open_time: Union[str, time, None] = None,
    close_time: Union[str, time, None] = None,
    config: Optional[BookingConfig] = None,
) -> list[Slot]:
    """
    Build the ordered 1-hour slot grid for target_date.

    Returns:
        List of Slot(start, end), chronological, never empty.
    """
    config = config or get_booking_config()
    day_start, day_end = day_bounds(target_date, open_time, close_time, config)
    step = config.slot_delta

    slots: list[Slot] = []
    t = day_start
    while t < day_end:
        # The last slot ends at closing time, so it can be shorter than one
        # step (09:00-21:30 ends with a 21:00-21:30 slot, not 21:00-22:00).
        slots.append(Slot(start=t, end=min(t + step, day_end)))
        t += step

    return slots


def business_today(now: datetime, config: Optional[BookingConfig] = None) -> date:
    """Calendar date of `now` in the business timezone (not server local)."""
    config = config or get_booking_config()
    return now.astimezone(config.tz).date()
