# backend/roombooking/services/slots/config.py
"""
Booking configuration for slot calculation and reservation rules.
"""

from dataclasses import dataclass
from datetime import timedelta, timezone, tzinfo
from functools import lru_cache

from ...config import settings


@dataclass(frozen=True)
class BookingConfig:
    """
    Configuration for the booking/slots system.

    Attributes:
        utc_offset_hours: Fixed business timezone offset (UTC+8)
        default_open: Opening time used when a branch has none, (hour, minute)
        default_close: Closing time used when a branch has none, (hour, minute)
        slot_minutes: Grid step in minutes
        max_booking_hours: Longest single reservation accepted
        self_cancel_min_hours: Customers may cancel only this far ahead
    """
    utc_offset_hours: int = 8
    default_open: tuple[int, int] = (8, 0)
    default_close: tuple[int, int] = (22, 0)
    slot_minutes: int = 60
    max_booking_hours: int = 8
    self_cancel_min_hours: int = 24

    def __post_init__(self):
        """Validate configuration."""
        if not -12 <= self.utc_offset_hours <= 14:
            raise ValueError(f"utc_offset_hours out of range: {self.utc_offset_hours}")
        if self.default_open == self.default_close:
            raise ValueError("default_open and default_close must differ")
        if self.max_booking_hours <= 0:
            raise ValueError("max_booking_hours must be positive")

    @property
    def tz(self) -> tzinfo:
        return timezone(timedelta(hours=self.utc_offset_hours))

    @property
    def slot_delta(self) -> timedelta:
        return timedelta(minutes=self.slot_minutes)

    @property
    def max_booking_delta(self) -> timedelta:
        return timedelta(hours=self.max_booking_hours)

    @property
    def self_cancel_delta(self) -> timedelta:
        return timedelta(hours=self.self_cancel_min_hours)


def time_str_to_hm(value: str) -> tuple[int, int]:
    """Convert "HH:MM" (or "HH:MM:SS") to (hour, minute). Raises ValueError."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Invalid time of day: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hour, minute


def hm_to_time_str(hm: tuple[int, int]) -> str:
    return f"{hm[0]:02d}:{hm[1]:02d}"


@lru_cache
def get_booking_config() -> BookingConfig:
    """Booking configuration (singleton), read from settings."""
    return BookingConfig(
        utc_offset_hours=settings.business_utc_offset_hours,
        default_open=time_str_to_hm(settings.default_open_time),
        default_close=time_str_to_hm(settings.default_close_time),
        max_booking_hours=settings.max_booking_hours,
        self_cancel_min_hours=settings.self_cancel_min_hours,
    )
