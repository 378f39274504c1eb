# backend/roombooking/services/slots/__init__.py
"""
Slot calculation module.

calculator: business-day slot grid (pure)
overlap: half-open interval predicate
availability: grid + reservations -> per-room availability
"""

from .config import BookingConfig, get_booking_config
from .calculator import Slot, build_day_slots, business_today, day_bounds, parse_time_of_day
from .overlap import overlaps
from .availability import (
    RoomAvailability,
    bookable_starts,
    can_book_consecutive,
    resolve_availability,
)

__all__ = [
    "BookingConfig",
    "get_booking_config",
    "Slot",
    "build_day_slots",
    "business_today",
    "day_bounds",
    "parse_time_of_day",
    "overlaps",
    "RoomAvailability",
    "bookable_starts",
    "can_book_consecutive",
    "resolve_availability",
]
