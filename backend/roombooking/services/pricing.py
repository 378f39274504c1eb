# backend/roombooking/services/pricing.py
"""
Room pricing.

Rooms carry an hourly weekday rate and an hourly weekend rate. The day of
week is the business-timezone calendar day on which the booking starts, so a
Saturday 00:30 start in UTC+8 is a weekend booking even though it is still
Friday in UTC.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional, Union

from .slots.config import BookingConfig, get_booking_config

WEEKEND_DAYS = (5, 6)  # date.weekday(): Saturday, Sunday


def is_weekend(start: datetime, config: Optional[BookingConfig] = None) -> bool:
    config = config or get_booking_config()
    return start.astimezone(config.tz).weekday() in WEEKEND_DAYS


def rate_for_start(room, start: datetime, config: Optional[BookingConfig] = None) -> float:
    if is_weekend(start, config):
        return float(room.price_weekend)
    return float(room.price_weekday)


def price_for_booking(
    room,
    start: datetime,
    duration_hours: Union[int, float],
    config: Optional[BookingConfig] = None,
) -> int:
    """Total price rounded to the nearest whole currency unit (half up)."""
    amount = Decimal(str(rate_for_start(room, start, config))) * Decimal(str(duration_hours))
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
