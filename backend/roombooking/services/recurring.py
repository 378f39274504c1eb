# backend/roombooking/services/recurring.py
"""
Recurring bookings.

Expands a weekly pattern into concrete (start, end) candidates and books
them all or none: one batched conflict query over the whole range, then a
single transaction inserting every row.
"""

import logging
from datetime import date, datetime, timedelta
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailableError, ConflictError, NotFoundError, ValidationError
from ..models.generated import Reservations
from .conflicts import find_conflicts
from .events import emit_event
from .pricing import price_for_booking
from .reservations import (
    BOOKING_CODE_ATTEMPTS,
    generate_booking_code,
    is_booking_code_collision,
    lock_room,
    normalize_phone,
    validate_interval,
)
from .slots.calculator import local_instant
from .slots.config import BookingConfig, get_booking_config, time_str_to_hm

logger = logging.getLogger(__name__)

MIN_REPEAT_WEEKS = 4
MAX_REPEAT_WEEKS = 12
MAX_RANGE_DAYS = 366

Candidate = tuple[datetime, datetime]


def _sunday_first_weekday(d: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (d.weekday() + 1) % 7


def _candidate(
    d: date,
    start_time: str,
    duration_hours: float,
    config: BookingConfig,
) -> Candidate:
    try:
        hm = time_str_to_hm(start_time)
    except ValueError as e:
        raise ValidationError("start_time must be in HH:MM format") from e
    start = local_instant(d, hm, config.tz)
    return start, start + timedelta(hours=duration_hours)


def expand_candidates(
    start_date: date,
    end_date: date,
    weekdays: Sequence[int],
    start_time: str,
    duration_hours: float,
    config: Optional[BookingConfig] = None,
) -> list[Candidate]:
    """
    Every date in [start_date, end_date] falling on one of weekdays.

    weekdays use 0 = Sunday ... 6 = Saturday.
    """
    config = config or get_booking_config()
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")
    if (end_date - start_date).days > MAX_RANGE_DAYS:
        raise ValidationError(f"Date range cannot exceed {MAX_RANGE_DAYS} days")
    if not weekdays or any(w not in range(7) for w in weekdays):
        raise ValidationError("weekdays must be values 0 (Sunday) to 6 (Saturday)")

    wanted = set(weekdays)
    candidates = []
    current = start_date
    while current <= end_date:
        if _sunday_first_weekday(current) in wanted:
            candidates.append(_candidate(current, start_time, duration_hours, config))
        current += timedelta(days=1)

    if not candidates:
        raise ValidationError("No dates match the selected weekdays")
    return candidates


def weekly_candidates(
    start_date: date,
    repeat_weeks: int,
    start_time: str,
    duration_hours: float,
    config: Optional[BookingConfig] = None,
) -> list[Candidate]:
    """Same weekday and time for repeat_weeks consecutive weeks."""
    config = config or get_booking_config()
    if not MIN_REPEAT_WEEKS <= repeat_weeks <= MAX_REPEAT_WEEKS:
        raise ValidationError(
            f"repeat_weeks must be between {MIN_REPEAT_WEEKS} and {MAX_REPEAT_WEEKS}"
        )
    return [
        _candidate(start_date + timedelta(weeks=week), start_time, duration_hours, config)
        for week in range(repeat_weeks)
    ]


def create_recurring(
    db: Session,
    data,
    candidates: Sequence[Candidate],
    status: str = "confirmed",
    config: Optional[BookingConfig] = None,
) -> list[Reservations]:
    """
    Book every candidate or none of them.

    Raises:
        ConflictError: with `conflicts` listing the local dates already taken.
    """
    config = config or get_booking_config()
    if not candidates:
        raise ValidationError("No dates to book")
    for start, end in candidates:
        validate_interval(start, end, config)

    for attempt in range(1, BOOKING_CODE_ATTEMPTS + 1):
        try:
            room = lock_room(db, data.room_id)
            taken = find_conflicts(db, room.id, candidates)
            if taken:
                raise ConflictError(
                    "Some dates are already booked, nothing was created",
                    conflicts=[start.astimezone(config.tz).date().isoformat() for start, _ in taken],
                )

            rows = [
                Reservations(
                    room_id=room.id,
                    customer_name=data.customer_name,
                    phone=normalize_phone(data.phone),
                    email=data.email,
                    start_time=start,
                    end_time=end,
                    status=status,
                    total_price=price_for_booking(
                        room,
                        start,
                        (end - start).total_seconds() / 3600,
                        config,
                    ),
                    guest_count=data.guest_count,
                    notes=data.notes,
                    booking_code=generate_booking_code(),
                    is_notified=False,
                )
                for start, end in candidates
            ]
            db.add_all(rows)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_booking_code_collision(e):
                logger.warning(f"Booking code collision in recurring batch (attempt {attempt})")
                continue
            raise ConflictError("Some dates are already booked, nothing was created") from e
        except (ConflictError, NotFoundError, BackendUnavailableError):
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create recurring reservations for room={data.room_id}: {e}")
            raise BackendUnavailableError("Could not save the reservations, please retry") from e

        for row in rows:
            db.refresh(row)
        logger.info(f"Recurring booking: {len(rows)} reservations created for room={room.id}")
        emit_event(
            "reservation_created",
            {"reservation_ids": [row.id for row in rows], "room_id": room.id},
        )
        return rows

    raise BackendUnavailableError("Could not allocate booking codes, please retry")
