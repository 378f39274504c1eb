# backend/roombooking/services/slots/availability.py
"""
Per-room availability for a branch business day.

Takes into account:
- Branch business hours (slot grid from calculator)
- Existing non-cancelled reservations of each room
- The current instant, when the requested date is business-today

Every call re-reads reservations from storage. Nothing is cached between
requests: a stale grid is exactly how double bookings happen.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import BackendUnavailableError
from .calculator import Slot, build_day_slots, business_today, day_bounds
from .config import BookingConfig, get_booking_config
from .overlap import overlaps

logger = logging.getLogger(__name__)

Interval = tuple[datetime, datetime]


@dataclass
class RoomAvailability:
    room: object
    slots: list[Slot] = field(default_factory=list)


def resolve_availability(
    db: Session,
    branch,
    rooms: Sequence,
    target_date: date,
    now: Optional[datetime] = None,
    config: Optional[BookingConfig] = None,
) -> list[RoomAvailability]:
    """
    Calculate slot availability for each room of a branch on target_date.

    Rooms keep the order they were passed in.

    Raises:
        BackendUnavailableError: reservations could not be read.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)

    day_start, day_end = day_bounds(target_date, branch.open_time, branch.close_time, config)
    grid = build_day_slots(target_date, branch.open_time, branch.close_time, config)
    is_today = target_date == business_today(now, config)

    blocked = _get_blocked_intervals(db, [room.id for room in rooms], day_start, day_end)

    return [
        RoomAvailability(
            room=room,
            slots=mark_slots(grid, blocked.get(room.id, []), now if is_today else None),
        )
        for room in rooms
    ]


def mark_slots(
    grid: Iterable[Slot],
    blocked: Iterable[Interval],
    now: Optional[datetime] = None,
) -> list[Slot]:
    """
    Tag grid slots available/unavailable.

    now is passed only for business-today; slots ending at or before it are
    past and never bookable.
    """
    blocked = list(blocked)
    result = []
    for slot in grid:
        if now is not None and slot.end <= now:
            result.append(slot.blocked())
        elif any(overlaps(slot.start, slot.end, b_start, b_end) for b_start, b_end in blocked):
            result.append(slot.blocked())
        else:
            result.append(slot)
    return result


def can_book_consecutive(slots: Sequence[Slot], start_index: int, duration_hours: int) -> bool:
    """
    True if duration_hours consecutive full 1-hour slots from start_index are free.
    """
    if duration_hours <= 0 or start_index < 0:
        return False
    window = slots[start_index:start_index + duration_hours]
    if len(window) < duration_hours:
        return False
    if window[-1].end - window[0].start != timedelta(hours=duration_hours):
        # truncated closing slot cannot carry a whole hour
        return False
    return all(slot.available for slot in window)


def bookable_starts(slots: Sequence[Slot], duration_hours: int) -> list[datetime]:
    """Start instants from which a duration_hours booking fits."""
    return [
        slot.start
        for i, slot in enumerate(slots)
        if can_book_consecutive(slots, i, duration_hours)
    ]


# ── Database helpers ─────────────────────────────────────────────────────


def _get_blocked_intervals(
    db: Session,
    room_ids: list[int],
    day_start: datetime,
    day_end: datetime,
) -> dict[int, list[Interval]]:
    """
    Non-cancelled reservations of the rooms intersecting [day_start, day_end).

    A reservation starting before day_start but ending after it still blocks.
    """
    from ...models.generated import Reservations

    if not room_ids:
        return {}

    try:
        rows = (
            db.query(Reservations.room_id, Reservations.start_time, Reservations.end_time)
            .filter(
                Reservations.room_id.in_(room_ids),
                Reservations.status != "cancelled",
                Reservations.start_time < day_end,
                Reservations.end_time > day_start,
            )
            .order_by(Reservations.start_time)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Failed to read reservations for rooms {room_ids}: {e}")
        raise BackendUnavailableError("Could not load reservations, please retry") from e

    blocked: dict[int, list[Interval]] = {}
    for room_id, start_time, end_time in rows:
        blocked.setdefault(room_id, []).append((start_time, end_time))
    return blocked
