# backend/roombooking/services/conflicts.py
"""
Booking conflict guard.

Application-level fast path: rejects overlapping reservations with a
friendly error before the insert. Two writers can both pass it, so the
authoritative check is in storage: the PostgreSQL exclusion constraint from
alembic 0002, or the SQLite overlap triggers in models/generated.py.
"""

import logging
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import BackendUnavailableError
from ..models.generated import Reservations
from .slots.overlap import overlaps

logger = logging.getLogger(__name__)


def has_conflict(
    db: Session,
    room_id: int,
    start: datetime,
    end: datetime,
    exclude_reservation_id: Optional[int] = None,
) -> bool:
    """
    True if a non-cancelled reservation of room_id overlaps [start, end).

    Fails closed: a storage error is reported as a conflict.
    """
    query = db.query(Reservations.id).filter(
        Reservations.room_id == room_id,
        Reservations.status != "cancelled",
        Reservations.start_time < end,
        Reservations.end_time > start,
    )
    if exclude_reservation_id is not None:
        query = query.filter(Reservations.id != exclude_reservation_id)

    try:
        return query.first() is not None
    except SQLAlchemyError:
        logger.exception(
            f"Conflict check failed for room={room_id} "
            f"[{start.isoformat()}, {end.isoformat()}), denying"
        )
        return True


def find_conflicts(
    db: Session,
    room_id: int,
    candidates: Sequence[tuple[datetime, datetime]],
) -> list[tuple[datetime, datetime]]:
    """
    Candidates overlapping existing reservations, using one range query.

    Raises:
        BackendUnavailableError: storage could not be read.
    """
    if not candidates:
        return []

    range_start = min(start for start, _ in candidates)
    range_end = max(end for _, end in candidates)

    try:
        existing = (
            db.query(Reservations.start_time, Reservations.end_time)
            .filter(
                Reservations.room_id == room_id,
                Reservations.status != "cancelled",
                Reservations.start_time < range_end,
                Reservations.end_time > range_start,
            )
            .all()
        )
    except SQLAlchemyError as e:
        logger.error(f"Batch conflict check failed for room={room_id}: {e}")
        raise BackendUnavailableError("Could not verify availability, please retry") from e

    return [
        (start, end)
        for start, end in candidates
        if any(overlaps(start, end, b_start, b_end) for b_start, b_end in existing)
    ]
