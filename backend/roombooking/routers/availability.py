# backend/roombooking/routers/availability.py
"""
Availability API.

GET /availability?branch_id=&date=YYYY-MM-DD        → every room of the branch
GET /availability?branch_id=&date=&room_id=          → one room
Optional duration_hours adds the start instants that fit a booking that long.
"""

import re
from datetime import date, datetime
from typing import Optional, Union

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFoundError, ValidationError
from ..models.generated import Branches as DBBranches, Rooms as DBRooms
from ..schemas.availability import (
    BranchAvailabilityResponse,
    RoomAvailabilityEntry,
    RoomSlotsResponse,
    SlotInfo,
)
from ..services.slots import bookable_starts, get_booking_config, resolve_availability

router = APIRouter(prefix="/availability", tags=["availability"])

DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_query_date(value: str) -> date:
    if not DATE_RE.match(value):
        raise ValidationError("date must be in YYYY-MM-DD format")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise ValidationError("date must be a valid calendar date")


@router.get("/", response_model=Union[RoomSlotsResponse, BranchAvailabilityResponse])
def get_availability(
    branch_id: int,
    target_date: str = Query(..., alias="date"),
    room_id: Optional[int] = None,
    duration_hours: Optional[int] = Query(None, ge=1),
    db: Session = Depends(get_db),
):
    """Slot availability for a branch (all rooms) or a single room."""
    day = parse_query_date(target_date)
    config = get_booking_config()
    if duration_hours is not None and duration_hours > config.max_booking_hours:
        raise ValidationError(f"duration_hours cannot exceed {config.max_booking_hours}")

    branch = db.get(DBBranches, branch_id)
    if not branch:
        raise NotFoundError("Branch not found")

    if room_id is not None:
        room = db.get(DBRooms, room_id)
        if not room or room.branch_id != branch.id:
            raise NotFoundError("Room not found in this branch")

        [result] = resolve_availability(db, branch, [room], day, config=config)
        return RoomSlotsResponse(
            slots=[SlotInfo.model_validate(s) for s in result.slots],
            room_name=room.name,
            branch_name=branch.name,
            open_time=branch.open_time,
            close_time=branch.close_time,
            bookable_starts=(
                bookable_starts(result.slots, duration_hours) if duration_hours else None
            ),
        )

    rooms = (
        db.query(DBRooms)
        .filter(DBRooms.branch_id == branch.id)
        .order_by(DBRooms.name)
        .all()
    )
    results = resolve_availability(db, branch, rooms, day, config=config)

    return BranchAvailabilityResponse(
        branch_name=branch.name,
        rooms=[
            RoomAvailabilityEntry(
                room_id=r.room.id,
                room_name=r.room.name,
                capacity=r.room.capacity,
                price_weekday=r.room.price_weekday,
                price_weekend=r.room.price_weekend,
                slots=[SlotInfo.model_validate(s) for s in r.slots],
                bookable_starts=(
                    bookable_starts(r.slots, duration_hours) if duration_hours else None
                ),
            )
            for r in results
        ],
    )
