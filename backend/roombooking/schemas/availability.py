# backend/roombooking/schemas/availability.py
"""
Pydantic schemas for availability API.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SlotInfo(BaseModel):
    """A single 1-hour slot."""
    start: datetime
    end: datetime
    available: bool

    model_config = {"from_attributes": True}


class RoomSlotsResponse(BaseModel):
    """Availability of one room (room_id given)."""
    slots: list[SlotInfo]
    room_name: str
    branch_name: str
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    bookable_starts: Optional[list[datetime]] = Field(
        None, description="Start instants fitting duration_hours, when requested"
    )


class RoomAvailabilityEntry(BaseModel):
    room_id: int
    room_name: str
    capacity: int
    price_weekday: float
    price_weekend: float
    slots: list[SlotInfo]
    bookable_starts: Optional[list[datetime]] = None


class BranchAvailabilityResponse(BaseModel):
    """Availability of every room of a branch."""
    rooms: list[RoomAvailabilityEntry]
    branch_name: str
