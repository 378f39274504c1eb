# backend/roombooking/schemas/admin.py

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class LoginRequest(BaseModel):
    password: str


class StatsResponse(BaseModel):
    date: date
    today_count: int
    today_revenue: int
    rooms_in_use_count: int
    total_rooms: int


class TimelineReservation(BaseModel):
    id: int
    start_time: datetime
    end_time: datetime
    customer_name: str
    status: str
    total_price: Optional[float] = None

    model_config = {"from_attributes": True}


class TimelineRoom(BaseModel):
    room_id: int
    room_name: str
    reservations: list[TimelineReservation]


class TimelineResponse(BaseModel):
    date: date
    branch_name: str
    open_time: str
    close_time: str
    rooms: list[TimelineRoom]


class ReminderItem(BaseModel):
    id: int
    booking_code: str
    room_name: str
    branch_name: str
    start_time: datetime
    end_time: datetime
    customer_name: str
    phone: str
    email: Optional[str] = None
    guest_count: Optional[int] = None


class ReminderSendResponse(BaseModel):
    ok: bool = True
    sent: int
