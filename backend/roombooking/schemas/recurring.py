# backend/roombooking/schemas/recurring.py

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .reservations import ReservationCreated


class RecurringCreate(BaseModel):
    """
    Weekly recurring booking.

    Either end_date + weekdays (0 = Sunday ... 6 = Saturday) or repeat_weeks
    (same weekday as start_date).
    """
    room_id: int
    customer_name: str
    phone: str
    email: Optional[str] = None

    start_date: date
    end_date: Optional[date] = None
    weekdays: Optional[list[int]] = None
    repeat_weeks: Optional[int] = None

    start_time: str = Field(description="Local start time in HH:MM format")
    duration_hours: float = Field(gt=0)

    guest_count: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None

    @field_validator("customer_name", "phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("start_time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        if not re.match(r"^\d{2}:\d{2}$", v):
            raise ValueError("Time must be in HH:MM format")
        return v

    @model_validator(mode="after")
    def pattern_given(self):
        weekly = self.end_date is not None and self.weekdays
        if not weekly and self.repeat_weeks is None:
            raise ValueError("Provide end_date and weekdays, or repeat_weeks")
        return self


class RecurringCreated(BaseModel):
    created: int
    reservations: list[ReservationCreated]
