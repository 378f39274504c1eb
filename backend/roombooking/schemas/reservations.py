# backend/roombooking/schemas/reservations.py

from datetime import datetime
from typing import Literal, Optional

from pydantic import AwareDatetime, BaseModel, Field, field_validator, model_validator

ReservationStatus = Literal["pending", "confirmed", "checked_in", "completed", "cancelled"]


def _strip_required(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("must not be empty")
    return v


def _strip_optional(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class ReservationCreate(BaseModel):
    """Self-service booking. Status and price are decided server-side."""
    room_id: int
    customer_name: str
    phone: str
    email: Optional[str] = None

    start_time: AwareDatetime
    end_time: AwareDatetime

    guest_count: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None

    @field_validator("customer_name", "phone")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("email", "notes")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)

    model_config = {"from_attributes": True}


class AdminReservationCreate(ReservationCreate):
    """Staff-entered booking: may set status and override the price."""
    status: ReservationStatus = "confirmed"
    total_price: Optional[float] = Field(None, ge=0)


class ReservationUpdate(BaseModel):
    customer_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None

    start_time: Optional[AwareDatetime] = None
    end_time: Optional[AwareDatetime] = None

    status: Optional[ReservationStatus] = None
    total_price: Optional[float] = Field(None, ge=0)
    guest_count: Optional[int] = Field(None, ge=1)
    notes: Optional[str] = None
    is_notified: Optional[bool] = None

    @field_validator("email", "notes")
    @classmethod
    def strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_optional(v)

    @field_validator("customer_name", "phone")
    @classmethod
    def strip_if_set(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return _strip_required(v)

    model_config = {"from_attributes": True}


class ReservationRead(BaseModel):
    id: int
    room_id: int
    customer_name: str
    phone: str
    email: Optional[str] = None

    start_time: datetime
    end_time: datetime

    status: str
    total_price: Optional[float] = None
    guest_count: Optional[int] = None
    notes: Optional[str] = None
    booking_code: str
    is_notified: bool

    model_config = {"from_attributes": True}


class ReservationCreated(BaseModel):
    id: int
    booking_code: str
    status: str
    total_price: Optional[float] = None

    model_config = {"from_attributes": True}


class CancelBookingRequest(BaseModel):
    """Customer cancellation: reservation id or booking code, plus phone."""
    id: Optional[int] = None
    booking_code: Optional[str] = None
    phone: str

    @field_validator("phone")
    @classmethod
    def strip_phone(cls, v: str) -> str:
        return _strip_required(v)

    @field_validator("booking_code")
    @classmethod
    def normalize_code(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip().upper() or None

    @model_validator(mode="after")
    def id_or_code(self):
        if self.id is None and self.booking_code is None:
            raise ValueError("id or booking_code is required")
        return self


class MyBookingRead(BaseModel):
    id: int
    booking_code: str
    room_name: str
    branch_name: str
    start_time: datetime
    end_time: datetime
    status: str
    total_price: Optional[float] = None
    guest_count: Optional[int] = None
    customer_name: str
