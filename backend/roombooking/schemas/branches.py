# backend/roombooking/schemas/branches.py

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ..services.slots.config import hm_to_time_str, time_str_to_hm


def _time_of_day(v: Optional[str]) -> Optional[str]:
    """Normalize "H:MM" / "HH:MM:SS" to "HH:MM"; empty means unset."""
    if v is None or not v.strip():
        return None
    try:
        return hm_to_time_str(time_str_to_hm(v))
    except ValueError:
        raise ValueError("Time must be in HH:MM format")


class BranchCreate(BaseModel):
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _time_of_day(v)

    model_config = {"from_attributes": True}


class BranchUpdate(BaseModel):
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None

    @field_validator("open_time", "close_time")
    @classmethod
    def validate_time(cls, v: Optional[str]) -> Optional[str]:
        return _time_of_day(v)

    model_config = {"from_attributes": True}


class BranchRead(BaseModel):
    id: int
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None
    open_time: Optional[str] = None
    close_time: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
