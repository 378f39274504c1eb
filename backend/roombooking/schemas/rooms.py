# backend/roombooking/schemas/rooms.py

from typing import Optional
from pydantic import BaseModel, Field


class RoomCreate(BaseModel):
    branch_id: int
    name: str = Field(min_length=1)
    type: Optional[str] = None
    capacity: int = Field(1, ge=1)
    price_weekday: float = Field(ge=0)
    price_weekend: float = Field(ge=0)
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class RoomUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    price_weekday: Optional[float] = Field(None, ge=0)
    price_weekend: Optional[float] = Field(None, ge=0)
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}


class RoomRead(BaseModel):
    id: int
    branch_id: int
    name: str
    type: Optional[str] = None
    capacity: int
    price_weekday: float
    price_weekend: float
    image_url: Optional[str] = None

    model_config = {"from_attributes": True}
