# backend/roombooking/routers/rooms.py
# Reads are public; writes require an admin session. DELETE is a hard delete
# and removes the room's reservations.

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models.generated import Branches as DBBranches, Rooms as DBRooms
from ..schemas.rooms import (
    RoomCreate,
    RoomUpdate,
    RoomRead,
)

router = APIRouter(prefix="/rooms", tags=["rooms"])

REQUIRED_FIELDS = ("name", "capacity", "price_weekday", "price_weekend")


@router.get("/", response_model=list[RoomRead])
def list_rooms(branch_id: Optional[int] = None, db: Session = Depends(get_db)):
    query = db.query(DBRooms)
    if branch_id is not None:
        query = query.filter(DBRooms.branch_id == branch_id)
    return query.order_by(DBRooms.name).all()


@router.get("/{id}", response_model=RoomRead)
def get_room(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBRooms, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Room not found")
    return obj


@router.post(
    "/",
    response_model=RoomRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
):
    if not db.get(DBBranches, data.branch_id):
        raise HTTPException(status_code=404, detail="Branch not found")

    obj = DBRooms(**data.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Room name already exists in this branch")
    db.refresh(obj)
    return obj


@router.patch("/{id}", response_model=RoomRead, dependencies=[Depends(require_admin)])
def update_room(
    id: int,
    data: RoomUpdate,
    db: Session = Depends(get_db),
):
    obj = db.get(DBRooms, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Room not found")

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is None and field in REQUIRED_FIELDS:
            continue
        setattr(obj, field, value)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="Room name already exists in this branch")
    db.refresh(obj)
    return obj


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def delete_room(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBRooms, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Room not found")

    db.delete(obj)
    db.commit()
