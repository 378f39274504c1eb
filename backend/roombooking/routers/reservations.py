# backend/roombooking/routers/reservations.py
# POST is the customer booking entry point (status pending, server-side price).
# GET/PATCH/DELETE by id are staff operations.

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..auth import require_admin
from ..database import get_db
from ..models.generated import Reservations as DBReservations
from ..schemas.reservations import (
    ReservationCreate,
    ReservationCreated,
    ReservationRead,
    ReservationUpdate,
)
from ..services.reservations import (
    create_reservation,
    delete_reservation,
    update_reservation,
)

router = APIRouter(prefix="/reservations", tags=["reservations"])


@router.post("/", response_model=ReservationCreated, status_code=status.HTTP_201_CREATED)
def create_customer_reservation(
    data: ReservationCreate,
    db: Session = Depends(get_db),
):
    return create_reservation(db, data, status="pending")


@router.get("/{id}", response_model=ReservationRead, dependencies=[Depends(require_admin)])
def get_reservation(id: int, db: Session = Depends(get_db)):
    obj = db.get(DBReservations, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Reservation not found")
    return obj


@router.patch("/{id}", response_model=ReservationRead, dependencies=[Depends(require_admin)])
def patch_reservation(
    id: int,
    data: ReservationUpdate,
    db: Session = Depends(get_db),
):
    return update_reservation(db, id, data.model_dump(exclude_unset=True))


@router.delete(
    "/{id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_admin)],
)
def remove_reservation(id: int, db: Session = Depends(get_db)):
    delete_reservation(db, id)
