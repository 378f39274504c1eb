# backend/roombooking/routers/my_bookings.py
"""
Customer self-service: look up and cancel own bookings by phone number.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..schemas.reservations import CancelBookingRequest, MyBookingRead, ReservationRead
from ..services.reservations import cancel_by_customer, list_customer_bookings

router = APIRouter(tags=["self-service"])


@router.get("/my-bookings", response_model=list[MyBookingRead])
def my_bookings(
    phone: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
):
    """Upcoming active bookings for a phone number."""
    return [
        MyBookingRead(
            id=r.id,
            booking_code=r.booking_code,
            room_name=room_name,
            branch_name=branch_name,
            start_time=r.start_time,
            end_time=r.end_time,
            status=r.status,
            total_price=r.total_price,
            guest_count=r.guest_count,
            customer_name=r.customer_name,
        )
        for r, room_name, branch_name in list_customer_bookings(db, phone.strip())
    ]


@router.post("/cancel-booking", response_model=ReservationRead)
def cancel_booking(
    data: CancelBookingRequest,
    db: Session = Depends(get_db),
):
    return cancel_by_customer(
        db,
        phone=data.phone,
        reservation_id=data.id,
        booking_code=data.booking_code,
    )
