# backend/roombooking/services/reservations.py
"""
Reservation writer and lifecycle.

create_reservation: lock room → conflict guard → insert with booking code
update_reservation: status state machine + guard re-run on time changes
cancel_by_customer: phone ownership + 24h window
"""

import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..errors import (
    BackendUnavailableError,
    ConflictError,
    NotFoundError,
    PolicyError,
    ValidationError,
)
from ..models.generated import Branches, Reservations, Rooms
from .conflicts import has_conflict
from .events import emit_event
from .pricing import price_for_booking
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"confirmed", "cancelled"}),
    "confirmed": frozenset({"checked_in", "cancelled", "completed"}),
    "checked_in": frozenset({"completed", "cancelled"}),
    "completed": frozenset(),
    "cancelled": frozenset(),
}
TERMINAL_STATUSES = frozenset({"completed", "cancelled"})
NON_NULLABLE_FIELDS = frozenset(
    {"customer_name", "phone", "start_time", "end_time", "status", "is_notified"}
)

# No 0/O, 1/I/L: codes are read out over the phone
BOOKING_CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
BOOKING_CODE_LENGTH = 8
BOOKING_CODE_ATTEMPTS = 5


def generate_booking_code() -> str:
    return "".join(secrets.choice(BOOKING_CODE_ALPHABET) for _ in range(BOOKING_CODE_LENGTH))


def normalize_phone(phone: str) -> str:
    return re.sub(r"\s", "", phone)


def validate_interval(
    start: datetime,
    end: datetime,
    config: Optional[BookingConfig] = None,
) -> None:
    config = config or get_booking_config()
    if start.tzinfo is None or end.tzinfo is None:
        raise ValidationError("start_time and end_time must include a timezone offset")
    if end <= start:
        raise ValidationError("end_time must be later than start_time")
    if end - start > config.max_booking_delta:
        raise ValidationError(
            f"A single reservation cannot exceed {config.max_booking_hours} hours"
        )


def can_transition(current: str, new: str) -> bool:
    return new == current or new in STATUS_TRANSITIONS.get(current, frozenset())


def duration_hours(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / 3600


# ── Create ───────────────────────────────────────────────────────────────


def create_reservation(
    db: Session,
    data,
    status: str = "pending",
    total_price: Optional[float] = None,
    config: Optional[BookingConfig] = None,
) -> Reservations:
    """
    Insert a reservation after the conflict guard passes.

    The room row is locked for the rest of the transaction so concurrent
    bookings of the same room queue behind each other; the storage exclusion
    constraint rejects whatever still slips through.

    Raises:
        ValidationError, NotFoundError, ConflictError, BackendUnavailableError
    """
    config = config or get_booking_config()
    validate_interval(data.start_time, data.end_time, config)

    for attempt in range(1, BOOKING_CODE_ATTEMPTS + 1):
        try:
            room = lock_room(db, data.room_id)
            if has_conflict(db, room.id, data.start_time, data.end_time):
                raise ConflictError()

            price = total_price
            if price is None:
                price = price_for_booking(
                    room, data.start_time, duration_hours(data.start_time, data.end_time), config
                )

            obj = Reservations(
                room_id=room.id,
                customer_name=data.customer_name,
                phone=normalize_phone(data.phone),
                email=data.email,
                start_time=data.start_time,
                end_time=data.end_time,
                status=status,
                total_price=price,
                guest_count=data.guest_count,
                notes=data.notes,
                booking_code=generate_booking_code(),
                is_notified=False,
            )
            db.add(obj)
            db.commit()
        except IntegrityError as e:
            db.rollback()
            if is_booking_code_collision(e):
                logger.warning(f"Booking code collision (attempt {attempt}), retrying")
                continue
            logger.info(f"Reservation rejected by storage constraint for room={data.room_id}")
            raise ConflictError() from e
        except (ConflictError, NotFoundError):
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Failed to create reservation for room={data.room_id}: {e}")
            raise BackendUnavailableError("Could not save the reservation, please retry") from e

        db.refresh(obj)
        logger.info(
            f"Reservation {obj.id} created: room={obj.room_id} code={obj.booking_code} "
            f"status={obj.status}"
        )
        emit_event("reservation_created", {"reservation_id": obj.id, "room_id": obj.room_id})
        return obj

    raise BackendUnavailableError("Could not allocate a booking code, please retry")


def lock_room(db: Session, room_id: int) -> Rooms:
    """SELECT ... FOR UPDATE on the room row (no-op on SQLite)."""
    room = (
        db.query(Rooms)
        .filter(Rooms.id == room_id)
        .with_for_update()
        .first()
    )
    if not room:
        raise NotFoundError("Room not found")
    return room


def is_booking_code_collision(exc: IntegrityError) -> bool:
    return "booking_code" in str(exc.orig)


# ── Update ───────────────────────────────────────────────────────────────


def update_reservation(
    db: Session,
    reservation_id: int,
    changes: dict,
    config: Optional[BookingConfig] = None,
) -> Reservations:
    """
    Apply a staff edit.

    Status changes follow STATUS_TRANSITIONS. A new start/end is validated and
    checked against every other reservation of the room.
    """
    config = config or get_booking_config()
    if not changes:
        raise ValidationError("No fields to update")
    cleared = sorted(f for f in NON_NULLABLE_FIELDS if f in changes and changes[f] is None)
    if cleared:
        raise ValidationError(f"Fields cannot be null: {', '.join(cleared)}")

    obj = db.get(Reservations, reservation_id)
    if not obj:
        raise NotFoundError("Reservation not found")

    new_status = changes.get("status")
    if new_status is not None and not can_transition(obj.status, new_status):
        raise PolicyError(f"Cannot change status from {obj.status} to {new_status}")

    new_start = changes.get("start_time", obj.start_time)
    new_end = changes.get("end_time", obj.end_time)
    times_changed = "start_time" in changes or "end_time" in changes

    try:
        if times_changed:
            validate_interval(new_start, new_end, config)
            lock_room(db, obj.room_id)
            if (new_status or obj.status) != "cancelled" and has_conflict(
                db, obj.room_id, new_start, new_end, exclude_reservation_id=obj.id
            ):
                raise ConflictError()

        if "phone" in changes and changes["phone"] is not None:
            changes = {**changes, "phone": normalize_phone(changes["phone"])}

        for field, value in changes.items():
            setattr(obj, field, value)

        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError() from e
    except (ConflictError, NotFoundError, ValidationError):
        db.rollback()
        raise
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to update reservation {reservation_id}: {e}")
        raise BackendUnavailableError("Could not update the reservation, please retry") from e

    db.refresh(obj)
    event_type = "reservation_cancelled" if new_status == "cancelled" else "reservation_updated"
    emit_event(event_type, {"reservation_id": obj.id, "room_id": obj.room_id})
    return obj


def delete_reservation(db: Session, reservation_id: int) -> None:
    obj = db.get(Reservations, reservation_id)
    if not obj:
        raise NotFoundError("Reservation not found")
    db.delete(obj)
    db.commit()
    logger.info(f"Reservation {reservation_id} deleted by staff")


# ── Customer self-service ────────────────────────────────────────────────


def cancel_by_customer(
    db: Session,
    phone: str,
    reservation_id: Optional[int] = None,
    booking_code: Optional[str] = None,
    now: Optional[datetime] = None,
    config: Optional[BookingConfig] = None,
) -> Reservations:
    """
    Cancel a reservation on behalf of its owner.

    Allowed only for non-terminal reservations starting at least
    self_cancel_min_hours from now.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)

    query = db.query(Reservations).filter(Reservations.phone == normalize_phone(phone))
    if reservation_id is not None:
        query = query.filter(Reservations.id == reservation_id)
    else:
        query = query.filter(Reservations.booking_code == booking_code)

    match = query.first()
    if not match:
        raise NotFoundError("No matching reservation for this phone number")

    if match.status in TERMINAL_STATUSES:
        raise PolicyError(f"Reservation is already {match.status}")

    if match.start_time - now < config.self_cancel_delta:
        raise PolicyError(
            f"Reservations cannot be cancelled online within {config.self_cancel_min_hours} "
            "hours of the start time, please call the branch"
        )

    match.status = "cancelled"
    db.commit()
    db.refresh(match)

    logger.info(f"Reservation {match.id} cancelled by customer")
    emit_event("reservation_cancelled", {"reservation_id": match.id, "room_id": match.room_id})
    return match


def list_customer_bookings(
    db: Session,
    phone: str,
    now: Optional[datetime] = None,
) -> list[tuple[Reservations, str, str]]:
    """Upcoming active reservations of a phone as (reservation, room_name, branch_name)."""
    now = now or datetime.now(timezone.utc)
    return (
        db.query(Reservations, Rooms.name, Branches.name)
        .join(Rooms, Reservations.room_id == Rooms.id)
        .join(Branches, Rooms.branch_id == Branches.id)
        .filter(
            Reservations.phone == normalize_phone(phone),
            Reservations.status.notin_(sorted(TERMINAL_STATUSES)),
            Reservations.end_time >= now,
        )
        .order_by(Reservations.start_time)
        .all()
    )
