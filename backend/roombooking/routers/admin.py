# backend/roombooking/routers/admin.py
"""
Admin panel API.

Login issues a signed stateless session cookie; every other endpoint here
verifies it per request. The branch being managed is always passed
explicitly as branch_id.
"""

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..auth import require_admin, require_admin_or_cron
from ..config import settings
from ..database import get_db
from ..errors import NotFoundError
from ..models.generated import (
    Branches as DBBranches,
    Reservations as DBReservations,
    Rooms as DBRooms,
)
from ..schemas.admin import (
    LoginRequest,
    ReminderItem,
    ReminderSendResponse,
    StatsResponse,
    TimelineReservation,
    TimelineResponse,
    TimelineRoom,
)
from ..schemas.recurring import RecurringCreate, RecurringCreated
from ..schemas.reservations import (
    AdminReservationCreate,
    ReservationCreated,
    ReservationRead,
)
from ..services.admin_session import COOKIE_NAME, create_session_token, password_matches
from ..services.line_notify import LineNotifier
from ..services.recurring import create_recurring, expand_candidates, weekly_candidates
from ..services.reminder_checker import (
    fetch_tomorrow_reservations,
    mark_notified,
    send_tomorrow_reminders,
)
from ..services.reservations import create_reservation
from ..services.slots import business_today, day_bounds, get_booking_config
from ..services.slots.calculator import local_instant
from ..services.slots.config import hm_to_time_str
from .availability import parse_query_date

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


# ──────────────────────────────────────────────────────────────────────────────
# Session
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/login")
def login(data: LoginRequest, response: Response):
    secret = settings.admin_password
    if not secret:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Admin password is not configured",
        )
    if not password_matches(data.password, secret):
        logger.warning("Admin login failed: wrong password")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Wrong password")

    response.set_cookie(
        COOKIE_NAME,
        create_session_token(secret, settings.admin_session_max_age),
        max_age=settings.admin_session_max_age,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return {"ok": True}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(COOKIE_NAME, path="/")
    return {"ok": True}


# ──────────────────────────────────────────────────────────────────────────────
# Reservations
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/reservations",
    response_model=list[ReservationRead],
    dependencies=[Depends(require_admin)],
)
def list_branch_reservations(branch_id: int, db: Session = Depends(get_db)):
    return (
        db.query(DBReservations)
        .join(DBRooms, DBReservations.room_id == DBRooms.id)
        .filter(DBRooms.branch_id == branch_id)
        .order_by(DBReservations.start_time)
        .all()
    )


@router.post(
    "/reservations",
    response_model=ReservationCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_staff_reservation(data: AdminReservationCreate, db: Session = Depends(get_db)):
    return create_reservation(db, data, status=data.status, total_price=data.total_price)


@router.post(
    "/reservations/recurring",
    response_model=RecurringCreated,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_admin)],
)
def create_recurring_reservations(data: RecurringCreate, db: Session = Depends(get_db)):
    """All-or-nothing: a single conflicting date rejects the whole batch (409)."""
    config = get_booking_config()
    if data.repeat_weeks is not None:
        candidates = weekly_candidates(
            data.start_date, data.repeat_weeks, data.start_time, data.duration_hours, config
        )
    else:
        candidates = expand_candidates(
            data.start_date,
            data.end_date,
            data.weekdays,
            data.start_time,
            data.duration_hours,
            config,
        )

    rows = create_recurring(db, data, candidates, status="confirmed", config=config)
    return RecurringCreated(
        created=len(rows),
        reservations=[ReservationCreated.model_validate(r) for r in rows],
    )


# ──────────────────────────────────────────────────────────────────────────────
# Dashboard
# ──────────────────────────────────────────────────────────────────────────────

def _get_branch(db: Session, branch_id: int) -> DBBranches:
    branch = db.get(DBBranches, branch_id)
    if not branch:
        raise NotFoundError("Branch not found")
    return branch


def _calendar_day(day: date, branch: DBBranches) -> tuple[datetime, datetime]:
    """Local calendar day, stretched to the closing time of overnight branches."""
    config = get_booking_config()
    midnight = local_instant(day, (0, 0), config.tz)
    _, close = day_bounds(day, branch.open_time, branch.close_time, config)
    return midnight, max(midnight + timedelta(days=1), close)


@router.get("/stats", response_model=StatsResponse, dependencies=[Depends(require_admin)])
def get_stats(
    branch_id: int,
    target_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    now = datetime.now(timezone.utc)
    day = parse_query_date(target_date) if target_date else business_today(now)
    branch = _get_branch(db, branch_id)
    day_start, day_end = _calendar_day(day, branch)

    base = (
        db.query(DBReservations)
        .join(DBRooms, DBReservations.room_id == DBRooms.id)
        .filter(DBRooms.branch_id == branch.id)
    )

    day_rows = (
        base.filter(
            DBReservations.status != "cancelled",
            DBReservations.start_time >= day_start,
            DBReservations.start_time < day_end,
        )
        .all()
    )
    in_use_rooms = (
        base.filter(
            DBReservations.status.notin_(["cancelled", "completed"]),
            DBReservations.start_time <= now,
            DBReservations.end_time > now,
        )
        .with_entities(func.count(func.distinct(DBReservations.room_id)))
        .scalar()
    )
    total_rooms = db.query(func.count(DBRooms.id)).filter(DBRooms.branch_id == branch.id).scalar()

    return StatsResponse(
        date=day,
        today_count=len(day_rows),
        today_revenue=round(sum(r.total_price or 0 for r in day_rows)),
        rooms_in_use_count=in_use_rooms or 0,
        total_rooms=total_rooms or 0,
    )


@router.get("/timeline", response_model=TimelineResponse, dependencies=[Depends(require_admin)])
def get_timeline(
    branch_id: int,
    target_date: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
):
    """Per-room reservations intersecting the day, every status included."""
    config = get_booking_config()
    day = parse_query_date(target_date) if target_date else business_today(datetime.now(timezone.utc))
    branch = _get_branch(db, branch_id)
    day_start, day_end = _calendar_day(day, branch)

    rooms = (
        db.query(DBRooms)
        .filter(DBRooms.branch_id == branch.id)
        .order_by(DBRooms.name)
        .all()
    )
    reservations = (
        db.query(DBReservations)
        .filter(
            DBReservations.room_id.in_([r.id for r in rooms]),
            DBReservations.start_time < day_end,
            DBReservations.end_time > day_start,
        )
        .order_by(DBReservations.start_time)
        .all()
    ) if rooms else []

    by_room: dict[int, list[DBReservations]] = {}
    for r in reservations:
        by_room.setdefault(r.room_id, []).append(r)

    return TimelineResponse(
        date=day,
        branch_name=branch.name,
        open_time=branch.open_time or hm_to_time_str(config.default_open),
        close_time=branch.close_time or hm_to_time_str(config.default_close),
        rooms=[
            TimelineRoom(
                room_id=room.id,
                room_name=room.name,
                reservations=[TimelineReservation.model_validate(r) for r in by_room.get(room.id, [])],
            )
            for room in rooms
        ],
    )


# ──────────────────────────────────────────────────────────────────────────────
# LINE reminders
# ──────────────────────────────────────────────────────────────────────────────

def get_notifier() -> LineNotifier:
    return LineNotifier()


@router.get(
    "/reminders",
    response_model=list[ReminderItem],
    dependencies=[Depends(require_admin)],
)
def list_reminders(db: Session = Depends(get_db)):
    """Tomorrow's reservations still waiting for a reminder."""
    return fetch_tomorrow_reservations(db)


@router.api_route(
    "/reminders/send-line",
    methods=["GET", "POST"],
    response_model=ReminderSendResponse,
    dependencies=[Depends(require_admin_or_cron)],
)
def send_line_reminders(
    db: Session = Depends(get_db),
    notifier: LineNotifier = Depends(get_notifier),
):
    """GET is the cron entry point (Bearer CRON_SECRET); POST is the manual button."""
    sent = send_tomorrow_reminders(db, notifier)
    return ReminderSendResponse(sent=sent)


@router.patch("/reminders/{id}", dependencies=[Depends(require_admin)])
def mark_reminder_sent(id: int, db: Session = Depends(get_db)):
    if not mark_notified(db, id):
        raise HTTPException(status_code=404, detail="Reservation not found")
    return {"ok": True}
