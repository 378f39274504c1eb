"""
Next-day booking reminders.

Collects tomorrow's (business timezone) reservations that were not notified
yet, pushes one summary message to the staff LINE group and flags the rows
with is_notified.

Triggered by the admin API (manual button or cron) or by
reminder_checker_loop, an asyncio task started in the app lifespan when
REMINDER_LOOP_ENABLED is set. Uses synchronous DB (via asyncio.to_thread).
"""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from .. import redis_client as redis_module
from ..config import settings
from ..database import SessionLocal
from ..models.generated import Branches, Reservations, Rooms
from .line_notify import LineNotifier, format_reminder_message
from .slots.calculator import business_today, local_instant
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

CHECK_INTERVAL = 300  # seconds between checks
SENT_KEY_TTL = 2 * 86400  # one send per business day


def tomorrow_bounds(
    now: datetime,
    config: Optional[BookingConfig] = None,
) -> tuple[date, datetime, datetime]:
    """Business-tz tomorrow as (date, start, end)."""
    config = config or get_booking_config()
    tomorrow = business_today(now, config) + timedelta(days=1)
    start = local_instant(tomorrow, (0, 0), config.tz)
    return tomorrow, start, start + timedelta(days=1)


def fetch_tomorrow_reservations(
    db: Session,
    now: Optional[datetime] = None,
    config: Optional[BookingConfig] = None,
) -> list[dict]:
    """Tomorrow's not-yet-notified, non-cancelled reservations with names."""
    now = now or datetime.now(timezone.utc)
    _, start, end = tomorrow_bounds(now, config)

    rows = (
        db.query(Reservations, Rooms.name, Branches.name)
        .join(Rooms, Reservations.room_id == Rooms.id)
        .join(Branches, Rooms.branch_id == Branches.id)
        .filter(
            Reservations.start_time >= start,
            Reservations.start_time < end,
            Reservations.is_notified.is_(False),
            Reservations.status != "cancelled",
        )
        .order_by(Reservations.start_time)
        .all()
    )

    return [
        {
            "id": r.id,
            "booking_code": r.booking_code,
            "room_name": room_name,
            "branch_name": branch_name,
            "start_time": r.start_time,
            "end_time": r.end_time,
            "customer_name": r.customer_name,
            "phone": r.phone,
            "email": r.email,
            "guest_count": r.guest_count,
        }
        for r, room_name, branch_name in rows
    ]


def send_tomorrow_reminders(
    db: Session,
    notifier: LineNotifier,
    now: Optional[datetime] = None,
    config: Optional[BookingConfig] = None,
) -> int:
    """
    Push tomorrow's summary and mark the included rows notified.

    Returns:
        Number of reservations included in the message.

    Raises:
        NotificationError: push failed; nothing is marked.
    """
    config = config or get_booking_config()
    now = now or datetime.now(timezone.utc)
    tomorrow, _, _ = tomorrow_bounds(now, config)

    items = fetch_tomorrow_reservations(db, now, config)
    notifier.push(format_reminder_message(items, tomorrow, config))

    if items:
        ids = [item["id"] for item in items]
        (
            db.query(Reservations)
            .filter(Reservations.id.in_(ids))
            .update({Reservations.is_notified: True}, synchronize_session=False)
        )
        db.commit()

    logger.info(f"Reminder sent for {tomorrow.isoformat()}: {len(items)} reservations")
    return len(items)


def mark_notified(db: Session, reservation_id: int) -> bool:
    updated = (
        db.query(Reservations)
        .filter(Reservations.id == reservation_id)
        .update({Reservations.is_notified: True}, synchronize_session=False)
    )
    db.commit()
    return updated > 0


# ── Background loop ──────────────────────────────────────────────────────


async def reminder_checker_loop() -> None:
    """
    Periodic loop: once the business clock passes REMINDER_HOUR, send
    tomorrow's reminders (once per day across workers).
    """
    logger.info("reminder_checker_loop started")

    try:
        while True:
            try:
                await asyncio.to_thread(_run_daily_reminder)
            except asyncio.CancelledError:
                logger.info("reminder_checker_loop cancelled")
                raise
            except Exception:
                logger.exception("reminder_checker_loop error")

            await asyncio.sleep(CHECK_INTERVAL)
    except asyncio.CancelledError:
        pass


def _run_daily_reminder(now: Optional[datetime] = None) -> None:
    """Send today's batch if due and not yet claimed (synchronous)."""
    config = get_booking_config()
    now = now or datetime.now(timezone.utc)
    local_now = now.astimezone(config.tz)
    if local_now.hour < settings.reminder_hour:
        return

    sent_key = f"reminder:sent:{local_now.date().isoformat()}"
    redis = redis_module.get_redis()
    if redis is None:
        logger.warning("Daily reminder skipped: Redis is required to dedup sends")
        return
    if not redis.set(sent_key, "1", nx=True, ex=SENT_KEY_TTL):
        return

    db = SessionLocal()
    try:
        send_tomorrow_reminders(db, LineNotifier(), now, config)
    except Exception:
        # release the claim so the next tick retries
        redis.delete(sent_key)
        raise
    finally:
        db.close()
