# backend/roombooking/services/line_notify.py
"""
LINE Messaging API push client and reminder message formatting.
"""

import logging
from datetime import date, datetime
from typing import Optional, Sequence

import httpx

from ..config import settings
from ..errors import NotificationError
from .slots.config import BookingConfig, get_booking_config

logger = logging.getLogger(__name__)

LINE_PUSH_URL = "https://api.line.me/v2/bot/message/push"
SEPARATOR = "─" * 20


class LineNotifier:
    """Pushes text messages to one LINE group."""

    def __init__(
        self,
        token: Optional[str] = None,
        group_id: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.token = token if token is not None else settings.line_channel_access_token
        self.group_id = group_id if group_id is not None else settings.line_group_id
        self.timeout = timeout if timeout is not None else settings.line_timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.token and self.group_id)

    def push(self, text: str) -> None:
        if not self.configured:
            raise NotificationError(
                "LINE is not configured: set LINE_CHANNEL_ACCESS_TOKEN and LINE_GROUP_ID"
            )

        body = {"to": self.group_id, "messages": [{"type": "text", "text": text}]}
        headers = {"Authorization": f"Bearer {self.token}"}

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.post(LINE_PUSH_URL, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"LINE push failed: {e}")
            raise NotificationError(f"LINE push failed: {e}") from e

        if resp.status_code >= 400:
            logger.error(f"LINE API error: {resp.status_code} {resp.text}")
            raise NotificationError(f"LINE API error ({resp.status_code}): {resp.text}")

        logger.info(f"LINE message pushed to group ({len(text)} chars)")


def format_reminder_message(
    items: Sequence[dict],
    target_date: date,
    config: Optional[BookingConfig] = None,
) -> str:
    """
    Next-day reminder for staff.

    items: dicts with customer_name, phone, branch_name, room_name,
    start_time, end_time (aware datetimes) and optional guest_count.
    """
    config = config or get_booking_config()
    day = target_date.strftime("%Y/%m/%d")

    if not items:
        return f"📋 No bookings for {day}, no rooms to prepare."

    def fmt(dt: datetime) -> str:
        return dt.astimezone(config.tz).strftime("%H:%M")

    lines = [
        f"📅 Bookings for tomorrow ({day})",
        f"{len(items)} in total",
        SEPARATOR,
    ]
    for item in items:
        lines.extend([
            "",
            f"👤 {item['customer_name']}｜📞 {item['phone']}",
            f"🏠 {item['branch_name']} / {item['room_name']}",
            f"🕐 {fmt(item['start_time'])} ~ {fmt(item['end_time'])}",
        ])
        if item.get("guest_count"):
            lines.append(f"👥 {item['guest_count']} guests")

    return "\n".join(lines)
