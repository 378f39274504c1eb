import json
from datetime import date, datetime, timedelta, timezone

import httpx
import pytest

from roombooking import redis_client as redis_module
from roombooking.config import settings
from roombooking.errors import NotificationError
from roombooking.main import app
from roombooking.models import Reservations
from roombooking.routers.admin import get_notifier
from roombooking.services import reminder_checker
from roombooking.services.line_notify import LINE_PUSH_URL, LineNotifier, format_reminder_message
from roombooking.services.reminder_checker import fetch_tomorrow_reservations, send_tomorrow_reminders
from roombooking.services.slots import business_today
from roombooking.services.slots.calculator import local_instant

from .conftest import local

NOW = local(2030, 1, 1, 20, 30)


class LineRecorder:
    """httpx MockTransport handler capturing pushed messages."""

    def __init__(self, status_code=200):
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    @property
    def texts(self):
        return [json.loads(r.content)["messages"][0]["text"] for r in self.requests]


@pytest.fixture
def line():
    return LineRecorder()


@pytest.fixture
def notifier(line):
    return LineNotifier(token="token", group_id="group", transport=httpx.MockTransport(line))


def test_fetch_only_tomorrow_unnotified(db, room, make_reservation, config):
    wanted = make_reservation(room, local(2030, 1, 2, 10), local(2030, 1, 2, 12))
    make_reservation(room, local(2030, 1, 2, 13), local(2030, 1, 2, 14), is_notified=True)
    make_reservation(room, local(2030, 1, 2, 15), local(2030, 1, 2, 16), status="cancelled")
    make_reservation(room, local(2030, 1, 1, 21), local(2030, 1, 1, 22))
    make_reservation(room, local(2030, 1, 3, 0, 30), local(2030, 1, 3, 1))

    items = fetch_tomorrow_reservations(db, now=NOW, config=config)

    assert [i["id"] for i in items] == [wanted.id]
    assert items[0]["room_name"] == "Room A"
    assert items[0]["branch_name"] == "Xinyi"


def test_send_pushes_and_marks_notified(db, room, make_reservation, config, notifier, line):
    obj = make_reservation(room, local(2030, 1, 2, 10), local(2030, 1, 2, 12), customer_name="Bob")

    sent = send_tomorrow_reminders(db, notifier, now=NOW, config=config)

    assert sent == 1
    [request] = line.requests
    assert str(request.url) == LINE_PUSH_URL
    assert request.headers["Authorization"] == "Bearer token"
    assert json.loads(request.content)["to"] == "group"
    assert "Bob" in line.texts[0]
    assert "10:00 ~ 12:00" in line.texts[0]

    db.refresh(obj)
    assert obj.is_notified is True
    assert fetch_tomorrow_reservations(db, now=NOW, config=config) == []


def test_push_failure_marks_nothing(db, room, make_reservation, config):
    obj = make_reservation(room, local(2030, 1, 2, 10), local(2030, 1, 2, 12))
    failing = LineNotifier(
        token="token", group_id="group", transport=httpx.MockTransport(LineRecorder(500))
    )

    with pytest.raises(NotificationError):
        send_tomorrow_reminders(db, failing, now=NOW, config=config)

    db.refresh(obj)
    assert obj.is_notified is False


def test_unconfigured_notifier_refuses(config):
    with pytest.raises(NotificationError):
        LineNotifier(token="", group_id="").push("hello")


def test_empty_day_message(config):
    text = format_reminder_message([], date(2030, 1, 2), config)

    assert "2030/01/02" in text
    assert "No bookings" in text


def test_daily_loop_sends_once_per_day(db, session_factory, room, make_reservation, monkeypatch, fake_redis, line):
    make_reservation(room, local(2030, 1, 2, 10), local(2030, 1, 2, 12))
    monkeypatch.setattr(reminder_checker, "SessionLocal", session_factory)
    monkeypatch.setattr(
        reminder_checker,
        "LineNotifier",
        lambda: LineNotifier(token="token", group_id="group", transport=httpx.MockTransport(line)),
    )

    reminder_checker._run_daily_reminder(now=NOW)
    reminder_checker._run_daily_reminder(now=NOW + timedelta(minutes=5))

    assert len(line.requests) == 1
    assert fake_redis.get("reminder:sent:2030-01-01") == "1"


def test_daily_loop_waits_for_reminder_hour(monkeypatch, fake_redis, line):
    monkeypatch.setattr(settings, "reminder_hour", 20)

    reminder_checker._run_daily_reminder(now=local(2030, 1, 1, 19, 59))

    assert fake_redis.data == {}
    assert line.requests == []


def test_daily_loop_releases_claim_on_failure(db, session_factory, room, make_reservation, monkeypatch, fake_redis):
    make_reservation(room, local(2030, 1, 2, 10), local(2030, 1, 2, 12))
    monkeypatch.setattr(reminder_checker, "SessionLocal", session_factory)
    monkeypatch.setattr(
        reminder_checker,
        "LineNotifier",
        lambda: LineNotifier(token="token", group_id="group", transport=httpx.MockTransport(LineRecorder(500))),
    )

    with pytest.raises(NotificationError):
        reminder_checker._run_daily_reminder(now=NOW)

    assert fake_redis.get("reminder:sent:2030-01-01") is None


def test_daily_loop_needs_redis(monkeypatch, line):
    monkeypatch.setattr(redis_module, "redis_client", None)
    monkeypatch.setattr(
        reminder_checker,
        "LineNotifier",
        lambda: LineNotifier(token="token", group_id="group", transport=httpx.MockTransport(line)),
    )

    reminder_checker._run_daily_reminder(now=NOW)

    assert line.requests == []


# ── HTTP ─────────────────────────────────────────────────────────────────


def tomorrow_at(hour):
    tomorrow = business_today(datetime.now(timezone.utc)) + timedelta(days=1)
    return local_instant(tomorrow, (hour, 0), timezone(timedelta(hours=8)))


@pytest.fixture
def line_override(notifier):
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield
    app.dependency_overrides.pop(get_notifier, None)


def test_list_and_send_endpoints(admin_client, room, make_reservation, line_override, line, db):
    obj = make_reservation(room, tomorrow_at(10), tomorrow_at(12))

    listed = admin_client.get("/admin/reminders")
    assert [i["id"] for i in listed.json()] == [obj.id]

    resp = admin_client.post("/admin/reminders/send-line")
    assert resp.status_code == 200, resp.text
    assert resp.json() == {"ok": True, "sent": 1}
    assert len(line.requests) == 1

    db.expire_all()
    assert db.get(Reservations, obj.id).is_notified is True


def test_cron_secret_can_trigger_send(client, room, make_reservation, line_override, line, monkeypatch):
    monkeypatch.setattr(settings, "cron_secret", "cron-token")
    make_reservation(room, tomorrow_at(10), tomorrow_at(12))

    denied = client.get("/admin/reminders/send-line", headers={"Authorization": "Bearer wrong"})
    assert denied.status_code == 401

    resp = client.get("/admin/reminders/send-line", headers={"Authorization": "Bearer cron-token"})
    assert resp.status_code == 200
    assert resp.json()["sent"] == 1


def test_line_failure_is_bad_gateway(admin_client, room, make_reservation):
    failing = LineNotifier(
        token="token", group_id="group", transport=httpx.MockTransport(LineRecorder(500))
    )
    app.dependency_overrides[get_notifier] = lambda: failing
    make_reservation(room, tomorrow_at(10), tomorrow_at(12))

    resp = admin_client.post("/admin/reminders/send-line")

    assert resp.status_code == 502


def test_mark_single_reminder(admin_client, room, make_reservation, db):
    obj = make_reservation(room, tomorrow_at(10), tomorrow_at(12))

    assert admin_client.patch(f"/admin/reminders/{obj.id}").status_code == 200
    assert admin_client.patch("/admin/reminders/9999").status_code == 404

    db.expire_all()
    assert db.get(Reservations, obj.id).is_notified is True
