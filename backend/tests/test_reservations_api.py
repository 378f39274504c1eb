import json
from datetime import datetime, timedelta, timezone

from roombooking.models import Reservations
from roombooking.services.reservations import BOOKING_CODE_ALPHABET, BOOKING_CODE_LENGTH

from .conftest import local, parse_instant


def booking(room, start, end, **extra):
    return {
        "room_id": room.id,
        "customer_name": "Alice",
        "phone": "0912 345 678",
        "start_time": start.isoformat(),
        "end_time": end.isoformat(),
        **extra,
    }


def test_create_reservation(client, room, fake_redis):
    resp = client.post(
        "/reservations/",
        json=booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16), guest_count=4),
    )

    assert resp.status_code == 201, resp.text
    body = resp.json()
    assert body["status"] == "pending"
    assert body["total_price"] == 400  # 2h on a Tuesday at 200/h
    assert len(body["booking_code"]) == BOOKING_CODE_LENGTH
    assert set(body["booking_code"]) <= set(BOOKING_CODE_ALPHABET)

    [event] = fake_redis.lists["events:p2p"]
    assert json.loads(event)["type"] == "reservation_created"


def test_public_booking_cannot_pick_status_or_price(client, room, db):
    resp = client.post(
        "/reservations/",
        json=booking(
            room, local(2030, 1, 5, 14), local(2030, 1, 5, 16),
            status="confirmed", total_price=1,
        ),
    )

    assert resp.status_code == 201
    obj = db.get(Reservations, resp.json()["id"])
    assert obj.status == "pending"
    assert obj.total_price == 600  # Saturday rate
    assert obj.phone == "0912345678"


def test_sequential_overlapping_booking_is_rejected(client, room):
    first = client.post("/reservations/", json=booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16)))
    assert first.status_code == 201

    clash = client.post(
        "/reservations/", json=booking(room, local(2030, 1, 1, 15), local(2030, 1, 1, 15, 30))
    )
    assert clash.status_code == 409
    assert "another time" in clash.json()["detail"]

    after = client.post("/reservations/", json=booking(room, local(2030, 1, 1, 16), local(2030, 1, 1, 17)))
    assert after.status_code == 201


def test_same_slot_in_another_room_is_fine(client, room, other_room):
    client.post("/reservations/", json=booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16)))

    resp = client.post(
        "/reservations/", json=booking(other_room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))
    )
    assert resp.status_code == 201


def test_cancelled_reservation_frees_the_slot(client, room, make_reservation):
    make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16), status="cancelled")

    resp = client.post("/reservations/", json=booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16)))
    assert resp.status_code == 201


def test_too_long_booking_is_rejected(client, room):
    resp = client.post("/reservations/", json=booking(room, local(2030, 1, 1, 9), local(2030, 1, 1, 18)))

    assert resp.status_code == 400
    assert "8 hours" in resp.json()["detail"]


def test_end_before_start_is_rejected(client, room):
    resp = client.post("/reservations/", json=booking(room, local(2030, 1, 1, 16), local(2030, 1, 1, 16)))

    assert resp.status_code == 400


def test_unknown_room_is_not_found(client, room):
    payload = booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))
    payload["room_id"] = room.id + 999

    resp = client.post("/reservations/", json=payload)
    assert resp.status_code == 404


def test_naive_timestamps_are_rejected(client, room):
    payload = booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))
    payload["start_time"] = "2030-01-01T14:00:00"

    resp = client.post("/reservations/", json=payload)
    assert resp.status_code == 422


def test_missing_customer_name_is_rejected(client, room):
    payload = booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16), customer_name="   ")

    resp = client.post("/reservations/", json=payload)
    assert resp.status_code == 422


def test_utc_input_is_equivalent_to_local(client, room):
    client.post("/reservations/", json=booking(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16)))

    # 07:00Z == 15:00 at UTC+8
    start = datetime(2030, 1, 1, 7, tzinfo=timezone.utc)
    resp = client.post("/reservations/", json=booking(room, start, start + timedelta(hours=1)))
    assert resp.status_code == 409


# ── Staff operations ─────────────────────────────────────────────────────


def test_staff_endpoints_require_session(client, room, make_reservation):
    obj = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))

    assert client.get(f"/reservations/{obj.id}").status_code == 401
    assert client.patch(f"/reservations/{obj.id}", json={"notes": "x"}).status_code == 401
    assert client.delete(f"/reservations/{obj.id}").status_code == 401


def test_status_follows_state_machine(admin_client, room, make_reservation):
    obj = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16), status="pending")

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"status": "completed"})
    assert resp.status_code == 403

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"status": "confirmed"})
    assert resp.status_code == 200
    assert resp.json()["status"] == "confirmed"

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"status": "checked_in"})
    assert resp.json()["status"] == "checked_in"

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"status": "completed"})
    assert resp.json()["status"] == "completed"

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"status": "cancelled"})
    assert resp.status_code == 403


def test_moving_a_reservation_over_itself_is_allowed(admin_client, room, make_reservation):
    obj = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))

    resp = admin_client.patch(
        f"/reservations/{obj.id}",
        json={"start_time": local(2030, 1, 1, 15).isoformat(), "end_time": local(2030, 1, 1, 17).isoformat()},
    )

    assert resp.status_code == 200, resp.text
    assert parse_instant(resp.json()["start_time"]) == local(2030, 1, 1, 15)


def test_moving_onto_another_reservation_conflicts(admin_client, room, make_reservation):
    obj = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))
    make_reservation(room, local(2030, 1, 1, 17), local(2030, 1, 1, 18))

    resp = admin_client.patch(
        f"/reservations/{obj.id}", json={"end_time": local(2030, 1, 1, 17, 30).isoformat()}
    )

    assert resp.status_code == 409


def test_patch_cannot_null_required_fields(admin_client, room, make_reservation):
    obj = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))

    resp = admin_client.patch(f"/reservations/{obj.id}", json={"customer_name": None})
    assert resp.status_code == 400


def test_staff_delete_is_hard(admin_client, room, make_reservation, db):
    reservation_id = make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16)).id

    assert admin_client.delete(f"/reservations/{reservation_id}").status_code == 204
    db.expire_all()
    assert db.get(Reservations, reservation_id) is None
    assert admin_client.get(f"/reservations/{reservation_id}").status_code == 404
