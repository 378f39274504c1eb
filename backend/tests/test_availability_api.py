from roombooking.models import Branches, Rooms

from .conftest import local, parse_instant


def test_branch_availability(client, branch, room, other_room, make_reservation):
    make_reservation(room, local(2030, 1, 1, 14), local(2030, 1, 1, 16))

    resp = client.get("/availability/", params={"branch_id": branch.id, "date": "2030-01-01"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["branch_name"] == "Xinyi"
    assert [r["room_name"] for r in body["rooms"]] == ["Room A", "Room B"]

    room_a = body["rooms"][0]
    assert room_a["capacity"] == 6
    assert room_a["price_weekday"] == 200
    blocked = [parse_instant(s["start"]) for s in room_a["slots"] if not s["available"]]
    assert blocked == [local(2030, 1, 1, 14), local(2030, 1, 1, 15)]
    assert all(s["available"] for s in body["rooms"][1]["slots"])


def test_single_room_availability(client, branch, room):
    resp = client.get(
        "/availability/",
        params={"branch_id": branch.id, "date": "2030-01-01", "room_id": room.id},
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["room_name"] == "Room A"
    assert body["open_time"] == "09:00"
    assert body["close_time"] == "21:00"
    assert len(body["slots"]) == 12
    assert parse_instant(body["slots"][0]["start"]) == local(2030, 1, 1, 9)
    assert body["bookable_starts"] is None


def test_bookable_starts_for_duration(client, branch, room, make_reservation):
    make_reservation(room, local(2030, 1, 1, 11), local(2030, 1, 1, 20))

    resp = client.get(
        "/availability/",
        params={"branch_id": branch.id, "date": "2030-01-01", "room_id": room.id, "duration_hours": 2},
    )

    starts = [parse_instant(s) for s in resp.json()["bookable_starts"]]
    assert starts == [local(2030, 1, 1, 9)]


def test_invalid_date_format(client, branch):
    for value in ("2030/01/01", "01-01-2030", "2030-1-1"):
        resp = client.get("/availability/", params={"branch_id": branch.id, "date": value})
        assert resp.status_code == 400

    resp = client.get("/availability/", params={"branch_id": branch.id, "date": "2030-02-30"})
    assert resp.status_code == 400


def test_unknown_branch_or_foreign_room(client, db, branch):
    assert client.get("/availability/", params={"branch_id": 999, "date": "2030-01-01"}).status_code == 404

    elsewhere = Branches(name="Daan")
    db.add(elsewhere)
    db.commit()
    far_room = Rooms(branch_id=elsewhere.id, name="Far", capacity=2, price_weekday=1, price_weekend=1)
    db.add(far_room)
    db.commit()

    resp = client.get(
        "/availability/",
        params={"branch_id": branch.id, "date": "2030-01-01", "room_id": far_room.id},
    )
    assert resp.status_code == 404


def test_duration_longer_than_maximum(client, branch):
    resp = client.get(
        "/availability/", params={"branch_id": branch.id, "date": "2030-01-01", "duration_hours": 9}
    )

    assert resp.status_code == 400


def test_health_and_version(client):
    health = client.get("/health")
    assert health.status_code == 200
    assert health.json() == {"database": True, "redis": True}

    assert client.get("/version").json()["version"]
