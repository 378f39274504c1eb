"""
Bootstrap the first branch and its rooms.

Reads BRANCH_NAME, BRANCH_OPEN_TIME, BRANCH_CLOSE_TIME and ROOMS from the
environment (.env). ROOMS is a comma-separated list of
name:capacity:weekday_price:weekend_price entries, e.g.

    ROOMS=Room A:6:300:400,Room B:10:500:650

Idempotent: an existing branch with the same name is reused and existing
rooms are left untouched.
"""

import os

from dotenv import load_dotenv

load_dotenv()

from roombooking.database import SessionLocal  # noqa: E402
from roombooking.models import Branches, Rooms  # noqa: E402


# ======================================================
# ENV
# ======================================================

BRANCH_NAME = os.getenv("BRANCH_NAME")
BRANCH_OPEN_TIME = os.getenv("BRANCH_OPEN_TIME") or None
BRANCH_CLOSE_TIME = os.getenv("BRANCH_CLOSE_TIME") or None
ROOMS = os.getenv("ROOMS", "")

if not BRANCH_NAME:
    raise RuntimeError("BRANCH_NAME is not set")


def parse_rooms(raw: str) -> list[dict]:
    rooms = []
    for entry in filter(None, (part.strip() for part in raw.split(","))):
        fields = entry.split(":")
        if len(fields) != 4:
            raise RuntimeError(f"Invalid ROOMS entry: {entry!r}")
        name, capacity, weekday, weekend = fields
        rooms.append({
            "name": name.strip(),
            "capacity": int(capacity),
            "price_weekday": float(weekday),
            "price_weekend": float(weekend),
        })
    return rooms


# ======================================================
# MAIN LOGIC
# ======================================================

def main():
    db = SessionLocal()
    try:
        branch = db.query(Branches).filter(Branches.name == BRANCH_NAME).first()
        if not branch:
            branch = Branches(
                name=BRANCH_NAME,
                open_time=BRANCH_OPEN_TIME,
                close_time=BRANCH_CLOSE_TIME,
            )
            db.add(branch)
            db.flush()
            print(f"[BOOTSTRAP] Branch created: {BRANCH_NAME} (id={branch.id})")
        else:
            print(f"[BOOTSTRAP] Branch exists: {BRANCH_NAME} (id={branch.id})")

        existing = {room.name for room in branch.rooms}
        for data in parse_rooms(ROOMS):
            if data["name"] in existing:
                print(f"[BOOTSTRAP] Room exists: {data['name']}")
                continue
            db.add(Rooms(branch_id=branch.id, **data))
            print(f"[BOOTSTRAP] Room created: {data['name']}")

        db.commit()
    finally:
        db.close()


if __name__ == "__main__":
    main()
