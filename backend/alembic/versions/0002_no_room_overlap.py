"""DB-level guard against overlapping room reservations.

Two non-cancelled reservations of the same room may not have intersecting
[start_time, end_time) ranges. A reservation ending at 10:00 and one
starting at 10:00 do not collide.

PostgreSQL gets an exclusion constraint over tstzrange('[)'). SQLite has no
range types, so BEFORE INSERT and BEFORE UPDATE triggers abort the write
instead; they run under the database write lock, after any concurrent
writer has committed.

Revision ID: 0002_no_room_overlap
Revises: 0001_initial_schema
Create Date: 2026-10-18
"""
from alembic import op

from roombooking.models.generated import SQLITE_NO_OVERLAP_TRIGGERS

revision = "0002_no_room_overlap"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None

CONSTRAINT = "reservations_no_room_overlap"
SQLITE_TRIGGER_NAMES = (
    "reservations_no_room_overlap_insert",
    "reservations_no_room_overlap_update",
)


def upgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == "sqlite":
        for statement in SQLITE_NO_OVERLAP_TRIGGERS:
            op.execute(statement)
        return
    if dialect != "postgresql":
        return
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        f"""
        ALTER TABLE reservations
        ADD CONSTRAINT {CONSTRAINT}
        EXCLUDE USING gist (
            room_id WITH =,
            tstzrange(start_time, end_time, '[)') WITH &&
        )
        WHERE (status <> 'cancelled')
        """
    )


def downgrade() -> None:
    dialect = op.get_bind().dialect.name
    if dialect == "sqlite":
        for name in SQLITE_TRIGGER_NAMES:
            op.execute(f"DROP TRIGGER IF EXISTS {name}")
        return
    if dialect != "postgresql":
        return
    op.execute(f"ALTER TABLE reservations DROP CONSTRAINT IF EXISTS {CONSTRAINT}")
    # btree_gist is kept: other indexes may depend on it.
