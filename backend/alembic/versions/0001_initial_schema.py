"""Initial schema: branches, rooms, reservations.

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
import sqlalchemy as sa
from alembic import op

from roombooking.models.types import UTCDateTime

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "branches",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("address", sa.Text),
        sa.Column("phone", sa.Text),
        sa.Column("open_time", sa.Text),
        sa.Column("close_time", sa.Text),
        sa.Column("created_at", UTCDateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_table(
        "rooms",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "branch_id",
            sa.Integer,
            sa.ForeignKey("branches.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        ),
        sa.Column("name", sa.Text, nullable=False),
        sa.Column("type", sa.Text),
        sa.Column("capacity", sa.Integer, nullable=False, server_default=sa.text("1")),
        sa.Column("price_weekday", sa.Float, nullable=False, server_default=sa.text("0")),
        sa.Column("price_weekend", sa.Float, nullable=False, server_default=sa.text("0")),
        sa.Column("image_url", sa.Text),
        sa.Column("created_at", UTCDateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("branch_id", "name"),
    )
    op.create_table(
        "reservations",
        sa.Column("id", sa.Integer, primary_key=True),
        sa.Column(
            "room_id",
            sa.Integer,
            sa.ForeignKey("rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("customer_name", sa.Text, nullable=False),
        sa.Column("phone", sa.Text, nullable=False, index=True),
        sa.Column("email", sa.Text),
        sa.Column("start_time", UTCDateTime, nullable=False),
        sa.Column("end_time", UTCDateTime, nullable=False),
        sa.Column("status", sa.Text, nullable=False, server_default=sa.text("'pending'")),
        sa.Column("total_price", sa.Float),
        sa.Column("guest_count", sa.Integer),
        sa.Column("notes", sa.Text),
        sa.Column("booking_code", sa.Text, nullable=False, unique=True),
        sa.Column("is_notified", sa.Boolean, nullable=False, server_default=sa.text("false")),
        sa.Column("created_at", UTCDateTime, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("end_time > start_time", name="reservations_time_order"),
        sa.CheckConstraint(
            "status IN ('pending', 'confirmed', 'checked_in', 'completed', 'cancelled')",
            name="reservations_status_valid",
        ),
    )
    op.create_index("ix_reservations_room_start", "reservations", ["room_id", "start_time"])


def downgrade() -> None:
    op.drop_index("ix_reservations_room_start", table_name="reservations")
    op.drop_table("reservations")
    op.drop_table("rooms")
    op.drop_table("branches")
