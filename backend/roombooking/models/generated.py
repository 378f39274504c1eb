from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DDL,
    Float,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    event,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

from .types import UTCDateTime

Base = declarative_base()
metadata = Base.metadata

RESERVATION_STATUSES = ("pending", "confirmed", "checked_in", "completed", "cancelled")


class Branches(Base):
    __tablename__ = 'branches'

    id = Column(Integer, primary_key=True)
    name = Column(Text, nullable=False)
    address = Column(Text)
    phone = Column(Text)
    open_time = Column(Text)   # "HH:MM", NULL -> default
    close_time = Column(Text)  # "HH:MM", NULL -> default
    created_at = Column(UTCDateTime, server_default=text('CURRENT_TIMESTAMP'))

    rooms = relationship(
        'Rooms',
        back_populates='branch',
        cascade='all, delete-orphan',
        passive_deletes=True,
        order_by='Rooms.name',
    )


class Rooms(Base):
    __tablename__ = 'rooms'
    __table_args__ = (
        UniqueConstraint('branch_id', 'name'),
    )

    id = Column(Integer, primary_key=True)
    branch_id = Column(ForeignKey('branches.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(Text, nullable=False)
    type = Column(Text)
    capacity = Column(Integer, nullable=False, server_default=text('1'))
    price_weekday = Column(Float, nullable=False, server_default=text('0'))
    price_weekend = Column(Float, nullable=False, server_default=text('0'))
    image_url = Column(Text)
    created_at = Column(UTCDateTime, server_default=text('CURRENT_TIMESTAMP'))

    branch = relationship('Branches', back_populates='rooms')
    reservations = relationship(
        'Reservations',
        back_populates='room',
        cascade='all, delete-orphan',
        passive_deletes=True,
    )


class Reservations(Base):
    __tablename__ = 'reservations'
    __table_args__ = (
        CheckConstraint('end_time > start_time', name='reservations_time_order'),
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'checked_in', 'completed', 'cancelled')",
            name='reservations_status_valid',
        ),
        Index('ix_reservations_room_start', 'room_id', 'start_time'),
    )

    id = Column(Integer, primary_key=True)
    room_id = Column(ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False)
    customer_name = Column(Text, nullable=False)
    phone = Column(Text, nullable=False, index=True)
    email = Column(Text)
    start_time = Column(UTCDateTime, nullable=False)
    end_time = Column(UTCDateTime, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    total_price = Column(Float)
    guest_count = Column(Integer)
    notes = Column(Text)
    booking_code = Column(Text, nullable=False, unique=True)
    is_notified = Column(Boolean, nullable=False, default=False, server_default=text('false'))
    created_at = Column(UTCDateTime, server_default=text('CURRENT_TIMESTAMP'))

    room = relationship('Rooms', back_populates='reservations')


# SQLite has no exclusion constraints; these triggers reject an overlapping
# non-cancelled reservation of the same room inside the write transaction.
SQLITE_NO_OVERLAP_TRIGGERS = (
    """
    CREATE TRIGGER reservations_no_room_overlap_insert
    BEFORE INSERT ON reservations
    WHEN NEW.status <> 'cancelled' AND EXISTS (
        SELECT 1 FROM reservations r
        WHERE r.room_id = NEW.room_id
          AND r.status <> 'cancelled'
          AND r.start_time < NEW.end_time
          AND r.end_time > NEW.start_time
    )
    BEGIN
        SELECT RAISE(ABORT, 'reservations_no_room_overlap');
    END
    """,
    """
    CREATE TRIGGER reservations_no_room_overlap_update
    BEFORE UPDATE OF room_id, start_time, end_time, status ON reservations
    WHEN NEW.status <> 'cancelled' AND EXISTS (
        SELECT 1 FROM reservations r
        WHERE r.room_id = NEW.room_id
          AND r.id <> NEW.id
          AND r.status <> 'cancelled'
          AND r.start_time < NEW.end_time
          AND r.end_time > NEW.start_time
    )
    BEGIN
        SELECT RAISE(ABORT, 'reservations_no_room_overlap');
    END
    """,
)

for _trigger in SQLITE_NO_OVERLAP_TRIGGERS:
    event.listen(
        Reservations.__table__,
        "after_create",
        DDL(_trigger).execute_if(dialect="sqlite"),
    )
