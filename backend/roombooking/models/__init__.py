from .generated import Base, Branches, Reservations, Rooms, RESERVATION_STATUSES

__all__ = ["Base", "Branches", "Reservations", "Rooms", "RESERVATION_STATUSES"]
