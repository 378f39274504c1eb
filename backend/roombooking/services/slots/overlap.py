# backend/roombooking/services/slots/overlap.py

from datetime import datetime


def overlaps(
    a_start: datetime,
    a_end: datetime,
    b_start: datetime,
    b_end: datetime,
) -> bool:
    """
    Half-open interval intersection of [a_start, a_end) and [b_start, b_end).

    Touching intervals do not overlap: a booking ending at 10:00 leaves a
    booking starting at 10:00 free.
    """
    return a_start < b_end and a_end > b_start
