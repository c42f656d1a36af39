# salon/core/overlap.py
#
# [S1, E1) and [S2, E2) overlap iff S1 < E2 and S2 < E1. Cancelled and no-show
# bookings never take part.

from datetime import date
from typing import Iterable, Optional

from .statuses import is_active
from .timerange import TimeRange


def booking_range(booking) -> TimeRange:
    return TimeRange.from_stored(booking.date, booking.start_time, booking.end_time)


def first_conflict(
    candidate: TimeRange,
    bookings: Iterable,
    exclude_booking_id: Optional[int] = None,
):
    """Return the first active booking overlapping ``candidate``, or None."""
    for b in bookings:
        if exclude_booking_id is not None and b.id == exclude_booking_id:
            continue
        if not is_active(b.status):
            continue
        if b.date != candidate.date:
            continue
        if candidate.overlaps(booking_range(b)):
            return b
    return None


def conflicts(
    candidate: TimeRange,
    bookings: Iterable,
    exclude_booking_id: Optional[int] = None,
) -> bool:
    return first_conflict(candidate, bookings, exclude_booking_id) is not None


def has_conflict(
    store,
    candidate: TimeRange,
    staff_id: Optional[int],
    exclude_booking_id: Optional[int] = None,
    user_id: Optional[int] = None,
) -> bool:
    """
    Check ``candidate`` against the existing bookings in ``store``.

    With a staff member the comparison set is that staff member's bookings on
    the candidate's date. Without one (any-staff booking) the requesting
    user's own bookings are used instead, so a customer cannot double-book
    themselves.
    """
    on_date: date = candidate.date

    if staff_id is not None:
        existing = store.bookings_for_staff(staff_id, on_date)
    elif user_id is not None:
        existing = store.bookings_for_user(user_id, on_date)
    else:
        raise ValueError("has_conflict needs a staff_id or a user_id")

    return conflicts(candidate, existing, exclude_booking_id)
