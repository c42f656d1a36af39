# salon/core/availability.py
#
# Day end is exclusive: a slot that would run past closing time is not emitted.

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional

from .overlap import conflicts
from .timerange import TimeRange, parse_hhmm

DEFAULT_SLOT_MINUTES = 30


@dataclass(frozen=True)
class Slot:
    start: datetime
    end: datetime
    available: bool


def _hours_for(staff, on_date: date) -> Optional[dict]:
    hours = staff.working_hours or {}
    weekday = on_date.weekday()
    # JSON round-trips keys as strings
    return hours.get(str(weekday)) or hours.get(weekday)


def is_day_off(staff, on_date: date) -> bool:
    return on_date.isoformat() in (staff.days_off or [])


def working_window(staff, on_date: date) -> Optional[TimeRange]:
    """The staff member's working range on ``on_date``, or None when not working."""
    if not staff.is_active or is_day_off(staff, on_date):
        return None

    hours = _hours_for(staff, on_date)
    if not hours:
        return None

    start = datetime.combine(on_date, parse_hhmm(hours["start"]))
    end = datetime.combine(on_date, parse_hhmm(hours["end"]))
    if start >= end:
        return None
    return TimeRange(start=start, end=end)


def break_ranges(staff, on_date: date) -> List[TimeRange]:
    ranges = []
    for b in staff.breaks or []:
        weekday = b.get("weekday")
        if weekday is not None and int(weekday) != on_date.weekday():
            continue
        ranges.append(TimeRange.from_stored(on_date, b["start"], b["end"]))
    return ranges


def generate_slots(
    staff,
    on_date: date,
    bookings: Iterable,
    slot_minutes: int = DEFAULT_SLOT_MINUTES,
) -> List[Slot]:
    if slot_minutes <= 0:
        raise ValueError("slot_minutes must be positive")

    window = working_window(staff, on_date)
    if window is None:
        return []

    bookings = list(bookings)
    breaks = break_ranges(staff, on_date)
    slot_delta = timedelta(minutes=slot_minutes)

    slots = []
    current = window.start
    while current + slot_delta <= window.end:
        candidate = TimeRange(start=current, end=current + slot_delta)

        blocked = any(candidate.overlaps(b) for b in breaks)
        booked = conflicts(candidate, bookings)

        slots.append(Slot(start=candidate.start, end=candidate.end, available=not (blocked or booked)))
        current += slot_delta

    return slots
