# salon/core/__init__.py

from .timerange import TimeRange, overlaps
from .overlap import has_conflict
from .availability import Slot, generate_slots
from .lifecycle import BookingManager

__all__ = [
    "TimeRange",
    "overlaps",
    "has_conflict",
    "Slot",
    "generate_slots",
    "BookingManager",
]
