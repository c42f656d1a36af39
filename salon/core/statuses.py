# salon/core/statuses.py

PENDING = "pending"
CONFIRMED = "confirmed"
COMPLETED = "completed"
CANCELLED = "cancelled"
NO_SHOW = "no-show"

ALL_STATUSES = (PENDING, CONFIRMED, COMPLETED, CANCELLED, NO_SHOW)

# bookings in these states never block a time range
INACTIVE_STATUSES = frozenset({CANCELLED, NO_SHOW})


def is_active(status: str) -> bool:
    return status not in INACTIVE_STATUSES
