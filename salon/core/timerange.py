# salon/core/timerange.py

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from .errors import BookingValidationError

TIME_FORMAT = "%H:%M"


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value, TIME_FORMAT).time()
    except (TypeError, ValueError):
        raise BookingValidationError(f"Invalid time '{value}', expected HH:MM")


def format_hhmm(value) -> str:
    return value.strftime(TIME_FORMAT)


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


@dataclass(frozen=True)
class TimeRange:
    """Half-open interval [start, end) in the salon's local (naive) time."""

    start: datetime
    end: datetime

    @property
    def date(self) -> date:
        return self.start.date()

    @property
    def start_time(self) -> str:
        return format_hhmm(self.start)

    @property
    def end_time(self) -> str:
        return format_hhmm(self.end)

    def overlaps(self, other: "TimeRange") -> bool:
        return overlaps(self.start, self.end, other.start, other.end)

    @classmethod
    def from_booking(cls, on_date: date, start_time: str, duration_minutes: int) -> "TimeRange":
        if duration_minutes is None or duration_minutes <= 0:
            raise BookingValidationError("Duration must be a positive number of minutes")

        start = datetime.combine(on_date, parse_hhmm(start_time))
        end = start + timedelta(minutes=duration_minutes)

        # HH:MM storage cannot represent an end on the next day
        if end.date() != start.date():
            raise BookingValidationError("Booking cannot extend past midnight")

        return cls(start=start, end=end)

    @classmethod
    def from_stored(cls, on_date: date, start_time: str, end_time: str) -> "TimeRange":
        start = datetime.combine(on_date, parse_hhmm(start_time))
        end = datetime.combine(on_date, parse_hhmm(end_time))
        return cls(start=start, end=end)
