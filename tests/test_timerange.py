from datetime import date, datetime

import pytest

from salon.core.errors import BookingValidationError
from salon.core.timerange import TimeRange, overlaps, parse_hhmm

DAY = date(2030, 1, 7)


def test_end_is_start_plus_duration():
    r = TimeRange.from_booking(DAY, "10:00", 45)

    assert r.start == datetime(2030, 1, 7, 10, 0)
    assert r.end == datetime(2030, 1, 7, 10, 45)
    assert r.start_time == "10:00"
    assert r.end_time == "10:45"
    assert r.date == DAY


def test_stored_range_round_trips_hhmm():
    r = TimeRange.from_stored(DAY, "09:30", "11:00")
    assert (r.start_time, r.end_time) == ("09:30", "11:00")


@pytest.mark.parametrize("value", ["25:00", "10:60", "ten", "", None])
def test_invalid_start_time(value):
    with pytest.raises(BookingValidationError):
        parse_hhmm(value)


@pytest.mark.parametrize("duration", [0, -15, None])
def test_duration_must_be_positive(duration):
    with pytest.raises(BookingValidationError):
        TimeRange.from_booking(DAY, "10:00", duration)


def test_cannot_run_past_midnight():
    with pytest.raises(BookingValidationError):
        TimeRange.from_booking(DAY, "23:30", 60)
    with pytest.raises(BookingValidationError):
        TimeRange.from_booking(DAY, "23:00", 60)

    assert TimeRange.from_booking(DAY, "22:59", 60).end_time == "23:59"


def test_half_open_overlap():
    a = TimeRange.from_booking(DAY, "10:00", 60)
    touching = TimeRange.from_booking(DAY, "11:00", 60)
    inside = TimeRange.from_booking(DAY, "10:15", 15)

    assert not a.overlaps(touching)
    assert not touching.overlaps(a)
    assert a.overlaps(inside)
    assert overlaps(1, 3, 2, 4)
    assert not overlaps(1, 2, 2, 3)
