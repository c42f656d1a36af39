import pytest
from sqlmodel import Session, select

from conftest import BOOKING_DAY, NOW, add_service, add_staff, add_user
from salon.core.errors import ConflictError, PersistenceError
from salon.core.lifecycle import BookingManager
from salon.db import create_tables, make_engine
from salon.models import Booking
from salon.repository import SqlBookingStore


@pytest.fixture
def file_engine(tmp_path):
    # short busy timeout so a blocked writer gives up quickly
    engine = make_engine(f"sqlite:///{tmp_path / 'salon.db'}", connect_args={"timeout": 0.2})
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def ids(file_engine):
    with Session(file_engine) as session:
        staff = add_staff(session)
        service = add_service(session, duration=60)
        alice = add_user(session, "alice@example.com")
        bob = add_user(session, "bob@example.com")
        return {"staff": staff.id, "service": service.id, "alice": alice.id, "bob": bob.id}


def test_second_writer_cannot_slip_in_between_check_and_insert(file_engine, ids):
    raced = []

    with Session(file_engine) as first_session, Session(file_engine) as second_session:
        first = BookingManager(SqlBookingStore(first_session), clock=lambda: NOW)
        second = BookingManager(SqlBookingStore(second_session), clock=lambda: NOW)

        read_bookings = first.store.bookings_for_staff

        def read_then_race(staff_id, on_date):
            rows = read_bookings(staff_id, on_date)
            # the first transaction already holds the write lock
            with pytest.raises(PersistenceError):
                second.create_booking(ids["bob"], ids["service"], ids["staff"], BOOKING_DAY, "10:30")
            raced.append(True)
            return rows

        first.store.bookings_for_staff = read_then_race
        first.create_booking(ids["alice"], ids["service"], ids["staff"], BOOKING_DAY, "10:00")

    assert raced == [True]

    with Session(file_engine) as session:
        rows = session.exec(select(Booking)).all()
        assert [(b.start_time, b.end_time) for b in rows] == [("10:00", "11:00")]

        # retrying after the first commit sees the overlap
        retry = BookingManager(SqlBookingStore(session), clock=lambda: NOW)
        with pytest.raises(ConflictError):
            retry.create_booking(ids["bob"], ids["service"], ids["staff"], BOOKING_DAY, "10:30")


def test_disjoint_bookings_from_two_sessions_both_land(file_engine, ids):
    with Session(file_engine) as session:
        BookingManager(SqlBookingStore(session), clock=lambda: NOW).create_booking(
            ids["alice"], ids["service"], ids["staff"], BOOKING_DAY, "10:00"
        )
    with Session(file_engine) as session:
        BookingManager(SqlBookingStore(session), clock=lambda: NOW).create_booking(
            ids["bob"], ids["service"], ids["staff"], BOOKING_DAY, "11:00"
        )

    with Session(file_engine) as session:
        starts = sorted(b.start_time for b in session.exec(select(Booking)).all())
        assert starts == ["10:00", "11:00"]
