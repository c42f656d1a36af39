from datetime import datetime
from decimal import Decimal

import pytest
from sqlalchemy.exc import OperationalError
from sqlmodel import select

from conftest import BOOKING_DAY, NOW, actor, add_service, add_staff, add_user
from salon.core.errors import (
    AlreadyPastError,
    AuthorizationError,
    BookingValidationError,
    ConflictError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
    PersistenceError,
)
from salon.core.lifecycle import BookingManager
from salon.core.timerange import format_hhmm
from salon.models import Booking


@pytest.fixture
def salon(session):
    staff = add_staff(session)
    return {
        "service": add_service(session, duration=60, price="40.00"),
        "staff": staff,
        "alice": add_user(session, "alice@example.com"),
        "bob": add_user(session, "bob@example.com"),
        "stylist": add_user(session, "stylist.login@salon.test", role="staff", staff_id=staff.id),
        "admin": add_user(session, "admin@salon.test", role="admin"),
    }


def book(manager, salon, start, user="alice", staff=True, day=BOOKING_DAY):
    return manager.create_booking(
        user_id=salon[user].id,
        service_id=salon["service"].id,
        staff_id=salon["staff"].id if staff else None,
        on_date=day,
        start_time=start,
    )


class TestCreate:
    def test_computes_end_and_snapshots_service(self, manager, salon, session):
        booking = book(manager, salon, "10:00")

        assert booking.id is not None
        assert (booking.start_time, booking.end_time) == ("10:00", "11:00")
        assert booking.status == "pending"
        assert booking.duration == 60
        assert booking.price == Decimal("40.00")

        # later price changes leave the booking alone
        salon["service"].price = Decimal("55.00")
        session.add(salon["service"])
        session.commit()
        session.refresh(booking)
        assert booking.price == Decimal("40.00")

    def test_confirmed_by_caller_policy(self, store, salon):
        manager = BookingManager(store, clock=lambda: NOW, default_status="confirmed")
        assert book(manager, salon, "10:00").status == "confirmed"

    def test_overlap_scenario(self, manager, salon):
        book(manager, salon, "10:00")

        with pytest.raises(ConflictError):
            book(manager, salon, "10:00", user="bob")
        with pytest.raises(ConflictError):
            book(manager, salon, "10:30", user="bob")

        assert book(manager, salon, "09:00", user="bob").end_time == "10:00"
        assert book(manager, salon, "11:00", user="bob").start_time == "11:00"

        slots = manager.get_availability(salon["staff"].id, BOOKING_DAY)
        assert [format_hhmm(s.start) for s in slots if not s.available] == [
            "09:00", "09:30", "10:00", "10:30", "11:00", "11:30",
        ]

    def test_bookings_stay_disjoint(self, manager, salon, store):
        for start in ["09:00", "09:30", "10:00", "10:15", "11:00", "11:45", "12:00", "13:00"]:
            try:
                book(manager, salon, start)
            except ConflictError:
                pass

        bookings = store.bookings_for_staff(salon["staff"].id, BOOKING_DAY)
        for a in bookings:
            for b in bookings:
                if a.id != b.id:
                    assert not (a.start_time < b.end_time and b.start_time < a.end_time)

    def test_missing_or_inactive_service(self, manager, salon, session):
        with pytest.raises(NotFoundError):
            manager.create_booking(salon["alice"].id, 999, salon["staff"].id, BOOKING_DAY, "10:00")

        retired = add_service(session, name="Perm", is_active=False)
        with pytest.raises(NotFoundError):
            manager.create_booking(salon["alice"].id, retired.id, salon["staff"].id, BOOKING_DAY, "10:00")

    def test_missing_or_inactive_staff(self, manager, salon, session):
        with pytest.raises(NotFoundError):
            manager.create_booking(salon["alice"].id, salon["service"].id, 999, BOOKING_DAY, "10:00")

        away = add_staff(session, email="away@salon.test", is_active=False)
        with pytest.raises(NotFoundError):
            manager.create_booking(salon["alice"].id, salon["service"].id, away.id, BOOKING_DAY, "10:00")

    def test_must_fit_working_hours(self, manager, salon):
        with pytest.raises(BookingValidationError):
            book(manager, salon, "16:30")
        with pytest.raises(BookingValidationError):
            book(manager, salon, "08:30")
        assert book(manager, salon, "16:00").end_time == "17:00"

    def test_day_off_and_breaks(self, manager, salon, session):
        staff = salon["staff"]
        staff.days_off = [BOOKING_DAY.isoformat()]
        staff.breaks = [{"start": "12:00", "end": "13:00"}]
        session.add(staff)
        session.commit()

        with pytest.raises(BookingValidationError):
            book(manager, salon, "10:00")

        next_day = BOOKING_DAY.replace(day=8)
        with pytest.raises(ConflictError):
            book(manager, salon, "12:30", day=next_day)
        assert book(manager, salon, "13:00", day=next_day)

    def test_cannot_book_in_the_past(self, manager, salon):
        with pytest.raises(BookingValidationError):
            book(manager, salon, "10:00", day=NOW.date().replace(year=2029))

    def test_any_staff_booking_checks_the_users_own_calendar(self, manager, salon):
        book(manager, salon, "10:00", staff=False)

        with pytest.raises(ConflictError):
            book(manager, salon, "10:30", staff=False)

        # another customer is unaffected
        assert book(manager, salon, "10:30", user="bob", staff=False).staff_id is None

    def test_notifies_after_success(self, manager, salon, notifier):
        booking = book(manager, salon, "10:00")
        with pytest.raises(ConflictError):
            book(manager, salon, "10:00")

        assert notifier.events == [("created", booking.id, salon["alice"].id)]


class TestReschedule:
    def test_to_own_interval_never_conflicts(self, manager, salon):
        booking = book(manager, salon, "10:00")

        moved = manager.reschedule_booking(booking.id, BOOKING_DAY, "10:00", actor(salon["alice"]))

        assert moved.id == booking.id
        assert moved.status == "confirmed"

    def test_partial_self_overlap_is_fine(self, manager, salon):
        booking = book(manager, salon, "10:00")
        moved = manager.reschedule_booking(booking.id, BOOKING_DAY, "10:30", actor(salon["alice"]))
        assert (moved.start_time, moved.end_time) == ("10:30", "11:30")

    def test_conflict_leaves_booking_untouched(self, manager, salon, session):
        booking = book(manager, salon, "10:00")
        book(manager, salon, "12:00", user="bob")

        with pytest.raises(ConflictError):
            manager.reschedule_booking(booking.id, BOOKING_DAY, "11:30", actor(salon["alice"]))

        session.expire_all()
        stored = session.get(Booking, booking.id)
        assert (stored.start_time, stored.end_time, stored.status) == ("10:00", "11:00", "pending")
        assert len(session.exec(select(Booking)).all()) == 2

    def test_uses_duration_snapshot(self, manager, salon, session):
        booking = book(manager, salon, "10:00")
        salon["service"].duration = 90
        session.add(salon["service"])
        session.commit()

        moved = manager.reschedule_booking(booking.id, BOOKING_DAY, "14:00", actor(salon["alice"]))
        assert moved.end_time == "15:00"

    def test_authorization(self, manager, salon):
        booking = book(manager, salon, "10:00")

        with pytest.raises(AuthorizationError):
            manager.reschedule_booking(booking.id, BOOKING_DAY, "14:00", actor(salon["bob"]))

        assert manager.reschedule_booking(booking.id, BOOKING_DAY, "14:00", actor(salon["stylist"]))
        assert manager.reschedule_booking(booking.id, BOOKING_DAY, "15:00", actor(salon["admin"]))

    def test_cancelled_booking_cannot_move(self, manager, salon):
        booking = book(manager, salon, "10:00")
        manager.cancel_booking(booking.id, None, actor(salon["alice"]))

        with pytest.raises(InvalidTransitionError):
            manager.reschedule_booking(booking.id, BOOKING_DAY, "14:00", actor(salon["alice"]))

    def test_missing_booking(self, manager, salon):
        with pytest.raises(NotFoundError):
            manager.reschedule_booking(404, BOOKING_DAY, "14:00", actor(salon["admin"]))


class TestCancel:
    def test_records_metadata_and_frees_slot(self, manager, salon):
        booking = book(manager, salon, "10:00")

        cancelled = manager.cancel_booking(booking.id, "Running late", actor(salon["alice"]))

        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_reason == "Running late"
        assert cancelled.cancelled_by == salon["alice"].id
        assert cancelled.cancelled_at == NOW

        again = book(manager, salon, "10:00", user="bob")
        assert again.id != booking.id

    def test_default_reason(self, manager, salon):
        booking = book(manager, salon, "10:00")
        assert manager.cancel_booking(booking.id, None, actor(salon["alice"])).cancellation_reason == "Cancelled by user"

    def test_past_booking_cannot_be_cancelled(self, manager, salon, store):
        booking = book(manager, salon, "10:00")
        later = BookingManager(store, clock=lambda: datetime(2030, 1, 7, 10, 30))

        with pytest.raises(AlreadyPastError):
            later.cancel_booking(booking.id, None, actor(salon["alice"]))

    def test_twice(self, manager, salon):
        booking = book(manager, salon, "10:00")
        manager.cancel_booking(booking.id, None, actor(salon["alice"]))

        with pytest.raises(InvalidTransitionError):
            manager.cancel_booking(booking.id, None, actor(salon["alice"]))

    def test_stranger_cannot_cancel(self, manager, salon):
        booking = book(manager, salon, "10:00")
        with pytest.raises(AuthorizationError):
            manager.cancel_booking(booking.id, None, actor(salon["bob"]))


class TestStatusUpdate:
    def test_staff_and_admin_move_through_states(self, manager, salon):
        booking = book(manager, salon, "10:00")

        assert manager.update_booking_status(booking.id, "confirmed", actor(salon["stylist"])).status == "confirmed"
        assert manager.update_booking_status(booking.id, "completed", actor(salon["admin"])).status == "completed"

    def test_owner_cannot_set_status(self, manager, salon):
        booking = book(manager, salon, "10:00")
        with pytest.raises(AuthorizationError):
            manager.update_booking_status(booking.id, "completed", actor(salon["alice"]))

    def test_unknown_status(self, manager, salon):
        booking = book(manager, salon, "10:00")
        with pytest.raises(InvalidStatusError):
            manager.update_booking_status(booking.id, "done", actor(salon["admin"]))

    def test_cancel_through_status_records_metadata(self, manager, salon):
        booking = book(manager, salon, "10:00")
        updated = manager.update_booking_status(booking.id, "cancelled", actor(salon["stylist"]), reason="Sick")

        assert updated.cancellation_reason == "Sick"
        assert updated.cancelled_by == salon["stylist"].id

    def test_no_show_frees_the_slot(self, manager, salon):
        booking = book(manager, salon, "10:00")
        manager.update_booking_status(booking.id, "no-show", actor(salon["admin"]))

        assert book(manager, salon, "10:00", user="bob").status == "pending"

    def test_reactivation_rechecks_overlap(self, manager, salon):
        first = book(manager, salon, "10:00")
        manager.cancel_booking(first.id, None, actor(salon["alice"]))
        book(manager, salon, "10:30", user="bob")

        with pytest.raises(ConflictError):
            manager.update_booking_status(first.id, "confirmed", actor(salon["admin"]))

    def test_reactivation_clears_cancellation(self, manager, salon):
        booking = book(manager, salon, "10:00")
        manager.cancel_booking(booking.id, "oops", actor(salon["alice"]))

        restored = manager.update_booking_status(booking.id, "confirmed", actor(salon["admin"]))
        assert restored.cancellation_reason is None
        assert restored.cancelled_at is None


class TestSideEffectsAndStore:
    def test_notification_failure_does_not_fail_the_booking(self, store, salon, session):
        class Broken:
            def booking_event(self, *args, **kwargs):
                raise RuntimeError("smtp down")

        manager = BookingManager(store, notifier=Broken(), clock=lambda: NOW)
        booking = book(manager, salon, "10:00")

        session.expire_all()
        assert session.get(Booking, booking.id) is not None

    def test_unique_index_backstop_becomes_conflict(self, manager, salon, store):
        book(manager, salon, "10:00")

        # a writer that skipped the overlap check still cannot double-book the start
        with pytest.raises(ConflictError):
            with store.atomic():
                store.new_booking(
                    user_id=salon["bob"].id,
                    service_id=salon["service"].id,
                    staff_id=salon["staff"].id,
                    date=BOOKING_DAY,
                    start_time="10:00",
                    end_time="11:00",
                    status="confirmed",
                    price=Decimal("40.00"),
                    duration=60,
                )

    def test_store_failure_is_not_a_domain_error(self, manager, salon, session, monkeypatch):
        def broken_commit():
            raise OperationalError("COMMIT", {}, Exception("connection lost"))

        monkeypatch.setattr(session, "commit", broken_commit)

        with pytest.raises(PersistenceError):
            book(manager, salon, "10:00")

    def test_timestamps_are_stored_as_naive_local_time(self, manager, salon, session):
        booking = book(manager, salon, "10:00")
        manager.cancel_booking(booking.id, None, actor(salon["alice"]))

        session.expire_all()
        stored = session.get(Booking, booking.id)
        assert stored.cancelled_at == NOW
        assert stored.updated_at == NOW
        assert stored.created_at.tzinfo is None

        for column in ("created_at", "updated_at", "cancelled_at"):
            assert Booking.__table__.c[column].type.timezone is False
