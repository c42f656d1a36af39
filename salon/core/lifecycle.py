# salon/core/lifecycle.py

import logging
from datetime import date, datetime
from typing import Callable, List, Optional

from . import policy
from .availability import DEFAULT_SLOT_MINUTES, Slot, break_ranges, generate_slots, working_window
from .errors import (
    AlreadyPastError,
    BookingValidationError,
    ConflictError,
    InvalidStatusError,
    InvalidTransitionError,
    NotFoundError,
)
from .overlap import booking_range, has_conflict
from .statuses import ALL_STATUSES, CANCELLED, COMPLETED, CONFIRMED, NO_SHOW, PENDING, is_active
from .store import BookingStore, Notifier
from .timerange import TimeRange

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "Cancelled by user"


class BookingManager:
    def __init__(
        self,
        store: BookingStore,
        notifier: Optional[Notifier] = None,
        clock: Callable[[], datetime] = datetime.now,
        default_status: str = PENDING,
        slot_minutes: int = DEFAULT_SLOT_MINUTES,
    ):
        if default_status not in (PENDING, CONFIRMED):
            raise ValueError("new bookings start as 'pending' or 'confirmed'")
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.default_status = default_status
        self.slot_minutes = slot_minutes

    # -- lookups --

    def get_booking(self, booking_id: int, actor: dict):
        booking = self._booking_or_404(booking_id)
        policy.authorize(actor, policy.VIEW, booking)
        return booking

    def get_availability(self, staff_id: int, on_date: date, slot_minutes: Optional[int] = None) -> List[Slot]:
        staff = self.store.get_staff(staff_id)
        if staff is None:
            raise NotFoundError(f"Staff member not found with id of {staff_id}")

        bookings = self.store.bookings_for_staff(staff_id, on_date)
        return generate_slots(staff, on_date, bookings, slot_minutes or self.slot_minutes)

    # -- operations --

    def create_booking(
        self,
        user_id: int,
        service_id: int,
        staff_id: Optional[int],
        on_date: date,
        start_time: str,
        notes: Optional[str] = None,
        status: Optional[str] = None,
    ):
        status = status or self.default_status
        if status not in (PENDING, CONFIRMED):
            raise InvalidStatusError("New bookings must be 'pending' or 'confirmed'")

        with self.store.atomic():
            # 1) Validate service
            service = self.store.get_service(service_id)
            if service is None or not service.is_active:
                raise NotFoundError(f"Service not found with id of {service_id}")

            # 2) Build the interval from the service duration
            interval = TimeRange.from_booking(on_date, start_time, service.duration)
            self._reject_past(interval)

            # 3) Validate staff and working hours
            if staff_id is not None:
                staff = self.store.get_staff(staff_id, for_update=True)
                if staff is None or not staff.is_active:
                    raise NotFoundError(f"Staff member not found with id of {staff_id}")
                self._check_within_schedule(staff, interval)

            # 4) Reject overlaps
            if has_conflict(self.store, interval, staff_id, user_id=user_id):
                logger.warning(
                    f"Rejected booking for user {user_id}: staff {staff_id} busy on "
                    f"{interval.date} {interval.start_time}-{interval.end_time}"
                )
                raise ConflictError("The selected time slot is already booked")

            # 5) Persist with a price/duration snapshot
            booking = self.store.new_booking(
                user_id=user_id,
                service_id=service.id,
                staff_id=staff_id,
                date=interval.date,
                start_time=interval.start_time,
                end_time=interval.end_time,
                status=status,
                price=service.price,
                duration=service.duration,
                notes=notes,
            )

        logger.info(f"Booking {booking.id} created for user {user_id} ({status})")
        self._notify("created", booking, user_id)
        return booking

    def reschedule_booking(self, booking_id: int, on_date: date, start_time: str, actor: dict):
        booking = self._booking_or_404(booking_id)
        policy.authorize(actor, policy.RESCHEDULE, booking)

        if booking.status in (CANCELLED, COMPLETED, NO_SHOW):
            raise InvalidTransitionError(f"Cannot reschedule a {booking.status} booking")

        interval = TimeRange.from_booking(on_date, start_time, booking.duration)
        self._reject_past(interval)

        with self.store.atomic():
            if booking.staff_id is not None:
                staff = self.store.get_staff(booking.staff_id, for_update=True)
                if staff is None:
                    raise NotFoundError(f"Staff member not found with id of {booking.staff_id}")
                self._check_within_schedule(staff, interval)

            if has_conflict(
                self.store,
                interval,
                booking.staff_id,
                exclude_booking_id=booking.id,
                user_id=booking.user_id,
            ):
                logger.warning(f"Rejected reschedule of booking {booking.id} to {interval.date} {interval.start_time}")
                raise ConflictError("The selected time slot is already booked")

            booking.date = interval.date
            booking.start_time = interval.start_time
            booking.end_time = interval.end_time
            booking.status = CONFIRMED
            booking.updated_at = self.clock()
            self.store.save(booking)

        logger.info(f"Booking {booking.id} rescheduled to {booking.date} {booking.start_time}")
        self._notify("rescheduled", booking, actor.get("id"))
        return booking

    def cancel_booking(self, booking_id: int, reason: Optional[str], actor: dict):
        booking = self._booking_or_404(booking_id)
        policy.authorize(actor, policy.CANCEL, booking)

        if booking.status == CANCELLED:
            raise InvalidTransitionError("Booking already cancelled")

        starts_at = booking_range(booking).start
        if starts_at <= self.clock():
            raise AlreadyPastError("Cannot cancel a booking that has already passed")

        if booking.status in (COMPLETED, NO_SHOW):
            raise InvalidTransitionError(f"Cannot cancel a {booking.status} booking")

        with self.store.atomic():
            self._mark_cancelled(booking, reason or DEFAULT_CANCEL_REASON, actor.get("id"))
            self.store.save(booking)

        logger.info(f"Booking {booking.id} cancelled by user {actor.get('id')}")
        self._notify("cancelled", booking, actor.get("id"))
        return booking

    def update_booking_status(self, booking_id: int, status: str, actor: dict, reason: Optional[str] = None):
        booking = self._booking_or_404(booking_id)
        policy.authorize(actor, policy.UPDATE_STATUS, booking)

        if status not in ALL_STATUSES:
            raise InvalidStatusError(f"Invalid status. Must be one of: {', '.join(ALL_STATUSES)}")

        with self.store.atomic():
            # reactivating a freed range must not double-book it
            if not is_active(booking.status) and is_active(status):
                if booking.staff_id is not None:
                    self.store.get_staff(booking.staff_id, for_update=True)
                interval = TimeRange.from_stored(booking.date, booking.start_time, booking.end_time)
                if has_conflict(
                    self.store,
                    interval,
                    booking.staff_id,
                    exclude_booking_id=booking.id,
                    user_id=booking.user_id,
                ):
                    raise ConflictError("The booking's time slot has been taken")

            if status == CANCELLED:
                self._mark_cancelled(booking, reason or DEFAULT_CANCEL_REASON, actor.get("id"))
            else:
                booking.status = status
                booking.updated_at = self.clock()
                if is_active(status):
                    booking.cancellation_reason = None
                    booking.cancelled_at = None
                    booking.cancelled_by = None
            self.store.save(booking)

        logger.info(f"Booking {booking.id} status set to {status} by user {actor.get('id')}")
        self._notify("status_changed", booking, actor.get("id"))
        return booking

    # -- helpers --

    def _booking_or_404(self, booking_id: int):
        booking = self.store.get_booking(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking not found with id of {booking_id}")
        return booking

    def _reject_past(self, interval: TimeRange) -> None:
        if interval.start < self.clock():
            raise BookingValidationError("Cannot book an appointment in the past")

    def _check_within_schedule(self, staff, interval: TimeRange) -> None:
        window = working_window(staff, interval.date)
        if window is None:
            raise BookingValidationError("Staff member is not working on that day")
        if interval.start < window.start or interval.end > window.end:
            raise BookingValidationError("Booking must be within working hours")
        for b in break_ranges(staff, interval.date):
            if interval.overlaps(b):
                raise ConflictError("Booking overlaps a staff break")

    def _mark_cancelled(self, booking, reason: str, actor_id: Optional[int]) -> None:
        now = self.clock()
        booking.status = CANCELLED
        booking.cancellation_reason = reason
        booking.cancelled_at = now
        booking.cancelled_by = actor_id
        booking.updated_at = now

    def _notify(self, event: str, booking, actor_id: Optional[int]) -> None:
        if self.notifier is None:
            return
        try:
            self.notifier.booking_event(event, booking, actor_id)
        except Exception as e:
            logger.error(f"Failed to dispatch '{event}' notification for booking {booking.id}: {e}")
