# salon/repository.py

import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, col, select

from salon.core.errors import BookingError, ConflictError, PersistenceError
from salon.core.statuses import INACTIVE_STATUSES
from salon.models import Booking, Service, Staff

logger = logging.getLogger(__name__)


class SqlBookingStore:
    """BookingStore backed by a SQLModel session (one per request)."""

    def __init__(self, session: Session):
        self.session = session
        self._touched = []

    def get_service(self, service_id: int):
        return self.session.get(Service, service_id)

    def get_staff(self, staff_id: int, for_update: bool = False):
        if not for_update:
            return self.session.get(Staff, staff_id)
        # serializes writers per staff member; ignored by SQLite
        return self.session.exec(
            select(Staff).where(Staff.id == staff_id).with_for_update()
        ).first()

    def get_booking(self, booking_id: int):
        return self.session.get(Booking, booking_id)

    def bookings_for_staff(self, staff_id: int, on_date: date):
        return self.session.exec(
            select(Booking)
            .where(Booking.staff_id == staff_id)
            .where(Booking.date == on_date)
            .where(col(Booking.status).not_in(sorted(INACTIVE_STATUSES)))
            .order_by(Booking.start_time)
        ).all()

    def bookings_for_user(self, user_id: int, on_date: date):
        return self.session.exec(
            select(Booking)
            .where(Booking.user_id == user_id)
            .where(Booking.date == on_date)
            .where(col(Booking.status).not_in(sorted(INACTIVE_STATUSES)))
            .order_by(Booking.start_time)
        ).all()

    def new_booking(self, **fields):
        booking = Booking(**fields)
        self.session.add(booking)
        self.session.flush()  # fills booking.id
        self._touched.append(booking)
        return booking

    def save(self, booking) -> None:
        self.session.add(booking)
        self._touched.append(booking)

    @contextmanager
    def atomic(self):
        try:
            yield
            self.session.commit()
        except BookingError:
            self.session.rollback()
            self._touched.clear()
            raise
        except IntegrityError:
            # lost a race on the active (staff, date, start) index
            self.session.rollback()
            self._touched.clear()
            raise ConflictError("The selected time slot is already booked")
        except SQLAlchemyError as e:
            self.session.rollback()
            self._touched.clear()
            logger.error(f"Booking transaction failed: {e}")
            raise PersistenceError("Database error while saving booking") from e

        for obj in self._touched:
            self.session.refresh(obj)
        self._touched.clear()
