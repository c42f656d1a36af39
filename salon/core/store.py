# salon/core/store.py

from contextlib import AbstractContextManager
from datetime import date
from typing import List, Optional, Protocol


class BookingStore(Protocol):
    """Persistence the booking lifecycle depends on.

    Returned objects only need the attributes of ``salon.models``:
    services expose ``duration``, ``price`` and ``is_active``; staff expose
    ``working_hours``, ``breaks``, ``days_off`` and ``is_active``; bookings
    expose ``id``, ``user_id``, ``staff_id``, ``date``, ``start_time``,
    ``end_time``, ``duration`` and ``status``.
    """

    def get_service(self, service_id: int): ...

    def get_staff(self, staff_id: int, for_update: bool = False): ...

    def get_booking(self, booking_id: int): ...

    def bookings_for_staff(self, staff_id: int, on_date: date) -> List: ...

    def bookings_for_user(self, user_id: int, on_date: date) -> List: ...

    def new_booking(self, **fields): ...

    def save(self, booking) -> None: ...

    def atomic(self) -> AbstractContextManager: ...


class Notifier(Protocol):
    def booking_event(self, event: str, booking, actor_id: Optional[int] = None) -> None: ...
