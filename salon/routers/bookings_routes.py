# salon/routers/bookings_routes.py

import logging
from datetime import date
from typing import Optional, List

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salon.auth import get_current_user
from salon.core.lifecycle import BookingManager
from salon.core.statuses import ALL_STATUSES
from salon.db import get_session
from salon.deps import get_booking_manager, require_role
from salon.models import Booking, Review
from salon.schemas import (
    BookingCancel,
    BookingCreate,
    BookingPublic,
    BookingReschedule,
    BookingStatusUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/bookings",
    tags=["bookings"],
)


@router.post("", response_model=BookingPublic, status_code=201)
def create_booking(
    booking: BookingCreate,
    manager: BookingManager = Depends(get_booking_manager),
    current_user: dict = Depends(get_current_user),
):
    return manager.create_booking(
        user_id=current_user["id"],
        service_id=booking.service_id,
        staff_id=booking.staff_id,
        on_date=booking.date,
        start_time=booking.start_time,
        notes=booking.notes,
    )


@router.get("", response_model=List[BookingPublic])
def list_bookings(
    status: Optional[str] = None,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    staff_id: Optional[int] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    if status is not None and status not in ALL_STATUSES:
        raise HTTPException(status_code=422, detail=f"status must be one of: {', '.join(ALL_STATUSES)}")

    stmt = select(Booking)

    # admins see everything, staff their assigned bookings, users their own
    if current_user["role"] == "admin":
        if staff_id is not None:
            stmt = stmt.where(Booking.staff_id == staff_id)
    elif current_user["role"] == "staff":
        # a staff login not linked to a staff member has no assigned bookings
        if current_user["staff_id"] is None:
            return []
        stmt = stmt.where(Booking.staff_id == current_user["staff_id"])
    else:
        stmt = stmt.where(Booking.user_id == current_user["id"])

    if start_date is not None:
        stmt = stmt.where(Booking.date >= start_date)
    if end_date is not None:
        stmt = stmt.where(Booking.date <= end_date)
    if status is not None:
        stmt = stmt.where(Booking.status == status)

    stmt = stmt.order_by(Booking.date, Booking.start_time)
    return session.exec(stmt).all()


@router.get("/{booking_id}", response_model=BookingPublic)
def get_booking(
    booking_id: int,
    manager: BookingManager = Depends(get_booking_manager),
    current_user: dict = Depends(get_current_user),
):
    return manager.get_booking(booking_id, current_user)


@router.put("/{booking_id}/reschedule", response_model=BookingPublic)
def reschedule_booking(
    booking_id: int,
    body: BookingReschedule,
    manager: BookingManager = Depends(get_booking_manager),
    current_user: dict = Depends(get_current_user),
):
    return manager.reschedule_booking(booking_id, body.date, body.start_time, current_user)


@router.put("/{booking_id}/cancel", response_model=BookingPublic)
def cancel_booking(
    booking_id: int,
    body: Optional[BookingCancel] = None,
    manager: BookingManager = Depends(get_booking_manager),
    current_user: dict = Depends(get_current_user),
):
    reason = body.reason if body is not None else None
    return manager.cancel_booking(booking_id, reason, current_user)


@router.put("/{booking_id}/status", response_model=BookingPublic)
def update_booking_status(
    booking_id: int,
    body: BookingStatusUpdate,
    manager: BookingManager = Depends(get_booking_manager),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin", "staff")
    return manager.update_booking_status(booking_id, body.status, current_user, reason=body.reason)


@router.delete("/{booking_id}", status_code=204)
def delete_booking(
    booking_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # customers cancel; removing the record is an admin correction
    require_role(current_user, "admin")

    booking = session.get(Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail=f"Booking not found with id of {booking_id}")

    review = session.exec(select(Review).where(Review.booking_id == booking.id)).first()
    if review is not None:
        session.delete(review)
        session.flush()
    session.delete(booking)
    session.commit()

    logger.info(f"Booking {booking_id} deleted by admin {current_user['id']}")
