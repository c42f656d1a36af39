# salon/routers/staff_routes.py

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlmodel import Session, select

from salon.auth import get_current_user
from salon.core.lifecycle import BookingManager
from salon.core.timerange import format_hhmm
from salon.db import get_session
from salon.deps import get_booking_manager, require_role
from salon.models import Staff
from salon.schemas import AvailabilityResponse, StaffCreate, StaffPublic, StaffSchedule, StaffUpdate

router = APIRouter(
    prefix="/staff",
    tags=["staff"],
)


def schedule_fields(schedule: StaffSchedule) -> dict:
    """Validate a schedule and convert it to the JSON stored on Staff."""
    for weekday, hours in schedule.working_hours.items():
        if not (0 <= weekday <= 6):
            raise HTTPException(status_code=422, detail="working_hours keys must be integers between 0 and 6")
        if hours.start >= hours.end:
            raise HTTPException(status_code=422, detail="Working hours start must be before end")

    for b in schedule.breaks:
        if b.start >= b.end:
            raise HTTPException(status_code=422, detail="Break start must be before end")

    return {
        "working_hours": {str(day): hours.model_dump() for day, hours in sorted(schedule.working_hours.items())},
        "breaks": [b.model_dump(exclude_none=True) for b in schedule.breaks],
        "days_off": sorted({d.isoformat() for d in schedule.days_off}),
    }


def _staff_or_404(session: Session, staff_id: int) -> Staff:
    staff = session.get(Staff, staff_id)
    if staff is None:
        raise HTTPException(status_code=404, detail=f"Staff member not found with id of {staff_id}")
    return staff


@router.get("", response_model=List[StaffPublic])
def list_staff(
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Staff).where(Staff.is_active == True).order_by(Staff.name)  # noqa: E712
    ).all()


@router.get("/{staff_id}", response_model=StaffPublic)
def get_staff_member(
    staff_id: int,
    session: Session = Depends(get_session),
):
    staff = _staff_or_404(session, staff_id)
    if not staff.is_active:
        raise HTTPException(status_code=404, detail=f"Staff member not found with id of {staff_id}")
    return staff


@router.post("", response_model=StaffPublic, status_code=201)
def create_staff(
    staff: StaffCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    existing = session.exec(select(Staff).where(Staff.email == staff.email)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Staff email already registered")

    db_staff = Staff(
        name=staff.name,
        email=staff.email,
        phone=staff.phone,
        specialization=staff.specialization,
        bio=staff.bio,
        is_active=staff.is_active,
        **schedule_fields(staff),
    )
    session.add(db_staff)
    session.commit()
    session.refresh(db_staff)
    return db_staff


@router.patch("/{staff_id}", response_model=StaffPublic)
def update_staff(
    staff_id: int,
    update: StaffUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_staff = _staff_or_404(session, staff_id)
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(db_staff, key, value)

    session.add(db_staff)
    session.commit()
    session.refresh(db_staff)
    return db_staff


@router.delete("/{staff_id}", response_model=StaffPublic)
def deactivate_staff(
    staff_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_staff = _staff_or_404(session, staff_id)
    db_staff.is_active = False
    session.add(db_staff)
    session.commit()
    session.refresh(db_staff)
    return db_staff


@router.put("/{staff_id}/schedule", response_model=StaffPublic)
def set_schedule(
    staff_id: int,
    schedule: StaffSchedule,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin", "staff")
    if current_user["role"] == "staff" and current_user["staff_id"] != staff_id:
        raise HTTPException(status_code=403, detail="Forbidden")

    db_staff = _staff_or_404(session, staff_id)

    # DB upsert of the whole schedule; JSON columns are replaced, not mutated
    for key, value in schedule_fields(schedule).items():
        setattr(db_staff, key, value)

    session.add(db_staff)
    session.commit()
    session.refresh(db_staff)
    return db_staff


@router.get("/{staff_id}/availability", response_model=AvailabilityResponse)
def staff_availability(
    staff_id: int,
    on_date: date = Query(alias="date"),
    slot_minutes: Optional[int] = Query(default=None, gt=0, le=240),
    manager: BookingManager = Depends(get_booking_manager),
):
    slot_minutes = slot_minutes or manager.slot_minutes
    slots = manager.get_availability(staff_id, on_date, slot_minutes)

    return {
        "staff_id": staff_id,
        "date": on_date,
        "slot_minutes": slot_minutes,
        "slots": [
            {"start": format_hhmm(s.start), "end": format_hhmm(s.end), "available": s.available}
            for s in slots
        ],
    }
