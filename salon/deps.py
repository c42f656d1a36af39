# salon/deps.py

from fastapi import BackgroundTasks, Depends, HTTPException
from sqlmodel import Session

from .auth import get_settings
from .config import Settings
from .core.lifecycle import BookingManager
from .db import get_session
from .notifications import BackgroundNotifier
from .repository import SqlBookingStore


def require_role(user: dict, *roles: str):
    if user["role"] not in roles:
        raise HTTPException(status_code=403, detail="Forbidden")


def get_booking_manager(
    background_tasks: BackgroundTasks,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
) -> BookingManager:
    return BookingManager(
        SqlBookingStore(session),
        notifier=BackgroundNotifier(session, background_tasks, settings),
        default_status=settings.default_booking_status,
        slot_minutes=settings.slot_minutes,
    )
