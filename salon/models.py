# salon/models.py

from typing import Optional, List, Dict
from datetime import datetime, date as Date
from decimal import Decimal

from sqlalchemy import DateTime, Index, text
from sqlalchemy.types import JSON
from sqlmodel import SQLModel, Field, Column

from salon.core.statuses import INACTIVE_STATUSES

_active_only = "status NOT IN ({})".format(", ".join(f"'{s}'" for s in sorted(INACTIVE_STATUSES)))


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    password_hash: str
    role: str = "user"  # user, staff or admin
    phone: Optional[str] = None
    staff_id: Optional[int] = Field(default=None, foreign_key="staff.id")


class Service(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: str = ""
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    duration: int  # minutes
    category: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)


class Staff(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str = Field(index=True, unique=True)
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bio: Optional[str] = None

    # {"0": {"start": "09:00", "end": "17:00"}, ...} keyed by weekday, 0=Mon
    working_hours: Dict[str, Dict[str, str]] = Field(default_factory=dict, sa_column=Column(JSON))
    # [{"start": "12:00", "end": "12:30", "weekday": 2}], weekday optional
    breaks: List[Dict] = Field(default_factory=list, sa_column=Column(JSON))
    days_off: List[str] = Field(default_factory=list, sa_column=Column(JSON))  # ISO dates

    is_active: bool = True


class Booking(SQLModel, table=True):
    __table_args__ = (
        Index(
            "uq_active_staff_start",
            "staff_id",
            "date",
            "start_time",
            unique=True,
            sqlite_where=text(_active_only),
            postgresql_where=text(_active_only),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: int = Field(foreign_key="user.id", index=True)
    service_id: int = Field(foreign_key="service.id")
    staff_id: Optional[int] = Field(default=None, foreign_key="staff.id", index=True)

    date: Date = Field(index=True)
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    status: str = "pending"

    # snapshot of the service at booking time
    price: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    duration: int

    notes: Optional[str] = None

    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    cancelled_by: Optional[int] = None

    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)  # naive local time
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime)


class Review(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    booking_id: int = Field(foreign_key="booking.id", unique=True)
    user_id: int = Field(foreign_key="user.id", index=True)
    service_id: int = Field(foreign_key="service.id", index=True)
    staff_id: Optional[int] = Field(default=None, foreign_key="staff.id", index=True)

    rating: int
    comment: Optional[str] = None
    is_approved: bool = False

    created_at: datetime = Field(default_factory=datetime.now, sa_type=DateTime)
