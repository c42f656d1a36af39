# salon/schemas.py

from pydantic import BaseModel, ConfigDict, Field
from enum import Enum
from datetime import datetime, date
from decimal import Decimal
from typing import Dict, List, Optional

HHMM = r"^([01]\d|2[0-3]):[0-5]\d$"


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRole(str, Enum):
    user = "user"
    staff = "staff"
    admin = "admin"


class UserCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=8, max_length=72)
    phone: Optional[str] = None


class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: UserRole
    phone: Optional[str] = None
    staff_id: Optional[int] = None


class UserDetailsUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None


class PasswordUpdate(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=72)


class UserRoleUpdate(BaseModel):
    role: UserRole
    staff_id: Optional[int] = None


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    duration: int = Field(gt=0)  # minutes
    category: str
    is_active: bool = True


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Decimal] = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    duration: Optional[int] = Field(default=None, gt=0)
    category: Optional[str] = None
    is_active: Optional[bool] = None


class ServicePublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str
    price: Decimal
    duration: int
    category: str
    is_active: bool


class WorkingHours(BaseModel):
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)


class BreakPeriod(BaseModel):
    start: str = Field(pattern=HHMM)
    end: str = Field(pattern=HHMM)
    weekday: Optional[int] = Field(default=None, ge=0, le=6)  # None = every day


class StaffSchedule(BaseModel):
    working_hours: Dict[int, WorkingHours] = {}  # 0=Mon, 1=Tues....
    breaks: List[BreakPeriod] = []
    days_off: List[date] = []


class StaffCreate(StaffSchedule):
    name: str = Field(min_length=1)
    email: str
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bio: Optional[str] = None
    is_active: bool = True


class StaffUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bio: Optional[str] = None
    is_active: Optional[bool] = None


class StaffPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    specialization: Optional[str] = None
    bio: Optional[str] = None
    working_hours: Dict[str, Dict[str, str]]
    breaks: List[Dict]
    days_off: List[str]
    is_active: bool


class BookingCreate(BaseModel):
    service_id: int
    staff_id: Optional[int] = None
    date: date
    start_time: str = Field(pattern=HHMM)
    notes: Optional[str] = None


class BookingReschedule(BaseModel):
    date: date
    start_time: str = Field(pattern=HHMM)


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: str
    reason: Optional[str] = None


class BookingPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    service_id: int
    staff_id: Optional[int] = None
    date: date
    start_time: str
    end_time: str
    status: str
    price: Decimal
    duration: int
    notes: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    cancelled_by: Optional[int] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class SlotPublic(BaseModel):
    start: str
    end: str
    available: bool


class AvailabilityResponse(BaseModel):
    staff_id: int
    date: date
    slot_minutes: int
    slots: List[SlotPublic]


class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: Optional[str] = None


class ReviewUpdate(BaseModel):
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    comment: Optional[str] = None
    is_approved: Optional[bool] = None


class ReviewPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    user_id: int
    service_id: int
    staff_id: Optional[int] = None
    rating: int
    comment: Optional[str] = None
    is_approved: bool
    created_at: datetime
