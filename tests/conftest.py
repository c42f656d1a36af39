from datetime import date, datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from salon import models  # noqa: F401
from salon.auth import create_access_token
from salon.config import Settings
from salon.core.lifecycle import BookingManager
from salon.main import create_app
from salon.models import Service, Staff, User
from salon.repository import SqlBookingStore

# a Monday, comfortably in the future
BOOKING_DAY = date(2030, 1, 7)
NOW = datetime(2030, 1, 1, 12, 0)

ALL_WEEK = {str(day): {"start": "09:00", "end": "17:00"} for day in range(7)}


@pytest.fixture
def settings():
    return Settings(database_url="sqlite://", secret_key="test-secret")


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def store(session):
    return SqlBookingStore(session)


class RecordingNotifier:
    def __init__(self):
        self.events = []

    def booking_event(self, event, booking, actor_id=None):
        self.events.append((event, booking.id, actor_id))


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def manager(store, notifier):
    return BookingManager(store, notifier=notifier, clock=lambda: NOW)


def add_user(session, email, role="user", staff_id=None, name=None):
    user = User(
        name=name or email.split("@")[0],
        email=email,
        password_hash="not-a-real-hash",
        role=role,
        staff_id=staff_id,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


def add_service(session, name="Haircut", duration=60, price="40.00", is_active=True):
    service = Service(
        name=name,
        description=f"{name} service",
        price=Decimal(price),
        duration=duration,
        category="hair",
        is_active=is_active,
    )
    session.add(service)
    session.commit()
    session.refresh(service)
    return service


def add_staff(session, email="stylist@salon.test", working_hours=None, breaks=None, days_off=None, is_active=True):
    staff = Staff(
        name=email.split("@")[0].title(),
        email=email,
        working_hours=ALL_WEEK if working_hours is None else working_hours,
        breaks=breaks or [],
        days_off=days_off or [],
        is_active=is_active,
    )
    session.add(staff)
    session.commit()
    session.refresh(staff)
    return staff


def actor(user):
    return {"id": user.id, "email": user.email, "role": user.role, "staff_id": user.staff_id}


@pytest.fixture
def app(settings, engine):
    return create_app(settings, engine=engine)


@pytest.fixture
def client(app):
    with TestClient(app) as client:
        yield client


@pytest.fixture
def auth_headers(settings):
    def headers_for(user):
        token = create_access_token({"sub": user.email}, settings)
        return {"Authorization": f"Bearer {token}"}

    return headers_for
