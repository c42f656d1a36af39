# salon/routers/services_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, func, or_, select

from salon.auth import get_current_user
from salon.db import get_session
from salon.deps import require_role
from salon.models import Service
from salon.schemas import ServiceCreate, ServicePublic, ServiceUpdate

router = APIRouter(
    prefix="/services",
    tags=["services"],
)


@router.get("", response_model=List[ServicePublic])
def list_services(
    category: Optional[str] = None,
    session: Session = Depends(get_session),
):
    stmt = select(Service).where(Service.is_active == True)  # noqa: E712
    if category is not None:
        stmt = stmt.where(Service.category == category)
    stmt = stmt.order_by(Service.name)
    return session.exec(stmt).all()


@router.get("/search", response_model=List[ServicePublic])
def search_services(
    q: Optional[str] = None,
    session: Session = Depends(get_session),
):
    if not q or not q.strip():
        raise HTTPException(status_code=400, detail="Please provide a search term")

    pattern = f"%{q.strip().lower()}%"
    stmt = (
        select(Service)
        .where(Service.is_active == True)  # noqa: E712
        .where(or_(func.lower(Service.name).like(pattern), func.lower(Service.description).like(pattern)))
        .order_by(Service.name)
    )
    return session.exec(stmt).all()


@router.get("/{service_id}", response_model=ServicePublic)
def get_service(
    service_id: int,
    session: Session = Depends(get_session),
):
    service = session.get(Service, service_id)
    if service is None or not service.is_active:
        raise HTTPException(status_code=404, detail=f"Service not found with id of {service_id}")
    return service


@router.post("", response_model=ServicePublic, status_code=201)
def create_service(
    service: ServiceCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_service = Service(**service.model_dump())
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.patch("/{service_id}", response_model=ServicePublic)
def update_service(
    service_id: int,
    update: ServiceUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail=f"Service not found with id of {service_id}")

    # existing bookings keep their own price/duration snapshot
    for key, value in update.model_dump(exclude_unset=True).items():
        setattr(db_service, key, value)

    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service


@router.delete("/{service_id}", response_model=ServicePublic)
def deactivate_service(
    service_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_service = session.get(Service, service_id)
    if db_service is None:
        raise HTTPException(status_code=404, detail=f"Service not found with id of {service_id}")

    # soft delete: bookings still reference it
    db_service.is_active = False
    session.add(db_service)
    session.commit()
    session.refresh(db_service)
    return db_service
