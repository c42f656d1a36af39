# salon/routers/users_routes.py

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salon.auth import get_current_user, hash_password, public_user
from salon.db import get_session
from salon.deps import require_role
from salon.models import Staff, User
from salon.schemas import UserCreate, UserPublic, UserRole, UserRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
)


@router.get("/me", response_model=UserPublic)
def me(current_user: dict = Depends(get_current_user)):
    return current_user


@router.post("/users", status_code=201, response_model=UserPublic)
def create_user(
    user: UserCreate,
    session: Session = Depends(get_session),
):
    # 1) Check if email already exists
    existing = session.exec(
        select(User).where(User.email == user.email)
    ).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="Email already registered")

    # 2) Create user in DB; elevated roles are granted by an admin
    db_user = User(
        name=user.name,
        email=user.email,
        password_hash=hash_password(user.password),
        role=UserRole.user.value,
        phone=user.phone,
    )

    session.add(db_user)
    session.commit()
    session.refresh(db_user)  # fills db_user.id

    return public_user(db_user)


@router.patch("/users/{user_id}/role", response_model=UserPublic)
def set_user_role(
    user_id: int,
    update: UserRoleUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    db_user = session.get(User, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")

    if update.role == UserRole.staff:
        if update.staff_id is None or session.get(Staff, update.staff_id) is None:
            raise HTTPException(status_code=422, detail="Staff users must be linked to an existing staff member")
        db_user.staff_id = update.staff_id
    else:
        db_user.staff_id = None

    db_user.role = update.role.value
    session.add(db_user)
    session.commit()
    session.refresh(db_user)

    logger.info(f"User {db_user.id} role set to {db_user.role} by admin {current_user['id']}")
    return public_user(db_user)
