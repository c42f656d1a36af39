# salon/routers/auth_routes.py

from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlmodel import Session, select

from salon.auth import create_access_token, get_current_user, get_settings, hash_password, public_user, verify_password
from salon.config import Settings
from salon.db import get_session
from salon.models import User
from salon.schemas import PasswordUpdate, Token, UserDetailsUpdate, UserPublic

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


@router.post("/login", response_model=Token)
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
):
    # Swagger OAuth2 "password" flow uses "username" field
    email = form_data.username
    password = form_data.password

    user = session.exec(
        select(User).where(User.email == email)
    ).first()

    if user is None or not verify_password(password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")

    token = create_access_token({"sub": user.email}, settings)
    return {"access_token": token, "token_type": "bearer"}


@router.put("/updatedetails", response_model=UserPublic)
def update_details(
    update: UserDetailsUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    db_user = session.get(User, current_user["id"])
    if db_user is None:
        raise HTTPException(status_code=404, detail=f"User not found with id of {current_user['id']}")

    fields = update.model_dump(exclude_unset=True)
    if "email" in fields and fields["email"] != db_user.email:
        taken = session.exec(select(User).where(User.email == fields["email"])).first()
        if taken is not None:
            raise HTTPException(status_code=409, detail="Email already registered")

    for key, value in fields.items():
        setattr(db_user, key, value)

    session.add(db_user)
    session.commit()
    session.refresh(db_user)

    # tokens are keyed by email, so a new address means logging in again
    return public_user(db_user)


@router.put("/updatepassword", response_model=Token)
def update_password(
    body: PasswordUpdate,
    session: Session = Depends(get_session),
    settings: Settings = Depends(get_settings),
    current_user: dict = Depends(get_current_user),
):
    db_user = session.get(User, current_user["id"])
    if db_user is None:
        raise HTTPException(status_code=404, detail=f"User not found with id of {current_user['id']}")

    if not verify_password(body.current_password, db_user.password_hash):
        raise HTTPException(status_code=401, detail="Password is incorrect")

    db_user.password_hash = hash_password(body.new_password)
    session.add(db_user)
    session.commit()

    token = create_access_token({"sub": db_user.email}, settings)
    return {"access_token": token, "token_type": "bearer"}
