# salon/routers/reviews_routes.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select

from salon.auth import get_current_user, get_optional_user
from salon.core import policy
from salon.core.statuses import COMPLETED
from salon.db import get_session
from salon.deps import require_role
from salon.models import Booking, Review
from salon.schemas import ReviewCreate, ReviewPublic, ReviewUpdate

router = APIRouter(
    tags=["reviews"],
)


def _review_or_404(session: Session, review_id: int) -> Review:
    review = session.get(Review, review_id)
    if review is None:
        raise HTTPException(status_code=404, detail=f"Review not found with id of {review_id}")
    return review


def _owner_or_admin(current_user: dict, review: Review):
    if review.user_id != current_user["id"] and current_user["role"] != "admin":
        raise HTTPException(status_code=403, detail="Forbidden")


@router.post("/bookings/{booking_id}/reviews", response_model=ReviewPublic, status_code=201)
def add_review(
    booking_id: int,
    review: ReviewCreate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    # 1) Booking must exist and be completed
    booking = session.get(Booking, booking_id)
    if booking is None:
        raise HTTPException(status_code=404, detail=f"Booking not found with id of {booking_id}")
    if booking.status != COMPLETED:
        raise HTTPException(status_code=422, detail="You can only review completed bookings")

    # 2) Only the customer (or an admin) reviews a booking
    if not policy.is_allowed(current_user, policy.REVIEW, booking):
        raise HTTPException(status_code=403, detail="Forbidden")

    # 3) One review per booking
    existing = session.exec(select(Review).where(Review.booking_id == booking.id)).first()
    if existing is not None:
        raise HTTPException(status_code=409, detail="This booking has already been reviewed")

    db_review = Review(
        booking_id=booking.id,
        user_id=current_user["id"],
        service_id=booking.service_id,
        staff_id=booking.staff_id,
        rating=review.rating,
        comment=review.comment,
        is_approved=current_user["role"] == "admin",
    )
    session.add(db_review)
    session.commit()
    session.refresh(db_review)
    return db_review


@router.get("/reviews", response_model=List[ReviewPublic])
def list_all_reviews(
    approved: Optional[bool] = None,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    stmt = select(Review)
    if approved is not None:
        stmt = stmt.where(Review.is_approved == approved)
    return session.exec(stmt.order_by(Review.created_at)).all()


@router.get("/reviews/me", response_model=List[ReviewPublic])
def list_my_reviews(
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    return session.exec(
        select(Review).where(Review.user_id == current_user["id"]).order_by(Review.created_at)
    ).all()


@router.get("/services/{service_id}/reviews", response_model=List[ReviewPublic])
def list_service_reviews(
    service_id: int,
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Review)
        .where(Review.service_id == service_id)
        .where(Review.is_approved == True)  # noqa: E712
        .order_by(Review.created_at)
    ).all()


@router.get("/staff/{staff_id}/reviews", response_model=List[ReviewPublic])
def list_staff_reviews(
    staff_id: int,
    session: Session = Depends(get_session),
):
    return session.exec(
        select(Review)
        .where(Review.staff_id == staff_id)
        .where(Review.is_approved == True)  # noqa: E712
        .order_by(Review.created_at)
    ).all()


@router.get("/reviews/{review_id}", response_model=ReviewPublic)
def get_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: Optional[dict] = Depends(get_optional_user),
):
    review = _review_or_404(session, review_id)

    # unapproved reviews are only visible to their author and admins
    if not review.is_approved:
        if current_user is None or (current_user["role"] != "admin" and current_user["id"] != review.user_id):
            raise HTTPException(status_code=404, detail=f"Review not found with id of {review_id}")
    return review


@router.patch("/reviews/{review_id}", response_model=ReviewPublic)
def update_review(
    review_id: int,
    update: ReviewUpdate,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    review = _review_or_404(session, review_id)
    _owner_or_admin(current_user, review)

    if update.rating is not None:
        review.rating = update.rating
    if update.comment is not None:
        review.comment = update.comment

    if current_user["role"] == "admin":
        if update.is_approved is not None:
            review.is_approved = update.is_approved
    else:
        # edits by the author need re-approval
        review.is_approved = False

    session.add(review)
    session.commit()
    session.refresh(review)
    return review


@router.delete("/reviews/{review_id}", status_code=204)
def delete_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    review = _review_or_404(session, review_id)
    _owner_or_admin(current_user, review)

    session.delete(review)
    session.commit()


@router.put("/reviews/{review_id}/approve", response_model=ReviewPublic)
def approve_review(
    review_id: int,
    session: Session = Depends(get_session),
    current_user: dict = Depends(get_current_user),
):
    require_role(current_user, "admin")

    review = _review_or_404(session, review_id)
    review.is_approved = True
    session.add(review)
    session.commit()
    session.refresh(review)
    return review
