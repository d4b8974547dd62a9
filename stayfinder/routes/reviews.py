# Review endpoints: guests review completed stays; anyone can read a listing's reviews.
from typing import List
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..booking_service import get_booking
from ..booking_state import BookingStatus
from ..catalog import get_listing
from ..errors import Conflict, Forbidden, InvalidRequest
from ..rate_limit import rate_limit
from .auth import get_current_user

router = APIRouter()
logger = logging.getLogger("stayfinder.reviews")


@router.post(
    "/bookings/{booking_id}/review",
    response_model=schemas.ReviewRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_review(
    booking_id: int,
    payload: schemas.ReviewCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Review:
    """
    Review a completed stay.

    Rules:
    - only the booking's guest may review it
    - the booking must be 'completed'
    - one review per booking

    The listing's rating_overall/review_count are recomputed in the same transaction.
    """
    booking = get_booking(db, booking_id)
    if booking.guest_id != user.id:
        raise Forbidden("Only the guest can review this stay")
    if booking.status != BookingStatus.COMPLETED:
        raise InvalidRequest("Only completed stays can be reviewed")

    try:
        obj = models.Review(
            booking_id=booking_id,
            listing_id=booking.listing_id,
            author_id=user.id,
            rating=payload.rating,
            comment=payload.comment,
        )
        db.add(obj)
        try:
            db.flush()
        except IntegrityError as exc:
            # Unique booking_id: one review per stay, also under concurrent submissions
            raise Conflict("This stay has already been reviewed") from exc

        avg, count = (
            db.query(func.avg(models.Review.rating), func.count(models.Review.id))
            .filter(models.Review.listing_id == booking.listing_id)
            .one()
        )
        listing = booking.listing
        listing.rating_overall = round(float(avg or 0), 1)
        listing.review_count = int(count or 0)
        db.add(listing)
        db.commit()
        db.refresh(obj)
    except Exception:
        db.rollback()
        raise

    logger.info("reviews.created", extra={"review_id": obj.id, "listing_id": obj.listing_id, "rating": obj.rating})
    return obj


@router.get("/listings/{listing_id}/reviews", response_model=List[schemas.ReviewRead])
def list_reviews(
    listing_id: int,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
) -> List[models.Review]:
    get_listing(db, listing_id)
    return (
        db.query(models.Review)
        .filter(models.Review.listing_id == listing_id)
        .order_by(models.Review.created_at.desc(), models.Review.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
