# Booking endpoints: create, list, read, change status (confirm/cancel) and cancel.
# Availability, pricing and the status state machine live in booking_service; handlers stay thin.
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..availability import DateRange
from ..booking_service import actor_for, create_booking, get_booking, update_booking_status
from ..booking_state import BookingStatus
from ..rate_limit import rate_limit
from .auth import get_current_user

router = APIRouter()


@router.post(
    "/bookings",
    response_model=schemas.BookingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_booking_endpoint(
    payload: schemas.BookingCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Booking:
    """
    Request a stay.

    The booking starts 'pending' (host approval) or 'confirmed' on instant-book listings.
    Responds 404 for unknown/unbookable listings, 400 for invalid requests and
    409 when the dates are already held, and 503 (retryable) when the listing stayed too busy to claim.
    """
    return create_booking(
        db,
        listing_id=payload.listing_id,
        guest_id=user.id,
        date_range=DateRange(payload.check_in, payload.check_out),
        guests=payload.guests,
        special_requests=payload.special_requests,
        client_total_cents=payload.total_price_cents,
    )


@router.get("/bookings/me", response_model=List[schemas.BookingRead])
def list_my_bookings(
    as_host: bool = Query(False),
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> List[models.Booking]:
    if as_host:
        # Bookings for listings the caller hosts
        q = (
            db.query(models.Booking)
            .join(models.Listing, models.Listing.id == models.Booking.listing_id)
            .filter(models.Listing.host_id == user.id)
        )
    else:
        q = db.query(models.Booking).filter(models.Booking.guest_id == user.id)

    items = (
        q.order_by(models.Booking.check_in.desc(), models.Booking.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return items


@router.get("/bookings/{booking_id}", response_model=schemas.BookingRead)
def read_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Booking:
    obj = get_booking(db, booking_id)
    # Only the guest and the listing's host may see a booking
    actor_for(obj, user.id)
    return obj


@router.patch(
    "/bookings/{booking_id}/status",
    response_model=schemas.BookingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def change_booking_status(
    booking_id: int,
    payload: schemas.BookingStatusUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Booking:
    """
    Request a status change.

    Authorization is decided server-side from the caller's relation to the booking:
    - host of the listing: may confirm a pending booking, may cancel
    - guest: may cancel
    """
    return update_booking_status(db, booking_id, payload.status, user.id)


@router.delete(
    "/bookings/{booking_id}",
    response_model=schemas.BookingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def cancel_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(get_current_user),
) -> models.Booking:
    # Shortcut for PATCH status=cancelled
    return update_booking_status(db, booking_id, BookingStatus.CANCELLED, user.id)
