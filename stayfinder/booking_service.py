# Booking orchestration: creation with serialized availability checks, status transitions, quotes.
# Routes call into here; every failure rolls the session back before the domain error propagates.
from __future__ import annotations

import logging
import os
from datetime import date
from typing import Callable, Optional

from sqlalchemy import text
from sqlalchemy.orm import Session

from . import models
from .availability import DateRange, has_conflict
from .booking_state import (
    Actor,
    BookingStatus,
    assert_actor_allowed,
    assert_transition,
    initial_status,
)
from .catalog import get_listing, is_bookable
from .db import is_sqlite
from .errors import BookingError, Busy, Conflict, Forbidden, InvalidRequest, InvalidTransition, NotFound
from .pricing import SERVICE_FEE_RATE, PriceQuote, compute_total

# Namespaced logger for booking lifecycle events
logger = logging.getLogger("stayfinder.bookings")

# How many times creation re-runs the check/insert when the booking_version swap misses.
# Exhausting them is a storage-level Busy, never a date Conflict.
BOOKING_CREATE_RETRIES = int(os.getenv("BOOKING_CREATE_RETRIES", "5"))


def _validate_range(listing: models.Listing, date_range: DateRange, today: date) -> None:
    if date_range.check_out <= date_range.check_in:
        raise InvalidRequest("check_out must be after check_in")
    if date_range.check_in < today:
        raise InvalidRequest("check_in cannot be in the past")
    nights = date_range.nights
    if nights < (listing.minimum_stay or 1):
        raise InvalidRequest(f"Minimum stay is {listing.minimum_stay} nights")
    if listing.maximum_stay is not None and nights > listing.maximum_stay:
        raise InvalidRequest(f"Maximum stay is {listing.maximum_stay} nights")


def _validate_guests(listing: models.Listing, guests: int) -> None:
    if guests < 1:
        raise InvalidRequest("At least one guest is required")
    if guests > listing.max_guests:
        raise InvalidRequest(f"This listing accommodates at most {listing.max_guests} guests")


def _lock_listing_for_booking(db: Session, listing_id: int) -> int:
    """
    Open the booking write transaction for `listing_id` and return its booking_version.

    Server databases lock the listing row. SQLite has no row locks, so the
    transaction takes the database write lock before the availability read;
    concurrent creators then wait on the busy timeout instead of racing.
    """
    q = db.query(models.Listing.booking_version).filter(models.Listing.id == listing_id)
    if is_sqlite():
        if not db.connection().connection.driver_connection.in_transaction:
            db.execute(text("BEGIN IMMEDIATE"))
    else:
        q = q.with_for_update()
    return q.scalar() or 0


def _claim_booking_version(db: Session, listing_id: int, expected: int) -> bool:
    """Compare-and-swap the listing's booking_version; False means another booking committed first."""
    updated = (
        db.query(models.Listing)
        .filter(models.Listing.id == listing_id, models.Listing.booking_version == expected)
        .update({models.Listing.booking_version: expected + 1}, synchronize_session=False)
    )
    return updated == 1


def quote_price(
    db: Session,
    listing_id: int,
    date_range: DateRange,
    fee_rate=SERVICE_FEE_RATE,
) -> PriceQuote:
    """Read-only price preview; booking creation always recomputes it."""
    listing = get_listing(db, listing_id)
    if not is_bookable(listing):
        raise NotFound("Listing is not available for booking")
    return compute_total(listing.price_cents, date_range.check_in, date_range.check_out, fee_rate)


def create_booking(
    db: Session,
    *,
    listing_id: int,
    guest_id: int,
    date_range: DateRange,
    guests: int,
    special_requests: Optional[str] = None,
    client_total_cents: Optional[int] = None,
    today: Optional[date] = None,
    fee_rate=SERVICE_FEE_RATE,
) -> models.Booking:
    """
    Create a booking for `guest_id` on `listing_id`.

    Errors:
    - NotFound: listing missing or not bookable
    - InvalidRequest: guest count, date range or stay length out of bounds; booking own listing
    - Conflict: dates overlap a pending/confirmed booking
    - Busy: the version swap kept missing; nothing was written and the call can be repeated

    Concurrency:
    Creators for one listing queue on the listing lock (row lock, or the SQLite write
    lock) so each sees the bookings committed before it. The insert also bumps
    listings.booking_version with a compare-and-swap; a miss rolls back and re-runs
    the whole sequence against the current ledger. Bookings on other listings never
    share a row.

    Any client-submitted total is ignored; the stored price is always computed here.
    """
    today = today or date.today()

    for attempt in range(1, BOOKING_CREATE_RETRIES + 1):
        try:
            version = _lock_listing_for_booking(db, listing_id)
            listing = get_listing(db, listing_id)
            if not is_bookable(listing):
                raise NotFound("Listing is not available for booking")
            _validate_guests(listing, guests)
            _validate_range(listing, date_range, today)
            if listing.host_id == guest_id:
                raise InvalidRequest("Hosts cannot book their own listing")

            if has_conflict(db, listing_id, date_range):
                raise Conflict("Dates unavailable")

            quote = compute_total(listing.price_cents, date_range.check_in, date_range.check_out, fee_rate)
            if client_total_cents is not None and client_total_cents != quote.total:
                logger.warning(
                    "bookings.client_total_mismatch",
                    extra={"listing_id": listing_id, "client_total": client_total_cents, "total": quote.total},
                )

            obj = models.Booking(
                listing_id=listing_id,
                guest_id=guest_id,
                check_in=date_range.check_in,
                check_out=date_range.check_out,
                guests=guests,
                status=initial_status(bool(listing.instant_book)),
                nights=quote.nights,
                subtotal_cents=quote.subtotal,
                fee_cents=quote.fee,
                total_cents=quote.total,
                currency=listing.currency,
                special_requests=special_requests,
                version=1,
            )
            db.add(obj)
            db.flush()

            if not _claim_booking_version(db, listing_id, version):
                db.rollback()
                logger.info(
                    "bookings.create_retry",
                    extra={"listing_id": listing_id, "attempt": attempt, "version": version},
                )
                continue

            db.commit()
            db.refresh(obj)
            logger.info(
                "bookings.created",
                extra={
                    "booking_id": obj.id,
                    "listing_id": listing_id,
                    "guest_id": guest_id,
                    "status": obj.status.value,
                    "total_cents": obj.total_cents,
                },
            )
            return obj
        except BookingError:
            db.rollback()
            raise
        except Exception:
            db.rollback()
            logger.exception("bookings.create_failed", extra={"listing_id": listing_id})
            raise

    logger.warning("bookings.create_exhausted", extra={"listing_id": listing_id, "attempts": BOOKING_CREATE_RETRIES})
    raise Busy("Listing is busy, please retry")


def get_booking(db: Session, booking_id: int) -> models.Booking:
    obj = db.get(models.Booking, booking_id)
    if obj is None:
        raise NotFound("Booking not found")
    return obj


def actor_for(booking: models.Booking, user_id: int) -> Actor:
    """Role `user_id` plays on this booking; Forbidden if neither its guest nor the listing's host."""
    if booking.listing.host_id == user_id:
        return Actor.HOST
    if booking.guest_id == user_id:
        return Actor.GUEST
    raise Forbidden("Not a participant in this booking")


def _transition(
    db: Session,
    booking_id: int,
    target: BookingStatus,
    authorize: Callable[[models.Booking], Actor],
    is_allowed_now: Optional[Callable[[models.Booking], bool]] = None,
) -> models.Booking:
    """
    Move a booking to `target` with an optimistic check on bookings.version.

    A concurrent change between read and write makes the guarded UPDATE match no row;
    the booking is then re-read and the transition re-validated against its new state.
    """
    for _ in range(BOOKING_CREATE_RETRIES):
        try:
            obj = get_booking(db, booking_id)
            actor = authorize(obj)
            assert_actor_allowed(target, actor)
            if target == BookingStatus.COMPLETED and obj.status == BookingStatus.COMPLETED:
                return obj
            assert_transition(obj.status, target)
            if is_allowed_now is not None and not is_allowed_now(obj):
                raise InvalidTransition(f"Booking cannot be {target.value} yet")

            previous = obj.status
            values = {
                models.Booking.status: target,
                models.Booking.version: obj.version + 1,
            }
            if target == BookingStatus.CANCELLED:
                values[models.Booking.cancel_reason] = f"cancelled_by_{actor.value}"
            updated = (
                db.query(models.Booking)
                .filter(models.Booking.id == booking_id, models.Booking.version == obj.version)
                .update(values, synchronize_session=False)
            )
            if updated != 1:
                db.rollback()
                continue
            db.commit()
            db.refresh(obj)
            logger.info(
                "bookings.status_changed",
                extra={
                    "booking_id": booking_id,
                    "from": previous.value,
                    "to": target.value,
                    "actor": actor.value,
                },
            )
            return obj
        except Exception:
            db.rollback()
            raise

    raise Busy("Booking was modified concurrently, please retry")


def update_booking_status(
    db: Session,
    booking_id: int,
    requested_status: BookingStatus,
    acting_user_id: int,
) -> models.Booking:
    """
    Apply a user-requested status change.

    Only the listing's host may confirm; guest and host may cancel; nobody may
    request 'completed' or 'pending'. Errors: NotFound, Forbidden, InvalidTransition.
    """
    return _transition(db, booking_id, requested_status, lambda b: actor_for(b, acting_user_id))


def complete_booking(db: Session, booking_id: int, today: Optional[date] = None) -> models.Booking:
    """
    System transition confirmed -> completed once checkout has been reached.

    Idempotent: an already completed booking is returned unchanged.
    """
    today = today or date.today()
    return _transition(
        db,
        booking_id,
        BookingStatus.COMPLETED,
        lambda b: Actor.SYSTEM,
        is_allowed_now=lambda b: b.check_out <= today,
    )
