# Listing catalog lookups and search used by the listing routes and the booking orchestrator.
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import exists, or_
from sqlalchemy.orm import Session

from . import models
from .availability import DateRange
from .booking_state import ACTIVE_STATUSES
from .errors import NotFound

# Only active listings accept new bookings or show up in public search.
BOOKABLE_STATUSES = frozenset({"active"})


def get_listing(db: Session, listing_id: int) -> models.Listing:
    listing = db.get(models.Listing, listing_id)
    if listing is None:
        raise NotFound("Listing not found")
    return listing


def is_bookable(listing: models.Listing) -> bool:
    return listing.status in BOOKABLE_STATUSES


@dataclass
class ListingSearch:
    """Public search filters; every field is optional."""
    location: Optional[str] = None
    guests: Optional[int] = None
    min_price_cents: Optional[int] = None
    max_price_cents: Optional[int] = None
    property_type: Optional[str] = None
    amenities: List[str] = field(default_factory=list)
    date_range: Optional[DateRange] = None
    page: int = 1
    limit: int = 20


def search_listings(db: Session, params: ListingSearch) -> List[models.Listing]:
    """
    Search active listings.

    Filters:
    - location: case-insensitive substring of city, country or address
    - guests: capacity at least this many
    - min/max price: nightly price bounds in cents
    - property_type: exact match
    - amenities: listing must offer at least one of them
    - date_range: no pending/confirmed booking overlapping the range

    Ordering: featured first, then highest rated, then newest.
    """
    q = db.query(models.Listing).filter(models.Listing.status.in_(BOOKABLE_STATUSES))

    if params.location:
        pattern = f"%{params.location.strip()}%"
        q = q.filter(
            or_(
                models.Listing.city.ilike(pattern),
                models.Listing.country.ilike(pattern),
                models.Listing.address.ilike(pattern),
            )
        )
    if params.guests is not None:
        q = q.filter(models.Listing.max_guests >= params.guests)
    if params.min_price_cents is not None:
        q = q.filter(models.Listing.price_cents >= params.min_price_cents)
    if params.max_price_cents is not None:
        q = q.filter(models.Listing.price_cents <= params.max_price_cents)
    if params.property_type:
        q = q.filter(models.Listing.property_type == params.property_type)
    if params.date_range is not None:
        booked = exists().where(
            models.Booking.listing_id == models.Listing.id,
            models.Booking.status.in_(list(ACTIVE_STATUSES)),
            models.Booking.check_in < params.date_range.check_out,
            models.Booking.check_out > params.date_range.check_in,
        )
        q = q.filter(~booked)

    q = q.order_by(
        models.Listing.featured.desc(),
        models.Listing.rating_overall.desc(),
        models.Listing.created_at.desc(),
        models.Listing.id.desc(),
    )
    offset = (params.page - 1) * params.limit

    if not params.amenities:
        return q.offset(offset).limit(params.limit).all()

    # Amenities live in a JSON column; match them here so the filter behaves the same on every backend
    wanted = set(params.amenities)
    matches = [item for item in q.all() if wanted.intersection(item.amenities or [])]
    return matches[offset:offset + params.limit]
