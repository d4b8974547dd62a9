# Listing endpoints.
# Hosts manage their own listings; anyone can search and view active listings and request price quotes.
from datetime import date
from typing import List, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from ..db import get_db
from .. import models, schemas
from ..availability import DateRange, has_conflict
from ..booking_service import quote_price
from ..catalog import ListingSearch, get_listing, search_listings
from .auth import require_host, get_current_user_optional
from ..rate_limit import rate_limit

# Router namespace for listing APIs
router = APIRouter()
# Namespaced logger for listing management
logger = logging.getLogger("stayfinder.listings")


def _optional_range(check_in: Optional[date], check_out: Optional[date]) -> Optional[DateRange]:
    if check_in is None and check_out is None:
        return None
    if check_in is None or check_out is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="check_in and check_out must be given together")
    if check_out <= check_in:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="check_out must be after check_in")
    return DateRange(check_in, check_out)


def _owned_listing(db: Session, listing_id: int, user: models.User) -> models.Listing:
    obj = get_listing(db, listing_id)
    if obj.host_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the host of this listing")
    return obj


@router.get("/listings", response_model=List[schemas.ListingRead])
def list_listings(
    location: Optional[str] = Query(None, max_length=100),
    guests: Optional[int] = Query(None, ge=1),
    min_price: Optional[int] = Query(None, ge=0, description="Minimum nightly price in cents"),
    max_price: Optional[int] = Query(None, ge=0, description="Maximum nightly price in cents"),
    property_type: Optional[str] = None,
    amenities: List[str] = Query(default=[]),
    check_in: Optional[date] = None,
    check_out: Optional[date] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
) -> List[models.Listing]:
    """
    Search active listings.

    With check_in/check_out, only listings free over that whole range are returned.
    Ordered featured first, then by rating, then newest.
    """
    params = ListingSearch(
        location=location,
        guests=guests,
        min_price_cents=min_price,
        max_price_cents=max_price,
        property_type=property_type,
        amenities=amenities,
        date_range=_optional_range(check_in, check_out),
        page=page,
        limit=limit,
    )
    return search_listings(db, params)


@router.get("/listings/mine", response_model=List[schemas.ListingRead])
def list_my_listings(db: Session = Depends(get_db), user: models.User = Depends(require_host)) -> List[models.Listing]:
    return (
        db.query(models.Listing)
        .filter(models.Listing.host_id == user.id)
        .order_by(models.Listing.id.desc())
        .all()
    )


@router.post(
    "/listings",
    response_model=schemas.ListingRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("write"))],
)
def create_listing(
    payload: schemas.ListingCreate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_host),
) -> models.Listing:
    """
    Create a new listing owned by the authenticated host.

    Validation is handled by Pydantic; this endpoint assigns ownership and persists the record.
    """
    obj = models.Listing(host_id=user.id, **payload.model_dump())
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("listings.created", extra={"listing_id": obj.id, "host_id": user.id})
    return obj


@router.get("/listings/{listing_id}", response_model=schemas.ListingRead)
def read_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    user: Optional[models.User] = Depends(get_current_user_optional),
) -> models.Listing:
    obj = get_listing(db, listing_id)
    # Drafts are private to their host
    if obj.status == "draft" and (user is None or user.id != obj.host_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Listing not found")
    return obj


@router.patch(
    "/listings/{listing_id}",
    response_model=schemas.ListingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def update_listing(
    listing_id: int,
    payload: schemas.ListingUpdate,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_host),
) -> models.Listing:
    obj = _owned_listing(db, listing_id, user)
    changes = payload.model_dump(exclude_unset=True)

    minimum_stay = changes.get("minimum_stay", obj.minimum_stay)
    maximum_stay = changes.get("maximum_stay", obj.maximum_stay)
    if maximum_stay is not None and maximum_stay < minimum_stay:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="maximum_stay must be at least minimum_stay")

    for key, value in changes.items():
        setattr(obj, key, value)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    logger.info("listings.updated", extra={"listing_id": obj.id, "fields": sorted(changes)})
    return obj


@router.delete(
    "/listings/{listing_id}",
    response_model=schemas.ListingRead,
    dependencies=[Depends(rate_limit("write"))],
)
def deactivate_listing(
    listing_id: int,
    db: Session = Depends(get_db),
    user: models.User = Depends(require_host),
) -> models.Listing:
    """
    Soft-delete: the listing becomes 'inactive' and stops accepting bookings.

    Existing bookings keep their listing reference and can still be cancelled or completed.
    """
    obj = _owned_listing(db, listing_id, user)
    if obj.status != "inactive":
        obj.status = "inactive"
        db.add(obj)
        db.commit()
        db.refresh(obj)
        logger.info("listings.deactivated", extra={"listing_id": obj.id})
    return obj


@router.get("/listings/{listing_id}/quote", response_model=schemas.QuoteRead)
def quote_listing(
    listing_id: int,
    check_in: date,
    check_out: date,
    db: Session = Depends(get_db),
) -> schemas.QuoteRead:
    """Price preview for a stay. Booking creation recomputes the price; this quote is display-only."""
    date_range = DateRange(check_in, check_out)
    quote = quote_price(db, listing_id, date_range)
    listing = get_listing(db, listing_id)
    return schemas.QuoteRead(
        listing_id=listing_id,
        check_in=check_in,
        check_out=check_out,
        nights=quote.nights,
        subtotal_cents=quote.subtotal,
        fee_cents=quote.fee,
        total_cents=quote.total,
        currency=listing.currency,
        available=not has_conflict(db, listing_id, date_range),
    )
