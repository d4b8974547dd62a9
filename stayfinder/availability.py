# Availability checks over the booking ledger.
# A date range is half-open [check_in, check_out): checkout day is a valid check-in day for the next guest.
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Iterable, List

from sqlalchemy.orm import Session

from . import models
from .booking_state import ACTIVE_STATUSES, BookingStatus


@dataclass(frozen=True)
class DateRange:
    check_in: date
    check_out: date

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


def ranges_overlap(a: DateRange, b: DateRange) -> bool:
    return a.check_in < b.check_out and a.check_out > b.check_in


def _overlap_query(
    db: Session,
    listing_id: int,
    date_range: DateRange,
    statuses: Iterable[BookingStatus],
):
    q = db.query(models.Booking).filter(
        models.Booking.listing_id == listing_id,
        models.Booking.status.in_(list(statuses)),
        models.Booking.check_in < date_range.check_out,
        models.Booking.check_out > date_range.check_in,
    )
    return q


def find_overlapping(
    db: Session,
    listing_id: int,
    date_range: DateRange,
    statuses: Iterable[BookingStatus] = ACTIVE_STATUSES,
) -> List[models.Booking]:
    """Bookings of `listing_id` in one of `statuses` whose range overlaps `date_range`, earliest first."""
    return (
        _overlap_query(db, listing_id, date_range, statuses)
        .order_by(models.Booking.check_in.asc(), models.Booking.id.asc())
        .all()
    )


def has_conflict(db: Session, listing_id: int, date_range: DateRange) -> bool:
    """
    Return True if any pending or confirmed booking overlaps `date_range`.

    Pending bookings block too; otherwise two guests could hold the same unconfirmed
    dates and both be confirmed later. Read-only; listing existence is the caller's concern.
    """
    hit = _overlap_query(db, listing_id, date_range, ACTIVE_STATUSES).with_entities(models.Booking.id).first()
    return hit is not None
