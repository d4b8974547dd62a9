# Background sweepers for periodic maintenance tasks (e.g., completing finished stays).
# These utilities are invoked from startup threads or scheduler jobs.
from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from sqlalchemy.orm import Session

from .db import SessionLocal
from . import models
from .booking_service import complete_booking
from .booking_state import BookingStatus
from .errors import BookingError
from .locks import redis_try_lock

logger = logging.getLogger("stayfinder.sweepers")

# Held while a sweep runs so only one process in a deployment does the work
SWEEP_LOCK_KEY = "lock:sweeper:complete_bookings"


def complete_finished_bookings(db: Optional[Session] = None, today: Optional[date] = None) -> int:
    """
    Mark confirmed bookings whose checkout date has been reached as 'completed'.

    Semantics:
    - Only processes rows with status == 'confirmed' and check_out <= today.
    - Idempotent across repeated runs; each booking goes through complete_booking.
    - Skips the run when another process holds the sweep lock.
    - Accepts an optional Session; otherwise creates and cleans up its own.

    Returns:
    - Number of bookings completed in this run.
    """
    today = today or date.today()
    # Track whether this call created its own DB session (so we can close it)
    created_session = False
    if db is None:
        db = SessionLocal()
        created_session = True

    try:
        with redis_try_lock(SWEEP_LOCK_KEY, ttl_ms=60_000) as locked:
            if not locked:
                logger.info("sweepers.complete_skipped", extra={"reason": "locked"})
                return 0

            ids = [
                row.id
                for row in db.query(models.Booking.id)
                .filter(
                    models.Booking.status == BookingStatus.CONFIRMED,
                    models.Booking.check_out <= today,
                )
                .order_by(models.Booking.id.asc())
                .all()
            ]
            completed = 0
            for booking_id in ids:
                try:
                    complete_booking(db, booking_id, today=today)
                    completed += 1
                except BookingError as exc:
                    # Cancelled between the scan and the update; nothing to do
                    logger.info("sweepers.complete_skipped", extra={"booking_id": booking_id, "reason": exc.message})
            if completed:
                logger.info("sweepers.completed", extra={"count": completed})
            return completed
    finally:
        # Close the session only if this function created it
        if created_session:
            db.close()
