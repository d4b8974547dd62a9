# SQLAlchemy ORM models for core domain tables (users, listings, bookings, reviews).
# Keep business logic out of models; favor services and transactional logic in route handlers/services.
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    JSON,
    String,
    Text,
    func,
)
from sqlalchemy.orm import declarative_mixin, relationship

from .booking_state import BookingStatus
from .db import Base


@declarative_mixin
class TimestampMixin:
    """Common UTC-aware timestamps automatically managed by the database.

    - created_at: set on insert
    - updated_at: set on insert and updated on each modification
    """
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)


class User(Base, TimestampMixin):
    """Application user account.

    Roles:
    - host: can list/manage properties and approve bookings on them
    - guest: can book properties and review completed stays
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # "host" or "guest"


class Listing(Base, TimestampMixin):
    """Rental listing created and managed by a host.

    Listings are never hard-deleted; deactivation flips `status` to 'inactive'
    so existing bookings keep a valid reference.

    'booking_version' is bumped by every booking insert and serves as the
    compare-and-swap token that serializes booking creation per listing.
    """
    __tablename__ = "listings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    host_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False, default="")
    property_type = Column(String(20), nullable=False, index=True)
    category = Column(String(20), nullable=False, default="Entire place")
    price_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    address = Column(String(255), nullable=False, default="")
    city = Column(String(100), nullable=False, index=True)
    country = Column(String(100), nullable=False, index=True)
    bedrooms = Column(Integer, nullable=False, default=1)
    bathrooms = Column(Float, nullable=False, default=1)
    max_guests = Column(Integer, nullable=False)
    amenities = Column(JSON, nullable=False, default=list)
    instant_book = Column(Boolean, nullable=False, default=False)
    minimum_stay = Column(Integer, nullable=False, default=1)
    maximum_stay = Column(Integer, nullable=True)
    status = Column(String(20), nullable=False, default="active", index=True)
    featured = Column(Boolean, nullable=False, default=False)
    rating_overall = Column(Float, nullable=False, default=0)
    review_count = Column(Integer, nullable=False, default=0)
    booking_version = Column(Integer, nullable=False, default=0)

    host = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint("price_cents > 0", name="ck_listings_price_positive"),
        CheckConstraint("max_guests >= 1", name="ck_listings_max_guests"),
        Index("ix_listings_city_country", "city", "country"),
        Index("ix_listings_price_cents", "price_cents"),
    )


class Booking(Base, TimestampMixin):
    """Reservation record for a listing over the half-open range [check_in, check_out).

    Status transitions (see booking_state.py):
    pending -> confirmed -> completed
       └──────────┴──> cancelled

    Price fields are always computed server-side at creation time.
    'version' is incremented on each status change.
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    guest_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    guests = Column(Integer, nullable=False)
    status = Column(
        Enum(
            BookingStatus,
            name="booking_status",
            native_enum=False,
            length=20,
            values_callable=lambda enum_cls: [m.value for m in enum_cls],
        ),
        nullable=False,
        default=BookingStatus.PENDING,
    )
    nights = Column(Integer, nullable=False)
    subtotal_cents = Column(Integer, nullable=False)
    fee_cents = Column(Integer, nullable=False)
    total_cents = Column(Integer, nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    special_requests = Column(String(1000), nullable=True)
    cancel_reason = Column(String(255), nullable=True)
    version = Column(Integer, nullable=False, default=1)

    listing = relationship("Listing", lazy="joined")
    guest = relationship("User", lazy="joined")

    # Indexed access patterns: overlap scans by listing/date range, per-status sweeps
    __table_args__ = (
        CheckConstraint("check_out > check_in", name="ck_bookings_range"),
        CheckConstraint("guests >= 1", name="ck_bookings_guests"),
        Index("ix_bookings_listing_check_in", "listing_id", "check_in"),
        Index("ix_bookings_listing_check_out", "listing_id", "check_out"),
        Index("ix_bookings_status", "status"),
    )


class Review(Base):
    """Guest review of a completed stay; at most one per booking."""
    __tablename__ = "reviews"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, unique=True)
    listing_id = Column(Integer, ForeignKey("listings.id"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    rating = Column(Integer, nullable=False)
    comment = Column(String(2000), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    author = relationship("User", lazy="joined")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_reviews_rating"),
        Index("ix_reviews_listing_created_at", "listing_id", "created_at"),
    )
