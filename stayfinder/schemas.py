# Pydantic models (request/response DTOs) used by the API layer.
# Keep models minimal and serializable; business logic lives in services/DB.
from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator, EmailStr
from typing import List, Literal, Optional
from datetime import date, datetime

from .booking_state import BookingStatus


PropertyType = Literal[
    "Apartment", "House", "Villa", "Cabin", "Loft", "Townhouse", "Condo", "Bungalow", "Studio", "Other"
]
Category = Literal["Entire place", "Private room", "Shared room"]
Currency = Literal["USD", "EUR", "GBP", "CAD", "AUD", "JPY"]
ListingStatus = Literal["draft", "active", "inactive", "suspended"]


# Listings
# Base attributes for a listing (shared by create/read)
class ListingBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    description: str = Field("", max_length=2000)
    property_type: PropertyType
    category: Category = "Entire place"
    price_cents: int = Field(..., gt=0, le=1_000_000)
    currency: Currency = "USD"
    address: str = Field("", max_length=255)
    city: str = Field(..., min_length=1, max_length=100)
    country: str = Field(..., min_length=1, max_length=100)
    bedrooms: int = Field(1, ge=0, le=20)
    bathrooms: float = Field(1, ge=0.5, le=20)
    max_guests: int = Field(..., ge=1, le=50)
    amenities: List[str] = Field(default_factory=list)
    instant_book: bool = False
    minimum_stay: int = Field(1, ge=1)
    maximum_stay: Optional[int] = Field(None, ge=1)

    @field_validator("title", "city", "country", mode="before")
    @classmethod
    def strip_text(cls, v: str) -> str:
        # Trim surrounding whitespace before validation
        if isinstance(v, str):
            v = v.strip()
        return v

    @model_validator(mode="after")
    def check_stay_bounds(self):
        if self.maximum_stay is not None and self.maximum_stay < self.minimum_stay:
            raise ValueError("maximum_stay must be at least minimum_stay")
        return self


# Payload for creating a new listing; hosts may keep it as a draft
class ListingCreate(ListingBase):
    status: Literal["draft", "active"] = "active"


# Partial update by the owning host; only provided fields change
class ListingUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    price_cents: Optional[int] = Field(None, gt=0, le=1_000_000)
    max_guests: Optional[int] = Field(None, ge=1, le=50)
    amenities: Optional[List[str]] = None
    instant_book: Optional[bool] = None
    minimum_stay: Optional[int] = Field(None, ge=1)
    maximum_stay: Optional[int] = Field(None, ge=1)
    status: Optional[Literal["draft", "active", "inactive"]] = None

    # Omitted means unchanged; only maximum_stay may be cleared with null
    @field_validator(
        "title", "description", "price_cents", "max_guests", "amenities", "instant_book", "minimum_stay", "status"
    )
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("may be omitted but not null")
        return v


# Host display fields embedded in listing responses
class HostSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# Response shape when reading a listing from the API
class ListingRead(ListingBase):
    id: int
    host_id: int
    status: ListingStatus
    featured: bool = False
    rating_overall: float = 0
    review_count: int = 0
    host: Optional[HostSummary] = None

    model_config = ConfigDict(from_attributes=True)


# Price preview for a stay; amounts in minor units of `currency`
class QuoteRead(BaseModel):
    listing_id: int
    check_in: date
    check_out: date
    nights: int
    subtotal_cents: int
    fee_cents: int
    total_cents: int
    currency: str
    available: bool


# Bookings
# Request payload for creating a booking
class BookingCreate(BaseModel):
    listing_id: int = Field(..., ge=1)
    check_in: date
    check_out: date
    # Bounds are checked against the listing when the booking is created
    guests: int = 1
    special_requests: Optional[str] = Field(None, max_length=1000)
    # Display hint from the client's own price preview; never stored
    total_price_cents: Optional[int] = None


# Listing display fields embedded in booking responses
class ListingSummary(BaseModel):
    id: int
    title: str
    city: str
    country: str
    host_id: int

    model_config = ConfigDict(from_attributes=True)


# Guest display fields embedded in booking responses
class GuestSummary(BaseModel):
    id: int
    name: str

    model_config = ConfigDict(from_attributes=True)


# API response for a booking record
class BookingRead(BaseModel):
    id: int
    listing_id: int
    guest_id: int
    check_in: date
    check_out: date
    guests: int
    status: BookingStatus
    nights: int
    subtotal_cents: int
    fee_cents: int
    total_cents: int
    currency: str = "USD"
    special_requests: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    listing: Optional[ListingSummary] = None
    guest: Optional[GuestSummary] = None

    model_config = ConfigDict(from_attributes=True)


# Requested status change; the server decides whether the caller may make it
class BookingStatusUpdate(BaseModel):
    status: BookingStatus


# Reviews
class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    comment: str = Field("", max_length=2000)

    @field_validator("comment", mode="before")
    @classmethod
    def normalize_comment(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip()
        return v


class ReviewRead(BaseModel):
    id: int
    booking_id: int
    listing_id: int
    author_id: int
    rating: int
    comment: str
    created_at: datetime
    author: Optional[GuestSummary] = None

    model_config = ConfigDict(from_attributes=True)


# Authentication and user models

# User roles within the system
Role = Literal["host", "guest"]


# Common user fields shared by create/read
class UserBase(BaseModel):
    name: str
    email: EmailStr
    role: Role

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        return v


# Request payload for user registration
class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=8)
    role: Role = "guest"

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        return v


# API response for a user record
class UserRead(UserBase):
    id: int

    model_config = ConfigDict(from_attributes=True)


# Request payload for logging in
class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)

    # Normalize email input to lowercase without surrounding whitespace
    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        if isinstance(v, str):
            v = v.strip().lower()
        return v


# OAuth2-style token response bundled with the current user profile
class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
