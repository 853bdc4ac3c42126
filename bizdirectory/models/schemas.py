"""Pydantic models for directory records, write requests and filters."""

from datetime import datetime
from enum import Enum
from typing import Any, ClassVar, Optional

from pydantic import BaseModel, Field, model_validator

from bizdirectory.store.timestamps import decode_optional_timestamp, decode_timestamp


class BusinessStatus(str, Enum):
    """Moderation status of a business listing."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class ProductKind(str, Enum):
    """Whether a catalog item is a product or a service."""
    PRODUCT = "product"
    SERVICE = "service"


# =============================================================================
# Base Models
# =============================================================================


class BaseEntity(BaseModel):
    """Base model for stored records.

    Stored timestamps are converted to aware datetimes on the way in.
    """

    # Timestamp fields present on every document of this record kind
    timestamp_fields: ClassVar[tuple[str, ...]] = ()
    # Timestamp fields that may be missing or null
    optional_timestamp_fields: ClassVar[tuple[str, ...]] = ()

    class Config:
        from_attributes = True
        populate_by_name = True
        extra = "ignore"

    @classmethod
    def from_document(cls, document: dict[str, Any]):
        """Create a record from a stored document."""
        data = dict(document)
        data["id"] = str(data["id"])
        for field_name in cls.timestamp_fields:
            data[field_name] = decode_timestamp(data[field_name])
        for field_name in cls.optional_timestamp_fields:
            data[field_name] = decode_optional_timestamp(data.get(field_name))
        return cls.model_validate(data)


class WriteModel(BaseModel):
    """Base model for create/update payloads."""

    # Fields that may be left out but never cleared to None
    non_nullable_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def reject_cleared_fields(self):
        cleared = sorted(
            name
            for name in self.non_nullable_fields & self.model_fields_set
            if getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be cleared: {', '.join(cleared)}")
        return self

    def to_fields(self) -> dict[str, Any]:
        """Fields to store: only those the caller explicitly set."""
        return self.model_dump(mode="json", exclude_unset=True)


# =============================================================================
# Businesses
# =============================================================================


class BusinessCreate(WriteModel):
    """Payload for registering a business."""

    name: str = Field(..., min_length=1, max_length=255, description="Business name")
    description: str = Field("", description="Free-form description")
    category: str = Field(..., description="Directory category")
    city: str = Field(..., description="City name")
    address: Optional[str] = Field(None, description="Street address")
    phone: Optional[str] = Field(None, max_length=30, description="Phone number")
    email: Optional[str] = Field(None, description="Contact email")
    website: Optional[str] = Field(None, description="Website URL")
    logo_url: Optional[str] = Field(None, description="Logo image URL")

    def to_fields(self) -> dict[str, Any]:
        # Defaults are part of a new listing
        return self.model_dump(mode="json")


class BusinessUpdate(WriteModel):
    """Partial business update. Derived rating fields cannot be set."""

    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"name", "description", "category", "city", "status", "verified"}
    )

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = Field(None, max_length=30)
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    status: Optional[BusinessStatus] = None
    verified: Optional[bool] = None


class Business(BaseEntity):
    """A business listed in the directory."""

    timestamp_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    id: str = Field(..., description="Unique identifier")
    user_id: str = Field(..., description="Owning user")
    name: str
    description: str = ""
    category: str
    city: str
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    website: Optional[str] = None
    logo_url: Optional[str] = None
    status: BusinessStatus = BusinessStatus.PENDING
    verified: bool = False
    rating: float = Field(0.0, description="Average review rating (derived)")
    rating_sum: float = Field(0.0, description="Sum of review ratings (derived)")
    total_reviews: int = Field(0, description="Number of reviews (derived)")
    created_at: datetime
    updated_at: datetime


class BusinessFilters(BaseModel):
    """Optional equality filters for listing businesses."""

    category: Optional[str] = None
    city: Optional[str] = None
    verified: Optional[bool] = None


# =============================================================================
# Locations
# =============================================================================


class LocationCreate(WriteModel):
    """Payload for adding a business location."""

    name: Optional[str] = Field(None, description="Display name, e.g. 'Downtown'")
    address: str = Field(..., description="Street address")
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    phone: Optional[str] = None
    opening_hours: dict[str, Any] = Field(default_factory=dict)
    is_primary: bool = Field(False, description="Main location of the business")

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class LocationUpdate(WriteModel):
    """Partial location update."""

    non_nullable_fields: ClassVar[frozenset[str]] = frozenset({"address", "is_primary"})

    name: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90.0, le=90.0)
    longitude: Optional[float] = Field(None, ge=-180.0, le=180.0)
    phone: Optional[str] = None
    opening_hours: Optional[dict[str, Any]] = None
    is_primary: Optional[bool] = None


class BusinessLocation(BaseEntity):
    """A physical location of a business."""

    timestamp_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    id: str
    business_id: str
    name: Optional[str] = None
    address: str
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    phone: Optional[str] = None
    opening_hours: Optional[dict[str, Any]] = None
    is_primary: bool = False
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Products
# =============================================================================


class ProductCreate(WriteModel):
    """Payload for adding a product or service."""

    name: str = Field(..., min_length=1, max_length=255)
    description: str = ""
    kind: ProductKind = Field(..., description="product or service")
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0.0)
    currency: Optional[str] = Field(None, max_length=3)
    image_url: Optional[str] = None
    featured: bool = False
    available: bool = True

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class ProductUpdate(WriteModel):
    """Partial product update."""

    non_nullable_fields: ClassVar[frozenset[str]] = frozenset(
        {"name", "description", "kind", "featured", "available"}
    )

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    kind: Optional[ProductKind] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0.0)
    currency: Optional[str] = Field(None, max_length=3)
    image_url: Optional[str] = None
    featured: Optional[bool] = None
    available: Optional[bool] = None


class Product(BaseEntity):
    """A product or service offered by a business."""

    timestamp_fields: ClassVar[tuple[str, ...]] = ("created_at", "updated_at")

    id: str
    business_id: str
    name: str
    description: str = ""
    kind: ProductKind
    category: Optional[str] = None
    price: Optional[float] = None
    currency: Optional[str] = None
    image_url: Optional[str] = None
    featured: bool = False
    available: bool = True
    created_at: datetime
    updated_at: datetime


class ProductFilters(BaseModel):
    """Optional equality filters for listing products."""

    category: Optional[str] = None
    kind: Optional[ProductKind] = None
    available: Optional[bool] = None
    featured: Optional[bool] = None


# =============================================================================
# Reviews
# =============================================================================


class ReviewCreate(WriteModel):
    """Payload for a new review."""

    rating: float = Field(..., ge=1.0, le=5.0, description="Rating (1-5)")
    comment: str = Field("", description="Review text")

    def to_fields(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class BusinessReview(BaseEntity):
    """A customer review of a business."""

    timestamp_fields: ClassVar[tuple[str, ...]] = ("created_at",)
    optional_timestamp_fields: ClassVar[tuple[str, ...]] = ("response_at",)

    id: str
    business_id: str
    user_id: str
    user_name: str
    rating: float
    comment: str = ""
    response: Optional[str] = Field(None, description="Reply from the business")
    response_at: Optional[datetime] = None
    created_at: datetime


# =============================================================================
# Derived
# =============================================================================


class RatingSummary(BaseModel):
    """Rating rollup written back onto a business."""

    average_rating: float = 0.0
    total_reviews: int = 0
    rating_sum: float = 0.0


class BusinessStats(BaseModel):
    """On-demand statistics for a business. Not persisted."""

    total_products: int = 0
    total_services: int = 0
    featured_products: int = 0
    average_rating: float = 0.0
    total_reviews: int = 0
    # Not computed yet: no sales or analytics source exists
    total_sales: int = 0
    monthly_sales: int = 0
    profile_visits: int = 0
