"""
Data Models and Schemas.

Records returned by the repositories, the payloads they accept and the
derived statistics:

- Business, BusinessLocation, Product, BusinessReview: stored records
- *Create / *Update: write payloads (updates only carry the fields set)
- BusinessFilters, ProductFilters: equality filters for listings
- BusinessStats, RatingSummary: derived, computed on demand

Example:
    from bizdirectory.models import BusinessCreate

    data = BusinessCreate(name="Cafe Luna", category="food", city="Lima")
"""

from bizdirectory.models.schemas import (
    BaseEntity,
    Business,
    BusinessCreate,
    BusinessFilters,
    BusinessLocation,
    BusinessReview,
    BusinessStats,
    BusinessStatus,
    BusinessUpdate,
    LocationCreate,
    LocationUpdate,
    Product,
    ProductCreate,
    ProductFilters,
    ProductKind,
    ProductUpdate,
    RatingSummary,
    ReviewCreate,
    WriteModel,
)

__all__ = [
    "BaseEntity",
    "Business",
    "BusinessCreate",
    "BusinessFilters",
    "BusinessLocation",
    "BusinessReview",
    "BusinessStats",
    "BusinessStatus",
    "BusinessUpdate",
    "LocationCreate",
    "LocationUpdate",
    "Product",
    "ProductCreate",
    "ProductFilters",
    "ProductKind",
    "ProductUpdate",
    "RatingSummary",
    "ReviewCreate",
    "WriteModel",
]
