"""
Entity Repositories.

Each repository receives its RecordStore at construction:

    store = MemoryRecordStore()
    businesses = BusinessRepository(store)
    reviews = ReviewRepository(store, rollup=RatingRollup.ACCUMULATE)
"""

from bizdirectory.repositories.base import Repository
from bizdirectory.repositories.businesses import BusinessRepository
from bizdirectory.repositories.locations import LocationRepository
from bizdirectory.repositories.products import ProductRepository
from bizdirectory.repositories.reviews import RatingRollup, ReviewRepository

__all__ = [
    "Repository",
    "BusinessRepository",
    "LocationRepository",
    "ProductRepository",
    "RatingRollup",
    "ReviewRepository",
]
