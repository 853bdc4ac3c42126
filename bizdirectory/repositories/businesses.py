"""
Business Repository.

Creates, reads, lists and updates businesses, and computes their
statistics from products and reviews on demand.
"""

from __future__ import annotations

from typing import Optional

import structlog

from bizdirectory.models.schemas import (
    Business,
    BusinessCreate,
    BusinessFilters,
    BusinessStats,
    BusinessStatus,
    BusinessUpdate,
)
from bizdirectory.repositories.aggregation import build_business_stats
from bizdirectory.repositories.base import Repository
from bizdirectory.store.base import Collections, FieldFilter, OrderBy

logger = structlog.get_logger(__name__)

LISTING_ORDER = (
    OrderBy("rating", descending=True),
    OrderBy("created_at", descending=True),
)


class BusinessRepository(Repository):
    """Data access for businesses."""

    async def create_business(self, user_id: str, data: BusinessCreate) -> str:
        """Register a business for a user.

        New listings start pending, unverified and without reviews.

        Returns:
            The new business identifier.
        """
        now = self._timestamp()
        fields = {
            **data.to_fields(),
            "user_id": user_id,
            "status": BusinessStatus.PENDING.value,
            "verified": False,
            "rating_sum": 0,
            "total_reviews": 0,
            "created_at": now,
            "updated_at": now,
        }
        try:
            business_id = await self._store.create_document(Collections.BUSINESSES, fields)
        except Exception as e:
            raise self._failed("create_business", e, user_id=user_id) from e

        logger.info("business_created", business_id=business_id, user_id=user_id)
        return business_id

    async def get_business_by_user(self, user_id: str) -> Optional[Business]:
        """Get the business owned by a user, or None.

        Only the first match is returned when a user owns several.
        """
        try:
            documents = await self._store.query_documents(
                Collections.BUSINESSES,
                filters=[FieldFilter("user_id", user_id)],
            )
        except Exception as e:
            raise self._failed("get_business_by_user", e, user_id=user_id) from e

        if not documents:
            return None
        if len(documents) > 1:
            logger.warning(
                "multiple_businesses_for_user",
                user_id=user_id,
                count=len(documents),
            )
        return Business.from_document(documents[0])

    async def get_business(self, business_id: str) -> Optional[Business]:
        """Get a business by identifier, or None if it does not exist."""
        try:
            document = await self._store.get_document(Collections.BUSINESSES, business_id)
        except Exception as e:
            raise self._failed("get_business", e, business_id=business_id) from e

        if document is None:
            return None
        return Business.from_document(document)

    async def list_businesses(
        self, filters: Optional[BusinessFilters] = None
    ) -> list[Business]:
        """List businesses, best rated first, then newest first.

        Args:
            filters: Optional equality filters on category, city and verified.
        """
        filters = filters or BusinessFilters()
        conditions = []
        if filters.category:
            conditions.append(FieldFilter("category", filters.category))
        if filters.city:
            conditions.append(FieldFilter("city", filters.city))
        if filters.verified is not None:
            conditions.append(FieldFilter("verified", filters.verified))

        try:
            documents = await self._store.query_documents(
                Collections.BUSINESSES,
                filters=conditions,
                order_by=LISTING_ORDER,
            )
        except Exception as e:
            raise self._failed(
                "list_businesses", e, filters=filters.model_dump(exclude_none=True)
            ) from e

        return [Business.from_document(document) for document in documents]

    async def update_business(self, business_id: str, data: BusinessUpdate) -> None:
        """Write the fields set on data and refresh updated_at."""
        fields = {**data.to_fields(), "updated_at": self._timestamp()}
        try:
            await self._store.update_document(Collections.BUSINESSES, business_id, fields)
        except Exception as e:
            raise self._failed("update_business", e, business_id=business_id) from e

        logger.info(
            "business_updated",
            business_id=business_id,
            fields=sorted(fields),
        )

    async def get_business_stats(self, business_id: str) -> BusinessStats:
        """Compute catalog and review statistics for a business."""
        by_business = [FieldFilter("business_id", business_id)]
        try:
            products = await self._store.query_documents(
                Collections.PRODUCTS, filters=by_business
            )
            reviews = await self._store.query_documents(
                Collections.REVIEWS, filters=by_business
            )
        except Exception as e:
            raise self._failed("get_business_stats", e, business_id=business_id) from e

        return build_business_stats(products, reviews)
