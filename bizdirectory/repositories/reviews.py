"""
Review Repository.

Creating a review also rolls its rating up onto the business. Two strategies
are available:

- ACCUMULATE: one atomic store-side step adds the new review to
  ``rating_sum`` and ``total_reviews``. The average is the store's generated
  ``rating`` column.
- RECOMPUTE: rebuild the totals from every review of the business.

Each review carries a ``rolled_up`` flag, set by whichever of the two steps
counts it first. A review is never counted twice, even when a recompute runs
between the review write and its accumulation.

The review write and the rollup are two separate store calls. If the rollup
fails, create_review fails with the review already stored and unflagged; the
business totals stay stale until recompute_business_rating succeeds again
(see bizdirectory.scheduler.reconciler).
"""

from __future__ import annotations

from enum import Enum

import structlog

from bizdirectory.core.exceptions import StoreOperationError
from bizdirectory.models.schemas import BusinessReview, RatingSummary, ReviewCreate
from bizdirectory.repositories.aggregation import rating_summary
from bizdirectory.repositories.base import Repository
from bizdirectory.store.base import Collections, FieldFilter, OrderBy, RecordStore
from bizdirectory.store.schema import REVIEW_RATINGS

logger = structlog.get_logger(__name__)


class RatingRollup(str, Enum):
    """How a new review updates its business rating."""

    ACCUMULATE = "accumulate"
    RECOMPUTE = "recompute"


class ReviewRepository(Repository):
    """Data access for reviews, including the business rating rollup."""

    def __init__(
        self,
        store: RecordStore,
        rollup: RatingRollup = RatingRollup.ACCUMULATE,
    ) -> None:
        super().__init__(store)
        self._rollup = RatingRollup(rollup)

    @property
    def rollup(self) -> RatingRollup:
        return self._rollup

    async def create_review(
        self,
        business_id: str,
        user_id: str,
        user_name: str,
        data: ReviewCreate,
    ) -> str:
        """Store a review and roll its rating up onto the business.

        Returns:
            The new review identifier.

        Raises:
            StoreOperationError: If either the review write or the rollup fails.
        """
        fields = {
            **data.to_fields(),
            "business_id": business_id,
            "user_id": user_id,
            "user_name": user_name,
            "created_at": self._timestamp(),
            REVIEW_RATINGS.flag_field: False,
        }
        try:
            review_id = await self._store.create_document(Collections.REVIEWS, fields)
        except Exception as e:
            raise self._failed(
                "create_review", e, business_id=business_id, user_id=user_id
            ) from e

        logger.info(
            "review_created",
            review_id=review_id,
            business_id=business_id,
            rating=data.rating,
        )

        try:
            if self._rollup is RatingRollup.ACCUMULATE:
                await self._accumulate_rating(business_id, review_id)
            else:
                await self.recompute_business_rating(business_id)
        except StoreOperationError:
            logger.warning(
                "business_rating_stale",
                business_id=business_id,
                review_id=review_id,
                rollup=self._rollup.value,
            )
            raise

        return review_id

    async def list_reviews(self, business_id: str) -> list[BusinessReview]:
        """List the reviews of a business, newest first."""
        try:
            documents = await self._store.query_documents(
                Collections.REVIEWS,
                filters=[FieldFilter("business_id", business_id)],
                order_by=[OrderBy("created_at", descending=True)],
            )
        except Exception as e:
            raise self._failed("list_reviews", e, business_id=business_id) from e

        return [BusinessReview.from_document(document) for document in documents]

    async def recompute_business_rating(self, business_id: str) -> RatingSummary:
        """Rebuild the rating totals of a business from all its reviews.

        The store counts every review and writes ``rating_sum``,
        ``total_reviews`` and a fresh ``updated_at`` in one atomic step.
        Idempotent: with an unchanged review set, repeated calls write the
        same totals (only updated_at moves).
        """
        try:
            rating_sum, total_reviews = await self._store.recompute_rollup(
                REVIEW_RATINGS,
                business_id,
                assignments={"updated_at": self._timestamp()},
            )
        except Exception as e:
            raise self._failed(
                "recompute_business_rating", e, business_id=business_id
            ) from e

        summary = rating_summary(rating_sum, total_reviews)
        logger.info(
            "business_rating_recomputed",
            business_id=business_id,
            average_rating=summary.average_rating,
            total_reviews=summary.total_reviews,
        )
        return summary

    async def _accumulate_rating(self, business_id: str, review_id: str) -> None:
        try:
            applied = await self._store.apply_rollup(
                REVIEW_RATINGS,
                review_id,
                assignments={"updated_at": self._timestamp()},
            )
        except Exception as e:
            raise self._failed(
                "accumulate_rating", e, business_id=business_id, review_id=review_id
            ) from e

        if not applied:
            logger.debug(
                "review_already_counted", business_id=business_id, review_id=review_id
            )
