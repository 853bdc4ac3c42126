"""Background reconciliation of business rating totals.

Review creation writes the review and then rolls the rating up in a second
store call. When that second call fails the business totals go stale. The
reconciler re-runs the idempotent recompute for businesses on an interval so
the totals converge on the stored reviews.

Usage:
    reconciler = RatingReconciler(businesses, reviews, interval_minutes=60)
    await reconciler.start()
    ...
    await reconciler.stop()

    # One-off pass
    result = await reconciler.reconcile()
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Optional

import structlog
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from bizdirectory.repositories.businesses import BusinessRepository
from bizdirectory.repositories.reviews import ReviewRepository

logger = structlog.get_logger(__name__)

JOB_ID = "rating_reconciliation"


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation pass."""

    started_at: datetime
    finished_at: Optional[datetime] = None
    reconciled: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def success(self) -> bool:
        return not self.failed


class RatingReconciler:
    """Recomputes business ratings, once or on a schedule.

    Args:
        businesses: Repository used to enumerate businesses.
        reviews: Repository that owns the recompute.
        interval_minutes: Minutes between two scheduled passes.
    """

    def __init__(
        self,
        businesses: BusinessRepository,
        reviews: ReviewRepository,
        interval_minutes: int = 60,
    ) -> None:
        if interval_minutes <= 0:
            raise ValueError("interval_minutes must be positive")
        self._businesses = businesses
        self._reviews = reviews
        self._interval_minutes = interval_minutes
        self._scheduler: Optional[AsyncIOScheduler] = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        """Check if the scheduled job is active."""
        return self._is_running

    @property
    def interval_minutes(self) -> int:
        return self._interval_minutes

    async def reconcile(
        self, business_ids: Optional[Iterable[str]] = None
    ) -> ReconciliationResult:
        """Recompute ratings for the given businesses, or all of them.

        A failure on one business is recorded and the pass continues.

        Raises:
            StoreOperationError: If the businesses cannot be listed.
        """
        result = ReconciliationResult(started_at=datetime.now(timezone.utc))

        if business_ids is None:
            targets = [business.id for business in await self._businesses.list_businesses()]
        else:
            targets = list(business_ids)

        logger.info("rating_reconciliation_started", businesses=len(targets))

        for business_id in targets:
            try:
                await self._reviews.recompute_business_rating(business_id)
                result.reconciled.append(business_id)
            except Exception as e:
                logger.warning(
                    "business_reconciliation_failed",
                    business_id=business_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                result.failed[business_id] = str(e)

        result.finished_at = datetime.now(timezone.utc)
        logger.info(
            "rating_reconciliation_finished",
            reconciled=len(result.reconciled),
            failed=len(result.failed),
            duration_seconds=(result.finished_at - result.started_at).total_seconds(),
        )
        return result

    async def _run_scheduled(self) -> None:
        try:
            await self.reconcile()
        except Exception as e:
            logger.error(
                "rating_reconciliation_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise

    async def start(self) -> None:
        """Start running reconcile() every interval_minutes."""
        if self._is_running:
            logger.warning("reconciler_already_running")
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self._run_scheduled,
            trigger=IntervalTrigger(minutes=self._interval_minutes),
            id=JOB_ID,
            name="Rating reconciliation",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        self._is_running = True
        logger.info("reconciler_started", interval_minutes=self._interval_minutes)

    async def stop(self) -> None:
        """Stop the scheduled job."""
        if not self._is_running:
            logger.warning("reconciler_not_running")
            return

        if self._scheduler:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None

        self._is_running = False
        logger.info("reconciler_stopped")
