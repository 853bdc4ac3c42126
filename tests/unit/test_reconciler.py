"""Unit tests for the rating reconciler."""

import asyncio
from unittest.mock import AsyncMock

import pytest

from bizdirectory.models import ReviewCreate
from bizdirectory.scheduler import RatingReconciler
from bizdirectory.scheduler.reconciler import JOB_ID
from bizdirectory.store import Collections


@pytest.fixture
def reconciler(businesses, reviews) -> RatingReconciler:
    return RatingReconciler(businesses, reviews, interval_minutes=5)


async def _stale_business(businesses, reviews, store, sample_business, ratings):
    business_id = await businesses.create_business("owner", sample_business)
    for i, rating in enumerate(ratings):
        await reviews.create_review(business_id, f"u{i}", "U", ReviewCreate(rating=rating))
    await store.update_document(
        Collections.BUSINESSES, business_id, {"rating_sum": 0, "total_reviews": 0}
    )
    return business_id


class TestReconcile:

    @pytest.mark.asyncio
    async def test_fixes_all_businesses(
        self, reconciler, businesses, reviews, store, sample_business
    ):
        first = await _stale_business(businesses, reviews, store, sample_business, [5, 3])
        second = await _stale_business(businesses, reviews, store, sample_business, [1])

        result = await reconciler.reconcile()

        assert result.success
        assert set(result.reconciled) == {first, second}
        assert result.finished_at >= result.started_at
        assert (await businesses.get_business(first)).rating == pytest.approx(4.0)
        assert (await businesses.get_business(first)).total_reviews == 2
        assert (await businesses.get_business(second)).rating == pytest.approx(1.0)

    @pytest.mark.asyncio
    async def test_selected_businesses_only(
        self, reconciler, businesses, reviews, store, sample_business
    ):
        chosen = await _stale_business(businesses, reviews, store, sample_business, [4])
        skipped = await _stale_business(businesses, reviews, store, sample_business, [4])

        result = await reconciler.reconcile([chosen])

        assert result.reconciled == [chosen]
        assert (await businesses.get_business(chosen)).total_reviews == 1
        assert (await businesses.get_business(skipped)).total_reviews == 0

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_the_pass(
        self, reconciler, businesses, reviews, store, sample_business
    ):
        good = await _stale_business(businesses, reviews, store, sample_business, [2])

        result = await reconciler.reconcile(["missing", good])

        assert not result.success
        assert "missing" in result.failed
        assert result.reconciled == [good]

    @pytest.mark.asyncio
    async def test_empty_directory(self, reconciler):
        result = await reconciler.reconcile()

        assert result.success
        assert result.reconciled == []

    @pytest.mark.asyncio
    async def test_scheduled_run_logs_and_reraises(self, reconciler):
        reconciler.reconcile = AsyncMock(side_effect=RuntimeError("store down"))

        with pytest.raises(RuntimeError):
            await reconciler._run_scheduled()

    @pytest.mark.asyncio
    async def test_pass_between_review_write_and_rollup(
        self, reconciler, businesses, reviews, store, sample_business
    ):
        """A review the pass already counted is not added again by its rollup."""
        business_id = await businesses.create_business("owner", sample_business)
        review_written = asyncio.Event()
        resume = asyncio.Event()
        apply_rollup = store.apply_rollup

        async def held_apply_rollup(*args, **kwargs):
            review_written.set()
            await resume.wait()
            return await apply_rollup(*args, **kwargs)

        store.apply_rollup = held_apply_rollup
        creating = asyncio.create_task(
            reviews.create_review(business_id, "u1", "A", ReviewCreate(rating=4))
        )
        await review_written.wait()

        result = await reconciler.reconcile([business_id])
        resume.set()
        await creating

        assert result.success
        document = await store.get_document(Collections.BUSINESSES, business_id)
        assert document["total_reviews"] == 1
        assert document["rating_sum"] == 4
        assert (await businesses.get_business(business_id)).rating == pytest.approx(4.0)


class TestSchedule:

    def test_rejects_non_positive_interval(self, businesses, reviews):
        with pytest.raises(ValueError):
            RatingReconciler(businesses, reviews, interval_minutes=0)

    @pytest.mark.asyncio
    async def test_start_and_stop(self, reconciler):
        await reconciler.start()
        try:
            assert reconciler.is_running
            job = reconciler._scheduler.get_job(JOB_ID)
            assert job is not None
            assert job.trigger.interval.total_seconds() == 5 * 60
        finally:
            await reconciler.stop()

        assert not reconciler.is_running

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_scheduler(self, reconciler):
        await reconciler.start()
        scheduler = reconciler._scheduler
        try:
            await reconciler.start()
            assert reconciler._scheduler is scheduler
        finally:
            await reconciler.stop()

    @pytest.mark.asyncio
    async def test_stop_when_not_running(self, reconciler):
        await reconciler.stop()

        assert not reconciler.is_running
