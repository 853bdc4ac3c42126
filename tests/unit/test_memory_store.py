"""Unit tests for the in-memory record store."""

import pytest

from bizdirectory.core.exceptions import DocumentNotFoundError
from bizdirectory.store import Collections, FieldFilter, MemoryRecordStore, OrderBy
from bizdirectory.store.schema import REVIEW_RATINGS


class TestMemoryRecordStoreCrud:
    """Create, read, update and delete."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, store):
        """Created documents come back with their id."""
        doc_id = await store.create_document("things", {"name": "a"})

        document = await store.get_document("things", doc_id)

        assert document == {"id": doc_id, "name": "a"}

    @pytest.mark.asyncio
    async def test_get_unknown_returns_none(self, store):
        """Unknown ids are absent, not errors."""
        assert await store.get_document("things", "missing") is None

    @pytest.mark.asyncio
    async def test_returned_documents_are_copies(self, store):
        """Mutating a returned document does not change the stored one."""
        doc_id = await store.create_document("things", {"tags": ["x"]})

        document = await store.get_document("things", doc_id)
        document["tags"].append("y")

        assert (await store.get_document("things", doc_id))["tags"] == ["x"]

    @pytest.mark.asyncio
    async def test_update_merges_fields(self, store):
        """Update overwrites only the given fields."""
        doc_id = await store.create_document("things", {"name": "a", "size": 1})

        await store.update_document("things", doc_id, {"size": 2})

        assert await store.get_document("things", doc_id) == {
            "id": doc_id,
            "name": "a",
            "size": 2,
        }

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self, store):
        """Updating a missing document fails."""
        with pytest.raises(DocumentNotFoundError):
            await store.update_document("things", "missing", {"size": 2})

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, store):
        """Deleting twice, or deleting a missing id, does not fail."""
        doc_id = await store.create_document("things", {"name": "a"})

        await store.delete_document("things", doc_id)
        await store.delete_document("things", doc_id)
        await store.delete_document("things", "never-existed")

        assert await store.get_document("things", doc_id) is None


class TestMemoryRecordStoreQueries:
    """Filtering and ordering."""

    @pytest.mark.asyncio
    async def test_equality_filters(self, store):
        """All filters must match."""
        await store.create_document("things", {"color": "red", "size": 1})
        await store.create_document("things", {"color": "red", "size": 2})
        await store.create_document("things", {"color": "blue", "size": 1})

        results = await store.query_documents(
            "things",
            filters=[FieldFilter("color", "red"), FieldFilter("size", 1)],
        )

        assert len(results) == 1
        assert results[0]["color"] == "red"
        assert results[0]["size"] == 1

    @pytest.mark.asyncio
    async def test_filter_on_missing_field_does_not_match(self, store):
        """Documents without the filtered field are excluded."""
        await store.create_document("things", {"color": "red"})

        results = await store.query_documents(
            "things", filters=[FieldFilter("size", None)]
        )

        assert results == []

    @pytest.mark.asyncio
    async def test_multi_key_ordering(self, store):
        """First key dominates, second key breaks ties."""
        await store.create_document("things", {"name": "a", "flag": False, "rank": 1})
        await store.create_document("things", {"name": "b", "flag": True, "rank": 2})
        await store.create_document("things", {"name": "c", "flag": True, "rank": 1})
        await store.create_document("things", {"name": "d", "flag": False, "rank": 3})

        results = await store.query_documents(
            "things",
            order_by=[OrderBy("flag", descending=True), OrderBy("rank")],
        )

        assert [r["name"] for r in results] == ["c", "b", "a", "d"]

    @pytest.mark.asyncio
    async def test_nulls_last_ascending_first_descending(self, store):
        """Null placement follows PostgreSQL defaults."""
        await store.create_document("things", {"name": "a", "rank": 2})
        await store.create_document("things", {"name": "b", "rank": None})
        await store.create_document("things", {"name": "c", "rank": 1})

        ascending = await store.query_documents("things", order_by=[OrderBy("rank")])
        descending = await store.query_documents(
            "things", order_by=[OrderBy("rank", descending=True)]
        )

        assert [r["name"] for r in ascending] == ["c", "a", "b"]
        assert [r["name"] for r in descending] == ["b", "a", "c"]

    @pytest.mark.asyncio
    async def test_empty_collection(self, store):
        """Querying a collection that was never written returns nothing."""
        assert await store.query_documents("nothing") == []


class TestMemoryRecordStoreDerivedFields:
    """Generated fields and count-once rollups."""

    @pytest.mark.asyncio
    async def test_business_rating_is_generated(self, store):
        """rating follows rating_sum / total_reviews."""
        doc_id = await store.create_document(
            Collections.BUSINESSES, {"rating_sum": 0, "total_reviews": 0}
        )
        assert (await store.get_document(Collections.BUSINESSES, doc_id))["rating"] == 0.0

        await store.update_document(
            Collections.BUSINESSES, doc_id, {"rating_sum": 9, "total_reviews": 2}
        )

        document = await store.get_document(Collections.BUSINESSES, doc_id)
        assert document["rating"] == pytest.approx(4.5)

    @pytest.mark.asyncio
    async def test_generated_field_cannot_be_written(self, store):
        """Writing a generated field is rejected, as the database would."""
        with pytest.raises(ValueError):
            await store.create_document(Collections.BUSINESSES, {"rating": 5})

    @pytest.mark.asyncio
    async def test_apply_rollup_counts_child_once(self, store):
        """A child is added to its parent's totals the first time only."""
        business_id = await store.create_document(
            Collections.BUSINESSES, {"rating_sum": 4, "total_reviews": 1, "updated_at": "t0"}
        )
        review_id = await store.create_document(
            Collections.REVIEWS,
            {"business_id": business_id, "rating": 2, "rolled_up": False},
        )

        first = await store.apply_rollup(
            REVIEW_RATINGS, review_id, assignments={"updated_at": "t1"}
        )
        second = await store.apply_rollup(
            REVIEW_RATINGS, review_id, assignments={"updated_at": "t2"}
        )

        assert first is True
        assert second is False
        document = await store.get_document(Collections.BUSINESSES, business_id)
        assert document["rating_sum"] == 6
        assert document["total_reviews"] == 2
        assert document["rating"] == pytest.approx(3.0)
        assert document["updated_at"] == "t1"
        review = await store.get_document(Collections.REVIEWS, review_id)
        assert review["rolled_up"] is True

    @pytest.mark.asyncio
    async def test_apply_rollup_unknown_child_raises(self, store):
        """Rolling up a missing child fails."""
        with pytest.raises(DocumentNotFoundError):
            await store.apply_rollup(REVIEW_RATINGS, "missing")

    @pytest.mark.asyncio
    async def test_apply_rollup_unknown_parent_raises(self, store):
        """A child whose parent is gone is left uncounted."""
        review_id = await store.create_document(
            Collections.REVIEWS,
            {"business_id": "missing", "rating": 5, "rolled_up": False},
        )

        with pytest.raises(DocumentNotFoundError):
            await store.apply_rollup(REVIEW_RATINGS, review_id)

        review = await store.get_document(Collections.REVIEWS, review_id)
        assert review["rolled_up"] is False

    @pytest.mark.asyncio
    async def test_recompute_rollup_rebuilds_totals(self, store):
        """Totals come from the children and every child is marked counted."""
        business_id = await store.create_document(
            Collections.BUSINESSES, {"rating_sum": 99, "total_reviews": 7}
        )
        other_id = await store.create_document(
            Collections.BUSINESSES, {"rating_sum": 0, "total_reviews": 0}
        )
        for rating in (5, 4):
            await store.create_document(
                Collections.REVIEWS,
                {"business_id": business_id, "rating": rating, "rolled_up": False},
            )
        stray_id = await store.create_document(
            Collections.REVIEWS,
            {"business_id": other_id, "rating": 1, "rolled_up": False},
        )

        totals = await store.recompute_rollup(
            REVIEW_RATINGS, business_id, assignments={"updated_at": "t1"}
        )

        assert totals == (9.0, 2)
        document = await store.get_document(Collections.BUSINESSES, business_id)
        assert document["rating_sum"] == 9.0
        assert document["total_reviews"] == 2
        assert document["rating"] == pytest.approx(4.5)
        assert document["updated_at"] == "t1"
        reviews = await store.query_documents(
            Collections.REVIEWS, filters=[FieldFilter("business_id", business_id)]
        )
        assert all(review["rolled_up"] for review in reviews)
        stray = await store.get_document(Collections.REVIEWS, stray_id)
        assert stray["rolled_up"] is False

    @pytest.mark.asyncio
    async def test_apply_after_recompute_is_noop(self, store):
        """A child already counted by a recompute is not added again."""
        business_id = await store.create_document(
            Collections.BUSINESSES, {"rating_sum": 0, "total_reviews": 0}
        )
        review_id = await store.create_document(
            Collections.REVIEWS,
            {"business_id": business_id, "rating": 4, "rolled_up": False},
        )

        await store.recompute_rollup(REVIEW_RATINGS, business_id)
        applied = await store.apply_rollup(REVIEW_RATINGS, review_id)

        assert applied is False
        document = await store.get_document(Collections.BUSINESSES, business_id)
        assert document["rating_sum"] == 4
        assert document["total_reviews"] == 1

    @pytest.mark.asyncio
    async def test_recompute_rollup_unknown_parent_raises(self, store):
        """Recomputing a missing parent fails."""
        with pytest.raises(DocumentNotFoundError):
            await store.recompute_rollup(REVIEW_RATINGS, "missing")

    @pytest.mark.asyncio
    async def test_without_generated_fields(self):
        """Generated fields can be switched off."""
        plain = MemoryRecordStore(generated_fields={})

        doc_id = await plain.create_document(Collections.BUSINESSES, {"rating": 5})

        assert (await plain.get_document(Collections.BUSINESSES, doc_id))["rating"] == 5


class TestStoreClock:
    """Monotonic now()."""

    def test_now_is_strictly_increasing(self, store):
        """Consecutive calls never return the same instant."""
        stamps = [store.now() for _ in range(100)]

        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    def test_now_is_utc(self, store):
        """Timestamps are timezone aware."""
        assert store.now().utcoffset().total_seconds() == 0
