"""
Record store contract.

Repositories only talk to a RecordStore. Indexing, persistence and query
execution belong to the backend; this module defines the calls they rely on.

Usage:
    store = MemoryRecordStore()
    doc_id = await store.create_document("products", {"name": "Coffee"})
    docs = await store.query_documents(
        "products",
        filters=[FieldFilter("business_id", "b-1")],
        order_by=[OrderBy("featured", descending=True)],
    )
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Optional, Sequence


class Collections:
    """Collection (table) names used by the repositories."""

    BUSINESSES = "businesses"
    LOCATIONS = "businessLocations"
    PRODUCTS = "products"
    REVIEWS = "businessReviews"

    ALL = (BUSINESSES, LOCATIONS, PRODUCTS, REVIEWS)


@dataclass(frozen=True)
class FieldFilter:
    """Equality filter on a single field."""

    field: str
    value: Any


@dataclass(frozen=True)
class OrderBy:
    """Sort key. Earlier keys take precedence."""

    field: str
    descending: bool = False


@dataclass(frozen=True)
class Rollup:
    """Running sum and count of a child field, kept on the parent document.

    Every child carries ``flag_field``, set once the child has been added to
    the totals. A child is therefore counted at most once, whichever of
    apply_rollup and recompute_rollup reaches it first.
    """

    parent: str
    child: str
    foreign_key: str
    value_field: str
    sum_field: str
    count_field: str
    flag_field: str


class RecordStore(ABC):
    """
    Abstract document store.

    Every call is an independent request with last-write-wins semantics.
    Returned documents are plain dicts that always include their "id".
    """

    def __init__(self) -> None:
        self._last_now: Optional[datetime] = None

    def now(self) -> datetime:
        """Current UTC time, strictly increasing across calls on this store."""
        current = datetime.now(timezone.utc)
        if self._last_now is not None and current <= self._last_now:
            current = self._last_now + timedelta(microseconds=1)
        self._last_now = current
        return current

    @abstractmethod
    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        """Insert a document and return its new identifier."""

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        """Fetch one document by identifier, or None if it does not exist."""

    @abstractmethod
    async def query_documents(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[dict[str, Any]]:
        """Return every document matching all filters, sorted by order_by."""

    @abstractmethod
    async def update_document(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None:
        """Overwrite the given fields of a document.

        Raises:
            DocumentNotFoundError: If no document has this identifier.
        """

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> None:
        """Delete a document. Deleting a missing document is not an error."""

    @abstractmethod
    async def apply_rollup(
        self,
        rollup: Rollup,
        child_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Add one child to its parent's totals, unless it is already counted.

        Flagging the child, adding its value and count to the parent and
        setting the parent assignments happen atomically.

        Returns:
            True if the child was added, False if it was already counted.

        Raises:
            DocumentNotFoundError: If the child or its parent does not exist.
        """

    @abstractmethod
    async def recompute_rollup(
        self,
        rollup: Rollup,
        parent_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> tuple[float, int]:
        """Rebuild a parent's totals from all of its children.

        Every child of the parent is flagged as counted and the totals are
        written in the same atomic step, so a concurrent apply_rollup for one
        of those children becomes a no-op.

        Returns:
            The new (sum, count).

        Raises:
            DocumentNotFoundError: If the parent does not exist.
        """

    async def close(self) -> None:
        """Release any connection held by the store."""
        return None
