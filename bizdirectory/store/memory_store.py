"""In-memory record store for development and tests.

Mirrors the Supabase backend: equality filters, multi-key ordering with
PostgreSQL null placement, generated fields and count-once rollups.

WARNING: Does not persist across restarts and does not share state between
multiple application instances.
"""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Optional, Sequence
from uuid import uuid4

import structlog

from bizdirectory.core.exceptions import DocumentNotFoundError
from bizdirectory.store.base import FieldFilter, OrderBy, RecordStore, Rollup
from bizdirectory.store.schema import GENERATED_FIELDS

logger = structlog.get_logger(__name__)

GeneratedFields = dict[str, dict[str, Callable[[dict[str, Any]], Any]]]


def _sort_key(field_name: str) -> Callable[[dict[str, Any]], tuple]:
    # NULLs compare as the largest value: last ascending, first descending,
    # matching PostgreSQL defaults
    def key(document: dict[str, Any]) -> tuple:
        value = document.get(field_name)
        return (value is None, value)

    return key


class MemoryRecordStore(RecordStore):
    """
    Dict-backed RecordStore.

    Usage:
        store = MemoryRecordStore()
        doc_id = await store.create_document("businesses", {"name": "Cafe"})
    """

    def __init__(self, generated_fields: Optional[GeneratedFields] = None) -> None:
        super().__init__()
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._generated = GENERATED_FIELDS if generated_fields is None else generated_fields
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _check_writable(self, collection: str, fields: dict[str, Any]) -> None:
        generated = self._generated.get(collection, {})
        blocked = sorted(set(fields) & set(generated))
        if blocked:
            raise ValueError(
                f"Cannot write generated fields {blocked} in {collection}"
            )

    def _apply_generated(self, collection: str, document: dict[str, Any]) -> None:
        for field_name, derive in self._generated.get(collection, {}).items():
            document[field_name] = derive(document)

    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        self._check_writable(collection, fields)
        async with self._lock:
            doc_id = str(uuid4())
            document = copy.deepcopy(fields)
            document["id"] = doc_id
            self._apply_generated(collection, document)
            self._collection(collection)[doc_id] = document
        logger.debug("memory_document_created", collection=collection, doc_id=doc_id)
        return doc_id

    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        document = self._collection(collection).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def query_documents(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[dict[str, Any]]:
        matches = [
            document
            for document in self._collection(collection).values()
            if all(
                f.field in document and document[f.field] == f.value for f in filters
            )
        ]
        # Stable sorts applied from the least to the most significant key
        for order in reversed(order_by):
            matches.sort(
                key=_sort_key(order.field),
                reverse=order.descending,
            )
        return [copy.deepcopy(document) for document in matches]

    async def update_document(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None:
        self._check_writable(collection, fields)
        async with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                raise DocumentNotFoundError(collection, doc_id)
            document.update(copy.deepcopy(fields))
            document["id"] = doc_id
            self._apply_generated(collection, document)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        async with self._lock:
            self._collection(collection).pop(doc_id, None)

    def _parent(self, rollup: Rollup, parent_id: Any) -> dict[str, Any]:
        parent = self._collection(rollup.parent).get(parent_id)
        if parent is None:
            raise DocumentNotFoundError(rollup.parent, str(parent_id))
        return parent

    async def apply_rollup(
        self,
        rollup: Rollup,
        child_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> bool:
        assignments = assignments or {}
        self._check_writable(rollup.parent, assignments)
        async with self._lock:
            child = self._collection(rollup.child).get(child_id)
            if child is None:
                raise DocumentNotFoundError(rollup.child, child_id)
            parent = self._parent(rollup, child.get(rollup.foreign_key))
            if child.get(rollup.flag_field):
                return False

            child[rollup.flag_field] = True
            value = child[rollup.value_field]
            parent[rollup.sum_field] = (parent.get(rollup.sum_field) or 0) + value
            parent[rollup.count_field] = (parent.get(rollup.count_field) or 0) + 1
            parent.update(copy.deepcopy(assignments))
            self._apply_generated(rollup.parent, parent)
        return True

    async def recompute_rollup(
        self,
        rollup: Rollup,
        parent_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> tuple[float, int]:
        assignments = assignments or {}
        self._check_writable(rollup.parent, assignments)
        async with self._lock:
            parent = self._parent(rollup, parent_id)
            children = [
                child
                for child in self._collection(rollup.child).values()
                if child.get(rollup.foreign_key) == parent_id
            ]
            for child in children:
                child[rollup.flag_field] = True

            value_sum = float(sum(child[rollup.value_field] for child in children))
            parent[rollup.sum_field] = value_sum
            parent[rollup.count_field] = len(children)
            parent.update(copy.deepcopy(assignments))
            self._apply_generated(rollup.parent, parent)
        return value_sum, len(children)

    def clear(self) -> None:
        """Drop every collection."""
        self._collections.clear()
