"""
Supabase Record Store.

Implements RecordStore over the Supabase async client (PostgREST tables plus
the apply_rollup and recompute_rollup RPCs from bizdirectory.store.schema).

Ids are UUID columns. PostgREST rejects a malformed id with SQLSTATE 22P02
instead of matching nothing; such ids are treated as unknown.

Usage:
    async with SupabaseRecordStore(url, key) as store:
        doc = await store.get_document("businesses", business_id)
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

import structlog
from postgrest.exceptions import APIError
from supabase import AsyncClient, acreate_client

from bizdirectory.core.exceptions import DocumentNotFoundError, InitializationError
from bizdirectory.store.base import FieldFilter, OrderBy, RecordStore, Rollup

logger = structlog.get_logger(__name__)

APPLY_ROLLUP_FUNCTION = "apply_rollup"
RECOMPUTE_ROLLUP_FUNCTION = "recompute_rollup"

# SQLSTATE codes
NO_DATA_FOUND = "P0002"
INVALID_TEXT_REPRESENTATION = "22P02"


def _is_invalid_id(error: APIError) -> bool:
    return error.code == INVALID_TEXT_REPRESENTATION


def _rollup_params(rollup: Rollup) -> dict[str, str]:
    return {
        "parent_table": rollup.parent,
        "child_table": rollup.child,
        "foreign_key": rollup.foreign_key,
        "value_field": rollup.value_field,
        "sum_field": rollup.sum_field,
        "count_field": rollup.count_field,
        "flag_field": rollup.flag_field,
    }


class SupabaseRecordStore(RecordStore):
    """
    RecordStore backed by a Supabase project.

    Args:
        url: Supabase project URL.
        key: Supabase anon or service key.
        client: Already created AsyncClient. When given, connect() is a no-op.
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: AsyncClient | None = None,
    ) -> None:
        super().__init__()
        self._url = url
        self._key = key
        self._client: AsyncClient | None = client

    async def connect(self) -> None:
        """Create the async Supabase client.

        Raises:
            InitializationError: If the client cannot be created.
        """
        if self._client is not None:
            return

        if not self._url or not self._key:
            raise InitializationError(
                "SupabaseRecordStore", "Supabase URL and key are required"
            )

        try:
            self._client = await acreate_client(self._url, self._key)
            logger.info("supabase_connected", url=self._url)
        except Exception as e:
            logger.error(
                "supabase_connection_failed",
                error=str(e),
                error_type=type(e).__name__,
                url=self._url,
            )
            raise InitializationError(
                "SupabaseRecordStore",
                f"Failed to create Supabase client: {e}",
                {"url": self._url},
            ) from e

    async def close(self) -> None:
        """Close the PostgREST session and drop the client."""
        if self._client is not None:
            client, self._client = self._client, None
            await client.postgrest.aclose()
            logger.info("supabase_disconnected")

    async def __aenter__(self) -> SupabaseRecordStore:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    @property
    def client(self) -> AsyncClient:
        """Get the Supabase client, raising if not connected."""
        if self._client is None:
            raise RuntimeError(
                "Supabase store not connected. Use 'async with' or call connect()."
            )
        return self._client

    async def create_document(self, collection: str, fields: dict[str, Any]) -> str:
        result = await self.client.table(collection).insert(fields).execute()
        return str(result.data[0]["id"])

    async def get_document(self, collection: str, doc_id: str) -> Optional[dict[str, Any]]:
        try:
            result = (
                await self.client.table(collection)
                .select("*")
                .eq("id", doc_id)
                .limit(1)
                .execute()
            )
        except APIError as e:
            if _is_invalid_id(e):
                return None
            raise
        if not result.data:
            return None
        return result.data[0]

    async def query_documents(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[dict[str, Any]]:
        query = self.client.table(collection).select("*")
        for f in filters:
            query = query.eq(f.field, f.value)
        for order in order_by:
            query = query.order(order.field, desc=order.descending)
        try:
            result = await query.execute()
        except APIError as e:
            # A value the column type cannot hold equals no row
            if _is_invalid_id(e):
                return []
            raise
        return result.data or []

    async def update_document(
        self, collection: str, doc_id: str, fields: dict[str, Any]
    ) -> None:
        try:
            result = (
                await self.client.table(collection)
                .update(fields)
                .eq("id", doc_id)
                .execute()
            )
        except APIError as e:
            if _is_invalid_id(e):
                raise DocumentNotFoundError(collection, doc_id) from e
            raise
        if not result.data:
            raise DocumentNotFoundError(collection, doc_id)

    async def delete_document(self, collection: str, doc_id: str) -> None:
        try:
            await self.client.table(collection).delete().eq("id", doc_id).execute()
        except APIError as e:
            if not _is_invalid_id(e):
                raise

    async def apply_rollup(
        self,
        rollup: Rollup,
        child_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> bool:
        result = await self._call_rollup(
            APPLY_ROLLUP_FUNCTION,
            {
                **_rollup_params(rollup),
                "child_id": child_id,
                "assignments": assignments or {},
            },
            rollup.child,
            child_id,
        )
        return bool(result.data)

    async def recompute_rollup(
        self,
        rollup: Rollup,
        parent_id: str,
        assignments: Optional[dict[str, Any]] = None,
    ) -> tuple[float, int]:
        result = await self._call_rollup(
            RECOMPUTE_ROLLUP_FUNCTION,
            {
                **_rollup_params(rollup),
                "parent_id": parent_id,
                "assignments": assignments or {},
            },
            rollup.parent,
            parent_id,
        )
        row = result.data[0] if isinstance(result.data, list) else result.data
        return float(row["value_sum"]), int(row["value_count"])

    async def _call_rollup(
        self, function: str, params: dict[str, Any], collection: str, doc_id: str
    ) -> Any:
        try:
            return await self.client.rpc(function, params).execute()
        except APIError as e:
            # P0002 is raised by the rollup functions when a row is missing
            if e.code == NO_DATA_FOUND or _is_invalid_id(e):
                raise DocumentNotFoundError(collection, doc_id) from e
            raise
