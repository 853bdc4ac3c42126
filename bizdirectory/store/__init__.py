"""
Record Stores.

- base: RecordStore contract, filters, ordering and collection names
- supabase_store: Supabase backend (production)
- memory_store: In-memory backend (tests, local development)
- schema: SQL the Supabase backend expects
- timestamps: Stored timestamp conversion
"""

from bizdirectory.store.base import Collections, FieldFilter, OrderBy, RecordStore
from bizdirectory.store.memory_store import MemoryRecordStore
from bizdirectory.store.supabase_store import SupabaseRecordStore
from bizdirectory.store.timestamps import (
    decode_optional_timestamp,
    decode_timestamp,
    encode_timestamp,
)

__all__ = [
    "Collections",
    "FieldFilter",
    "OrderBy",
    "RecordStore",
    "MemoryRecordStore",
    "SupabaseRecordStore",
    "decode_optional_timestamp",
    "decode_timestamp",
    "encode_timestamp",
]
