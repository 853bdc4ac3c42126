"""Shared plumbing for entity repositories."""

from __future__ import annotations

import structlog

from bizdirectory.core.exceptions import StoreOperationError
from bizdirectory.store.base import RecordStore
from bizdirectory.store.timestamps import encode_timestamp

logger = structlog.get_logger(__name__)


class Repository:
    """
    Base class for repositories over a RecordStore.

    The store handle is passed in; repositories hold no other state.
    """

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    @property
    def store(self) -> RecordStore:
        return self._store

    def _timestamp(self) -> str:
        """Current store time in stored form."""
        return encode_timestamp(self._store.now())

    def _failed(self, operation: str, error: Exception, **context) -> StoreOperationError:
        """Log a failed store call and build the error to raise."""
        logger.error(
            f"{operation}_failed",
            error=str(error),
            error_type=type(error).__name__,
            **context,
        )
        return StoreOperationError(operation, error, context or None)
