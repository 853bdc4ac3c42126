"""
Core exception hierarchy for bizdirectory.

Exactly one failure kind is modeled for data access: a store operation that
failed, carrying the underlying cause unchanged. "Not found" on a point lookup
is not an error; lookups return None instead.
"""

from typing import Any, Optional


# =============================================================================
# Base Exceptions
# =============================================================================


class DirectoryError(Exception):
    """Base exception for all bizdirectory errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class PermanentError(DirectoryError):
    """
    Errors that won't be fixed by retrying.

    Examples: Invalid configuration, missing required data.
    """

    pass


# =============================================================================
# Store Errors
# =============================================================================


class StoreOperationError(DirectoryError):
    """Raised when a record store call fails.

    The original exception is kept on ``cause`` and chained as ``__cause__``.
    """

    def __init__(
        self,
        operation: str,
        cause: BaseException,
        details: Optional[dict[str, Any]] = None,
    ):
        self.operation = operation
        self.cause = cause
        super().__init__(f"[{operation}] {cause}", details)


class DocumentNotFoundError(DirectoryError):
    """Raised by a store when a write targets a document that does not exist."""

    def __init__(self, collection: str, doc_id: str):
        self.collection = collection
        self.doc_id = doc_id
        super().__init__(
            f"Document {doc_id} not found in {collection}",
            {"collection": collection, "doc_id": doc_id},
        )


# =============================================================================
# Initialization Errors
# =============================================================================


class InitializationError(PermanentError):
    """Raised when a critical component fails to initialize."""

    def __init__(self, component: str, message: str, details: Optional[dict[str, Any]] = None):
        self.component = component
        super().__init__(f"[{component}] {message}", details)


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(PermanentError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, message: str, config_key: Optional[str] = None):
        self.config_key = config_key
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details)
