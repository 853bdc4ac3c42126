"""
Core infrastructure modules for bizdirectory.

- exceptions: Standardized exception hierarchy
- logging: structlog configuration
- container: Dependency container for the store and repositories
"""

from bizdirectory.core.exceptions import (
    ConfigurationError,
    DirectoryError,
    DocumentNotFoundError,
    InitializationError,
    PermanentError,
    StoreOperationError,
)

__all__ = [
    "ConfigurationError",
    "DirectoryError",
    "DocumentNotFoundError",
    "InitializationError",
    "PermanentError",
    "StoreOperationError",
]
