"""
bizdirectory - Data access layer for a business directory.

This package contains the modules that read and write directory records:
- store: Record store contract with Supabase and in-memory backends
- repositories: Per-entity repositories (businesses, locations, products, reviews)
- models: Pydantic records, write models and filters
- scheduler: Background rating reconciliation
- core: Exceptions, logging setup and the dependency container
- config: Pydantic settings
"""

__version__ = "0.1.0"
