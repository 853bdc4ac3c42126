"""
bizdirectory Test Suite.

- unit/: Store backends, repositories, aggregation, settings, container
- integration/: Directory scenarios end to end over the in-memory store
- conftest.py: Shared fixtures and test configuration

Run tests with: pytest
"""
