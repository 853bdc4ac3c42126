"""
Dependency Injection Container for bizdirectory.

Builds the record store and the repositories that share it, and manages
their lifecycle. Repositories never look up a global client; they receive
the store from here.

Usage:
    # At application startup
    container = DependencyContainer()
    await container.initialize()

    business = await container.businesses.get_business(business_id)

    # At shutdown
    await container.shutdown()

    # Tests inject their own store
    container = DependencyContainer(settings, store=MemoryRecordStore())
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from bizdirectory.config.settings import Settings, get_settings
from bizdirectory.core.exceptions import InitializationError
from bizdirectory.repositories import (
    BusinessRepository,
    LocationRepository,
    ProductRepository,
    RatingRollup,
    ReviewRepository,
)
from bizdirectory.store.base import RecordStore

if TYPE_CHECKING:
    from bizdirectory.scheduler.reconciler import RatingReconciler

logger = structlog.get_logger(__name__)


class DependencyContainer:
    """
    Central container for the store and repositories.

    The store is created lazily from settings unless one is injected.
    Repositories are created on first access and cached.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        store: RecordStore | None = None,
    ):
        """
        Initialize the container.

        Args:
            settings: Application settings. Defaults to get_settings().
            store: Record store to use instead of the Supabase store.
        """
        self._settings = settings or get_settings()
        self._store: RecordStore | None = store
        self._businesses: BusinessRepository | None = None
        self._locations: LocationRepository | None = None
        self._products: ProductRepository | None = None
        self._reviews: ReviewRepository | None = None
        self._reconciler: RatingReconciler | None = None
        self._initialized = False

        logger.info("dependency_container_created")

    @property
    def settings(self) -> Settings:
        """Get application settings."""
        return self._settings

    @property
    def store(self) -> RecordStore:
        """
        Get the record store (lazy initialization).

        Raises:
            InitializationError: If the Supabase store cannot be created.
        """
        if self._store is None:
            try:
                from bizdirectory.store.supabase_store import SupabaseRecordStore

                self._store = SupabaseRecordStore(
                    url=self._settings.supabase_url,
                    key=self._settings.supabase_key.get_secret_value(),
                )
                logger.info("supabase_store_created")
            except Exception as e:
                logger.error("supabase_store_creation_failed", error=str(e))
                raise InitializationError(
                    "SupabaseRecordStore",
                    f"Failed to create Supabase store: {e}",
                    {"url": self._settings.supabase_url},
                ) from e
        return self._store

    @property
    def businesses(self) -> BusinessRepository:
        if self._businesses is None:
            self._businesses = BusinessRepository(self.store)
        return self._businesses

    @property
    def locations(self) -> LocationRepository:
        if self._locations is None:
            self._locations = LocationRepository(self.store)
        return self._locations

    @property
    def products(self) -> ProductRepository:
        if self._products is None:
            self._products = ProductRepository(self.store)
        return self._products

    @property
    def reviews(self) -> ReviewRepository:
        if self._reviews is None:
            self._reviews = ReviewRepository(
                self.store,
                rollup=RatingRollup(self._settings.rating_rollup),
            )
        return self._reviews

    @property
    def reconciler(self) -> "RatingReconciler":
        if self._reconciler is None:
            from bizdirectory.scheduler.reconciler import RatingReconciler

            self._reconciler = RatingReconciler(
                self.businesses,
                self.reviews,
                interval_minutes=self._settings.reconciliation_interval_minutes,
            )
        return self._reconciler

    async def initialize(self) -> None:
        """
        Connect the record store.

        Raises:
            InitializationError: If the store fails to connect.
        """
        if self._initialized:
            logger.warning("container_already_initialized")
            return

        logger.info("container_initializing")

        store = self.store
        connect = getattr(store, "connect", None)
        try:
            if connect is not None:
                await connect()
        except InitializationError:
            raise
        except Exception as e:
            logger.error(
                "container_initialization_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise InitializationError(
                "DependencyContainer",
                f"Failed to initialize dependencies: {e}",
            ) from e

        self._initialized = True
        logger.info("container_initialized", store=type(store).__name__)

    async def shutdown(self) -> None:
        """Stop the reconciler and close the store."""
        logger.info("container_shutting_down")

        if self._reconciler is not None and self._reconciler.is_running:
            await self._reconciler.stop()

        if self._store is not None:
            try:
                await self._store.close()
            except Exception as e:
                logger.error("store_close_error", error=str(e))

        self._initialized = False
        logger.info("container_shutdown_complete")

    @property
    def is_initialized(self) -> bool:
        """Check if container has been initialized."""
        return self._initialized
