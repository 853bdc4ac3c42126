"""Location Repository."""

from __future__ import annotations

import structlog

from bizdirectory.models.schemas import BusinessLocation, LocationCreate, LocationUpdate
from bizdirectory.repositories.base import Repository
from bizdirectory.store.base import Collections, FieldFilter, OrderBy

logger = structlog.get_logger(__name__)

# Primary location first, then oldest first
LOCATION_ORDER = (
    OrderBy("is_primary", descending=True),
    OrderBy("created_at"),
)


class LocationRepository(Repository):
    """Data access for business locations.

    Nothing here keeps a business down to a single primary location.
    """

    async def create_location(self, business_id: str, data: LocationCreate) -> str:
        now = self._timestamp()
        fields = {
            **data.to_fields(),
            "business_id": business_id,
            "created_at": now,
            "updated_at": now,
        }
        try:
            location_id = await self._store.create_document(Collections.LOCATIONS, fields)
        except Exception as e:
            raise self._failed("create_location", e, business_id=business_id) from e

        logger.info("location_created", location_id=location_id, business_id=business_id)
        return location_id

    async def list_locations(self, business_id: str) -> list[BusinessLocation]:
        try:
            documents = await self._store.query_documents(
                Collections.LOCATIONS,
                filters=[FieldFilter("business_id", business_id)],
                order_by=LOCATION_ORDER,
            )
        except Exception as e:
            raise self._failed("list_locations", e, business_id=business_id) from e

        return [BusinessLocation.from_document(document) for document in documents]

    async def update_location(self, location_id: str, data: LocationUpdate) -> None:
        fields = {**data.to_fields(), "updated_at": self._timestamp()}
        try:
            await self._store.update_document(Collections.LOCATIONS, location_id, fields)
        except Exception as e:
            raise self._failed("update_location", e, location_id=location_id) from e

    async def delete_location(self, location_id: str) -> None:
        try:
            await self._store.delete_document(Collections.LOCATIONS, location_id)
        except Exception as e:
            raise self._failed("delete_location", e, location_id=location_id) from e

        logger.info("location_deleted", location_id=location_id)
