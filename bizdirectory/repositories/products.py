"""
Product Repository.

Products and services share one collection, told apart by ``kind``.
Listings put featured items first, newest first within each group.
"""

from __future__ import annotations

from typing import Optional

import structlog

from bizdirectory.models.schemas import Product, ProductCreate, ProductFilters, ProductUpdate
from bizdirectory.repositories.base import Repository
from bizdirectory.store.base import Collections, FieldFilter, OrderBy

logger = structlog.get_logger(__name__)

PRODUCT_ORDER = (
    OrderBy("featured", descending=True),
    OrderBy("created_at", descending=True),
)


class ProductRepository(Repository):
    """Data access for products and services."""

    async def create_product(self, business_id: str, data: ProductCreate) -> str:
        """Add a product or service to a business catalog.

        Returns:
            The new product identifier.
        """
        now = self._timestamp()
        fields = {
            **data.to_fields(),
            "business_id": business_id,
            "created_at": now,
            "updated_at": now,
        }
        try:
            product_id = await self._store.create_document(Collections.PRODUCTS, fields)
        except Exception as e:
            raise self._failed("create_product", e, business_id=business_id) from e

        logger.info(
            "product_created",
            product_id=product_id,
            business_id=business_id,
            kind=fields["kind"],
        )
        return product_id

    async def list_business_products(self, business_id: str) -> list[Product]:
        """List the catalog of one business."""
        try:
            documents = await self._store.query_documents(
                Collections.PRODUCTS,
                filters=[FieldFilter("business_id", business_id)],
                order_by=PRODUCT_ORDER,
            )
        except Exception as e:
            raise self._failed("list_business_products", e, business_id=business_id) from e

        return [Product.from_document(document) for document in documents]

    async def list_products(self, filters: Optional[ProductFilters] = None) -> list[Product]:
        """List products across all businesses.

        Args:
            filters: Optional equality filters on category, kind, available
                and featured.
        """
        filters = filters or ProductFilters()
        conditions = []
        if filters.category:
            conditions.append(FieldFilter("category", filters.category))
        if filters.kind:
            conditions.append(FieldFilter("kind", filters.kind.value))
        if filters.available is not None:
            conditions.append(FieldFilter("available", filters.available))
        if filters.featured is not None:
            conditions.append(FieldFilter("featured", filters.featured))

        try:
            documents = await self._store.query_documents(
                Collections.PRODUCTS,
                filters=conditions,
                order_by=PRODUCT_ORDER,
            )
        except Exception as e:
            raise self._failed(
                "list_products", e, filters=filters.model_dump(mode="json", exclude_none=True)
            ) from e

        return [Product.from_document(document) for document in documents]

    async def get_product(self, product_id: str) -> Optional[Product]:
        """Get a product by identifier, or None if it does not exist."""
        try:
            document = await self._store.get_document(Collections.PRODUCTS, product_id)
        except Exception as e:
            raise self._failed("get_product", e, product_id=product_id) from e

        if document is None:
            return None
        return Product.from_document(document)

    async def update_product(self, product_id: str, data: ProductUpdate) -> None:
        """Write the fields set on data and refresh updated_at."""
        fields = {**data.to_fields(), "updated_at": self._timestamp()}
        try:
            await self._store.update_document(Collections.PRODUCTS, product_id, fields)
        except Exception as e:
            raise self._failed("update_product", e, product_id=product_id) from e

    async def delete_product(self, product_id: str) -> None:
        """Delete a product. Deleting an unknown product is not an error."""
        try:
            await self._store.delete_document(Collections.PRODUCTS, product_id)
        except Exception as e:
            raise self._failed("delete_product", e, product_id=product_id) from e

        logger.info("product_deleted", product_id=product_id)
