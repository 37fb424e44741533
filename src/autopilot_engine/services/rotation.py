"""Product rotation pool service."""

from collections.abc import Callable
from datetime import datetime
from typing import Any
from uuid import UUID

from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.domain.models import PoolStats, Product, Store, utcnow
from autopilot_engine.logging import get_logger
from autopilot_engine.repositories.base import ProductRepository

logger = get_logger(__name__)


class ProductRotationPool:
    """Selects products round-robin and tracks their usage.

    Usage is only recorded through ``mark_product_used``, which callers
    invoke after a generation attempt has succeeded.
    """

    def __init__(
        self,
        products: ProductRepository,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.products = products
        self.clock = clock

    def get_next_product(self, store_id: UUID) -> Product | None:
        """The next active product of the store in rotation order."""
        product = self.products.next_candidate(store_id)
        if product is None:
            logger.warning("rotation_pool_empty", store_id=str(store_id))
        return product

    def mark_product_used(self, product_id: UUID) -> Product | None:
        product = self.products.get(product_id)
        if product is None:
            logger.warning("rotation_product_not_found", product_id=str(product_id))
            return None

        product.use_count += 1
        product.last_used_at = self.clock()
        self.products.save(product)

        logger.info(
            "rotation_product_used",
            product_id=str(product_id),
            use_count=product.use_count,
        )
        return product

    def set_product_active(self, product_id: UUID, is_active: bool) -> Product | None:
        """Include or exclude a product from rotation."""
        product = self.products.get(product_id)
        if product is None:
            return None

        product.is_active = is_active
        self.products.save(product)
        logger.info("rotation_product_toggled", product_id=str(product_id), is_active=is_active)
        return product

    def get_pool_stats(self, store_id: UUID) -> PoolStats:
        """Counts over active products; ``min_use_count`` is 0 for an empty pool."""
        active = [p for p in self.products.list_for_store(store_id) if p.is_active]
        used = sum(1 for p in active if p.use_count > 0)
        return PoolStats(
            total=len(self.products.list_for_store(store_id)),
            active=len(active),
            used=used,
            unused=len(active) - used,
            total_use_count=sum(p.use_count for p in active),
            min_use_count=min((p.use_count for p in active), default=0),
        )

    def reset_usage(self, store_id: UUID) -> int:
        """Start the rotation over. Returns the number of products reset."""
        count = 0
        for product in self.products.list_for_store(store_id):
            if product.use_count == 0 and product.last_used_at is None:
                continue
            product.use_count = 0
            product.last_used_at = None
            self.products.save(product)
            count += 1

        logger.info("rotation_usage_reset", store_id=str(store_id), products=count)
        return count

    async def sync_products(self, store: Store, source: ProductSource) -> dict[str, Any]:
        """Upsert the store's catalog into the pool.

        Products are matched by external id. Listed products are updated in
        place without touching ``is_active``, so an operator's deactivation
        survives a sync. Pool products no longer listed are deactivated,
        keeping their usage history.
        """
        listed = await source.list_active_products(store)
        listed_ids = set()
        added = updated = deactivated = 0

        for item in listed:
            listed_ids.add(item.external_id)
            existing = self.products.get_by_external_id(store.id, item.external_id)

            if existing is None:
                self.products.add(
                    Product(
                        store_id=store.id,
                        title=item.title,
                        external_id=item.external_id,
                        description=item.description,
                        images=list(item.images),
                        price=item.price,
                        original_price=item.original_price,
                    )
                )
                added += 1
                continue

            existing.title = item.title
            existing.description = item.description
            existing.images = list(item.images)
            existing.price = item.price
            existing.original_price = item.original_price
            self.products.save(existing)
            updated += 1

        for product in self.products.list_for_store(store.id):
            if product.external_id and product.external_id not in listed_ids and product.is_active:
                product.is_active = False
                self.products.save(product)
                deactivated += 1

        logger.info(
            "rotation_products_synced",
            store_id=str(store.id),
            source=source.name,
            added=added,
            updated=updated,
            deactivated=deactivated,
        )
        return {"added": added, "updated": updated, "deactivated": deactivated}
