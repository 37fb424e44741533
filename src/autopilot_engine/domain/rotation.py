"""Fair round-robin ordering of rotation pool products.

Ascending order: never-used products first, then least ``use_count``, then
oldest ``created_at``. Every active product is therefore picked once before
any product is picked twice, without persisting a cursor.
"""

from collections.abc import Iterable
from datetime import datetime

from autopilot_engine.domain.models import Product


def rotation_key(product: Product) -> tuple[bool, datetime | None, int, datetime]:
    # (False, None) sorts ahead of (True, <timestamp>): nulls first
    return (
        product.last_used_at is not None,
        product.last_used_at,
        product.use_count,
        product.created_at,
    )


def order_for_rotation(products: Iterable[Product]) -> list[Product]:
    """Active products in selection order."""
    return sorted((p for p in products if p.is_active), key=rotation_key)


def select_next(products: Iterable[Product]) -> Product | None:
    """The next active product to feature, or None if the pool is empty."""
    ordered = order_for_rotation(products)
    return ordered[0] if ordered else None
