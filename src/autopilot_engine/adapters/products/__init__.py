"""Store product catalog adapters."""

from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.adapters.products.shopify import ShopifyProductSource
from autopilot_engine.adapters.products.stub import StubProductSource

__all__ = [
    "ProductSource",
    "ShopifyProductSource",
    "StubProductSource",
]
