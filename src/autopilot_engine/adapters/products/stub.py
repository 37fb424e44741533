"""Stub product source for testing."""

from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.domain.models import SourceProduct, Store


class StubProductSource(ProductSource):
    """Returns a fixed catalog regardless of store."""

    def __init__(self, products: list[SourceProduct] | None = None) -> None:
        self.products = products or []

    @property
    def name(self) -> str:
        return "stub"

    async def list_active_products(self, store: Store) -> list[SourceProduct]:
        return list(self.products)
