"""Base interface for store product catalogs."""

from abc import ABC, abstractmethod

from autopilot_engine.domain.models import SourceProduct, Store


class ProductSource(ABC):
    """Abstract base class for product catalog sources.

    Implementations:
    - ShopifyProductSource: Public ``/products.json`` of a Shopify store
    - StubProductSource: Fixed catalog for testing
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Source name identifier."""
        ...

    @abstractmethod
    async def list_active_products(self, store: Store) -> list[SourceProduct]:
        """List the products currently offered by a store.

        Args:
            store: The store whose catalog should be read

        Returns:
            Products as listed by the catalog (may be empty)
        """
        ...
