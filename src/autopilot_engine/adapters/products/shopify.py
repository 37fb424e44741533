"""Shopify storefront product source."""

import html
import re
from typing import Any

import httpx

from autopilot_engine.adapters.products.base import ProductSource
from autopilot_engine.config import settings
from autopilot_engine.domain.models import SourceProduct, Store
from autopilot_engine.logging import get_logger

logger = get_logger(__name__)

MAX_PRODUCTS = 250  # Shopify page size limit
MAX_IMAGES_PER_PRODUCT = 4
MAX_DESCRIPTION_LENGTH = 1000

_TAG_RE = re.compile(r"<[^>]*>")
_SPACE_RE = re.compile(r"\s+")


def normalize_shop_domain(value: str) -> str:
    """Reduce a pasted store URL to its bare domain."""
    domain = value.strip().lower()
    domain = re.sub(r"^https?://", "", domain)
    domain = domain.split("/")[0]
    return re.sub(r"^www\.", "", domain)


def strip_html(value: str | None) -> str:
    if not value:
        return ""
    text = html.unescape(_TAG_RE.sub(" ", value))
    text = _SPACE_RE.sub(" ", text).strip()
    if len(text) > MAX_DESCRIPTION_LENGTH:
        text = text[:MAX_DESCRIPTION_LENGTH] + "..."
    return text


def parse_product(raw: dict[str, Any]) -> SourceProduct:
    """Map one ``products.json`` entry onto a catalog product.

    The lowest variant price is used; ``compare_at_price`` on that variant
    becomes the original price when it is higher.
    """
    price: float | None = None
    original_price: float | None = None
    for variant in raw.get("variants") or []:
        try:
            variant_price = float(variant.get("price"))
        except (TypeError, ValueError):
            continue
        if price is None or variant_price < price:
            price = variant_price
            try:
                compare_at = float(variant.get("compare_at_price"))
            except (TypeError, ValueError):
                compare_at = None
            original_price = compare_at if compare_at and compare_at > variant_price else None

    images = [img["src"] for img in raw.get("images") or [] if img.get("src")]
    return SourceProduct(
        external_id=str(raw["id"]),
        title=raw.get("title", "").strip(),
        images=images[:MAX_IMAGES_PER_PRODUCT],
        description=strip_html(raw.get("body_html")),
        price=price,
        original_price=original_price,
    )


class ShopifyProductSource(ProductSource):
    """Reads a store's public Shopify catalog."""

    def __init__(self, timeout: float | None = None) -> None:
        self.timeout = timeout or settings.provider_timeout_seconds

    @property
    def name(self) -> str:
        return "shopify"

    async def list_active_products(self, store: Store) -> list[SourceProduct]:
        if not store.shop_domain:
            logger.warning("shopify_store_domain_missing", store_id=str(store.id))
            return []

        domain = normalize_shop_domain(store.shop_domain)
        url = f"https://{domain}/products.json"

        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
            response = await client.get(
                url,
                params={"limit": MAX_PRODUCTS},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
            data = response.json()

        products = [parse_product(p) for p in data.get("products") or [] if p.get("id")]
        logger.info("shopify_catalog_fetched", domain=domain, product_count=len(products))
        return products
