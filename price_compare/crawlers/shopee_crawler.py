# price_compare/crawlers/shopee_crawler.py

"""Adapter for shopee.tw using its internal JSON search API."""

import logging
import re
from typing import Any
from urllib.parse import urlencode

from price_compare.config.settings import Settings
from price_compare.crawlers.http import HttpClient, retry
from price_compare.crawlers.parsing import clean_text, matches_domain
from price_compare.filters.product_validator import ProductValidator
from price_compare.models.product import ProductResult, SearchFilters


class ShopeeCrawler:
    """Adapter for shopee.tw via the v4 JSON API.

    Shopee reports prices as integers scaled by 100000 and ratings
    already on a 0-5 scale.
    """

    platform_id = "shopee"
    platform_name = "Shopee"
    base_url = "https://shopee.tw"
    domains: tuple[str, ...] = ("shopee.tw",)

    SEARCH_API = "https://shopee.tw/api/v4/search/search_items"
    ITEM_API = "https://shopee.tw/api/v4/item/get"
    IMAGE_CDN = "https://cf.shopee.tw/file/"
    PRICE_SCALE = 100000
    DEFAULT_LIMIT = 60

    _SORT_MAP: dict[str, str] = {
        "price": "price",
        "sales": "sales",
        "rating": "ctime",
    }

    # i.<shopid>.<itemid> in SEO links, /product/<shopid>/<itemid> otherwise
    _ITEM_ID_RE = re.compile(
        r"i\.(\d+)\.(\d+)|/product/(\d+)/(\d+)"
    )

    def __init__(
        self,
        settings: Settings | None = None,
        client: HttpClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or HttpClient("shopee", self.settings)
        self.logger = logging.getLogger("price_compare.shopee")

    def matches(self, url: str) -> bool:
        """Return True for shopee.tw URLs."""
        return matches_domain(url, self.domains)

    def build_search_url(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> str:
        """Map SearchFilters onto Shopee's by/order/newest parameters."""
        f = filters or SearchFilters()
        limit = f.limit or self.DEFAULT_LIMIT
        params = {
            "by": self._SORT_MAP.get(f.sort_by or "", "relevancy"),
            "keyword": keyword,
            "limit": limit,
            "newest": (f.page or 0) * limit,
            "order": "asc" if f.sort_by == "price" else "desc",
        }
        return f"{self.SEARCH_API}?{urlencode(params)}"

    def _to_price(self, raw: Any) -> float:
        return float(raw or 0) / self.PRICE_SCALE

    def _parse_item(
        self,
        item: dict[str, Any],
        product_url: str | None = None,
    ) -> ProductResult:
        """Parse an ``item_basic`` (or item detail) dict."""
        shop_id = item.get("shopid")
        item_id = item.get("itemid")
        original = item.get("price_before_discount")
        image = item.get("image")
        item_rating: dict[str, Any] = item.get("item_rating") or {}
        rating_counts: list[Any] = item_rating.get("rating_count") or []
        stock = int(item.get("stock") or 0)
        shop: dict[str, Any] = item.get("shop") or {}

        return ProductResult(
            name=clean_text(item.get("name")),
            price=self._to_price(item.get("price")),
            original_price=(
                self._to_price(original) if original else None
            ),
            image_url=f"{self.IMAGE_CDN}{image}" if image else "",
            product_url=product_url or (
                f"{self.base_url}/product/{shop_id}/{item_id}"
                if shop_id and item_id
                else ""
            ),
            platform=self.platform_name,
            rating=(
                float(item_rating["rating_star"])
                if item_rating.get("rating_star")
                else None
            ),
            review_count=int(rating_counts[0]) if rating_counts else 0,
            sales_volume=int(
                item.get("historical_sold") or item.get("sold") or 0
            ),
            stock_status="available" if stock > 0 else "out_of_stock",
            shipping_fee=0.0,
            vendor_name=(
                shop.get("name") or item.get("shop_location") or None
            ),
            specs={
                "shop_id": shop_id,
                "item_id": item_id,
                "stock": stock,
                "liked_count": item.get("liked_count"),
                "brand": item.get("brand"),
                "shop_location": item.get("shop_location"),
            },
        )

    def parse_search_results(
        self, data: Any,
    ) -> list[ProductResult]:
        """Parse a search_items payload; anything unexpected yields []."""
        if not isinstance(data, dict):
            return []
        items = data.get("items")
        if not isinstance(items, list):
            return []
        products = [
            self._parse_item(entry["item_basic"])
            for entry in items
            if isinstance(entry, dict) and entry.get("item_basic")
        ]
        valid, _ = ProductValidator.validate(products)
        return valid

    def search(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Search Shopee for products matching the keyword."""
        url = self.build_search_url(keyword, filters)
        headers = {
            "Accept": "application/json",
            "Referer": f"{self.base_url}/",
        }
        data = retry(
            lambda: self.client.get_json(url, headers),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        products = self.parse_search_results(data)
        self.logger.info(
            "[shopee] %d products for '%s'", len(products), keyword
        )
        return products

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Fetch a single item; raises ValueError for unparsable URLs."""
        match = self._ITEM_ID_RE.search(url)
        if not match:
            raise ValueError(f"Invalid Shopee URL: {url}")
        shop_id = match.group(1) or match.group(3)
        item_id = match.group(2) or match.group(4)
        api_url = (
            f"{self.ITEM_API}?"
            f"{urlencode({'shopid': shop_id, 'itemid': item_id})}"
        )

        data = retry(
            lambda: self.client.get_json(
                api_url,
                {"Accept": "application/json", "Referer": url},
            ),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        item = data.get("data") if isinstance(data, dict) else None
        if not item:
            return None

        product = self._parse_item(item, product_url=url)
        categories: list[dict[str, Any]] = item.get("categories") or []
        product.specs.update({
            "description": item.get("description"),
            "category": " > ".join(
                str(c.get("display_name", "")) for c in categories
            ),
            "attributes": item.get("attributes"),
        })
        return product if ProductValidator.is_valid(product) else None
