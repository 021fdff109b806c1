# price_compare/crawlers/pchome_crawler.py

"""Adapter for PChome 24h (24h.pchome.com.tw)."""

import logging
from typing import Any
from urllib.parse import quote

from bs4 import BeautifulSoup, Tag

from price_compare.config.settings import Settings
from price_compare.crawlers.http import HttpClient, retry
from price_compare.crawlers.parsing import (
    clean_text,
    complete_url,
    matches_domain,
    parse_price,
)
from price_compare.filters.product_validator import ProductValidator
from price_compare.models.product import ProductResult, SearchFilters


class PChomeCrawler:
    """Adapter for PChome 24h search result and product pages."""

    platform_id = "pchome"
    platform_name = "PChome"
    base_url = "https://24h.pchome.com.tw"
    domains: tuple[str, ...] = ("pchome.com.tw",)

    SELECTORS: dict[str, str] = {
        "product_card": "#ProductContainer .prod_item, .c-prodInfo",
        "name": ".prod_name, .c-prodInfo__title",
        "price": ".price, .c-prodInfo__price",
        "original_price": ".price_org, .c-prodInfo__price--original",
        "detail_name": "#ProdInfo h1, .prod-name",
        "detail_price": "#ProdInfo .price, .prod-price",
        "detail_original_price": ".price_org, .prod-price-original",
        "detail_image": "#ProdInfo img, .prod-img img",
        "spec_row": ".prod-spec-table tr, .spec-item",
        "spec_key": "th, .spec-name",
        "spec_value": "td, .spec-value",
    }

    _SORT_MAP: dict[str, str] = {
        "price": "price/asc",
        "sales": "sale/dc",
    }

    def __init__(
        self,
        settings: Settings | None = None,
        client: HttpClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or HttpClient("pchome", self.settings)
        self.logger = logging.getLogger("price_compare.pchome")

    def matches(self, url: str) -> bool:
        """Return True for pchome.com.tw URLs."""
        return matches_domain(url, self.domains)

    def build_search_url(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> str:
        """PChome only distinguishes price, sales and its own ranking."""
        sort_by = filters.sort_by if filters else None
        sort = self._SORT_MAP.get(sort_by or "", "rnk/dc")
        return (
            f"{self.base_url}/search/v3.3/"
            f"?q={quote(keyword)}&sort={sort}"
        )

    @staticmethod
    def _text(root: Tag, selector: str) -> str:
        el = root.select_one(selector)
        return clean_text(el.get_text()) if el else ""

    def _parse_card(self, card: Tag) -> ProductResult:
        """Parse a single search result card."""
        link = card.find("a")
        image = card.find("img")
        href = link.get("href") if isinstance(link, Tag) else None
        src: Any = (
            image.get("src") or image.get("data-src")
            if isinstance(image, Tag)
            else None
        )
        original_text = self._text(card, self.SELECTORS["original_price"])

        return ProductResult(
            name=self._text(card, self.SELECTORS["name"]),
            price=parse_price(self._text(card, self.SELECTORS["price"])),
            original_price=(
                parse_price(original_text) or None
                if original_text
                else None
            ),
            image_url=complete_url(str(src or ""), self.base_url),
            product_url=complete_url(str(href or ""), self.base_url),
            platform=self.platform_name,
            stock_status="available",
            shipping_fee=0.0,
        )

    def parse_search_results(self, html: str) -> list[ProductResult]:
        """Parse every product card on a search page."""
        soup = BeautifulSoup(html, "lxml")
        products: list[ProductResult] = []
        for card in soup.select(self.SELECTORS["product_card"]):
            try:
                products.append(self._parse_card(card))
            except (AttributeError, TypeError, ValueError) as exc:
                self.logger.warning(
                    "[pchome] Skipping unparsable card: %s", exc
                )
        valid, _ = ProductValidator.validate(products)
        return valid

    def parse_product_page(
        self, html: str, url: str,
    ) -> ProductResult | None:
        """Parse a product page, including its spec table."""
        soup = BeautifulSoup(html, "lxml")
        sel = self.SELECTORS

        specs: dict[str, Any] = {}
        for row in soup.select(sel["spec_row"]):
            key = self._text(row, sel["spec_key"])
            value = self._text(row, sel["spec_value"])
            if key and value:
                specs[key] = value

        image = soup.select_one(sel["detail_image"])
        original_text = self._text(soup, sel["detail_original_price"])
        product = ProductResult(
            name=self._text(soup, sel["detail_name"]),
            price=parse_price(self._text(soup, sel["detail_price"])),
            original_price=(
                parse_price(original_text) or None
                if original_text
                else None
            ),
            image_url=complete_url(
                str(image.get("src") or "") if image else "",
                self.base_url,
            ),
            product_url=url,
            platform=self.platform_name,
            stock_status="available",
            shipping_fee=0.0,
            specs=specs,
        )
        return product if ProductValidator.is_valid(product) else None

    def search(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Search PChome for products matching the keyword."""
        url = self.build_search_url(keyword, filters)
        html = retry(
            lambda: self.client.get_html(url),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        products = self.parse_search_results(html)
        self.logger.info(
            "[pchome] %d products for '%s'", len(products), keyword
        )
        return products

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Fetch and parse a PChome product page."""
        html = retry(
            lambda: self.client.get_html(url, {"Accept": "text/html"}),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        return self.parse_product_page(html, url)
