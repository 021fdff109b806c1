# price_compare/crawlers/momo_crawler.py

"""Adapter for momo購物網 (www.momoshop.com.tw)."""

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
    parse_sales,
)
from price_compare.filters.product_validator import ProductValidator
from price_compare.models.product import ProductResult, SearchFilters


class MomoCrawler:
    """Adapter for momo search listings and product pages."""

    platform_id = "momo"
    platform_name = "Momo"
    base_url = "https://www.momoshop.com.tw"
    domains: tuple[str, ...] = ("momoshop.com.tw",)

    SELECTORS: dict[str, str] = {
        "product_card": ".listArea .productInfo, .goodsItemLi",
        "name": ".prdName, h3",
        "price": ".price, .money",
        "original_price": ".del, .originalPrice",
        "sales": ".sellCount, .sales",
        "detail_name": ".prdName, .prodInfoName h1",
        "detail_price": ".price, .prdPrice",
        "detail_original_price": ".del, .originalPrice",
        "detail_image": ".mainPic img, .prodImg img",
        "rating": ".rating, .score",
        "review_count": ".commentNum, .reviewCount",
        "spec_row": ".specification tr, .prodSpec li",
        "spec_key": "th, .specName",
        "spec_value": "td, .specValue",
    }

    _SORT_MAP: dict[str, str] = {
        "price": "priceAsc",
        "sales": "salesQty",
    }

    def __init__(
        self,
        settings: Settings | None = None,
        client: HttpClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or HttpClient("momo", self.settings)
        self.logger = logging.getLogger("price_compare.momo")

    def matches(self, url: str) -> bool:
        """Return True for momoshop.com.tw URLs."""
        return matches_domain(url, self.domains)

    def build_search_url(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> str:
        """Momo pages are 1-based; default to the first page."""
        f = filters or SearchFilters()
        search_type = self._SORT_MAP.get(f.sort_by or "", "relevant")
        return (
            f"{self.base_url}/search/searchShop.jsp"
            f"?keyword={quote(keyword)}"
            f"&searchType={search_type}&page={f.page or 1}"
        )

    @staticmethod
    def _text(root: Tag, selector: str) -> str:
        el = root.select_one(selector)
        return clean_text(el.get_text()) if el else ""

    def _parse_card(self, card: Tag) -> ProductResult:
        """Parse a single listing card."""
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
            sales_volume=parse_sales(
                self._text(card, self.SELECTORS["sales"])
            ),
            stock_status="available",
            shipping_fee=0.0,
        )

    def parse_search_results(self, html: str) -> list[ProductResult]:
        """Parse every listing card on a search page."""
        soup = BeautifulSoup(html, "lxml")
        products: list[ProductResult] = []
        for card in soup.select(self.SELECTORS["product_card"]):
            try:
                products.append(self._parse_card(card))
            except (AttributeError, TypeError, ValueError) as exc:
                self.logger.warning(
                    "[momo] Skipping unparsable card: %s", exc
                )
        valid, _ = ProductValidator.validate(products)
        return valid

    def parse_product_page(
        self, html: str, url: str,
    ) -> ProductResult | None:
        """Parse a product page with rating, reviews and specs."""
        soup = BeautifulSoup(html, "lxml")
        sel = self.SELECTORS

        specs: dict[str, Any] = {}
        for row in soup.select(sel["spec_row"]):
            key = self._text(row, sel["spec_key"])
            value = self._text(row, sel["spec_value"])
            if key and value:
                specs[key] = value

        rating_text = self._text(soup, sel["rating"])
        review_text = self._text(soup, sel["review_count"])
        original_text = self._text(soup, sel["detail_original_price"])
        image = soup.select_one(sel["detail_image"])

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
            rating=parse_price(rating_text) if rating_text else None,
            review_count=(
                parse_sales(review_text) if review_text else None
            ),
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
        """Search momo for products matching the keyword."""
        url = self.build_search_url(keyword, filters)
        html = retry(
            lambda: self.client.get_html(url),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        products = self.parse_search_results(html)
        self.logger.info(
            "[momo] %d products for '%s'", len(products), keyword
        )
        return products

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Fetch and parse a momo product page."""
        html = retry(
            lambda: self.client.get_html(url, {"Accept": "text/html"}),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        return self.parse_product_page(html, url)
