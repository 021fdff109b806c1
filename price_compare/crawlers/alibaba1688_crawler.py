# price_compare/crawlers/alibaba1688_crawler.py

"""Adapter for 1688.com wholesale listings."""

import json
import logging
import re
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

_GLOBAL_DATA_RE = re.compile(
    r"window\.__GLOBAL_DATA__\s*=\s*(\{.*?\});", re.S
)
_INITIAL_DATA_RE = re.compile(
    r"window\.__INITIAL_DATA__\s*=\s*(\{.*?\});", re.S
)
_YUAN_PRICE_RE = re.compile(r"¥\s*([\d,.]+)")


class Alibaba1688Crawler:
    """Adapter for 1688 search pages.

    Listings are read from the ``window.__GLOBAL_DATA__`` blob the
    page embeds in a script tag; when it is missing the offer cards
    in the markup are parsed instead.
    """

    platform_id = "1688"
    platform_name = "1688"
    base_url = "https://s.1688.com"
    domains: tuple[str, ...] = ("1688.com",)

    MAX_OFFERS = 20
    MAX_FALLBACK_OFFERS = 10
    FALLBACK_PRODUCT_URL = "https://www.1688.com/"

    SELECTORS: dict[str, str] = {
        "offer_card": ".offer, .sm-offer-item, .offer-item",
        "card_title": "a[title], .title",
        "card_link": "a[href]",
        "detail_name": "h1, .d-title",
        "detail_price": ".price-now, .offer-price, .price",
    }

    _SORT_MAP: dict[str, str] = {
        "price": "price_asc",
        "sales": "monthvolume",
    }

    def __init__(
        self,
        settings: Settings | None = None,
        client: HttpClient | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.client = client or HttpClient("1688", self.settings)
        self.logger = logging.getLogger("price_compare.1688")

    def matches(self, url: str) -> bool:
        """Return True for 1688.com URLs."""
        return matches_domain(url, self.domains)

    def build_search_url(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> str:
        """1688 is the only platform that takes price bounds natively."""
        f = filters or SearchFilters()
        url = (
            f"{self.base_url}/selloffer/offer_search.htm"
            f"?keywords={quote(keyword)}"
        )
        sort_type = self._SORT_MAP.get(f.sort_by or "")
        if sort_type:
            url += f"&sortType={sort_type}"
        if f.price_min:
            url += f"&startPrice={f.price_min:g}"
        if f.price_max:
            url += f"&endPrice={f.price_max:g}"
        return url

    @staticmethod
    def clean_image_url(url: Any) -> str:
        """Drop 1688's ``_WxH`` thumbnail suffix and add a scheme."""
        if not url:
            return ""
        return complete_url(str(url).split("_")[0], "https://")

    def _parse_offer(self, offer: dict[str, Any]) -> ProductResult:
        price_info: dict[str, Any] = offer.get("priceInfo") or {}
        company: dict[str, Any] = offer.get("company") or {}
        original = parse_price(str(price_info.get("originalPrice") or ""))
        can_book = int(offer.get("canBookCount") or 0)

        return ProductResult(
            name=clean_text(offer.get("subject") or offer.get("title")),
            price=parse_price(
                str(price_info.get("price") or offer.get("price") or "0")
            ),
            original_price=original or None,
            image_url=self.clean_image_url(
                offer.get("imgUrl") or offer.get("image")
            ),
            product_url=complete_url(
                str(offer.get("detailUrl") or offer.get("url") or ""),
                "https://",
            ),
            platform=self.platform_name,
            sales_volume=parse_sales(
                str(
                    offer.get("monthSoldQuantity")
                    or offer.get("soldQuantity")
                    or "0"
                )
            ),
            stock_status="available" if can_book > 0 else "out_of_stock",
            vendor_name=company.get("name") or offer.get("sellerName"),
            specs={
                "min_order_quantity": (
                    offer.get("minOrderQuantity")
                    or offer.get("beginAmount")
                ),
                "supplier_type": company.get("supplierType"),
            },
        )

    @staticmethod
    def _text(root: Tag, selector: str) -> str:
        el = root.select_one(selector)
        return clean_text(el.get_text(" ")) if el else ""

    @staticmethod
    def _embedded_json(
        soup: BeautifulSoup, pattern: re.Pattern[str],
    ) -> str | None:
        """Return the object literal assigned in the first matching script."""
        for script in soup.find_all("script"):
            match = pattern.search(script.string or "")
            if match:
                return match.group(1)
        return None

    def _parse_card(self, card: Tag) -> ProductResult:
        title_el = card.select_one(self.SELECTORS["card_title"])
        name = ""
        if title_el is not None:
            name = clean_text(
                str(title_el.get("title") or "") or title_el.get_text(" ")
            )
        price = _YUAN_PRICE_RE.search(card.get_text(" "))
        link = card.select_one(self.SELECTORS["card_link"])
        href = str(link.get("href") or "") if link is not None else ""
        return ProductResult(
            name=name,
            price=parse_price(price.group(1)) if price else 0.0,
            product_url=(
                complete_url(href, "https://www.1688.com")
                if href else self.FALLBACK_PRODUCT_URL
            ),
            platform=self.platform_name,
            stock_status="available",
        )

    def _parse_markup_fallback(
        self, soup: BeautifulSoup,
    ) -> list[ProductResult]:
        """Read names and ¥ prices from the offer cards in the markup."""
        cards = soup.select(self.SELECTORS["offer_card"])
        return [
            self._parse_card(card)
            for card in cards[: self.MAX_FALLBACK_OFFERS]
        ]

    def parse_search_results(self, html: str) -> list[ProductResult]:
        """Parse the embedded data blob, else the offer cards."""
        soup = BeautifulSoup(html, "lxml")
        products: list[ProductResult] = []
        blob = self._embedded_json(soup, _GLOBAL_DATA_RE)
        offers: list[Any] | None = None
        if blob is not None:
            try:
                global_data: dict[str, Any] = json.loads(blob)
                offers = (global_data.get("data") or {}).get(
                    "offerList"
                ) or []
            except (ValueError, AttributeError) as exc:
                self.logger.warning(
                    "[1688] Embedded data unreadable, "
                    "using markup fallback: %s",
                    exc,
                )

        if offers is None:
            products = self._parse_markup_fallback(soup)
        else:
            for offer in offers[: self.MAX_OFFERS]:
                if isinstance(offer, dict):
                    products.append(self._parse_offer(offer))

        valid, _ = ProductValidator.validate(products)
        return valid

    def _parse_detail_blob(self, blob: str, url: str) -> ProductResult:
        data: dict[str, Any] = json.loads(blob)
        offer: dict[str, Any] = (
            data.get("offerDetail") or data.get("productInfo") or {}
        )
        images: list[Any] = offer.get("image") or []
        product = self._parse_offer({
            **offer,
            "detailUrl": url,
            "imgUrl": images[0] if images else offer.get("imgUrl"),
        })
        seller: dict[str, Any] = offer.get("sellerInfo") or {}
        product.vendor_name = seller.get("name") or product.vendor_name
        product.specs = dict(offer.get("attributes") or {})
        return product

    def _parse_detail_markup(
        self, soup: BeautifulSoup, url: str,
    ) -> ProductResult:
        price_text = self._text(soup, self.SELECTORS["detail_price"])
        price = parse_price(price_text) if price_text else 0.0
        if not price:
            match = _YUAN_PRICE_RE.search(soup.get_text(" "))
            price = parse_price(match.group(1)) if match else 0.0
        return ProductResult(
            name=self._text(soup, self.SELECTORS["detail_name"]),
            price=price,
            product_url=url,
            platform=self.platform_name,
            stock_status="available",
        )

    def parse_product_page(
        self, html: str, url: str,
    ) -> ProductResult | None:
        """Parse a detail page from its data blob, else from the markup."""
        soup = BeautifulSoup(html, "lxml")
        blob = self._embedded_json(soup, _INITIAL_DATA_RE)
        product: ProductResult | None = None
        if blob is not None:
            try:
                product = self._parse_detail_blob(blob, url)
            except (ValueError, AttributeError) as exc:
                self.logger.warning(
                    "[1688] Detail data unreadable, "
                    "using markup fallback: %s",
                    exc,
                )
        if product is None:
            product = self._parse_detail_markup(soup, url)
        return product if ProductValidator.is_valid(product) else None

    def search(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Search 1688 for offers matching the keyword."""
        url = self.build_search_url(keyword, filters)
        html = retry(
            lambda: self.client.get_html(
                url, {"Accept-Language": "zh-CN,zh;q=0.9"}
            ),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        products = self.parse_search_results(html)
        self.logger.info(
            "[1688] %d products for '%s'", len(products), keyword
        )
        return products

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Fetch and parse a 1688 offer page."""
        html = retry(
            lambda: self.client.get_html(url),
            self.settings.MAX_RETRIES,
            self.settings.RETRY_DELAY,
            source=self.platform_id,
        )
        return self.parse_product_page(html, url)
