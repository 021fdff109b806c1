# price_compare/crawlers/mock_crawler.py

"""Synthetic adapter used when live platforms are unreachable."""

import logging
import random
from urllib.parse import quote, unquote, urlparse

from price_compare.config.settings import Settings
from price_compare.crawlers.parsing import matches_domain
from price_compare.filters.product_filter import ProductFilter
from price_compare.filters.product_validator import ProductValidator
from price_compare.models.product import ProductResult, SearchFilters

_VARIANTS: list[str] = [
    "Standard",
    "Deluxe",
    "Value Pack",
    "Limited Edition",
    "Refurbished",
    "Bundle",
    "Pro",
    "Lite",
]


class MockCrawler:
    """Generates repeatable fake listings for one platform.

    The RNG is seeded from the platform id and the keyword, so the
    same search returns the same products on every run.
    """

    def __init__(
        self,
        platform_id: str,
        platform_name: str,
        base_url: str,
        domains: tuple[str, ...],
        settings: Settings | None = None,
    ) -> None:
        self.platform_id = platform_id
        self.platform_name = platform_name
        self.base_url = base_url.rstrip("/")
        self.domains = domains
        self.settings = settings or Settings()
        self.logger = logging.getLogger(
            f"price_compare.mock.{platform_id}"
        )

    def matches(self, url: str) -> bool:
        """Return True for URLs on this platform's domains."""
        return matches_domain(url, self.domains)

    def _make_product(
        self,
        rng: random.Random,
        name: str,
        product_url: str,
    ) -> ProductResult:
        low, high = self.settings.MOCK_PRICE_RANGE
        price = float(round(rng.uniform(low, high)))
        discounted = rng.random() < 0.5
        return ProductResult(
            name=name,
            price=price,
            original_price=(
                float(round(price * rng.uniform(1.05, 1.5)))
                if discounted
                else None
            ),
            image_url=f"{self.base_url}/img/{rng.randint(1000, 9999)}.jpg",
            product_url=product_url,
            platform=self.platform_name,
            rating=round(rng.uniform(3.0, 5.0), 1),
            review_count=rng.randint(0, 2000),
            sales_volume=rng.randint(0, 5000),
            shipping_fee=float(rng.choice([0, 0, 60, 80])),
            stock_status=(
                "available" if rng.random() < 0.9 else "out_of_stock"
            ),
            vendor_name=f"{self.platform_name} Store {rng.randint(1, 50)}",
            specs={"mock": True},
        )

    @staticmethod
    def _sort(
        products: list[ProductResult],
        sort_by: str | None,
    ) -> list[ProductResult]:
        if sort_by == "price":
            return sorted(products, key=lambda p: p.price)
        if sort_by == "sales":
            return sorted(
                products,
                key=lambda p: p.sales_volume or 0,
                reverse=True,
            )
        if sort_by == "rating":
            return sorted(
                products, key=lambda p: p.rating or 0, reverse=True
            )
        return products

    def search(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Produce ``limit`` listings (default from Settings) for a keyword."""
        keyword = keyword.strip()
        if not keyword:
            return []

        count = (
            filters.limit
            if filters and filters.limit
            else self.settings.MOCK_RESULTS_PER_PLATFORM
        )
        page = filters.page if filters and filters.page else 0
        rng = random.Random(f"{self.platform_id}:{keyword}:{page}")
        slug = quote(keyword, safe="")

        products = [
            self._make_product(
                rng,
                name=f"{keyword} {rng.choice(_VARIANTS)}",
                product_url=(
                    f"{self.base_url}/product/{slug}-{page}-{i + 1}"
                ),
            )
            for i in range(count)
        ]
        products = ProductFilter.apply(products, filters)
        products = self._sort(
            products, filters.sort_by if filters else None
        )
        valid, _ = ProductValidator.validate(products)
        self.logger.debug(
            "[mock:%s] %d products for '%s'",
            self.platform_id,
            len(valid),
            keyword,
        )
        return valid

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Synthesise a detail record for a URL on this platform."""
        if not self.matches(url):
            return None
        rng = random.Random(url)
        path = urlparse(url).path.strip("/").split("/")[-1]
        label = unquote(path).replace("-", " ") or "item"
        return self._make_product(
            rng,
            name=f"{self.platform_name} {label}",
            product_url=url,
        )
