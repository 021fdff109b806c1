# price_compare/services/aggregator.py

"""Fans a search out to several platform adapters at once."""

import asyncio
import logging

from price_compare.crawlers.base import PlatformAdapter
from price_compare.crawlers.registry import PlatformRegistry
from price_compare.errors import UnsupportedPlatformError
from price_compare.models.product import ProductResult, SearchFilters

logger = logging.getLogger("price_compare.aggregator")


def flatten(
    results: dict[str, list[ProductResult]],
) -> list[ProductResult]:
    """Concatenate per-platform lists in platform order."""
    merged: list[ProductResult] = []
    for products in results.values():
        merged.extend(products)
    return merged


class PlatformAggregator:
    """Runs adapter calls concurrently and absorbs per-platform failures."""

    def __init__(self, registry: PlatformRegistry) -> None:
        self.registry = registry

    def _resolve(
        self, platforms: list[str],
    ) -> list[tuple[str, PlatformAdapter]]:
        """Map requested ids to adapters, warning about unknown ones."""
        resolved: list[tuple[str, PlatformAdapter]] = []
        seen: set[str] = set()
        for platform in platforms:
            key = platform.strip().lower()
            if key in seen:
                continue
            seen.add(key)
            adapter = self.registry.get(key)
            if adapter is None:
                logger.warning(
                    "Crawler not found for platform: %s", platform
                )
                continue
            resolved.append((key, adapter))

        if not resolved:
            raise UnsupportedPlatformError(
                "No supported platform in request: "
                f"{', '.join(platforms) or '(none)'}"
            )
        return resolved

    async def search_multiple_platforms(
        self,
        keyword: str,
        platforms: list[str],
        filters: SearchFilters | None = None,
    ) -> dict[str, list[ProductResult]]:
        """Search every requested platform concurrently.

        Returns one entry per known platform, in request order.  A
        platform whose adapter raised maps to an empty list.
        """
        resolved = self._resolve(platforms)

        async def run_one(
            adapter: PlatformAdapter,
        ) -> list[ProductResult]:
            products: list[ProductResult] = await asyncio.to_thread(
                adapter.search, keyword, filters
            )
            return products

        batches = await asyncio.gather(
            *(run_one(adapter) for _, adapter in resolved),
            return_exceptions=True,
        )

        results: dict[str, list[ProductResult]] = {}
        for (platform, _), batch in zip(resolved, batches):
            if isinstance(batch, BaseException):
                logger.error(
                    "Error searching %s for '%s': %s",
                    platform,
                    keyword,
                    batch,
                    exc_info=batch,
                )
                results[platform] = []
            else:
                results[platform] = batch

        logger.info(
            "Search '%s': %s",
            keyword,
            ", ".join(f"{p}={len(r)}" for p, r in results.items()),
        )
        return results

    async def get_product_from_url(
        self, url: str,
    ) -> ProductResult | None:
        """Route a product URL to the adapter that owns its domain."""
        platform = self.registry.detect_platform(url)
        if platform is None:
            raise UnsupportedPlatformError(
                f"Unsupported platform URL: {url}"
            )
        adapter = self.registry.get(platform)
        if adapter is None:
            raise UnsupportedPlatformError(
                f"Crawler not found for platform: {platform}"
            )
        product: ProductResult | None = await asyncio.to_thread(
            adapter.get_product_details, url
        )
        return product

    async def compare_prices(
        self,
        product_name: str,
        platforms: list[str],
    ) -> list[ProductResult]:
        """All platforms' results for a name, cheapest first."""
        results = await self.search_multiple_platforms(
            product_name, platforms
        )
        return sorted(flatten(results), key=lambda p: p.price)
