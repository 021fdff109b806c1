# price_compare/services/comparison_service.py

"""Keyword, URL and image searches, with history and result sinks."""

import asyncio
import logging
from collections.abc import Callable

from price_compare.errors import (
    EmptyQueryError,
    ImageRecognitionError,
    ProductNotFoundError,
)
from price_compare.models.product import ProductResult, SearchFilters
from price_compare.services.aggregator import PlatformAggregator, flatten
from price_compare.services.image_recognition import ImageRecognizer
from price_compare.services.user_data import (
    PriceAlertService,
    SearchHistoryService,
)
from price_compare.storage.comparison_db import ComparisonDB

logger = logging.getLogger("price_compare.comparison")


def _require_keyword(keyword: str) -> str:
    keyword = keyword.strip()
    if not keyword:
        raise EmptyQueryError("Search keyword must not be empty")
    return keyword


SearchCompleteCallback = Callable[
    [list[ProductResult], list[str] | None], None
]


class ComparisonService:
    """Entry point for single searches.

    Every completed search is recorded in the history (when given),
    written to the database sink (when given), checked against price
    alerts (when given) and reported once through
    ``on_search_complete``.
    """

    def __init__(
        self,
        aggregator: PlatformAggregator,
        recognizer: ImageRecognizer | None = None,
        history: SearchHistoryService | None = None,
        alerts: PriceAlertService | None = None,
        sink: ComparisonDB | None = None,
        on_search_complete: SearchCompleteCallback | None = None,
    ) -> None:
        self.aggregator = aggregator
        self.recognizer = recognizer
        self.history = history
        self.alerts = alerts
        self.sink = sink
        self.on_search_complete = on_search_complete

    # ── Private helpers ──────────────────────────────────

    async def _write_sink(self, results: list[ProductResult]) -> None:
        if self.sink is None or not results:
            return
        try:
            await asyncio.to_thread(self.sink.save_results, results)
        except Exception as exc:
            logger.error(
                "Failed to write %d results to the database: %s",
                len(results),
                exc,
                exc_info=True,
            )

    async def _complete(
        self,
        keyword: str,
        platforms: list[str],
        results: list[ProductResult],
        keywords: list[str] | None,
    ) -> None:
        """Side effects shared by every successful search."""
        if self.history is not None:
            self.history.record(keyword, results, platforms)
        if self.alerts is not None:
            self.alerts.check(results)
        await self._write_sink(results)
        if self.on_search_complete is not None:
            self.on_search_complete(results, keywords)

    # ── Searches ─────────────────────────────────────────

    async def fetch(
        self,
        keyword: str,
        platforms: list[str],
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Aggregate and flatten, with no history or sink side effects."""
        results = await self.aggregator.search_multiple_platforms(
            keyword, platforms, filters
        )
        return flatten(results)

    async def search_by_keyword(
        self,
        keyword: str,
        platforms: list[str],
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Search every platform for ``keyword``."""
        keyword = _require_keyword(keyword)
        results = await self.fetch(keyword, platforms, filters)
        await self._complete(keyword, platforms, results, [keyword])
        return results

    async def search_by_url(
        self, url: str, platforms: list[str],
    ) -> list[ProductResult]:
        """Resolve a product page, then look for it elsewhere.

        The resolved product comes first, followed by matches from the
        requested platforms other than the one that owns the URL.
        """
        product = await self.aggregator.get_product_from_url(url)
        if product is None:
            raise ProductNotFoundError(
                f"Unable to extract product information from URL: {url}"
            )

        source_id = self.aggregator.registry.detect_platform(url)
        others = [
            p for p in platforms
            if p.strip().lower() != (source_id or "")
        ]

        results = [product]
        if others:
            results.extend(await self.fetch(product.name, others))

        await self._complete(product.name, platforms, results, [product.name])
        return results

    async def search_by_image(
        self, image: str, platforms: list[str],
    ) -> tuple[list[str], list[ProductResult]]:
        """Recognise an image and search with its top keyword.

        Returns the candidate keywords alongside the results.
        """
        if self.recognizer is None:
            raise ImageRecognitionError("Image recognition is not configured")

        recognition = await asyncio.to_thread(
            self.recognizer.recognize, image
        )
        if not recognition.keywords:
            raise ImageRecognitionError(
                "Unable to recognize product from image"
            )

        keyword = recognition.keywords[0]
        logger.info(
            "Image recognised as '%s' (candidates: %s)",
            keyword,
            ", ".join(recognition.keywords),
        )
        results = await self.fetch(keyword, platforms)
        await self._complete(
            keyword, platforms, results, recognition.keywords
        )
        return recognition.keywords, results

    async def compare_prices(
        self, product_name: str, platforms: list[str],
    ) -> list[ProductResult]:
        """Cheapest-first view of every platform's results."""
        product_name = _require_keyword(product_name)
        results = await self.aggregator.compare_prices(
            product_name, platforms
        )
        await self._complete(
            product_name, platforms, results, [product_name]
        )
        return results
