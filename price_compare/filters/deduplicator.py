# price_compare/filters/deduplicator.py

"""Product deduplication keyed on the normalised product URL."""

import logging
import re

from price_compare.models.product import ProductResult

logger = logging.getLogger("price_compare.filters")


class ProductDeduplicator:
    """Collapse records that point at the same product page."""

    # Query params and fragments don't affect the product identity
    _STRIP_PARAMS_RE = re.compile(r"[?#].*$")
    _SCHEME_RE = re.compile(r"^https?:", re.IGNORECASE)

    @staticmethod
    def normalise_url(url: str) -> str:
        """Normalise a product URL for identity comparison.

        Strips query parameters, fragments, trailing slashes and the
        scheme, and lowercases the result.
        """
        if not url:
            return ""
        cleaned = ProductDeduplicator._STRIP_PARAMS_RE.sub("", url.strip())
        cleaned = ProductDeduplicator._SCHEME_RE.sub("", cleaned)
        return cleaned.rstrip("/").lower()

    @staticmethod
    def deduplicate(
        products: list[ProductResult],
    ) -> tuple[list[ProductResult], int]:
        """Remove duplicate products, keeping the cheapest per URL.

        The surviving record takes the position of the first record
        seen for that URL.  Returns the kept list and the count removed.
        """
        if not products:
            return [], 0

        seen_urls: dict[str, int] = {}
        kept: list[ProductResult] = []
        removed = 0

        for product in products:
            norm_url = ProductDeduplicator.normalise_url(
                product.product_url
            )
            if norm_url and norm_url in seen_urls:
                existing_idx = seen_urls[norm_url]
                if 0 < product.price < kept[existing_idx].price:
                    kept[existing_idx] = product
                removed += 1
                continue

            if norm_url:
                seen_urls[norm_url] = len(kept)
            kept.append(product)

        if removed:
            logger.info(
                "Deduplication removed %d duplicate products",
                removed,
            )

        return kept, removed
