# price_compare/filters/product_validator.py

"""Adapter-boundary validation: drop records missing essential fields."""

import logging

from price_compare.models.product import ProductResult

logger = logging.getLogger("price_compare.filters")


class ProductValidator:
    """Validate products and drop those with missing essential fields."""

    @staticmethod
    def is_valid(product: ProductResult) -> bool:
        """Non-empty name, positive price and a product URL."""
        return bool(
            product.name.strip()
            and product.price > 0
            and product.product_url.strip()
        )

    @staticmethod
    def validate(
        products: list[ProductResult],
    ) -> tuple[list[ProductResult], int]:
        """Drop products with an empty name, a non-positive price or no URL.

        Returns the valid products and the count of dropped items.
        """
        valid: list[ProductResult] = []
        dropped = 0

        for product in products:
            if not product.name.strip():
                logger.debug(
                    "Dropped product with empty name "
                    "(platform=%s, url=%s)",
                    product.platform,
                    product.product_url,
                )
                dropped += 1
                continue
            if product.price <= 0:
                logger.debug(
                    "Dropped product with zero/negative "
                    "price (name=%s, platform=%s)",
                    product.name,
                    product.platform,
                )
                dropped += 1
                continue
            if not product.product_url.strip():
                logger.debug(
                    "Dropped product without URL "
                    "(name=%s, platform=%s)",
                    product.name,
                    product.platform,
                )
                dropped += 1
                continue
            valid.append(product)

        if dropped:
            logger.info(
                "Validation dropped %d invalid products",
                dropped,
            )

        return valid, dropped
