# price_compare/filters/product_filter.py

"""Apply SearchFilters bounds to a product list."""

import logging

from price_compare.models.product import ProductResult, SearchFilters

logger = logging.getLogger("price_compare.filters")


class ProductFilter:
    """Post-filter for adapters whose platform cannot filter natively."""

    @staticmethod
    def apply(
        products: list[ProductResult],
        filters: SearchFilters | None,
    ) -> list[ProductResult]:
        """Keep products inside the price/sales/rating bounds, then truncate.

        Missing sales or rating count as 0.
        """
        if filters is None:
            return products

        kept: list[ProductResult] = []
        for product in products:
            if (
                filters.price_min is not None
                and product.price < filters.price_min
            ):
                continue
            if (
                filters.price_max is not None
                and product.price > filters.price_max
            ):
                continue
            if (
                filters.min_sales is not None
                and (product.sales_volume or 0) < filters.min_sales
            ):
                continue
            if (
                filters.min_rating is not None
                and (product.rating or 0) < filters.min_rating
            ):
                continue
            kept.append(product)

        excluded = len(products) - len(kept)
        if excluded:
            logger.info(
                "Filtered out %d products outside search bounds",
                excluded,
            )

        if filters.limit is not None and filters.limit >= 0:
            kept = kept[: filters.limit]
        return kept
