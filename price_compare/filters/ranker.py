# price_compare/filters/ranker.py

"""Sorting, platform filtering and summary stats for a result list."""

import math
from dataclasses import dataclass
from typing import Literal

from price_compare.models.product import ProductResult

RankBy = Literal["price", "sales", "rating", "discount"]

ALL_PLATFORMS = "all"


def calculate_discount(
    original: float | None, current: float,
) -> int:
    """Percentage off, rounded half-up; 0 without a usable original."""
    if not original:
        return 0
    return math.floor((original - current) / original * 100 + 0.5)


def rank(
    results: list[ProductResult],
    sort_by: str = "price",
    filter_platform: str | None = None,
) -> list[ProductResult]:
    """Filter by platform id or name (case-insensitive), then stable-sort.

    ``price`` sorts ascending; ``sales``, ``rating`` and ``discount``
    sort descending with missing values counted as 0.  Any other
    ``sort_by`` leaves the order unchanged.
    """
    wanted = (filter_platform or "").strip().casefold()
    if wanted and wanted != ALL_PLATFORMS:
        filtered = [r for r in results if r.platform.casefold() == wanted]
    else:
        filtered = list(results)

    if sort_by == "price":
        return sorted(filtered, key=lambda r: r.price)
    if sort_by == "sales":
        return sorted(
            filtered, key=lambda r: r.sales_volume or 0, reverse=True
        )
    if sort_by == "rating":
        return sorted(
            filtered, key=lambda r: r.rating or 0, reverse=True
        )
    if sort_by == "discount":
        return sorted(
            filtered,
            key=lambda r: calculate_discount(r.original_price, r.price),
            reverse=True,
        )
    return filtered


@dataclass(frozen=True)
class ResultStats:
    """Headline numbers for a result set."""

    total: int
    lowest_price: float
    highest_sales: int
    platform_count: int


def compute_stats(results: list[ProductResult]) -> ResultStats:
    """Recompute the headline numbers from scratch."""
    if not results:
        return ResultStats(
            total=0, lowest_price=0.0, highest_sales=0, platform_count=0
        )
    return ResultStats(
        total=len(results),
        lowest_price=min(r.price for r in results),
        highest_sales=max(r.sales_volume or 0 for r in results),
        platform_count=len({r.platform for r in results}),
    )
