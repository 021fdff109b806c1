# tests/test_product_filter.py

"""Tests for ProductFilter bound checks."""

import unittest

from price_compare.filters.product_filter import ProductFilter
from price_compare.models.product import ProductResult, SearchFilters


def _make(
    name: str,
    price: float,
    sales: int | None = None,
    rating: float | None = None,
) -> ProductResult:
    return ProductResult(
        name=name,
        price=price,
        product_url=f"https://shop.tw/{name}",
        platform="Momo",
        sales_volume=sales,
        rating=rating,
    )


class TestProductFilter(unittest.TestCase):

    def setUp(self) -> None:
        self.products = [
            _make("cheap", 50, sales=5, rating=3.5),
            _make("mid", 150, sales=120, rating=4.6),
            _make("dear", 900, sales=None, rating=None),
        ]

    def test_none_filters_returns_input(self) -> None:
        self.assertIs(ProductFilter.apply(self.products, None), self.products)

    def test_price_bounds_inclusive(self) -> None:
        result = ProductFilter.apply(
            self.products, SearchFilters(price_min=50, price_max=150)
        )
        self.assertEqual([p.name for p in result], ["cheap", "mid"])

    def test_min_sales_treats_missing_as_zero(self) -> None:
        result = ProductFilter.apply(self.products, SearchFilters(min_sales=1))
        self.assertEqual([p.name for p in result], ["cheap", "mid"])

    def test_min_rating(self) -> None:
        result = ProductFilter.apply(self.products, SearchFilters(min_rating=4.0))
        self.assertEqual([p.name for p in result], ["mid"])

    def test_limit_truncates_after_filtering(self) -> None:
        result = ProductFilter.apply(
            self.products, SearchFilters(price_min=100, limit=1)
        )
        self.assertEqual([p.name for p in result], ["mid"])

    def test_limit_zero(self) -> None:
        self.assertEqual(ProductFilter.apply(self.products, SearchFilters(limit=0)), [])

    def test_sort_and_page_do_not_filter(self) -> None:
        result = ProductFilter.apply(
            self.products, SearchFilters(sort_by="sales", page=3)
        )
        self.assertEqual(len(result), 3)


if __name__ == "__main__":
    unittest.main()
