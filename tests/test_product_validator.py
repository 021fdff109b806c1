# tests/test_product_validator.py

"""Tests for ProductValidator."""

import unittest

from price_compare.filters.product_validator import ProductValidator
from price_compare.models.product import ProductResult


def _make(
    name: str = "Widget",
    price: float = 10.0,
    url: str = "https://shop.tw/item/1",
) -> ProductResult:
    return ProductResult(name=name, price=price, product_url=url, platform="PChome")


class TestIsValid(unittest.TestCase):

    def test_complete_record(self) -> None:
        self.assertTrue(ProductValidator.is_valid(_make()))

    def test_blank_name(self) -> None:
        self.assertFalse(ProductValidator.is_valid(_make(name="   ")))

    def test_zero_price(self) -> None:
        self.assertFalse(ProductValidator.is_valid(_make(price=0)))

    def test_missing_url(self) -> None:
        self.assertFalse(ProductValidator.is_valid(_make(url="")))


class TestValidate(unittest.TestCase):
    """ProductValidator.validate counts and keeps order."""

    def test_all_valid(self) -> None:
        products = [_make("A"), _make("B")]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual([p.name for p in valid], ["A", "B"])
        self.assertEqual(dropped, 0)

    def test_drops_each_kind_of_invalid(self) -> None:
        products = [
            _make("ok-1"),
            _make(""),
            _make("neg", price=-5),
            _make("no-url", url=" "),
            _make("ok-2"),
        ]
        valid, dropped = ProductValidator.validate(products)
        self.assertEqual([p.name for p in valid], ["ok-1", "ok-2"])
        self.assertEqual(dropped, 3)

    def test_empty(self) -> None:
        self.assertEqual(ProductValidator.validate([]), ([], 0))


if __name__ == "__main__":
    unittest.main()
