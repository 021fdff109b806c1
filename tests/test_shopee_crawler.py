# tests/test_shopee_crawler.py

"""Tests for the Shopee adapter using canned API payloads."""

import json
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

from price_compare.crawlers.shopee_crawler import ShopeeCrawler
from price_compare.models.product import SearchFilters

FIXTURES_DIR = Path(__file__).parent / "fixtures"


def _load_json(name: str) -> Any:
    with open(FIXTURES_DIR / name, encoding="utf-8") as f:
        return json.load(f)


class TestShopeeSearch(unittest.TestCase):
    """search() against a mocked HttpClient."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.client.get_json.return_value = _load_json("shopee_search.json")
        self.crawler = ShopeeCrawler(client=self.client)

    def test_invalid_items_are_dropped(self) -> None:
        """Empty names and zero prices never leave the adapter."""
        products = self.crawler.search("airpods")
        self.assertEqual(len(products), 2)
        self.assertTrue(all(p.price > 0 and p.name and p.product_url for p in products))

    def test_price_scaled_down(self) -> None:
        first = self.crawler.search("airpods")[0]
        self.assertEqual(first.price, 6490.0)
        self.assertEqual(first.original_price, 7990.0)

    def test_fields_normalised(self) -> None:
        first = self.crawler.search("airpods")[0]
        self.assertEqual(first.name, "Apple AirPods Pro 2 藍牙耳機")
        self.assertEqual(first.platform, "Shopee")
        self.assertEqual(first.product_url, "https://shopee.tw/product/1001/2001")
        self.assertEqual(first.image_url, "https://cf.shopee.tw/file/tw-11134207-abc")
        self.assertEqual(first.sales_volume, 1520)
        self.assertEqual(first.review_count, 320)
        self.assertEqual(first.vendor_name, "臺北市")
        self.assertEqual(first.specs["brand"], "Apple")

    def test_rating_kept_on_five_point_scale(self) -> None:
        first = self.crawler.search("airpods")[0]
        self.assertAlmostEqual(first.rating or 0, 4.86)

    def test_zero_rating_and_stock(self) -> None:
        second = self.crawler.search("airpods")[1]
        self.assertIsNone(second.rating)
        self.assertEqual(second.review_count, 0)
        self.assertEqual(second.stock_status, "out_of_stock")
        self.assertIsNone(second.original_price)
        self.assertEqual(second.sales_volume, 45)

    def test_unexpected_payload_yields_empty(self) -> None:
        self.client.get_json.return_value = {"error": 90309999}
        self.assertEqual(self.crawler.search("airpods"), [])

    def test_transport_error_propagates_after_retries(self) -> None:
        self.client.get_json.side_effect = ConnectionError("reset")
        with self.assertRaises(ConnectionError):
            self.crawler.search("airpods")
        self.assertEqual(
            self.client.get_json.call_count, self.crawler.settings.MAX_RETRIES
        )


class TestShopeeSearchUrl(unittest.TestCase):
    """Sort and paging parameters."""

    def setUp(self) -> None:
        self.crawler = ShopeeCrawler(client=MagicMock())

    def _params(self, filters: SearchFilters | None) -> dict[str, str]:
        url = self.crawler.build_search_url("耳機", filters)
        return {k: v[0] for k, v in parse_qs(urlparse(url).query).items()}

    def test_default_relevancy(self) -> None:
        params = self._params(None)
        self.assertEqual(params["by"], "relevancy")
        self.assertEqual(params["order"], "desc")
        self.assertEqual(params["limit"], "60")
        self.assertEqual(params["newest"], "0")
        self.assertEqual(params["keyword"], "耳機")

    def test_price_ascending(self) -> None:
        params = self._params(SearchFilters(sort_by="price"))
        self.assertEqual(params["by"], "price")
        self.assertEqual(params["order"], "asc")

    def test_sales_and_rating(self) -> None:
        self.assertEqual(self._params(SearchFilters(sort_by="sales"))["by"], "sales")
        self.assertEqual(self._params(SearchFilters(sort_by="rating"))["by"], "ctime")

    def test_paging_offset(self) -> None:
        params = self._params(SearchFilters(page=2, limit=20))
        self.assertEqual(params["limit"], "20")
        self.assertEqual(params["newest"], "40")


class TestShopeeDetails(unittest.TestCase):
    """get_product_details() URL parsing and enrichment."""

    def setUp(self) -> None:
        self.client = MagicMock()
        self.client.get_json.return_value = _load_json("shopee_item.json")
        self.crawler = ShopeeCrawler(client=self.client)

    def test_seo_url(self) -> None:
        url = "https://shopee.tw/AirPods-Pro-i.1001.2001"
        product = self.crawler.get_product_details(url)
        assert product is not None
        self.assertEqual(product.product_url, url)
        self.assertEqual(product.vendor_name, "Apple 授權經銷")
        self.assertEqual(product.specs["category"], "3C與筆電 > 耳機")
        self.assertEqual(product.specs["description"], "原廠公司貨")
        api_url = self.client.get_json.call_args[0][0]
        self.assertIn("shopid=1001", api_url)
        self.assertIn("itemid=2001", api_url)

    def test_product_path_url(self) -> None:
        product = self.crawler.get_product_details(
            "https://shopee.tw/product/1001/2001"
        )
        self.assertIsNotNone(product)

    def test_invalid_url_raises(self) -> None:
        with self.assertRaises(ValueError):
            self.crawler.get_product_details("https://shopee.tw/search?q=x")

    def test_missing_data_returns_none(self) -> None:
        self.client.get_json.return_value = {"error": 4, "data": None}
        self.assertIsNone(
            self.crawler.get_product_details("https://shopee.tw/x-i.1.2")
        )

    def test_matches(self) -> None:
        self.assertTrue(self.crawler.matches("https://shopee.tw/x-i.1.2"))
        self.assertFalse(self.crawler.matches("https://www.momoshop.com.tw/x"))


if __name__ == "__main__":
    unittest.main()
