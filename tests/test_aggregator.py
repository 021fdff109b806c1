# tests/test_aggregator.py

"""Tests for the concurrent multi-platform aggregator."""

import unittest
from unittest.mock import MagicMock

from price_compare.config.settings import IntegrationConfig
from price_compare.crawlers.registry import PlatformRegistry
from price_compare.errors import UnsupportedPlatformError
from price_compare.models.product import ProductResult, SearchFilters
from price_compare.services.aggregator import PlatformAggregator, flatten


def _product(name: str, price: float, platform: str = "Fake") -> ProductResult:
    return ProductResult(
        name=name,
        price=price,
        product_url=f"https://fake.test/{name}",
        platform=platform,
    )


def _broken_adapter() -> MagicMock:
    adapter = MagicMock()
    adapter.search.side_effect = ConnectionError("upstream reset")
    adapter.matches.return_value = False
    return adapter


class TestSearchMultiplePlatforms(unittest.IsolatedAsyncioTestCase):
    """Fan-out, partial failure and key resolution."""

    def setUp(self) -> None:
        mock_registry = PlatformRegistry.from_settings(IntegrationConfig())
        self.shopee = mock_registry.get("shopee")
        self.pchome = mock_registry.get("pchome")
        self.registry = PlatformRegistry({
            "shopee": self.shopee,  # type: ignore[dict-item]
            "pchome": self.pchome,  # type: ignore[dict-item]
            "broken": _broken_adapter(),
        })
        self.aggregator = PlatformAggregator(self.registry)

    async def test_one_entry_per_platform(self) -> None:
        results = await self.aggregator.search_multiple_platforms(
            "耳機", ["shopee", "pchome"]
        )
        self.assertEqual(list(results), ["shopee", "pchome"])
        self.assertEqual(len(results["shopee"]), 5)
        self.assertEqual(len(results["pchome"]), 5)

    async def test_failed_adapter_maps_to_empty_list(self) -> None:
        with self.assertLogs("price_compare.aggregator", level="ERROR"):
            results = await self.aggregator.search_multiple_platforms(
                "耳機", ["shopee", "broken", "pchome"]
            )
        self.assertEqual(list(results), ["shopee", "broken", "pchome"])
        self.assertEqual(results["broken"], [])
        self.assertEqual(len(results["shopee"]), 5)

    async def test_unknown_platform_skipped(self) -> None:
        with self.assertLogs("price_compare.aggregator", level="WARNING") as logs:
            results = await self.aggregator.search_multiple_platforms(
                "耳機", ["shopee", "amazon"]
            )
        self.assertEqual(list(results), ["shopee"])
        self.assertTrue(any("amazon" in line for line in logs.output))

    async def test_no_known_platform_raises(self) -> None:
        with self.assertRaises(UnsupportedPlatformError):
            await self.aggregator.search_multiple_platforms("耳機", ["amazon"])

    async def test_empty_platform_list_raises(self) -> None:
        with self.assertRaises(UnsupportedPlatformError):
            await self.aggregator.search_multiple_platforms("耳機", [])

    async def test_duplicate_keys_searched_once(self) -> None:
        adapter = MagicMock()
        adapter.search.return_value = [_product("a", 10)]
        aggregator = PlatformAggregator(PlatformRegistry({"fake": adapter}))
        results = await aggregator.search_multiple_platforms("x", ["fake", "fake"])
        self.assertEqual(list(results), ["fake"])
        adapter.search.assert_called_once()

    async def test_duplicate_keys_differing_in_case(self) -> None:
        adapter = MagicMock()
        adapter.search.return_value = [_product("a", 10)]
        aggregator = PlatformAggregator(PlatformRegistry({"shopee": adapter}))
        results = await aggregator.search_multiple_platforms(
            "x", ["shopee", " Shopee", "SHOPEE"]
        )
        self.assertEqual(list(results), ["shopee"])
        adapter.search.assert_called_once()

    async def test_filters_passed_to_adapter(self) -> None:
        adapter = MagicMock()
        adapter.search.return_value = []
        aggregator = PlatformAggregator(PlatformRegistry({"fake": adapter}))
        filters = SearchFilters(price_max=500)
        await aggregator.search_multiple_platforms("x", ["fake"], filters)
        adapter.search.assert_called_once_with("x", filters)


class TestGetProductFromUrl(unittest.IsolatedAsyncioTestCase):
    """URL routing by domain."""

    def setUp(self) -> None:
        self.aggregator = PlatformAggregator(
            PlatformRegistry.from_settings(IntegrationConfig())
        )

    async def test_routes_to_matching_adapter(self) -> None:
        product = await self.aggregator.get_product_from_url(
            "https://www.momoshop.com.tw/goods/airpods-4"
        )
        assert product is not None
        self.assertEqual(product.platform, "Momo")

    async def test_unsupported_domain_raises(self) -> None:
        with self.assertRaises(UnsupportedPlatformError):
            await self.aggregator.get_product_from_url("https://www.amazon.com/dp/B0")


class TestComparePrices(unittest.IsolatedAsyncioTestCase):
    """Cheapest-first composition."""

    async def test_ten_items_sorted_ascending(self) -> None:
        aggregator = PlatformAggregator(
            PlatformRegistry.from_settings(IntegrationConfig())
        )
        results = await aggregator.compare_prices("耳機", ["shopee", "pchome"])
        self.assertEqual(len(results), 10)
        prices = [r.price for r in results]
        self.assertEqual(prices, sorted(prices))
        self.assertTrue(all(100 <= p <= 600 for p in prices))
        self.assertEqual({r.platform for r in results}, {"Shopee", "PChome"})


class TestFlatten(unittest.TestCase):

    def test_platform_order_preserved(self) -> None:
        merged = flatten({
            "b": [_product("b1", 5)],
            "a": [_product("a1", 1), _product("a2", 2)],
        })
        self.assertEqual([p.name for p in merged], ["b1", "a1", "a2"])


if __name__ == "__main__":
    unittest.main()
