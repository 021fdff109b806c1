# tests/test_cli_runner.py

"""Tests for the headless CLI runner."""

import io
import json
import tempfile
import unittest
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

from price_compare.cli import runner
from price_compare.config.settings import IntegrationConfig
from price_compare.models.product import ProductResult
from price_compare.services.health_checker import HealthResult


class _RunnerCase(unittest.IsolatedAsyncioTestCase):

    def setUp(self) -> None:
        self.tmp_dir = Path(tempfile.mkdtemp())
        self.components = runner.build_components(
            IntegrationConfig(), data_dir=self.tmp_dir / "data"
        )
        self.addCleanup(self.components.close)
        self.options = runner.OutputOptions(output_dir=self.tmp_dir / "results")

    def _stdout_json(self, stdout: io.StringIO) -> list[dict[str, object]]:
        data: list[dict[str, object]] = json.loads(stdout.getvalue())
        return data


class TestBuildComponents(unittest.TestCase):

    def test_no_database_by_default(self) -> None:
        components = runner.build_components(
            IntegrationConfig(), data_dir=Path(tempfile.mkdtemp())
        )
        self.assertIsNone(components.sink)
        self.assertEqual(
            components.registry.available_platforms(),
            ["shopee", "pchome", "momo", "1688"],
        )

    def test_database_sink_when_configured(self) -> None:
        tmp = Path(tempfile.mkdtemp())
        config = IntegrationConfig(database_path=tmp / "db.sqlite", user_id="u1")
        components = runner.build_components(config, data_dir=tmp)
        try:
            self.assertIsNotNone(components.sink)
            assert components.sink is not None
            self.assertEqual(components.sink.user_id, "u1")
            self.assertIs(components.service.sink, components.sink)
        finally:
            components.close()


class TestParsePlatforms(unittest.TestCase):

    def setUp(self) -> None:
        self.registry = runner.build_components(
            IntegrationConfig(), data_dir=Path(tempfile.mkdtemp())
        ).registry

    def test_none_means_all(self) -> None:
        self.assertEqual(
            runner.parse_platforms(None, self.registry),
            ["shopee", "pchome", "momo", "1688"],
        )

    def test_csv_trimmed(self) -> None:
        self.assertEqual(
            runner.parse_platforms(" momo , ,shopee", self.registry),
            ["momo", "shopee"],
        )

    def test_unknown_ids_kept_for_aggregator(self) -> None:
        self.assertEqual(
            runner.parse_platforms("momo,amazon", self.registry),
            ["momo", "amazon"],
        )


class TestCommands(_RunnerCase):

    async def test_search_prints_json(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_search(
                self.components, "耳機", "shopee,momo", self.options
            )
        self.assertEqual(code, 0)
        data = self._stdout_json(stdout)
        self.assertEqual(len(data), 10)
        prices = [float(str(d["price"])) for d in data]
        self.assertEqual(prices, sorted(prices))
        self.assertTrue(list((self.tmp_dir / "results").glob("all_*.json")))
        self.assertTrue(list((self.tmp_dir / "results").glob("export_*.csv")))

    async def test_search_unsupported_platform(self) -> None:
        code = await runner.cli_search(
            self.components, "耳機", "amazon", self.options
        )
        self.assertEqual(code, 1)

    async def test_filter_platform(self) -> None:
        self.options.filter_platform = "Momo"
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_compare(
                self.components, "耳機", "shopee,momo", self.options
            )
        self.assertEqual(code, 0)
        self.assertEqual(
            {d["platform"] for d in self._stdout_json(stdout)}, {"Momo"}
        )

    async def test_filter_platform_by_id(self) -> None:
        self.options.filter_platform = "shopee"
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_search(
                self.components, "耳機", "shopee,momo", self.options
            )
        self.assertEqual(code, 0)
        self.assertEqual(
            {d["platform"] for d in self._stdout_json(stdout)}, {"Shopee"}
        )

    async def test_url_unknown_domain(self) -> None:
        code = await runner.cli_url(
            self.components, "https://www.amazon.com/dp/X", None, self.options
        )
        self.assertEqual(code, 1)

    async def test_url_resolves_then_compares(self) -> None:
        url = "https://www.momoshop.com.tw/goods/GoodsDetail.jsp?i_code=9"
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_url(
                self.components, url, "momo,pchome", self.options
            )
        self.assertEqual(code, 0)
        data = self._stdout_json(stdout)
        self.assertEqual(len(data), 6)
        self.assertIn(url, [d["product_url"] for d in data])

    async def test_image_simulated_without_keys(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_image(
                self.components, "https://cdn.test/a.jpg", "pchome", self.options
            )
        self.assertEqual(code, 0)
        self.assertEqual(len(self._stdout_json(stdout)), 5)

    async def test_table_output(self) -> None:
        self.options.output_format = "table"
        with patch("sys.stdout", new_callable=io.StringIO):
            code = await runner.cli_search(
                self.components, "mouse", "1688", self.options
            )
        self.assertEqual(code, 0)


class TestPresent(_RunnerCase):

    def _make(self, name: str, price: float, url: str) -> ProductResult:
        return ProductResult(
            name=name, price=price, product_url=url, platform="Shopee"
        )

    def test_empty_results(self) -> None:
        self.assertEqual(runner.present("q", [], self.options), 1)

    def test_dedupe_keeps_cheapest(self) -> None:
        self.options.dedupe = True
        results = [
            self._make("a", 300, "https://shopee.tw/x"),
            self._make("b", 200, "https://shopee.tw/x?ref=1"),
            self._make("c", 100, "https://shopee.tw/y"),
        ]
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = runner.present("q", results, self.options)
        self.assertEqual(code, 0)
        self.assertEqual(
            [d["name"] for d in self._stdout_json(stdout)], ["c", "b"]
        )


class TestBatch(_RunnerCase):

    async def test_batch_merges_results(self) -> None:
        with patch("sys.stdout", new_callable=io.StringIO) as stdout:
            code = await runner.cli_batch(
                self.components,
                ["耳機", "", "  滑鼠 "],
                "pchome",
                self.options,
                item_delay=0,
            )
        self.assertEqual(code, 0)
        self.assertEqual(len(self._stdout_json(stdout)), 10)

    async def test_batch_without_keywords(self) -> None:
        code = await runner.cli_batch(
            self.components, ["", "  "], "pchome", self.options, item_delay=0
        )
        self.assertEqual(code, 1)

    def test_read_batch_lines(self) -> None:
        path = self.tmp_dir / "kw.txt"
        path.write_text("耳機\n滑鼠\n", encoding="utf-8")
        self.assertEqual(runner.read_batch_lines(str(path)), ["耳機", "滑鼠"])

    def test_read_batch_lines_stdin(self) -> None:
        with patch("sys.stdin", io.StringIO("a\nb\n")):
            self.assertEqual(runner.read_batch_lines("-"), ["a", "b"])

    async def test_batch_file_missing(self) -> None:
        missing = self.tmp_dir / "nope.txt"
        with self.assertLogs("price_compare.cli", level="ERROR"):
            code = await runner.cli_batch_file(
                self.components, str(missing), "pchome", self.options
            )
        self.assertEqual(code, 1)

    async def test_batch_file(self) -> None:
        path = self.tmp_dir / "kw.txt"
        path.write_text("耳機\n", encoding="utf-8")
        with patch.object(runner.Settings, "BATCH_ITEM_DELAY", 0), patch(
            "sys.stdout", new_callable=io.StringIO
        ) as stdout:
            code = await runner.cli_batch_file(
                self.components, str(path), "pchome", self.options
            )
        self.assertEqual(code, 0)
        self.assertEqual(len(self._stdout_json(stdout)), 5)


class TestHealthCommand(unittest.IsolatedAsyncioTestCase):

    @patch("price_compare.services.health_checker.HealthChecker")
    async def test_exit_code_reflects_down(self, mock_cls: MagicMock) -> None:
        mock_cls.return_value.check_all = AsyncMock(return_value=[
            HealthResult("shopee", "ok", 120.0, ""),
            HealthResult("momo", "down", 0.0, "HTTP 403"),
        ])
        self.assertEqual(await runner.run_health_check(), 1)

    @patch("price_compare.services.health_checker.HealthChecker")
    async def test_all_ok(self, mock_cls: MagicMock) -> None:
        mock_cls.return_value.check_all = AsyncMock(return_value=[
            HealthResult("shopee", "slow", 6000.0, "High latency"),
        ])
        self.assertEqual(await runner.run_health_check(), 0)


if __name__ == "__main__":
    unittest.main()
