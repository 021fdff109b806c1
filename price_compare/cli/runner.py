# price_compare/cli/runner.py

"""Headless CLI runner: wires the services together and prints results."""

import json
import logging
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from rich.console import Console
from rich.table import Table

from price_compare.config.settings import IntegrationConfig, Settings
from price_compare.crawlers.registry import PlatformRegistry
from price_compare.errors import PriceCompareError
from price_compare.filters.deduplicator import ProductDeduplicator
from price_compare.filters.ranker import calculate_discount, compute_stats, rank
from price_compare.models.batch import BatchItem, BatchProgress, BatchStatus
from price_compare.models.product import ProductResult, SearchFilters
from price_compare.services.aggregator import PlatformAggregator
from price_compare.services.batch_orchestrator import BatchOrchestrator
from price_compare.services.comparison_service import ComparisonService
from price_compare.services.image_recognition import ImageRecognizer
from price_compare.services.user_data import (
    PriceAlertService,
    SearchHistoryService,
)
from price_compare.storage.comparison_db import ComparisonDB
from price_compare.storage.file_manager import FileManager
from price_compare.storage.local_store import (
    HISTORY_KEY,
    PRICE_ALERTS_KEY,
    JsonFileRepository,
)

logger = logging.getLogger("price_compare.cli")

# Stderr console for status messages so stdout stays clean for JSON
_err = Console(stderr=True)

_STATUS_STYLE = {
    BatchStatus.PENDING: "dim",
    BatchStatus.SEARCHING: "cyan",
    BatchStatus.COMPLETED: "green",
    BatchStatus.ERROR: "red",
}


@dataclass
class OutputOptions:
    """How a result list is ranked, printed and saved."""

    sort_by: str = "price"
    filter_platform: str | None = None
    dedupe: bool = False
    output_format: str = "json"
    output_dir: Path | None = None


@dataclass
class Components:
    """Everything a CLI command needs, built from one config."""

    registry: PlatformRegistry
    service: ComparisonService
    sink: ComparisonDB | None

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()


def build_components(
    config: IntegrationConfig,
    data_dir: Path | None = None,
) -> Components:
    """Create the registry, services and optional database sink."""
    registry = PlatformRegistry.from_settings(config)
    sink = (
        ComparisonDB(config.database_path, user_id=config.user_id)
        if config.database_path
        else None
    )
    service = ComparisonService(
        PlatformAggregator(registry),
        recognizer=ImageRecognizer(config),
        history=SearchHistoryService(
            JsonFileRepository(HISTORY_KEY, data_dir)
        ),
        alerts=PriceAlertService(
            JsonFileRepository(PRICE_ALERTS_KEY, data_dir)
        ),
        sink=sink,
    )
    return Components(registry=registry, service=service, sink=sink)


def parse_platforms(
    platform_csv: str | None, registry: PlatformRegistry,
) -> list[str]:
    """Comma-separated platform ids; every registered platform when None."""
    if platform_csv is None:
        return registry.available_platforms()
    requested = [p.strip() for p in platform_csv.split(",") if p.strip()]
    unknown = [p for p in requested if p not in registry]
    if unknown:
        _err.print(
            f"[yellow]Skipping unknown platform(s): "
            f"{', '.join(unknown)}[/yellow]"
        )
        _err.print(
            f"[dim]Available: {', '.join(registry.available_platforms())}[/dim]"
        )
    return requested


def _print_table(results: list[ProductResult]) -> None:
    """Render a Rich table of ranked results to stdout."""
    table = Table(
        title="Comparison Results",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Name", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("Off", justify="right", style="yellow")
    table.add_column("Platform", style="magenta")
    table.add_column("Rating", justify="center")
    table.add_column("Sales", justify="right")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, r in enumerate(results, 1):
        discount = calculate_discount(r.original_price, r.price)
        table.add_row(
            str(idx),
            r.name[:50],
            f"{r.price:,.0f}",
            f"{discount}%" if discount > 0 else "",
            r.platform,
            f"{r.rating:.1f}" if r.rating is not None else "—",
            f"{r.sales_volume:,}" if r.sales_volume is not None else "—",
            r.product_url,
        )

    Console().print(table)


def _save_results(
    query: str, results: list[ProductResult], output_dir: Path | None,
) -> None:
    """Write JSON and CSV copies; failures are reported, not raised."""
    try:
        file_manager = FileManager(output_dir)
        path = file_manager.save_results(query, results)
        csv_path = file_manager.export_csv(query, results)
        _err.print(f"[dim]Saved → {path}, {csv_path.name}[/dim]")
    except OSError as exc:
        logger.error("Save failed: %s", exc, exc_info=True)
        _err.print(f"[red]Save failed: {exc}[/red]")


def present(
    query: str,
    results: list[ProductResult],
    options: OutputOptions,
) -> int:
    """Rank, summarise, save and print results; returns an exit code."""
    if options.dedupe:
        results, removed = ProductDeduplicator.deduplicate(results)
        if removed:
            _err.print(f"[dim]{removed} duplicates removed[/dim]")

    ranked = rank(results, options.sort_by, options.filter_platform)
    if not ranked:
        _err.print("[yellow]No products found.[/yellow]")
        return 1

    stats = compute_stats(ranked)
    _err.print(
        f"[green]✓ {stats.total} products from "
        f"{stats.platform_count} platform(s), lowest "
        f"{stats.lowest_price:,.0f}, top sales "
        f"{stats.highest_sales:,}[/green]"
    )

    _save_results(query, ranked, options.output_dir)

    if options.output_format == "table":
        _print_table(ranked)
    else:
        json.dump(
            [r.to_dict() for r in ranked],
            sys.stdout,
            ensure_ascii=False,
            indent=2,
        )
        sys.stdout.write("\n")
    return 0


def _fail(exc: Exception) -> int:
    logger.error("Command failed: %s", exc)
    _err.print(f"[red]Error: {exc}[/red]")
    return 1


async def cli_search(
    components: Components,
    keyword: str,
    platform_csv: str | None,
    options: OutputOptions,
    filters: SearchFilters | None = None,
) -> int:
    """Keyword search across platforms."""
    platforms = parse_platforms(platform_csv, components.registry)
    _err.print(
        f"[bold]Searching:[/bold] {keyword}  "
        f"[dim]platforms={', '.join(platforms)}[/dim]"
    )
    try:
        results = await components.service.search_by_keyword(
            keyword, platforms, filters
        )
    except PriceCompareError as exc:
        return _fail(exc)
    return present(keyword, results, options)


async def cli_url(
    components: Components,
    url: str,
    platform_csv: str | None,
    options: OutputOptions,
) -> int:
    """Resolve a product URL and compare it across the other platforms."""
    platforms = parse_platforms(platform_csv, components.registry)
    _err.print(f"[bold]Resolving:[/bold] {url}")
    try:
        results = await components.service.search_by_url(url, platforms)
    except PriceCompareError as exc:
        return _fail(exc)
    return present(results[0].name, results, options)


async def cli_image(
    components: Components,
    image: str,
    platform_csv: str | None,
    options: OutputOptions,
) -> int:
    """Recognise an image and search with its best keyword."""
    platforms = parse_platforms(platform_csv, components.registry)
    _err.print(f"[bold]Recognising:[/bold] {image}")
    try:
        keywords, results = await components.service.search_by_image(
            image, platforms
        )
    except PriceCompareError as exc:
        return _fail(exc)
    _err.print(f"[dim]Keywords: {', '.join(keywords)}[/dim]")
    return present(keywords[0], results, options)


async def cli_compare(
    components: Components,
    name: str,
    platform_csv: str | None,
    options: OutputOptions,
) -> int:
    """Cheapest-first comparison for a product name."""
    platforms = parse_platforms(platform_csv, components.registry)
    try:
        results = await components.service.compare_prices(name, platforms)
    except PriceCompareError as exc:
        return _fail(exc)
    return present(name, results, options)


def read_batch_lines(source: str) -> list[str]:
    """Keyword lines from a file, or from stdin when ``source`` is '-'."""
    if source == "-":
        return sys.stdin.read().splitlines()
    with open(source, encoding="utf-8") as f:
        return f.read().splitlines()


def _print_batch_update(item: BatchItem, progress: BatchProgress) -> None:
    style = _STATUS_STYLE[item.status]
    detail = ""
    if item.status is BatchStatus.COMPLETED:
        detail = f" ({len(item.results or [])} results)"
    elif item.status is BatchStatus.ERROR:
        detail = f" ({item.error})"
    _err.print(
        f"[{style}][{progress.done}/{progress.total}] "
        f"{item.status.value}: {item.keyword}{detail}[/{style}]"
    )


async def cli_batch(
    components: Components,
    lines: Iterable[str],
    platform_csv: str | None,
    options: OutputOptions,
    item_delay: float | None = None,
) -> int:
    """Run a sequential keyword batch and print the merged results."""
    platforms = parse_platforms(platform_csv, components.registry)
    orchestrator = BatchOrchestrator(
        components.service.fetch,
        item_delay=(
            Settings.BATCH_ITEM_DELAY if item_delay is None else item_delay
        ),
        sink=components.sink,
    )
    items = orchestrator.prepare_items(lines)
    if not items:
        _err.print("[yellow]No keywords to search.[/yellow]")
        return 1

    outcome = await orchestrator.run(
        items, platforms, on_update=_print_batch_update
    )
    _err.print(
        f"[bold]Batch done:[/bold] {outcome.completed_count} completed, "
        f"{outcome.failed_count} failed"
    )
    if outcome.failed_keywords:
        _err.print(
            f"[red]Failed: {', '.join(outcome.failed_keywords)}[/red]"
        )
    return present("batch", outcome.results, options)


async def cli_batch_file(
    components: Components,
    source: str,
    platform_csv: str | None,
    options: OutputOptions,
) -> int:
    """Read keyword lines from ``source`` and run them as a batch."""
    try:
        lines = read_batch_lines(source)
    except (OSError, UnicodeDecodeError) as exc:
        return _fail(exc)
    return await cli_batch(components, lines, platform_csv, options)


async def run_health_check() -> int:
    """Run a connectivity health check on all platforms."""
    from price_compare.services.health_checker import HealthChecker

    _err.print("[bold]Running platform health check...[/bold]")
    checker = HealthChecker()
    results = await checker.check_all()

    table = Table(
        title="Platform Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("Platform", style="bold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Notes", style="dim")

    any_down = False
    for r in results:
        if r.status == "ok":
            status = "[green]✅ OK[/green]"
        elif r.status == "slow":
            status = "[yellow]⚠️  SLOW[/yellow]"
        else:
            status = "[red]❌ DOWN[/red]"
            any_down = True

        latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
        table.add_row(r.source_id, status, latency, r.message)

    Console().print(table)
    return 1 if any_down else 0
