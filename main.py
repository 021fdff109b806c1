# main.py

"""Entry point for the price_compare command-line tool."""

import argparse
import asyncio
import dataclasses
import logging
import sys
from pathlib import Path

from price_compare.config.logging_config import setup_logging
from price_compare.config.settings import Settings, load_integration_config
from price_compare.models.product import SearchFilters

logger = logging.getLogger("price_compare.main")

SORT_CHOICES = ["price", "sales", "rating", "discount", "relevance"]


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(s["id"] for s in Settings.AVAILABLE_SOURCES)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "-p",
        "--platforms",
        default=None,
        help="Comma-separated platform IDs (default: all).",
    )
    common.add_argument(
        "--sort",
        choices=SORT_CHOICES,
        default="price",
        dest="sort_by",
        help="Result ordering (default: price).",
    )
    common.add_argument(
        "--filter-platform",
        default=None,
        help=(
            "Only show results from this platform, by id or name "
            "('all' for every one)."
        ),
    )
    common.add_argument(
        "--dedupe",
        action="store_true",
        default=False,
        help="Collapse results pointing at the same product page.",
    )
    common.add_argument(
        "-f",
        "--format",
        choices=["json", "table"],
        default="json",
        dest="output_format",
        help="Output format (default: json).",
    )
    common.add_argument(
        "-o",
        "--output",
        default=None,
        dest="output_dir",
        help="Custom output directory (default: results/).",
    )
    common.add_argument(
        "--live",
        action="store_true",
        default=False,
        help="Query the real platforms instead of generating mock data.",
    )

    parser = argparse.ArgumentParser(
        prog="price-compare",
        description="Multi-platform product price comparison.",
        epilog=f"Available platforms: {valid_ids}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Also show INFO log records on stderr.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    search = sub.add_parser(
        "search", parents=[common], help="Search by keyword."
    )
    search.add_argument("keyword")
    search.add_argument("--min-price", type=float, default=None)
    search.add_argument("--max-price", type=float, default=None)
    search.add_argument("--min-sales", type=int, default=None)
    search.add_argument("--min-rating", type=float, default=None)
    search.add_argument("--page", type=int, default=None)
    search.add_argument("--limit", type=int, default=None)

    url = sub.add_parser(
        "url", parents=[common], help="Compare a product page across platforms."
    )
    url.add_argument("url")

    image = sub.add_parser(
        "image", parents=[common], help="Search by product image."
    )
    image.add_argument("image", help="Image URL or local file path.")

    batch = sub.add_parser(
        "batch", parents=[common], help="Search many keywords in sequence."
    )
    batch.add_argument(
        "source", help="File with one keyword per line, or '-' for stdin."
    )

    compare = sub.add_parser(
        "compare", parents=[common], help="Cheapest-first comparison."
    )
    compare.add_argument("name")

    sub.add_parser("health", help="Check connectivity to every platform.")
    return parser


def _filters_from_args(args: argparse.Namespace) -> SearchFilters | None:
    """SearchFilters for the search command, or None when none given."""
    values = {
        "price_min": args.min_price,
        "price_max": args.max_price,
        "min_sales": args.min_sales,
        "min_rating": args.min_rating,
        "page": args.page,
        "limit": args.limit,
    }
    sort_by = args.sort_by if args.sort_by != "discount" else None
    if all(v is None for v in values.values()) and sort_by == "price":
        return None
    return SearchFilters(sort_by=sort_by, **values)


async def _dispatch(args: argparse.Namespace) -> int:
    """Build the components for this run and execute one command."""
    from price_compare.cli import runner

    if args.command == "health":
        return await runner.run_health_check()

    config = load_integration_config()
    if args.live:
        config = dataclasses.replace(config, mock_mode=False)

    options = runner.OutputOptions(
        sort_by=args.sort_by,
        filter_platform=args.filter_platform,
        dedupe=args.dedupe,
        output_format=args.output_format,
        output_dir=Path(args.output_dir) if args.output_dir else None,
    )
    components = runner.build_components(config)
    try:
        if args.command == "search":
            return await runner.cli_search(
                components,
                args.keyword,
                args.platforms,
                options,
                _filters_from_args(args),
            )
        if args.command == "url":
            return await runner.cli_url(
                components, args.url, args.platforms, options
            )
        if args.command == "image":
            return await runner.cli_image(
                components, args.image, args.platforms, options
            )
        if args.command == "batch":
            return await runner.cli_batch_file(
                components, args.source, args.platforms, options
            )
        return await runner.cli_compare(
            components, args.name, args.platforms, options
        )
    finally:
        components.close()


def main() -> None:
    """Parse arguments, run one command and exit with its code."""
    parser = _build_parser()
    args = parser.parse_args()

    log_file = setup_logging(
        console_level=logging.INFO if args.verbose else logging.WARNING
    )
    logger.info("price_compare %s starting, log file: %s", args.command, log_file)

    try:
        exit_code = asyncio.run(_dispatch(args))
    except Exception:
        logger.critical("Fatal error during run", exc_info=True)
        raise
    finally:
        logger.info("price_compare shutting down")
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
