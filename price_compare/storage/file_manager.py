# price_compare/storage/file_manager.py

"""Handles saving comparison results to disk."""

import csv
import json
import logging
import re
from datetime import datetime
from pathlib import Path

from price_compare.config.settings import Settings
from price_compare.models.product import ProductResult

logger = logging.getLogger("price_compare.storage")

_UNSAFE_CHARS_RE = re.compile(r"[^\w\-]+")

CSV_HEADER = [
    "Name", "Price", "Original Price", "Platform",
    "Rating", "Sales", "Vendor", "URL",
]


def _slug(text: str) -> str:
    """Filename-safe form of a query; CJK word characters are kept."""
    return _UNSAFE_CHARS_RE.sub("_", text.strip()).strip("_") or "query"


class FileManager:
    """Handles saving comparison results to disk."""

    def __init__(self, results_dir: Path | None = None) -> None:
        self.results_dir: Path = results_dir or Settings.RESULTS_DIR
        self.results_dir.mkdir(parents=True, exist_ok=True)
        logger.debug("FileManager initialised, results_dir=%s", self.results_dir)

    def save_results(
        self, query: str, products: list[ProductResult], label: str = "all",
    ) -> Path:
        """Save products to a timestamped JSON file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = self.results_dir / f"{label}_{_slug(query)}_{timestamp}.json"

        with open(filepath, "w", encoding="utf-8") as f:
            json.dump(
                [p.to_dict() for p in products],
                f,
                ensure_ascii=False,
                indent=2,
            )

        logger.info(
            "Saved %d products for query '%s' to %s",
            len(products),
            query,
            filepath,
        )
        return filepath

    def export_csv(
        self, query: str, products: list[ProductResult], label: str = "all",
    ) -> Path:
        """Export products to a CSV file sorted by price."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = (
            self.results_dir / f"export_{label}_{_slug(query)}_{timestamp}.csv"
        )

        sorted_products = sorted(products, key=lambda p: p.price)

        # utf-8-sig so spreadsheet apps detect the encoding of CJK names
        with open(filepath, "w", newline="", encoding="utf-8-sig") as f:
            writer = csv.writer(f)
            writer.writerow(CSV_HEADER)
            for p in sorted_products:
                writer.writerow([
                    p.name,
                    p.price,
                    "" if p.original_price is None else p.original_price,
                    p.platform,
                    "" if p.rating is None else p.rating,
                    "" if p.sales_volume is None else p.sales_volume,
                    p.vendor_name or "",
                    p.product_url,
                ])

        logger.info(
            "Exported %d products for query '%s' to %s",
            len(products),
            query,
            filepath,
        )
        return filepath
