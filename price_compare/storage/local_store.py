# price_compare/storage/local_store.py

"""Whole-list JSON persistence for favorites, history, alerts, vendors."""

import json
import logging
from pathlib import Path
from typing import Any, Protocol

from price_compare.config.settings import Settings

logger = logging.getLogger("price_compare.storage")

FAVORITES_KEY = "favorites"
HISTORY_KEY = "search-history"
PRICE_ALERTS_KEY = "price-alerts"
VENDORS_KEY = "vendors"


class Repository(Protocol):
    """A named list of JSON records, read and written in full."""

    def load(self) -> list[dict[str, Any]]:
        ...

    def save(self, records: list[dict[str, Any]]) -> None:
        ...


class JsonFileRepository:
    """Stores one key as ``<data_dir>/<key>.json``."""

    def __init__(self, key: str, data_dir: Path | None = None) -> None:
        self.key = key
        directory = data_dir or Settings.DATA_DIR
        directory.mkdir(parents=True, exist_ok=True)
        self.path: Path = directory / f"{key}.json"

    def load(self) -> list[dict[str, Any]]:
        """Read the list; a missing or corrupt file reads as empty."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(
                "Failed to load %s from %s: %s", self.key, self.path, exc
            )
            return []
        if not isinstance(data, list):
            logger.warning(
                "Ignoring non-list content in %s", self.path
            )
            return []
        return [row for row in data if isinstance(row, dict)]

    def save(self, records: list[dict[str, Any]]) -> None:
        """Rewrite the whole file."""
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(records, f, ensure_ascii=False, indent=2)
        logger.debug(
            "Saved %d %s records to %s", len(records), self.key, self.path
        )


class InMemoryRepository:
    """Repository backed by a Python list (tests, throwaway runs)."""

    def __init__(
        self, records: list[dict[str, Any]] | None = None,
    ) -> None:
        self._records: list[dict[str, Any]] = list(records or [])
        self.save_count = 0

    def load(self) -> list[dict[str, Any]]:
        return [dict(r) for r in self._records]

    def save(self, records: list[dict[str, Any]]) -> None:
        self._records = [dict(r) for r in records]
        self.save_count += 1
