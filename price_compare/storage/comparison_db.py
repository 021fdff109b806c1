# price_compare/storage/comparison_db.py

"""SQLite-backed sink for comparison tasks and their price records."""

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any

from price_compare.config.settings import Settings
from price_compare.models.price_record import PriceRecord
from price_compare.models.product import ProductResult

logger = logging.getLogger("price_compare.comparison_db")

TASK_STATUSES: frozenset[str] = frozenset({
    "pending", "running", "completed", "failed",
})

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS products (
    id           INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id      TEXT    NOT NULL,
    name         TEXT    NOT NULL,
    image_url    TEXT    NOT NULL DEFAULT '',
    original_url TEXT    NOT NULL,
    specs        TEXT    NOT NULL DEFAULT '{}',
    created_at   TEXT    NOT NULL,
    updated_at   TEXT    NOT NULL,
    UNIQUE (user_id, original_url)
);

CREATE TABLE IF NOT EXISTS vendors (
    id         INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id    TEXT    NOT NULL,
    name       TEXT    NOT NULL,
    platform   TEXT    NOT NULL DEFAULT '',
    created_at TEXT    NOT NULL,
    updated_at TEXT    NOT NULL,
    UNIQUE (user_id, name, platform)
);

CREATE TABLE IF NOT EXISTS comparison_tasks (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id            TEXT    NOT NULL,
    task_name          TEXT    NOT NULL DEFAULT '',
    search_type        TEXT    NOT NULL DEFAULT 'keyword',
    search_input       TEXT    NOT NULL DEFAULT '[]',
    platforms          TEXT    NOT NULL DEFAULT '[]',
    status             TEXT    NOT NULL DEFAULT 'pending',
    total_products     INTEGER NOT NULL DEFAULT 0,
    completed_products INTEGER NOT NULL DEFAULT 0,
    failed_products    INTEGER NOT NULL DEFAULT 0,
    error_message      TEXT,
    created_at         TEXT    NOT NULL,
    started_at         TEXT,
    completed_at       TEXT
);

CREATE TABLE IF NOT EXISTS price_records (
    id                     INTEGER PRIMARY KEY AUTOINCREMENT,
    product_id             INTEGER NOT NULL
                           REFERENCES products(id) ON DELETE CASCADE,
    vendor_id              INTEGER REFERENCES vendors(id),
    task_id                INTEGER REFERENCES comparison_tasks(id),
    platform               TEXT    NOT NULL,
    price                  REAL    NOT NULL,
    original_price         REAL,
    discount_rate          REAL,
    stock_status           TEXT,
    sales_volume           INTEGER,
    rating                 REAL,
    review_count           INTEGER,
    product_url            TEXT    NOT NULL,
    shipping_fee           REAL,
    platform_specific_data TEXT    NOT NULL DEFAULT '{}',
    scraped_at             TEXT    NOT NULL
);

CREATE TABLE IF NOT EXISTS price_alerts (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id       TEXT    NOT NULL,
    product_id    INTEGER NOT NULL
                  REFERENCES products(id) ON DELETE CASCADE,
    target_price  REAL    NOT NULL,
    current_price REAL,
    is_active     INTEGER NOT NULL DEFAULT 1,
    triggered_at  TEXT,
    created_at    TEXT    NOT NULL,
    updated_at    TEXT    NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_records_product_date
    ON price_records(product_id, scraped_at);
"""

_TASK_COLUMNS = (
    "id", "user_id", "task_name", "search_type", "search_input",
    "platforms", "status", "total_products", "completed_products",
    "failed_products", "error_message", "created_at", "started_at",
    "completed_at",
)


def _now() -> str:
    return datetime.now().isoformat()


def _inserted_id(cur: sqlite3.Cursor, table: str) -> int:
    if cur.lastrowid is None:
        raise sqlite3.DatabaseError(f"INSERT into {table} returned no row id")
    return cur.lastrowid


class ComparisonDB:
    """SQLite store for comparison tasks, products, vendors and prices.

    Every row carries a ``user_id`` partition key; reads are scoped
    to it.
    """

    def __init__(
        self,
        db_path: Path | None = None,
        user_id: str = "local",
    ) -> None:
        path = db_path or Settings.DB_PATH
        path.parent.mkdir(parents=True, exist_ok=True)
        self.user_id = user_id
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False,
        )
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.executescript(_SCHEMA)
        logger.debug("ComparisonDB opened at %s", path)

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()

    # ── Tasks ────────────────────────────────────────────

    def create_task(
        self,
        search_input: list[str],
        platforms: list[str],
        search_type: str = "keyword",
        task_name: str | None = None,
    ) -> int:
        """Insert a pending task row and return its id."""
        now = datetime.now()
        name = task_name or (
            f"Batch Comparison - {now.strftime('%Y-%m-%d %H:%M:%S')}"
        )
        cur = self._conn.execute(
            "INSERT INTO comparison_tasks "
            "(user_id, task_name, search_type, search_input, platforms, "
            " total_products, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (
                self.user_id,
                name,
                search_type,
                json.dumps(search_input, ensure_ascii=False),
                json.dumps(platforms),
                len(search_input),
                now.isoformat(),
            ),
        )
        self._conn.commit()
        task_id = _inserted_id(cur, "comparison_tasks")
        logger.info(
            "Created comparison task %d with %d items",
            task_id,
            len(search_input),
        )
        return task_id

    def start_task(self, task_id: int) -> None:
        self._conn.execute(
            "UPDATE comparison_tasks SET status = 'running', "
            "started_at = ? WHERE id = ? AND user_id = ?",
            (_now(), task_id, self.user_id),
        )
        self._conn.commit()

    def update_task_progress(
        self, task_id: int, completed: int, failed: int,
    ) -> None:
        """Store the running totals after an item settles."""
        self._conn.execute(
            "UPDATE comparison_tasks SET completed_products = ?, "
            "failed_products = ? WHERE id = ? AND user_id = ?",
            (completed, failed, task_id, self.user_id),
        )
        self._conn.commit()

    def finish_task(
        self,
        task_id: int,
        status: str = "completed",
        error_message: str | None = None,
    ) -> None:
        """Mark a task completed or failed."""
        if status not in TASK_STATUSES:
            raise ValueError(f"Unknown task status: {status}")
        self._conn.execute(
            "UPDATE comparison_tasks SET status = ?, error_message = ?, "
            "completed_at = ? WHERE id = ? AND user_id = ?",
            (status, error_message, _now(), task_id, self.user_id),
        )
        self._conn.commit()
        logger.info("Comparison task %d finished: %s", task_id, status)

    def get_task(self, task_id: int) -> dict[str, Any] | None:
        """Return the task row as a dict, or None when missing."""
        row = self._conn.execute(
            f"SELECT {', '.join(_TASK_COLUMNS)} FROM comparison_tasks "
            "WHERE id = ? AND user_id = ?",
            (task_id, self.user_id),
        ).fetchone()
        if row is None:
            return None
        task = dict(zip(_TASK_COLUMNS, row))
        task["search_input"] = json.loads(task["search_input"])
        task["platforms"] = json.loads(task["platforms"])
        return task

    # ── Results ──────────────────────────────────────────

    def _upsert_product(self, result: ProductResult, ts: str) -> int:
        self._conn.execute(
            "INSERT INTO products "
            "(user_id, name, image_url, original_url, specs, "
            " created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id, original_url) DO UPDATE SET "
            "name=excluded.name, image_url=excluded.image_url, "
            "specs=excluded.specs, updated_at=excluded.updated_at",
            (
                self.user_id,
                result.name,
                result.image_url,
                result.product_url,
                json.dumps(result.specs, ensure_ascii=False, default=str),
                ts,
                ts,
            ),
        )
        product_id: int = self._conn.execute(
            "SELECT id FROM products WHERE user_id = ? AND original_url = ?",
            (self.user_id, result.product_url),
        ).fetchone()[0]
        return product_id

    def _upsert_vendor(self, name: str, platform: str, ts: str) -> int:
        self._conn.execute(
            "INSERT INTO vendors "
            "(user_id, name, platform, created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?) "
            "ON CONFLICT(user_id, name, platform) DO UPDATE SET "
            "updated_at=excluded.updated_at",
            (self.user_id, name, platform, ts, ts),
        )
        vendor_id: int = self._conn.execute(
            "SELECT id FROM vendors "
            "WHERE user_id = ? AND name = ? AND platform = ?",
            (self.user_id, name, platform),
        ).fetchone()[0]
        return vendor_id

    def save_results(
        self,
        results: list[ProductResult],
        task_id: int | None = None,
        scraped_at: datetime | None = None,
    ) -> int:
        """Record one price row per result.

        Products are upserted by URL and vendors by (name, platform).
        A row that fails to write is logged and skipped.  Returns the
        number of price records inserted.
        """
        ts = (scraped_at or datetime.now()).isoformat()
        count = 0

        for r in results:
            try:
                product_id = self._upsert_product(r, ts)
                vendor_id = (
                    self._upsert_vendor(r.vendor_name, r.platform, ts)
                    if r.vendor_name
                    else None
                )
                discount_rate = (
                    (r.original_price - r.price) / r.original_price * 100
                    if r.original_price
                    else None
                )
                self._conn.execute(
                    "INSERT INTO price_records "
                    "(product_id, vendor_id, task_id, platform, price, "
                    " original_price, discount_rate, stock_status, "
                    " sales_volume, rating, review_count, product_url, "
                    " shipping_fee, platform_specific_data, scraped_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
                    (
                        product_id,
                        vendor_id,
                        task_id,
                        r.platform,
                        r.price,
                        r.original_price,
                        discount_rate,
                        r.stock_status,
                        r.sales_volume,
                        r.rating,
                        r.review_count,
                        r.product_url,
                        r.shipping_fee,
                        json.dumps(r.specs, ensure_ascii=False, default=str),
                        ts,
                    ),
                )
                count += 1
            except sqlite3.Error as exc:
                logger.error(
                    "Error saving comparison result %s: %s",
                    r.product_url,
                    exc,
                )

        self._conn.commit()
        if count:
            logger.info("Recorded %d price records at %s", count, ts)
        return count

    def get_price_records(self, product_url: str) -> list[PriceRecord]:
        """Return every price record for a product, newest first."""
        rows = self._conn.execute(
            "SELECT r.product_url, p.name, r.platform, r.price, "
            "       r.original_price, r.discount_rate, r.sales_volume, "
            "       r.rating, v.name, r.scraped_at "
            "FROM price_records r "
            "JOIN products p ON p.id = r.product_id "
            "LEFT JOIN vendors v ON v.id = r.vendor_id "
            "WHERE p.user_id = ? AND p.original_url = ? "
            "ORDER BY r.scraped_at DESC, r.id DESC",
            (self.user_id, product_url),
        ).fetchall()
        return [
            PriceRecord(
                product_url=row[0],
                name=row[1],
                platform=row[2],
                price=row[3],
                original_price=row[4],
                discount_rate=row[5],
                sales_volume=row[6],
                rating=row[7],
                vendor_name=row[8],
                scraped_at=datetime.fromisoformat(row[9]),
            )
            for row in rows
        ]

    # ── Alerts ───────────────────────────────────────────

    def create_price_alert(
        self, product: ProductResult, target_price: float,
    ) -> int:
        """Store an active alert against the product's row."""
        ts = _now()
        product_id = self._upsert_product(product, ts)
        cur = self._conn.execute(
            "INSERT INTO price_alerts "
            "(user_id, product_id, target_price, current_price, "
            " created_at, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (self.user_id, product_id, target_price, product.price, ts, ts),
        )
        self._conn.commit()
        return _inserted_id(cur, "price_alerts")

    def get_active_alerts(self) -> list[dict[str, Any]]:
        """Active alerts joined with their product URL and name."""
        rows = self._conn.execute(
            "SELECT a.id, p.original_url, p.name, a.target_price, "
            "       a.current_price, a.created_at "
            "FROM price_alerts a JOIN products p ON p.id = a.product_id "
            "WHERE a.user_id = ? AND a.is_active = 1 "
            "ORDER BY a.created_at DESC",
            (self.user_id,),
        ).fetchall()
        return [
            {
                "id": r[0],
                "product_url": r[1],
                "product_name": r[2],
                "target_price": r[3],
                "current_price": r[4],
                "created_at": r[5],
            }
            for r in rows
        ]
