# price_compare/services/batch_orchestrator.py

"""Runs many keyword searches one after another as a single batch."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from price_compare.config.settings import Settings
from price_compare.models.batch import (
    BatchItem,
    BatchOutcome,
    BatchProgress,
    BatchStatus,
)
from price_compare.models.product import ProductResult
from price_compare.storage.comparison_db import ComparisonDB

logger = logging.getLogger("price_compare.batch")

SearchFn = Callable[[str, list[str]], Awaitable[list[ProductResult]]]
UpdateCallback = Callable[[BatchItem, BatchProgress], None]
CompleteCallback = Callable[[list[ProductResult], list[str]], None]


class BatchOrchestrator:
    """Sequential keyword batch with per-item status tracking.

    Items are searched strictly one at a time with ``item_delay``
    seconds between them.  A failing item is marked ``error`` and the
    batch moves on.
    """

    def __init__(
        self,
        search_fn: SearchFn,
        max_items: int = Settings.BATCH_MAX_ITEMS,
        item_delay: float = Settings.BATCH_ITEM_DELAY,
        sink: ComparisonDB | None = None,
    ) -> None:
        self.search_fn = search_fn
        self.max_items = max_items
        self.item_delay = item_delay
        self.sink = sink

    def prepare_items(self, lines: Iterable[str]) -> list[BatchItem]:
        """Trim, drop blanks and cap the list at ``max_items``."""
        keywords = [line.strip() for line in lines if line.strip()]
        if len(keywords) > self.max_items:
            logger.warning(
                "Batch truncated from %d to %d items",
                len(keywords),
                self.max_items,
            )
            keywords = keywords[: self.max_items]
        return [
            BatchItem(id=str(i + 1), keyword=keyword)
            for i, keyword in enumerate(keywords)
        ]

    def _sink_call(self, method: str, *args: Any) -> Any:
        """Call a sink method; failures are logged and return None."""
        if self.sink is None:
            return None
        try:
            return getattr(self.sink, method)(*args)
        except Exception as exc:
            logger.error(
                "Database %s failed: %s", method, exc, exc_info=True
            )
            return None

    async def run(
        self,
        keywords: Iterable[str] | list[BatchItem],
        platforms: list[str],
        on_update: UpdateCallback | None = None,
        on_complete: CompleteCallback | None = None,
    ) -> BatchOutcome:
        """Search every item in order and collect the results.

        ``on_update`` fires after each status change.  ``on_complete``
        fires once at the end, and only if any results were found.
        ``BatchOutcome.keywords`` holds the items that succeeded;
        ``failed_keywords`` holds the ones that errored.
        """
        raw = list(keywords)
        if raw and all(isinstance(k, BatchItem) for k in raw):
            items: list[BatchItem] = [
                k for k in raw if isinstance(k, BatchItem)
            ][: self.max_items]
            for item in items:
                item.status = BatchStatus.PENDING
                item.results = None
                item.error = None
        else:
            items = self.prepare_items(str(k) for k in raw)

        outcome = BatchOutcome(items=items)
        progress = BatchProgress(total=len(items))

        task_id = self._sink_call(
            "create_task", [i.keyword for i in items], platforms
        )
        if task_id is not None:
            self._sink_call("start_task", task_id)

        def notify(item: BatchItem) -> None:
            if on_update is not None:
                on_update(item, progress)

        for index, item in enumerate(items):
            item.status = BatchStatus.SEARCHING
            notify(item)

            try:
                found = await self.search_fn(item.keyword, platforms)
            except Exception as exc:
                item.status = BatchStatus.ERROR
                item.error = str(exc)
                progress.failed_count += 1
                outcome.failed_keywords.append(item.keyword)
                logger.error(
                    "Batch item %s '%s' failed: %s",
                    item.id,
                    item.keyword,
                    exc,
                )
            else:
                item.status = BatchStatus.COMPLETED
                item.results = found
                progress.completed_count += 1
                progress.result_count += len(found)
                outcome.results.extend(found)
                outcome.keywords.append(item.keyword)
                if task_id is not None and found:
                    self._sink_call("save_results", found, task_id)

            if task_id is not None:
                self._sink_call(
                    "update_task_progress",
                    task_id,
                    progress.completed_count,
                    progress.failed_count,
                )
            notify(item)

            if index < len(items) - 1 and self.item_delay > 0:
                await asyncio.sleep(self.item_delay)

        if task_id is not None:
            self._sink_call("finish_task", task_id, "completed")

        logger.info(
            "Batch finished: %d completed, %d failed, %d results",
            progress.completed_count,
            progress.failed_count,
            progress.result_count,
        )

        if outcome.results and on_complete is not None:
            on_complete(outcome.results, outcome.keywords)
        return outcome
