# price_compare/services/health_checker.py

"""Platform connectivity health checker."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from price_compare.config.settings import Settings
from price_compare.crawlers.http import HttpClient

logger = logging.getLogger("price_compare.health")

_HEALTH_TIMEOUT = 10  # seconds per platform
_SLOW_THRESHOLD_MS = 5000


@dataclass
class HealthResult:
    """Result of a single platform health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str


def probe_source(
    source: dict[str, str],
    client_factory: Callable[[str], HttpClient] = HttpClient,
) -> HealthResult:
    """GET a platform's homepage and classify the answer."""
    source_id = source["id"]
    client = client_factory(source_id)

    start = time.monotonic()
    try:
        resp = client.session.get(
            source["base_url"],
            headers=client._headers(None),
            timeout=_HEALTH_TIMEOUT,
        )
    except Exception as exc:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if resp.status_code != 200:
        return HealthResult(
            source_id=source_id,
            status="down",
            latency_ms=elapsed_ms,
            message=f"HTTP {resp.status_code}",
        )
    if elapsed_ms > _SLOW_THRESHOLD_MS:
        return HealthResult(
            source_id=source_id,
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )
    return HealthResult(
        source_id=source_id,
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


class HealthChecker:
    """Runs concurrent health probes against all platforms."""

    def __init__(
        self,
        sources: list[dict[str, str]] | None = None,
        client_factory: Callable[[str], HttpClient] = HttpClient,
    ) -> None:
        self.sources = sources or Settings.AVAILABLE_SOURCES
        self.client_factory = client_factory

    async def check_all(self) -> list[HealthResult]:
        """Probe every platform concurrently."""
        tasks = [
            asyncio.to_thread(probe_source, src, self.client_factory)
            for src in self.sources
        ]
        results: list[HealthResult] = list(await asyncio.gather(*tasks))
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
