# price_compare/crawlers/http.py

"""HTTP plumbing for adapters that talk to real platforms."""

import json
import logging
import random
import time
from collections.abc import Callable
from typing import Any, TypeVar

import cloudscraper  # type: ignore[import-untyped]
from curl_cffi import requests as curl_requests

from price_compare.config.settings import Settings
from price_compare.errors import HttpStatusError

T = TypeVar("T")

logger = logging.getLogger("price_compare.http")


def retry(
    fn: Callable[[], T],
    max_retries: int = Settings.MAX_RETRIES,
    delay: float = Settings.RETRY_DELAY,
    source: str = "",
) -> T:
    """Call ``fn`` until it succeeds, up to ``max_retries`` times.

    Sleeps ``delay * attempt`` seconds between attempts and re-raises
    the last error once every attempt has failed.
    """
    last_error: Exception | None = None
    for attempt in range(max_retries):
        try:
            return fn()
        except Exception as exc:
            last_error = exc
            logger.warning(
                "[%s] Attempt %d/%d failed: %s",
                source or "http",
                attempt + 1,
                max_retries,
                exc,
            )
            if attempt < max_retries - 1:
                time.sleep(delay * (attempt + 1))
    if last_error is None:
        raise RuntimeError("Max retries exceeded")
    raise last_error


class HttpClient:
    """curl_cffi session with browser impersonation and a fixed timeout."""

    def __init__(
        self,
        source_name: str,
        settings: Settings | None = None,
    ) -> None:
        self.source_name = source_name
        self.logger = logging.getLogger(
            f"price_compare.{source_name}"
        )
        self.settings = settings or Settings()
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )
        self.timeout: int = self.settings.REQUEST_TIMEOUT

    def _headers(
        self, extra: dict[str, str] | None,
    ) -> dict[str, str]:
        """Default headers, a random User-Agent, then caller overrides."""
        return {
            **self.settings.DEFAULT_HEADERS,
            "User-Agent": random.choice(self.settings.USER_AGENTS),
            **(extra or {}),
        }

    def get(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> curl_requests.Response:
        """GET ``url``; any status other than 200 raises."""
        self.logger.debug("[%s] GET %s", self.source_name, url)
        resp = self.session.get(
            url,
            headers=self._headers(headers),
            timeout=self.timeout,
        )
        if resp.status_code != 200:
            raise HttpStatusError(
                self.source_name, resp.status_code, url
            )
        return resp

    def get_json(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """GET and decode a JSON body (malformed JSON raises ValueError)."""
        resp = self.get(url, headers)
        return json.loads(resp.text)

    def get_html(
        self,
        url: str,
        headers: dict[str, str] | None = None,
    ) -> str:
        """GET an HTML page, falling back to cloudscraper on failure."""
        try:
            return self.get(url, headers).text
        except Exception as exc:
            self.logger.info(
                "[%s] curl_cffi failed (%s), falling back to cloudscraper",
                self.source_name,
                exc,
            )
            try:
                _cs: Any = cloudscraper
                scraper: Any = _cs.create_scraper()
                fallback_resp: Any = scraper.get(
                    url,
                    headers=self._headers(headers),
                    timeout=self.timeout,
                )
            except Exception:
                self.logger.error(
                    "[%s] cloudscraper fallback also failed",
                    self.source_name,
                    exc_info=True,
                )
                raise exc
            if fallback_resp.status_code != 200:
                raise exc
            return str(fallback_resp.text)

    def post_json(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str] | None = None,
        timeout: int | None = None,
    ) -> Any:
        """POST a JSON payload and decode the JSON answer."""
        resp = self.session.post(
            url,
            headers={
                "Content-Type": "application/json",
                **(headers or {}),
            },
            json=payload,
            timeout=timeout or self.timeout,
        )
        if resp.status_code != 200:
            raise HttpStatusError(
                self.source_name, resp.status_code, url
            )
        return json.loads(resp.text)
