# price_compare/config/settings.py

"""Central configuration for the price_compare engine."""

import os
from dataclasses import dataclass
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv


class Settings:
    """Central configuration for the price_compare engine."""

    # --- Requests ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_RETRIES: int = 3                # Attempts per adapter call
    RETRY_DELAY: float = 2.0            # Linear backoff base (secs)
    VISION_TIMEOUT: int = 30            # Image recognition request timeout

    # --- Batch ---
    BATCH_MAX_ITEMS: int = 100          # Keywords beyond this are dropped
    BATCH_ITEM_DELAY: float = 0.3       # Pause between batch items (secs)

    # --- Local data ---
    HISTORY_MAX_ENTRIES: int = 50

    # --- Mock data ---
    MOCK_RESULTS_PER_PLATFORM: int = 5
    MOCK_PRICE_RANGE: tuple[float, float] = (100.0, 600.0)

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    USER_AGENTS: list[str] = [
        (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/131.0.0.0 Safari/537.36"
        ),
        (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/131.0.0.0 Safari/537.36"
        ),
        (
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:133.0) "
            "Gecko/20100101 Firefox/133.0"
        ),
        (
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) "
            "AppleWebKit/605.1.15 (KHTML, like Gecko) "
            "Version/17.1 Safari/605.1.15"
        ),
    ]
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,*/*;q=0.8"
        ),
        "Accept-Language": "zh-TW,zh;q=0.9,en;q=0.8",
    }

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    DATA_DIR: Path = BASE_DIR / "data"
    RESULTS_DIR: Path = BASE_DIR / "results"
    LOGS_DIR: Path = BASE_DIR / "logs"
    DB_PATH: Path = DATA_DIR / "price_compare.db"

    # --- Platforms (registry for future extensibility) ---
    AVAILABLE_SOURCES: list[dict[str, str]] = [
        {
            "id": "shopee",
            "label": "Shopee",
            "crawler": "price_compare.crawlers.shopee_crawler.ShopeeCrawler",
            "domain": "shopee.tw",
            "base_url": "https://shopee.tw",
        },
        {
            "id": "pchome",
            "label": "PChome",
            "crawler": "price_compare.crawlers.pchome_crawler.PChomeCrawler",
            "domain": "pchome.com.tw",
            "base_url": "https://24h.pchome.com.tw",
        },
        {
            "id": "momo",
            "label": "Momo",
            "crawler": "price_compare.crawlers.momo_crawler.MomoCrawler",
            "domain": "momoshop.com.tw",
            "base_url": "https://www.momoshop.com.tw",
        },
        {
            "id": "1688",
            "label": "1688",
            "crawler": (
                "price_compare.crawlers.alibaba1688_crawler"
                ".Alibaba1688Crawler"
            ),
            "domain": "1688.com",
            "base_url": "https://s.1688.com",
        },
    ]


@dataclass(frozen=True)
class IntegrationConfig:
    """Credentials and switches for the optional collaborators.

    Built once at the entry point and handed to the components that
    need it, so nothing below the CLI reads the process environment.
    """

    openrouter_api_key: str | None = None
    openai_api_key: str | None = None
    ai_model: str = "google/gemini-flash-1.5"
    database_path: Path | None = None
    user_id: str = "local"
    mock_mode: bool = True

    @property
    def has_vision_backend(self) -> bool:
        """True when either vision API key is configured."""
        return bool(self.openrouter_api_key or self.openai_api_key)


def load_integration_config(
    env_file: str | None = None,
) -> IntegrationConfig:
    """Read ``.env`` plus the process environment into a config object."""
    load_dotenv(env_file)
    db_path = os.getenv("PRICE_COMPARE_DB")
    return IntegrationConfig(
        openrouter_api_key=os.getenv("OPENROUTER_API_KEY") or None,
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        ai_model=os.getenv("AI_MODEL") or "google/gemini-flash-1.5",
        database_path=Path(db_path) if db_path else None,
        user_id=os.getenv("PRICE_COMPARE_USER") or "local",
        mock_mode=os.getenv("PRICE_COMPARE_LIVE", "") != "1",
    )
