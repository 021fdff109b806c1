# price_compare/crawlers/registry.py

"""Lookup table from platform id to adapter instance."""

import importlib
import logging
from collections.abc import Mapping
from typing import Any

from price_compare.config.settings import IntegrationConfig, Settings
from price_compare.crawlers.base import PlatformAdapter
from price_compare.crawlers.mock_crawler import MockCrawler

logger = logging.getLogger("price_compare.registry")


def _load_crawler_class(dotted_path: str) -> type[Any]:
    """Dynamically import a crawler class from its dotted module path."""
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    cls: type[Any] = getattr(module, class_name)
    return cls


class PlatformRegistry:
    """Adapters keyed by lower-case platform id, in registration order."""

    def __init__(self, adapters: Mapping[str, PlatformAdapter]) -> None:
        self._adapters: dict[str, PlatformAdapter] = {
            key.lower(): adapter for key, adapter in adapters.items()
        }

    @classmethod
    def from_settings(
        cls,
        config: IntegrationConfig | None = None,
        settings: Settings | None = None,
    ) -> "PlatformRegistry":
        """Build one adapter per source in ``AVAILABLE_SOURCES``.

        In mock mode every platform is served by a MockCrawler that
        shares the real adapter's id, label and domain.
        """
        config = config or IntegrationConfig()
        settings = settings or Settings()
        adapters: dict[str, PlatformAdapter] = {}
        for src in settings.AVAILABLE_SOURCES:
            if config.mock_mode:
                adapters[src["id"]] = MockCrawler(
                    platform_id=src["id"],
                    platform_name=src["label"],
                    base_url=src["base_url"],
                    domains=(src["domain"],),
                    settings=settings,
                )
            else:
                crawler_cls = _load_crawler_class(src["crawler"])
                adapters[src["id"]] = crawler_cls(settings=settings)
        logger.debug(
            "Registry built (%s mode): %s",
            "mock" if config.mock_mode else "live",
            ", ".join(adapters),
        )
        return cls(adapters)

    def get(self, platform_id: str) -> PlatformAdapter | None:
        """Return the adapter for ``platform_id`` (case-insensitive)."""
        return self._adapters.get(platform_id.strip().lower())

    def available_platforms(self) -> list[str]:
        """All registered platform ids."""
        return list(self._adapters)

    def detect_platform(self, url: str) -> str | None:
        """Return the id of the first adapter claiming the URL's domain."""
        for platform_id, adapter in self._adapters.items():
            if adapter.matches(url):
                return platform_id
        return None

    def __contains__(self, platform_id: object) -> bool:
        return (
            isinstance(platform_id, str)
            and platform_id.strip().lower() in self._adapters
        )
