# price_compare/services/user_data.py

"""Favorites, search history, price alerts and vendor contacts.

Each service reads its repository once when constructed, keeps the
list in memory, and writes the full list back after every change.
"""

import logging
import uuid
from datetime import datetime

from price_compare.config.settings import Settings
from price_compare.filters.deduplicator import ProductDeduplicator
from price_compare.models.product import ProductResult
from price_compare.models.saved import (
    FavoriteProduct,
    PriceAlert,
    SearchHistoryEntry,
    Vendor,
)
from price_compare.storage.local_store import Repository

logger = logging.getLogger("price_compare.user_data")


def _new_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now().isoformat(timespec="seconds")


class FavoritesService:
    """Starred products, unique by product URL."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository
        self._items = [
            FavoriteProduct.from_dict(r) for r in repository.load()
        ]

    def _persist(self) -> None:
        self._repo.save([f.to_dict() for f in self._items])

    def entries(self) -> list[FavoriteProduct]:
        return list(self._items)

    def contains(self, product_url: str) -> bool:
        key = ProductDeduplicator.normalise_url(product_url)
        return any(
            ProductDeduplicator.normalise_url(f.product_url) == key
            for f in self._items
        )

    def add(self, product: ProductResult) -> FavoriteProduct | None:
        """Star a product; returns None if its URL is already starred."""
        if self.contains(product.product_url):
            return None
        favorite = FavoriteProduct(
            id=_new_id(),
            name=product.name,
            price=product.price,
            product_url=product.product_url,
            platform=product.platform,
            image_url=product.image_url,
            original_price=product.original_price,
            added_at=_now(),
        )
        self._items.insert(0, favorite)
        self._persist()
        logger.info("Favorite added: %s", product.name)
        return favorite

    def remove(self, favorite_id: str) -> bool:
        before = len(self._items)
        self._items = [f for f in self._items if f.id != favorite_id]
        if len(self._items) == before:
            return False
        self._persist()
        return True


class SearchHistoryService:
    """Most recent searches first, capped at ``max_entries``."""

    def __init__(
        self,
        repository: Repository,
        max_entries: int = Settings.HISTORY_MAX_ENTRIES,
    ) -> None:
        self._repo = repository
        self.max_entries = max_entries
        self._entries = [
            SearchHistoryEntry.from_dict(r) for r in repository.load()
        ]

    def entries(self) -> list[SearchHistoryEntry]:
        return list(self._entries)

    def record(
        self,
        keyword: str,
        results: list[ProductResult],
        platforms: list[str] | None = None,
    ) -> SearchHistoryEntry:
        """Prepend an entry summarising one completed search."""
        entry = SearchHistoryEntry(
            id=_new_id(),
            keyword=keyword,
            result_count=len(results),
            searched_at=_now(),
            lowest_price=(
                min(r.price for r in results) if results else None
            ),
            platforms=list(platforms or []),
        )
        self._entries = [entry, *self._entries][: self.max_entries]
        self._repo.save([e.to_dict() for e in self._entries])
        return entry

    def clear(self) -> None:
        self._entries = []
        self._repo.save([])


class PriceAlertService:
    """Target prices for watched products."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository
        self._alerts = [
            PriceAlert.from_dict(r) for r in repository.load()
        ]

    def _persist(self) -> None:
        self._repo.save([a.to_dict() for a in self._alerts])

    def entries(self, active_only: bool = False) -> list[PriceAlert]:
        if active_only:
            return [a for a in self._alerts if not a.triggered]
        return list(self._alerts)

    def add(
        self, product: ProductResult, target_price: float,
    ) -> PriceAlert:
        """Watch ``product`` for a drop to ``target_price`` or below."""
        if target_price <= 0:
            raise ValueError("target_price must be positive")
        alert = PriceAlert(
            id=_new_id(),
            product_name=product.name,
            product_url=product.product_url,
            platform=product.platform,
            current_price=product.price,
            target_price=target_price,
            created_at=_now(),
            image_url=product.image_url,
        )
        self._alerts.insert(0, alert)
        self._persist()
        logger.info(
            "Price alert set: %s at %.2f", product.name, target_price
        )
        return alert

    def remove(self, alert_id: str) -> bool:
        before = len(self._alerts)
        self._alerts = [a for a in self._alerts if a.id != alert_id]
        if len(self._alerts) == before:
            return False
        self._persist()
        return True

    def check(self, results: list[ProductResult]) -> list[PriceAlert]:
        """Update current prices from ``results`` and fire matching alerts.

        Returns the alerts that triggered during this call.
        """
        latest: dict[str, float] = {}
        for r in results:
            key = ProductDeduplicator.normalise_url(r.product_url)
            if key not in latest or r.price < latest[key]:
                latest[key] = r.price

        fired: list[PriceAlert] = []
        changed = False
        for alert in self._alerts:
            key = ProductDeduplicator.normalise_url(alert.product_url)
            if key not in latest:
                continue
            alert.current_price = latest[key]
            changed = True
            if not alert.triggered and latest[key] <= alert.target_price:
                alert.triggered = True
                alert.triggered_at = _now()
                fired.append(alert)
                logger.info(
                    "Price alert triggered: %s now %.2f (target %.2f)",
                    alert.product_name,
                    alert.current_price,
                    alert.target_price,
                )
        if changed:
            self._persist()
        return fired


class VendorService:
    """Supplier contact cards."""

    def __init__(self, repository: Repository) -> None:
        self._repo = repository
        self._vendors = [Vendor.from_dict(r) for r in repository.load()]

    def _persist(self) -> None:
        self._repo.save([v.to_dict() for v in self._vendors])

    def entries(self) -> list[Vendor]:
        return list(self._vendors)

    def get(self, vendor_id: str) -> Vendor | None:
        return next(
            (v for v in self._vendors if v.id == vendor_id), None
        )

    def add(
        self,
        name: str,
        shop_url: str,
        platform: str = "other",
        **details: object,
    ) -> Vendor:
        """Create a vendor; name and shop URL are required."""
        if not name.strip() or not shop_url.strip():
            raise ValueError("Vendor name and shop URL are required")
        stamp = _now()
        vendor = Vendor.from_dict({
            **details,
            "id": _new_id(),
            "name": name.strip(),
            "platform": platform or "other",
            "shop_url": shop_url.strip(),
            "created_at": stamp,
            "updated_at": stamp,
        })
        self._vendors.insert(0, vendor)
        self._persist()
        return vendor

    def update(self, vendor_id: str, **updates: object) -> Vendor | None:
        """Apply field updates and bump ``updated_at``."""
        vendor = self.get(vendor_id)
        if vendor is None:
            return None
        protected = {"id", "created_at", "updated_at"}
        for field_name, value in updates.items():
            if field_name in protected:
                continue
            if field_name not in Vendor.__dataclass_fields__:
                raise ValueError(f"Unknown vendor field: {field_name}")
            setattr(vendor, field_name, value)
        vendor.updated_at = _now()
        self._persist()
        return vendor

    def delete(self, vendor_id: str) -> bool:
        before = len(self._vendors)
        self._vendors = [v for v in self._vendors if v.id != vendor_id]
        if len(self._vendors) == before:
            return False
        self._persist()
        return True

    def search(
        self, term: str = "", platform: str = "all",
    ) -> list[Vendor]:
        """Case-insensitive match on name or notes, optionally by platform."""
        needle = term.strip().lower()
        return [
            v for v in self._vendors
            if (
                not needle
                or needle in v.name.lower()
                or needle in v.notes.lower()
            )
            and (platform == "all" or v.platform == platform)
        ]
