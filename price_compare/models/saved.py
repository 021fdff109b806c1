# price_compare/models/saved.py

"""Records kept in local storage: favorites, history, alerts, vendors."""

from dataclasses import asdict, dataclass, field
from typing import Any


def _pick(cls: type[Any], data: dict[str, Any]) -> dict[str, Any]:
    """Keep only the keys that are fields of ``cls``."""
    fields: dict[str, Any] = cls.__dataclass_fields__
    return {k: v for k, v in data.items() if k in fields}


@dataclass
class FavoriteProduct:
    """A product the user starred from a result list."""

    id: str
    name: str
    price: float
    product_url: str
    platform: str
    image_url: str = ""
    original_price: float | None = None
    added_at: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FavoriteProduct":
        return cls(**_pick(cls, data))


@dataclass
class SearchHistoryEntry:
    """One completed search."""

    id: str
    keyword: str
    result_count: int
    searched_at: str
    lowest_price: float | None = None
    platforms: list[str] = field(
        default_factory=lambda: list[str]()
    )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SearchHistoryEntry":
        return cls(**_pick(cls, data))


@dataclass
class PriceAlert:
    """Notify when a product drops to ``target_price`` or below."""

    id: str
    product_name: str
    product_url: str
    platform: str
    current_price: float
    target_price: float
    created_at: str
    image_url: str = ""
    triggered: bool = False
    triggered_at: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PriceAlert":
        return cls(**_pick(cls, data))


@dataclass
class Vendor:
    """A supplier contact card."""

    id: str
    name: str
    platform: str
    shop_url: str
    created_at: str
    updated_at: str
    contact_name: str = ""
    phone: str = ""
    email: str = ""
    address: str = ""
    rating: float = 5.0
    notes: str = ""
    tags: list[str] = field(
        default_factory=lambda: list[str]()
    )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Vendor":
        return cls(**_pick(cls, data))
