# price_compare/models/product.py

"""Normalised product record and per-search filter settings."""

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

SortBy = Literal["price", "sales", "rating", "relevance"]
StockStatus = Literal["available", "out_of_stock"]


@dataclass
class ProductResult:
    """A single product listing from any platform, in one shape."""

    name: str
    price: float
    product_url: str
    platform: str
    original_price: float | None = None
    image_url: str = ""
    rating: float | None = None
    review_count: int | None = None
    sales_volume: int | None = None
    shipping_fee: float | None = None
    stock_status: StockStatus = "available"
    vendor_name: str | None = None
    specs: dict[str, Any] = field(
        default_factory=lambda: dict[str, Any]()
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise to a JSON-compatible dict."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ProductResult":
        """Rebuild a record saved with :meth:`to_dict`."""
        known = {
            k: v for k, v in data.items()
            if k in cls.__dataclass_fields__
        }
        return cls(**known)


@dataclass
class SearchFilters:
    """Caller-supplied bounds and ordering for one adapter search.

    How ``sort_by`` and ``page`` map onto a platform's own query
    parameters is decided by each adapter.
    """

    price_min: float | None = None
    price_max: float | None = None
    min_sales: int | None = None
    min_rating: float | None = None
    sort_by: SortBy | None = None
    page: int | None = None
    limit: int | None = None
