# price_compare/models/price_record.py

"""A stored price observation read back from the comparison database."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class PriceRecord:
    """A single price observation for a product at a point in time."""

    product_url: str
    name: str
    platform: str
    price: float
    original_price: float | None
    discount_rate: float | None
    sales_volume: int | None
    rating: float | None
    vendor_name: str | None
    scraped_at: datetime
