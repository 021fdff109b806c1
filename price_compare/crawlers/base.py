# price_compare/crawlers/base.py

"""Capability interface every platform adapter satisfies."""

from typing import Protocol, runtime_checkable

from price_compare.models.product import ProductResult, SearchFilters


@runtime_checkable
class PlatformAdapter(Protocol):
    """Turns a keyword or product URL into normalised product records.

    Implementations return an empty list when nothing matches and
    raise only for transport problems (network, timeout, malformed
    upstream payload).  Records that lack a name, a positive price
    or a product URL never leave the adapter.
    """

    platform_id: str
    platform_name: str
    base_url: str
    domains: tuple[str, ...]

    def matches(self, url: str) -> bool:
        """Return True if this adapter owns the URL's domain."""
        ...

    def search(
        self,
        keyword: str,
        filters: SearchFilters | None = None,
    ) -> list[ProductResult]:
        """Search the platform by keyword."""
        ...

    def get_product_details(
        self, url: str,
    ) -> ProductResult | None:
        """Fetch one product page."""
        ...
