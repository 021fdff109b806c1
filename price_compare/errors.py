# price_compare/errors.py

"""Request-level error types raised by the comparison core."""


class PriceCompareError(Exception):
    """Base class for errors surfaced to callers of a search."""


class UnsupportedPlatformError(PriceCompareError):
    """No registered adapter can serve the URL or platform list."""


class ProductNotFoundError(PriceCompareError):
    """A product URL resolved to an adapter but yielded no product."""


class ImageRecognitionError(PriceCompareError):
    """The image could not be turned into a search keyword."""


class HttpStatusError(PriceCompareError):
    """An upstream platform answered with a non-200 status."""

    def __init__(self, source: str, status_code: int, url: str) -> None:
        super().__init__(f"[{source}] HTTP {status_code} for {url}")
        self.source = source
        self.status_code = status_code
        self.url = url


class EmptyQueryError(PriceCompareError):
    """A keyword search was requested with a blank keyword."""
