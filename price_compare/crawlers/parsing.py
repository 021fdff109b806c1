# price_compare/crawlers/parsing.py

"""Text normalisation shared by every platform adapter."""

import re
from urllib.parse import urlparse

_NON_PRICE_RE = re.compile(r"[^\d.]")
_NON_DIGIT_RE = re.compile(r"[^\d]")
_WHITESPACE_RE = re.compile(r"\s+")


def parse_price(text: str | None) -> float:
    """Extract a number from a string like 'NT$1,299' or '¥ 88.00'.

    Everything except digits and the decimal point is discarded
    before parsing; an empty or unparsable value yields ``0.0``.
    """
    if not text:
        return 0.0
    cleaned = _NON_PRICE_RE.sub("", str(text)).strip()
    try:
        return float(cleaned)
    except ValueError:
        return 0.0


def parse_sales(text: str | None) -> int:
    """Expand sales shorthand: '1.2k' -> 1200, '3.5萬' -> 35000."""
    if not text:
        return 0
    lowered = str(text).lower()

    if "k" in lowered:
        multiplier = 1000
    elif "萬" in lowered or "万" in lowered:
        multiplier = 10000
    else:
        digits = _NON_DIGIT_RE.sub("", lowered)
        return int(digits) if digits else 0

    try:
        return int(float(_NON_PRICE_RE.sub("", lowered)) * multiplier)
    except ValueError:
        return 0


def clean_text(text: str | None) -> str:
    """Trim and collapse internal whitespace."""
    if not text:
        return ""
    return _WHITESPACE_RE.sub(" ", str(text)).strip()


def complete_url(url: str | None, base_url: str) -> str:
    """Turn protocol-relative or site-relative links into absolute URLs."""
    if not url:
        return ""
    url = url.strip()
    if url.startswith("//"):
        return f"https:{url}"
    if url.startswith(("http://", "https://")):
        return url
    if url.startswith("/"):
        return f"{base_url.rstrip('/')}{url}"
    return f"https://{url}"


def matches_domain(url: str, domains: tuple[str, ...]) -> bool:
    """True when the URL's host is one of ``domains`` or a subdomain."""
    if not url:
        return False
    candidate = url.strip()
    if not candidate.startswith(("http://", "https://", "//")):
        candidate = f"https://{candidate}"
    host = (urlparse(candidate).hostname or "").lower()
    return any(
        host == d or host.endswith(f".{d}") for d in domains
    )
