# tests/conftest.py

"""Fixtures shared by every price_compare test module."""

from collections.abc import Iterator
from unittest.mock import MagicMock, patch

import pytest


@pytest.fixture(autouse=True)
def instant_retries() -> Iterator[MagicMock]:
    """Make the retry backoff in crawlers.http return immediately."""
    with patch("time.sleep") as sleep:
        yield sleep
