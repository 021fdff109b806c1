# price_compare/models/batch.py

"""State carried by one keyword inside a batch comparison run."""

from dataclasses import dataclass, field
from enum import Enum

from price_compare.models.product import ProductResult


class BatchStatus(str, Enum):
    """Lifecycle of a batch item; COMPLETED and ERROR are terminal."""

    PENDING = "pending"
    SEARCHING = "searching"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (BatchStatus.COMPLETED, BatchStatus.ERROR)


@dataclass
class BatchItem:
    """One keyword queued in a batch."""

    id: str
    keyword: str
    status: BatchStatus = BatchStatus.PENDING
    results: list[ProductResult] | None = None
    error: str | None = None


@dataclass
class BatchProgress:
    """Running totals visible to observers after each item settles."""

    total: int
    completed_count: int = 0
    failed_count: int = 0
    result_count: int = 0

    @property
    def done(self) -> int:
        return self.completed_count + self.failed_count


@dataclass
class BatchOutcome:
    """Final state of a batch run."""

    items: list[BatchItem]
    results: list[ProductResult] = field(
        default_factory=lambda: list[ProductResult]()
    )
    keywords: list[str] = field(
        default_factory=lambda: list[str]()
    )
    failed_keywords: list[str] = field(
        default_factory=lambda: list[str]()
    )

    @property
    def completed_count(self) -> int:
        return sum(
            1 for i in self.items if i.status is BatchStatus.COMPLETED
        )

    @property
    def failed_count(self) -> int:
        return sum(
            1 for i in self.items if i.status is BatchStatus.ERROR
        )
