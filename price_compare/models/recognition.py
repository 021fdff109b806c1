# price_compare/models/recognition.py

"""What a vision model made of a product image."""

from dataclasses import dataclass, field


@dataclass
class RecognitionResult:
    """Candidate search keywords, best first, plus optional detail."""

    keywords: list[str]
    category: str | None = None
    attributes: dict[str, str] = field(
        default_factory=lambda: dict[str, str]()
    )
    description: str | None = None
    confidence: float | None = None
