# price_compare/services/image_recognition.py

"""Turns a product image into search keywords via a vision LLM.

OpenRouter is used when its key is configured, then OpenAI.  With no
key at all the recognizer returns one of a few canned answers so the
image search flow still works offline.
"""

import base64
import json
import logging
import mimetypes
import random
import re
from pathlib import Path
from typing import Any

from price_compare.config.settings import IntegrationConfig, Settings
from price_compare.crawlers.http import HttpClient
from price_compare.errors import ImageRecognitionError
from price_compare.models.recognition import RecognitionResult

logger = logging.getLogger("price_compare.image_recognition")

OPENROUTER_URL = "https://openrouter.ai/api/v1/chat/completions"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"
OPENAI_MODEL = "gpt-4o"

MAX_KEYWORDS = 5

OPENROUTER_PROMPT = """分析這張商品圖片，請提供以下資訊：
1. 商品名稱或類型（例如：iPhone 15 Pro、Nike運動鞋、筆記型電腦等）
2. 商品類別（例如：3C產品、服飾、家電等）
3. 主要特徵或屬性（例如：顏色、尺寸、品牌等）
4. 適合用來搜尋這個商品的關鍵字（至少3-5個）

請以JSON格式回應，格式如下：
{
  "keywords": ["關鍵字1", "關鍵字2", "關鍵字3"],
  "category": "商品類別",
  "attributes": {
    "品牌": "品牌名稱",
    "顏色": "顏色",
    "其他屬性": "值"
  },
  "description": "商品簡述"
}"""

OPENAI_PROMPT = """分析這張商品圖片，請提供：
1. 商品名稱或類型
2. 商品類別
3. 主要特徵或屬性（顏色、品牌等）
4. 適合搜尋的關鍵字（3-5個）

請以JSON格式回應。"""

SIMULATED_RESULTS: list[RecognitionResult] = [
    RecognitionResult(
        keywords=["手機", "智慧型手機", "電子產品", "smartphone"],
        category="3C電子",
        attributes={"類型": "智慧型手機"},
        description="這是一款智慧型手機產品",
        confidence=0.7,
    ),
    RecognitionResult(
        keywords=["筆電", "筆記型電腦", "laptop", "電腦"],
        category="3C電子",
        attributes={"類型": "筆記型電腦"},
        description="這是一款筆記型電腦",
        confidence=0.7,
    ),
    RecognitionResult(
        keywords=["運動鞋", "球鞋", "鞋子", "sneakers"],
        category="鞋類",
        attributes={"類型": "運動鞋"},
        description="這是一雙運動鞋",
        confidence=0.7,
    ),
    RecognitionResult(
        keywords=["耳機", "藍牙耳機", "earbuds", "無線耳機"],
        category="3C配件",
        attributes={"類型": "藍牙耳機"},
        description="這是一款無線藍牙耳機",
        confidence=0.7,
    ),
    RecognitionResult(
        keywords=["背包", "書包", "backpack", "後背包"],
        category="包袋",
        attributes={"類型": "後背包"},
        description="這是一款後背包",
        confidence=0.7,
    ),
]

_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_LABEL_SPLIT_RE = re.compile(r"[:：]")
_KEYWORD_SPLIT_RE = re.compile(r"[,，、]")


def to_image_url(source: str) -> str:
    """Return a URL the vision API accepts.

    http(s) and data URLs pass through; anything else is read as a
    local file and inlined as a base64 data URL.
    """
    if source.startswith(("http://", "https://", "data:")):
        return source
    path = Path(source).expanduser()
    if not path.is_file():
        raise ImageRecognitionError(f"Image file not found: {source}")
    mime, _ = mimetypes.guess_type(path.name)
    encoded = base64.b64encode(path.read_bytes()).decode("ascii")
    return f"data:{mime or 'image/jpeg'};base64,{encoded}"


def extract_keywords_from_text(text: str) -> RecognitionResult:
    """Pull keywords out of a free-text model answer.

    Looks for lines labelled with a keyword marker; failing that, the
    first 100 characters stand in as a single keyword.
    """
    keywords: list[str] = []
    for line in text.split("\n"):
        if "關鍵字" not in line and "keyword" not in line:
            continue
        parts = _LABEL_SPLIT_RE.split(line)
        if len(parts) > 1:
            keywords.extend(
                k.strip() for k in _KEYWORD_SPLIT_RE.split(parts[1])
            )

    if not keywords:
        keywords.append(text[:100].strip())

    return RecognitionResult(
        keywords=[k for k in keywords if k][:MAX_KEYWORDS],
        description=text[:200],
        confidence=0.5,
    )


def parse_model_content(
    content: str, confidence: float,
) -> RecognitionResult:
    """Parse the JSON object embedded in a model answer, else free text."""
    match = _JSON_OBJECT_RE.search(content)
    if match:
        try:
            parsed = json.loads(match.group(0))
        except json.JSONDecodeError:
            logger.warning(
                "Failed to parse JSON response, using text extraction"
            )
        else:
            if isinstance(parsed, dict):
                attributes = parsed.get("attributes")
                return RecognitionResult(
                    keywords=[
                        str(k) for k in parsed.get("keywords") or []
                    ],
                    category=parsed.get("category"),
                    attributes=(
                        {str(k): str(v) for k, v in attributes.items()}
                        if isinstance(attributes, dict)
                        else {}
                    ),
                    description=parsed.get("description"),
                    confidence=confidence,
                )
    return extract_keywords_from_text(content)


class ImageRecognizer:
    """Picks a vision backend from the config and queries it."""

    def __init__(
        self,
        config: IntegrationConfig,
        client: HttpClient | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.client = client or HttpClient("vision")
        self.rng = rng or random.Random()

    def recognize(self, image: str) -> RecognitionResult:
        """Recognise the product in an image URL, data URL or file path."""
        image_url = to_image_url(image)

        if self.config.openrouter_api_key:
            return self._recognize_with_openrouter(
                image_url, self.config.openrouter_api_key
            )
        if self.config.openai_api_key:
            return self._recognize_with_openai(
                image_url, self.config.openai_api_key
            )
        logger.warning(
            "No vision API key configured, using simulated recognition"
        )
        return self.rng.choice(SIMULATED_RESULTS)

    @staticmethod
    def _message(prompt: str, image_url: str) -> list[dict[str, Any]]:
        return [{
            "role": "user",
            "content": [
                {"type": "text", "text": prompt},
                {"type": "image_url", "image_url": {"url": image_url}},
            ],
        }]

    def _complete(
        self,
        backend: str,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
    ) -> str:
        """POST a chat completion and return the message text."""
        try:
            data = self.client.post_json(
                url, payload, headers, timeout=Settings.VISION_TIMEOUT
            )
            content = data["choices"][0]["message"]["content"]
        except Exception as exc:
            logger.error(
                "%s image recognition error: %s", backend, exc,
                exc_info=True,
            )
            raise ImageRecognitionError(
                f"{backend} image recognition failed: {exc}"
            ) from exc
        if not isinstance(content, str):
            raise ImageRecognitionError(
                f"{backend} returned no text content"
            )
        return content

    def _recognize_with_openrouter(
        self, image_url: str, api_key: str,
    ) -> RecognitionResult:
        content = self._complete(
            "OpenRouter",
            OPENROUTER_URL,
            {
                "model": self.config.ai_model,
                "messages": self._message(OPENROUTER_PROMPT, image_url),
            },
            {
                "Authorization": f"Bearer {api_key}",
                "X-Title": "Smart Price Comparison",
            },
        )
        return parse_model_content(content, confidence=0.8)

    def _recognize_with_openai(
        self, image_url: str, api_key: str,
    ) -> RecognitionResult:
        content = self._complete(
            "OpenAI",
            OPENAI_URL,
            {
                "model": OPENAI_MODEL,
                "messages": self._message(OPENAI_PROMPT, image_url),
                "max_tokens": 500,
            },
            {"Authorization": f"Bearer {api_key}"},
        )
        return parse_model_content(content, confidence=0.85)
