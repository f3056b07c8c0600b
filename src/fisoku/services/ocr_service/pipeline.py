from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from ...engine import ReceiptEngine
from ...models import ParseResult


class TextRecognizer(Protocol):
    def recognize(self, image_bytes: bytes) -> str: ...


@dataclass(frozen=True, slots=True)
class OcrPipeline:
    """Fetch the image, get its transcript from the recognizer, parse it."""

    engine: ReceiptEngine
    recognizer: TextRecognizer
    fetcher: Callable[[str], bytes]

    def run(self, image_url: str) -> ParseResult:
        started = time.perf_counter()
        image_bytes = self.fetcher(image_url)
        logger.info("fetched {} bytes from {}", len(image_bytes), image_url)

        text = self.recognizer.recognize(image_bytes)
        logger.info("recognized {} characters", len(text))

        result = self.parse(text)
        logger.info(
            "parsed receipt as {} ({:.2f}) in {:.0f} ms",
            result.source.format_detected.value,
            result.source.confidence,
            (time.perf_counter() - started) * 1000,
        )
        return result

    def parse(self, text: str) -> ParseResult:
        return self.engine.parse_text(text)
