from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass
from functools import lru_cache

from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import vision
from loguru import logger

from ..config import ServiceSettings
from ..errors import EmptyRecognitionError, RecognitionError, RecognitionUnavailableError


_TRANSIENT = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.ResourceExhausted,
    google_exceptions.InternalServerError,
)


@dataclass(frozen=True, slots=True)
class VisionConfig:
    credentials_path: str | None = None
    language_hints: tuple[str, ...] = ("tr",)
    timeout_s: float = 20.0
    max_attempts: int = 3
    backoff_s: float = 0.5

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> "VisionConfig":
        return cls(
            credentials_path=settings.credentials_path,
            language_hints=tuple(settings.language_hints),
            timeout_s=settings.recognition_timeout_s,
            max_attempts=settings.recognition_max_attempts,
            backoff_s=settings.recognition_backoff_s,
        )


class GoogleVisionRecognizer:
    """Image bytes -> full text transcript via Cloud Vision TEXT_DETECTION."""

    def __init__(
        self,
        config: VisionConfig | None = None,
        *,
        client: object | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config or VisionConfig()
        self._client = client
        self._sleep = sleep

    @property
    def client(self):
        if self._client is None:
            self._client = _get_client(self.config.credentials_path)
        return self._client

    def recognize(self, image_bytes: bytes) -> str:
        if not image_bytes:
            raise RecognitionError("No image bytes to recognize")

        cfg = self.config
        image = vision.Image(content=image_bytes)
        context = vision.ImageContext(language_hints=list(cfg.language_hints))

        for attempt in range(1, cfg.max_attempts + 1):
            try:
                response = self.client.text_detection(image=image, image_context=context, timeout=cfg.timeout_s)
                break
            except _TRANSIENT as exc:
                if attempt >= cfg.max_attempts:
                    raise RecognitionError(
                        f"Text detection failed after {attempt} attempts: {exc}"
                    ) from exc
                delay = cfg.backoff_s * attempt
                logger.warning("text detection attempt {} failed ({}), retrying in {:.1f}s", attempt, exc, delay)
                self._sleep(delay)
            except google_exceptions.GoogleAPICallError as exc:
                raise RecognitionError(f"Text detection failed: {exc}") from exc

        if response.error.message:
            raise RecognitionError(f"Cloud Vision error: {response.error.message}")

        text = _full_text(response)
        if not text.strip():
            raise EmptyRecognitionError("No text detected in image")
        logger.debug("recognized {} characters", len(text))
        return text


def _full_text(response) -> str:
    if response.full_text_annotation and response.full_text_annotation.text:
        return response.full_text_annotation.text
    if response.text_annotations:
        return response.text_annotations[0].description or ""
    return ""


@lru_cache(maxsize=4)
def _get_client(credentials_path: str | None):
    try:
        if credentials_path:
            return vision.ImageAnnotatorClient.from_service_account_file(credentials_path)
        return vision.ImageAnnotatorClient()
    except (google_exceptions.GoogleAPIError, auth_exceptions.GoogleAuthError, OSError, ValueError) as exc:
        raise RecognitionUnavailableError(f"Cloud Vision client unavailable: {exc}") from exc
