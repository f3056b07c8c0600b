from __future__ import annotations

import contextlib
import sys
from functools import partial

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from loguru import logger
from pydantic import BaseModel

from ...config import ServiceSettings
from ...engine import ReceiptEngine
from ...errors import FisokuError, ImageFetchError, RecognitionError
from ...http_client import fetch_bytes
from ...models import OcrErrorResponse, SourceInfo
from ...ocr.google_vision_backend import GoogleVisionRecognizer, VisionConfig
from .pipeline import OcrPipeline, TextRecognizer


# id of the stderr sink added by create_app; other sinks are left alone
_log_handler: int | None = None


class OcrRequest(BaseModel):
    imageUrl: str | None = None


class OcrTextRequest(BaseModel):
    text: str | None = None


def create_app(
    settings: ServiceSettings | None = None,
    *,
    recognizer: TextRecognizer | None = None,
    fetcher=None,
) -> FastAPI:
    settings = settings or ServiceSettings.from_env()
    _configure_logging(settings.log_level)

    pipeline = OcrPipeline(
        engine=ReceiptEngine.from_rules_dir(settings.rules_dir),
        recognizer=recognizer or GoogleVisionRecognizer(VisionConfig.from_settings(settings)),
        fetcher=fetcher or partial(fetch_bytes, timeout_s=settings.fetch_timeout_s),
    )

    app = FastAPI(title="Fisoku Receipt OCR Service", version="0.1.0")

    @app.get("/healthz")
    def healthz() -> dict:
        return {"status": "ok"}

    @app.post("/ocr")
    def ocr(req: OcrRequest | None = None) -> JSONResponse:
        image_url = (req.imageUrl or "").strip() if req else ""
        if not image_url:
            return _bad_request("Missing imageUrl")
        try:
            result = pipeline.run(image_url)
        except ImageFetchError as exc:
            logger.error("image fetch failed: {}", exc)
            return _failure(str(exc), "Image could not be fetched")
        except RecognitionError as exc:
            logger.error("text recognition failed: {}", exc)
            return _failure(str(exc), "Text recognition failed")
        except FisokuError as exc:
            logger.error("ocr request failed: {}", exc)
            return _failure(str(exc), "Receipt processing failed")
        except Exception as exc:
            logger.exception("unexpected error while processing {}", image_url)
            return _failure(str(exc) or type(exc).__name__, "Internal parse error")
        return JSONResponse(result.model_dump(mode="json"))

    @app.post("/ocr/text")
    def ocr_text(req: OcrTextRequest | None = None) -> JSONResponse:
        text = req.text if req else None
        if not text or not text.strip():
            return _bad_request("Missing text")
        try:
            result = pipeline.parse(text)
        except Exception as exc:
            logger.exception("unexpected error while parsing submitted text")
            return _failure(str(exc) or type(exc).__name__, "Internal parse error")
        return JSONResponse(result.model_dump(mode="json"))

    return app


def _configure_logging(level: str) -> None:
    global _log_handler
    if _log_handler is not None:
        with contextlib.suppress(ValueError):
            logger.remove(_log_handler)
    _log_handler = logger.add(sys.stderr, level=level)


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse({"success": False, "error": message}, status_code=400)


def _failure(message: str, warning: str) -> JSONResponse:
    body = OcrErrorResponse(error=message, source=SourceInfo(warnings=[warning]))
    return JSONResponse(body.model_dump(mode="json"), status_code=500)
