import pytest
from fastapi.testclient import TestClient
from loguru import logger

from fisoku.config import ServiceSettings
from fisoku.errors import EmptyRecognitionError, ImageFetchError
from fisoku.services.ocr_service.app import create_app

from conftest import RULES_DIR
from receipts import SOK_SIMPLE


class FakeRecognizer:
    def __init__(self, text: str = SOK_SIMPLE, error: Exception | None = None) -> None:
        self.text = text
        self.error = error
        self.calls: list[bytes] = []

    def recognize(self, image_bytes: bytes) -> str:
        self.calls.append(image_bytes)
        if self.error is not None:
            raise self.error
        return self.text


def _client(recognizer: FakeRecognizer | None = None, fetcher=None) -> TestClient:
    app = create_app(
        ServiceSettings(rules_dir=RULES_DIR, log_level="WARNING"),
        recognizer=recognizer or FakeRecognizer(),
        fetcher=fetcher or (lambda url: b"image"),
    )
    return TestClient(app)


def test_healthz() -> None:
    assert _client().get("/healthz").json() == {"status": "ok"}


def test_ocr_parses_recognized_text() -> None:
    recognizer = FakeRecognizer()

    resp = _client(recognizer).post("/ocr", json={"imageUrl": "https://example.test/fis.jpg"})

    assert resp.status_code == 200
    body = resp.json()
    assert recognizer.calls == [b"image"]
    assert body["source"]["format_detected"] == "Sok"
    assert body["merchant"]["name"] == "ŞOK"
    assert body["receipt"]["payment_method"] == "Card"
    assert body["receipt"]["card_last4_masked"] == "---9016"
    assert body["totals"]["grand_total"] == 136.5
    assert body["totals"]["grand_total_source"] == "printed"
    assert body["computed_totals"]["reconciles"] is True
    assert body["items"][2]["qty"] == "0.550 KG"
    assert body["raw_text"] == SOK_SIMPLE


@pytest.mark.parametrize("payload", [{}, {"imageUrl": ""}, {"imageUrl": "   "}])
def test_ocr_requires_image_url(payload: dict) -> None:
    resp = _client().post("/ocr", json=payload)

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Missing imageUrl"}


def test_ocr_fetch_failure() -> None:
    def fetcher(url: str) -> bytes:
        raise ImageFetchError(f"HTTP 404 fetching image from {url}")

    resp = _client(fetcher=fetcher).post("/ocr", json={"imageUrl": "https://example.test/missing.jpg"})

    assert resp.status_code == 500
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "HTTP 404 fetching image from https://example.test/missing.jpg"
    assert body["source"]["warnings"] == ["Image could not be fetched"]


def test_ocr_recognition_failure() -> None:
    recognizer = FakeRecognizer(error=EmptyRecognitionError("No text detected in image"))

    resp = _client(recognizer).post("/ocr", json={"imageUrl": "https://example.test/blank.jpg"})

    assert resp.status_code == 500
    assert resp.json()["error"] == "No text detected in image"
    assert resp.json()["source"]["warnings"] == ["Text recognition failed"]


def test_ocr_unexpected_failure_is_reported() -> None:
    recognizer = FakeRecognizer(error=KeyError("boom"))

    resp = _client(recognizer).post("/ocr", json={"imageUrl": "https://example.test/fis.jpg"})

    assert resp.status_code == 500
    assert resp.json()["source"]["warnings"] == ["Internal parse error"]


def test_ocr_text_endpoint() -> None:
    resp = _client().post("/ocr/text", json={"text": SOK_SIMPLE})

    assert resp.status_code == 200
    assert resp.json()["totals"]["grand_total"] == 136.5


def test_ocr_text_requires_text() -> None:
    resp = _client().post("/ocr/text", json={"text": "  "})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Missing text"}


def test_create_app_keeps_foreign_log_sinks() -> None:
    received: list[str] = []
    handler_id = logger.add(lambda message: received.append(str(message)), level="INFO", format="{message}")
    try:
        _client()
        _client()
        logger.info("still listening")
    finally:
        logger.remove(handler_id)

    assert [m.strip() for m in received] == ["still listening"]
