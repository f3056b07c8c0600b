import io
import urllib.error

import pytest

from fisoku import http_client
from fisoku.errors import ImageFetchError


class _Body(io.BytesIO):
    def __enter__(self):
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def _serve(monkeypatch: pytest.MonkeyPatch, body: bytes = b"", error: Exception | None = None) -> None:
    def urlopen(req, timeout):
        if error is not None:
            raise error
        return _Body(body)

    monkeypatch.setattr(http_client.urllib.request, "urlopen", urlopen)


def test_fetch_bytes_returns_body(monkeypatch: pytest.MonkeyPatch) -> None:
    _serve(monkeypatch, b"\xff\xd8jpeg")

    assert http_client.fetch_bytes("https://example.test/fis.jpg") == b"\xff\xd8jpeg"


def test_rejects_non_http_urls() -> None:
    with pytest.raises(ImageFetchError, match="Unsupported"):
        http_client.fetch_bytes("file:///etc/passwd")


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (urllib.error.HTTPError("https://example.test/x", 404, "Not Found", None, None), "HTTP 404"),
        (urllib.error.URLError("name resolution failed"), "name resolution failed"),
        (TimeoutError(), "timed out"),
    ],
)
def test_transport_errors(monkeypatch: pytest.MonkeyPatch, error: Exception, message: str) -> None:
    _serve(monkeypatch, error=error)

    with pytest.raises(ImageFetchError, match=message):
        http_client.fetch_bytes("https://example.test/x")


def test_empty_and_oversized_bodies(monkeypatch: pytest.MonkeyPatch) -> None:
    _serve(monkeypatch, b"")
    with pytest.raises(ImageFetchError, match="Empty"):
        http_client.fetch_bytes("https://example.test/x")

    _serve(monkeypatch, b"x" * 11)
    with pytest.raises(ImageFetchError, match="exceeds"):
        http_client.fetch_bytes("https://example.test/x", max_bytes=10)
