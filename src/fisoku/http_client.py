from __future__ import annotations

import urllib.error
import urllib.request

from .errors import ImageFetchError


_USER_AGENT = "fisoku/0.1"


def fetch_bytes(url: str, *, timeout_s: float = 10.0, max_bytes: int = 20 * 1024 * 1024) -> bytes:
    if not url.lower().startswith(("http://", "https://")):
        raise ImageFetchError(f"Unsupported image URL: {url}")
    req = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            body = resp.read(max_bytes + 1)
    except urllib.error.HTTPError as exc:
        raise ImageFetchError(f"HTTP {exc.code} fetching image from {url}") from exc
    except urllib.error.URLError as exc:
        raise ImageFetchError(f"Fetching image from {url} failed: {exc.reason}") from exc
    except TimeoutError as exc:
        raise ImageFetchError(f"Fetching image from {url} timed out after {timeout_s}s") from exc

    if not body:
        raise ImageFetchError(f"Empty image body from {url}")
    if len(body) > max_bytes:
        raise ImageFetchError(f"Image at {url} exceeds {max_bytes} bytes")
    return body
