"""Website content fetching — plain HTTP with retries and SPA detection.

JavaScript rendering is not performed here. When the served HTML looks like
a client-rendered shell the result is flagged so callers can warn that the
extracted text may be incomplete.
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from collections.abc import Callable

import httpx

from vault_rag.documents.html_extractor import extract_metadata
from vault_rag.documents.schemas import FetchResult
from vault_rag.exceptions import ExtractionError

logger = logging.getLogger(__name__)

SPA_MIN_BODY_CHARS = 200

_BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
}

_SPA_MARKERS = [
    re.compile(r'<div\s+id="root"\s*>', re.IGNORECASE),
    re.compile(r'<div\s+id="app"\s*>', re.IGNORECASE),
    re.compile(r"__NEXT_DATA__"),
    re.compile(r"data-reactroot"),
    re.compile(r"ng-version="),
    re.compile(r"enable JavaScript to run this app", re.IGNORECASE),
    re.compile(r"This app works best with JavaScript enabled", re.IGNORECASE),
]

_BODY_RE = re.compile(r"<body[^>]*>(.*)</body>", re.IGNORECASE | re.DOTALL)
_TAG_RE = re.compile(r"<[^>]+>")


def detect_spa(html: str) -> bool:
    """Guess whether ``html`` is a JavaScript app shell with little server text."""
    match = _BODY_RE.search(html)
    body = match.group(1) if match else html
    body_text = _TAG_RE.sub("", body).strip()
    if len(body_text) < SPA_MIN_BODY_CHARS:
        return True
    return any(marker.search(html) for marker in _SPA_MARKERS)


class ContentFetcher(ABC):
    """Interface for anything that turns a URL into raw HTML."""

    @abstractmethod
    def fetch(self, url: str) -> FetchResult:
        """Fetch ``url`` and return its raw HTML and metadata."""


class WebFetcher(ContentFetcher):
    """Fetch pages over HTTP with retry and exponential backoff."""

    def __init__(
        self,
        timeout: float = 30.0,
        retries: int = 2,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.retries = max(1, retries)
        self._client = client or httpx.Client(
            timeout=timeout,
            follow_redirects=True,
            headers=_BROWSER_HEADERS,
        )
        self._sleep = sleep

    def fetch(self, url: str) -> FetchResult:
        last_error: Exception | None = None

        for attempt in range(self.retries):
            try:
                resp = self._client.get(url)
                resp.raise_for_status()
                html = resp.text
                spa = detect_spa(html)
                if spa:
                    logger.warning(
                        "SPA detected for %s; JavaScript-rendered content may be missing",
                        url,
                    )
                return FetchResult(
                    html=html,
                    url=str(resp.url),
                    metadata=extract_metadata(html),
                    js_rendered=False,
                    spa_suspected=spa,
                )
            except httpx.HTTPError as exc:
                last_error = exc
                logger.warning("Fetch attempt %d for %s failed: %s", attempt + 1, url, exc)
                if attempt < self.retries - 1:
                    self._sleep(2 ** attempt)

        raise ExtractionError(
            f"Failed to fetch {url} after {self.retries} attempts: {last_error}"
        ) from last_error
