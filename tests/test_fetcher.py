"""Tests for WebFetcher and SPA detection (httpx MockTransport, no network)."""

from __future__ import annotations

import httpx
import pytest

from vault_rag.documents.fetcher import WebFetcher, detect_spa
from vault_rag.exceptions import ExtractionError

SPA_SHELL = '<html><body><div id="root"></div><script src="/app.js"></script></body></html>'


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler))


class TestDetectSpa:
    def test_empty_shell(self):
        assert detect_spa(SPA_SHELL)

    def test_server_rendered_page(self, article_html: str):
        assert not detect_spa(article_html)

    def test_framework_marker_with_content(self):
        html = "<html><body>" + "<p>Long content here.</p>" * 20 + "__NEXT_DATA__</body></html>"
        assert detect_spa(html)


class TestWebFetcher:
    def test_fetch_success(self, article_html: str):
        fetcher = WebFetcher(client=_client(lambda req: httpx.Response(200, text=article_html)))
        result = fetcher.fetch("https://clinic.example/bp")

        assert result.html == article_html
        assert result.url == "https://clinic.example/bp"
        assert result.metadata.title == "Managing High Blood Pressure"
        assert not result.spa_suspected
        assert not result.js_rendered

    def test_flags_spa(self):
        fetcher = WebFetcher(client=_client(lambda req: httpx.Response(200, text=SPA_SHELL)))
        assert fetcher.fetch("https://app.example/").spa_suspected

    def test_retries_then_succeeds(self, article_html: str):
        responses = [httpx.Response(503), httpx.Response(200, text=article_html)]
        sleeps: list[float] = []
        fetcher = WebFetcher(
            retries=2,
            client=_client(lambda req: responses.pop(0)),
            sleep=sleeps.append,
        )
        result = fetcher.fetch("https://clinic.example/bp")
        assert "Hypertension" in result.html
        assert sleeps == [1]

    def test_gives_up_after_retries(self):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(500)

        fetcher = WebFetcher(retries=3, client=_client(handler), sleep=lambda _: None)
        with pytest.raises(ExtractionError, match="after 3 attempts"):
            fetcher.fetch("https://down.example/")
        assert len(calls) == 3
