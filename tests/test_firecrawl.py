"""
Tests for the Firecrawl crawl adapter.
"""

import json

import httpx
import pytest
import respx

from linkwise.integrations.firecrawl import (
    EXCLUDED_PATHS,
    CrawlError,
    FirecrawlClient,
    RetryConfig,
    SiteCrawler,
    parse_crawled_document,
)

NO_RETRY = RetryConfig(max_retries=0)


def document(url, content="", markdown="", title="", topics=None):
    doc = {"markdown": markdown, "metadata": {"sourceURL": url, "title": title}}
    if content or topics:
        doc["extract"] = {"content": content, "title": title, "topics": topics or []}
    return doc


def make_crawler(handler, **kwargs) -> SiteCrawler:
    """Route every Firecrawl call to handler; call inside an active respx mock."""
    respx.route(host="api.firecrawl.dev").mock(side_effect=handler)
    client = FirecrawlClient("fc-key", retry_config=NO_RETRY)
    return SiteCrawler(client, poll_interval=0, **kwargs)


class TestParseDocument:
    """Test normalization of Firecrawl documents."""

    def test_prefers_extracted_content(self):
        page = parse_crawled_document(document(
            "https://example.com/a", content="Extracted text", markdown="# Markdown",
            title="Page A", topics=["shoes"],
        ))
        assert page.url == "https://example.com/a"
        assert page.title == "Page A"
        assert page.content == "Extracted text"
        assert page.markdown == "# Markdown"
        assert page.topics == ["shoes"]

    def test_falls_back_to_markdown(self):
        page = parse_crawled_document(document("https://example.com/a", markdown="Plain markdown body"))
        assert page.content == "Plain markdown body"
        assert page.word_count == 3

    def test_missing_url_raises(self):
        with pytest.raises(ValueError):
            parse_crawled_document({"markdown": "orphan"})


class TestSiteCrawler:
    """Test crawl job lifecycle."""

    @respx.mock
    @pytest.mark.asyncio
    async def test_crawl_request_and_polling(self):
        calls = {"status": 0}
        started = {}

        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                started.update(json.loads(request.content))
                return httpx.Response(200, json={"success": True, "id": "crawl-1"})

            calls["status"] += 1
            if calls["status"] == 1:
                return httpx.Response(200, json={"status": "scraping", "completed": 1, "total": 3})
            return httpx.Response(200, json={
                "status": "completed",
                "data": [
                    document("https://example.com/a", markdown="page a"),
                    document("https://example.com/b", markdown="page b"),
                    document("https://example.com/a", markdown="duplicate"),
                    {"markdown": "no url"},
                ],
            })

        crawler = make_crawler(handler)
        async with crawler.client:
            pages = await crawler.crawl("https://example.com")

        assert started["url"] == "https://example.com"
        assert started["maxDepth"] == 3
        assert started["limit"] == 100
        assert started["excludePaths"] == EXCLUDED_PATHS
        assert calls["status"] == 2
        assert [p.url for p in pages] == ["https://example.com/a", "https://example.com/b"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_follows_next_links(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "id": "crawl-1"})
            if request.url.params.get("skip") == "1":
                return httpx.Response(200, json={
                    "status": "completed",
                    "data": [document("https://example.com/b", markdown="b")],
                })
            return httpx.Response(200, json={
                "status": "completed",
                "data": [document("https://example.com/a", markdown="a")],
                "next": "https://api.firecrawl.dev/v1/crawl/crawl-1?skip=1",
            })

        crawler = make_crawler(handler)
        async with crawler.client:
            pages = await crawler.crawl("https://example.com")

        assert [p.url for p in pages] == ["https://example.com/a", "https://example.com/b"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_http_error_is_crawl_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"error": "Unauthorized"})

        crawler = make_crawler(handler)
        async with crawler.client:
            with pytest.raises(CrawlError):
                await crawler.crawl("https://example.com")

    @respx.mock
    @pytest.mark.asyncio
    async def test_retries_gateway_error_with_html_body(self):
        start = respx.post("https://api.firecrawl.dev/v1/crawl").mock(side_effect=[
            httpx.Response(502, text="<html>Bad Gateway</html>"),
            httpx.Response(200, json={"success": True, "id": "crawl-1"}),
        ])
        respx.get("https://api.firecrawl.dev/v1/crawl/crawl-1").mock(
            return_value=httpx.Response(200, json={
                "status": "completed",
                "data": [document("https://example.com/a", markdown="a")],
            })
        )

        client = FirecrawlClient("fc-key", retry_config=RetryConfig(max_retries=1, initial_delay=0))
        crawler = SiteCrawler(client, poll_interval=0)
        async with client:
            pages = await crawler.crawl("https://example.com")

        assert start.call_count == 2
        assert [p.url for p in pages] == ["https://example.com/a"]

    @respx.mock
    @pytest.mark.asyncio
    async def test_html_error_after_retries_is_crawl_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, text="<html>Service Unavailable</html>")

        crawler = make_crawler(handler)
        async with crawler.client:
            with pytest.raises(CrawlError, match="503"):
                await crawler.crawl("https://example.com")

    @respx.mock
    @pytest.mark.asyncio
    async def test_failed_job_is_crawl_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "id": "crawl-1"})
            return httpx.Response(200, json={"status": "failed"})

        crawler = make_crawler(handler)
        async with crawler.client:
            with pytest.raises(CrawlError, match="failed"):
                await crawler.crawl("https://example.com")

    @respx.mock
    @pytest.mark.asyncio
    async def test_poll_timeout_is_crawl_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.method == "POST":
                return httpx.Response(200, json={"success": True, "id": "crawl-1"})
            return httpx.Response(200, json={"status": "scraping"})

        crawler = make_crawler(handler, poll_timeout=0)
        async with crawler.client:
            with pytest.raises(CrawlError, match="did not finish"):
                await crawler.crawl("https://example.com")

    @respx.mock
    @pytest.mark.asyncio
    async def test_missing_job_id_is_crawl_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"success": False, "error": "Invalid URL"})

        crawler = make_crawler(handler)
        async with crawler.client:
            with pytest.raises(CrawlError):
                await crawler.crawl("not-a-url")
