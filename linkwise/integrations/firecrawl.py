"""
Firecrawl API Client

Website crawling service used to build the page corpus for internal-linking
analysis.

Firecrawl handles:
- JavaScript rendering
- Anti-bot bypass
- Clean markdown output
- Optional LLM extraction (title, main content, topics)

API: https://firecrawl.dev
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

# Crawl bounds
MAX_CRAWL_PAGES = 100
MAX_CRAWL_DEPTH = 3
EXCLUDED_PATHS = ["/admin/*", "/wp-admin/*", "/api/*"]

EXTRACTION_PROMPT = (
    "Extract the main content, title, and key topics from this page for SEO analysis."
)
EXTRACTION_SCHEMA = {
    "type": "object",
    "properties": {
        "title": {"type": "string"},
        "content": {"type": "string"},
        "topics": {"type": "array", "items": {"type": "string"}},
    },
}


class FirecrawlError(Exception):
    """Custom exception for Firecrawl API errors."""

    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def _error_body(response: httpx.Response) -> Dict[str, Any]:
    """Decoded error body; non-JSON bodies (gateway HTML pages) are kept as text."""
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {"body": response.text}
    return data if isinstance(data, dict) else {"body": data}


class CrawlError(Exception):
    """Site crawl could not produce a corpus. Always fatal for an analysis run."""


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""

    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


@dataclass
class CrawledPage:
    """A page returned by the crawler."""

    url: str
    title: str = ""
    content: str = ""
    markdown: str = ""
    topics: List[str] = field(default_factory=list)

    @property
    def word_count(self) -> int:
        return len(self.content.split())


class FirecrawlClient:
    """
    Async client for Firecrawl API.

    Usage:
        client = FirecrawlClient(api_key="your_api_key")

        job = await client.crawl_url("https://example.com", max_depth=3, limit=100)
        status = await client.get_crawl_status(job["id"])

        await client.close()
    """

    BASE_URL = "https://api.firecrawl.dev/v1"

    def __init__(
        self,
        api_key: str,
        retry_config: Optional[RetryConfig] = None,
        timeout: float = 60.0,
    ):
        """
        Initialize Firecrawl client.

        Args:
            api_key: Firecrawl API key
            retry_config: Retry configuration (optional)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.retry_config = retry_config or RetryConfig()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(timeout),
        )
        self._closed = False

    async def crawl_url(
        self,
        url: str,
        max_depth: int = MAX_CRAWL_DEPTH,
        limit: int = MAX_CRAWL_PAGES,
        include_paths: List[str] = None,
        exclude_paths: List[str] = None,
        allow_external_links: bool = False,
        extract: bool = True,
    ) -> Dict[str, Any]:
        """
        Start a crawl job from a URL.

        Args:
            url: Starting URL
            max_depth: Maximum crawl depth
            limit: Maximum number of pages
            include_paths: URL patterns to include
            exclude_paths: URL patterns to exclude
            allow_external_links: Follow external links
            extract: Ask Firecrawl to LLM-extract title/content/topics

        Returns:
            {
                "success": bool,
                "id": "crawl_id",
                "url": "status_url"
            }
        """
        if self._closed:
            raise FirecrawlError("Client has been closed")

        payload = {
            "url": url,
            "maxDepth": max_depth,
            "limit": limit,
            "allowExternalLinks": allow_external_links,
            "scrapeOptions": {
                "formats": ["markdown", "extract"] if extract else ["markdown"],
                "onlyMainContent": True,
            },
        }

        if extract:
            payload["scrapeOptions"]["extract"] = {
                "prompt": EXTRACTION_PROMPT,
                "schema": EXTRACTION_SCHEMA,
            }
        if include_paths:
            payload["includePaths"] = include_paths
        if exclude_paths:
            payload["excludePaths"] = exclude_paths

        return await self._request_with_retry("POST", "/crawl", payload)

    async def get_crawl_status(self, crawl_id: str, next_url: Optional[str] = None) -> Dict[str, Any]:
        """
        Get status of a crawl job.

        Args:
            crawl_id: Crawl job ID
            next_url: Pagination URL returned as "next" by a previous status call

        Returns:
            {
                "status": "scraping|completed|failed",
                "completed": int,
                "total": int,
                "data": [...],
                "next": "url" | None
            }
        """
        if self._closed:
            raise FirecrawlError("Client has been closed")

        return await self._request_with_retry("GET", next_url or f"/crawl/{crawl_id}", None)

    async def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        payload: Optional[Dict[str, Any]],
    ) -> Dict[str, Any]:
        """Make request with retry logic."""
        config = self.retry_config
        last_exception = None

        for attempt in range(config.max_retries + 1):
            try:
                if method == "POST":
                    response = await self._client.post(endpoint, json=payload)
                elif method == "GET":
                    response = await self._client.get(endpoint)
                else:
                    raise ValueError(f"Unsupported method: {method}")

                if response.status_code >= 400:
                    error_data = _error_body(response)

                    if response.status_code in config.retryable_status_codes:
                        last_exception = FirecrawlError(
                            f"API error: {response.status_code}",
                            status_code=response.status_code,
                            response=error_data,
                        )
                    else:
                        raise FirecrawlError(
                            f"API error: {error_data.get('error', response.status_code)}",
                            status_code=response.status_code,
                            response=error_data,
                        )
                else:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise FirecrawlError(
                            f"Invalid JSON response: {e}",
                            status_code=response.status_code,
                            response={"body": response.text},
                        ) from e

            except httpx.TimeoutException as e:
                last_exception = FirecrawlError(f"Request timed out: {e}")
            except httpx.RequestError as e:
                last_exception = FirecrawlError(f"Request failed: {e}")

            if attempt < config.max_retries:
                delay = min(
                    config.initial_delay * (config.exponential_base**attempt),
                    config.max_delay,
                )
                logger.warning(
                    f"Firecrawl request failed, retrying in {delay:.1f}s "
                    f"(attempt {attempt + 1}/{config.max_retries + 1})"
                )
                await asyncio.sleep(delay)

        raise last_exception

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


class SiteCrawler:
    """
    High-level crawler producing the page corpus for one site.

    Starts a bounded crawl job, polls it to completion and normalizes every
    returned document into a CrawledPage. Any failure of the crawl itself
    raises CrawlError.
    """

    def __init__(
        self,
        client: FirecrawlClient,
        max_pages: int = MAX_CRAWL_PAGES,
        max_depth: int = MAX_CRAWL_DEPTH,
        exclude_paths: Optional[List[str]] = None,
        poll_interval: float = 2.0,
        poll_timeout: float = 600.0,
    ):
        self.client = client
        self.max_pages = max_pages
        self.max_depth = max_depth
        self.exclude_paths = exclude_paths or list(EXCLUDED_PATHS)
        self.poll_interval = poll_interval
        self.poll_timeout = poll_timeout

    async def crawl(self, site_url: str) -> List[CrawledPage]:
        """
        Crawl a site.

        Args:
            site_url: Site root URL

        Returns:
            Crawled pages (at most max_pages), one per distinct URL

        Raises:
            CrawlError: If the crawl job cannot be started, fails or times out
        """
        logger.info(f"Crawling {site_url} (limit={self.max_pages}, depth={self.max_depth})")

        try:
            job = await self.client.crawl_url(
                site_url,
                max_depth=self.max_depth,
                limit=self.max_pages,
                exclude_paths=self.exclude_paths,
            )
        except FirecrawlError as e:
            raise CrawlError(f"Firecrawl crawl request failed: {e}") from e

        crawl_id = job.get("id")
        if not job.get("success", True) or not crawl_id:
            raise CrawlError(f"Firecrawl did not start a crawl job: {job.get('error', job)}")

        documents = await self._wait_for_documents(crawl_id)
        pages = self._to_pages(documents)

        logger.info(f"Crawled {len(pages)} pages from {site_url}")
        return pages

    async def _wait_for_documents(self, crawl_id: str) -> List[Dict[str, Any]]:
        deadline = time.monotonic() + self.poll_timeout

        while True:
            try:
                status = await self.client.get_crawl_status(crawl_id)
            except FirecrawlError as e:
                raise CrawlError(f"Firecrawl status check failed: {e}") from e

            state = status.get("status")
            if state == "completed":
                return await self._collect_pages(crawl_id, status)
            if state in ("failed", "cancelled"):
                raise CrawlError(f"Firecrawl crawl {crawl_id} {state}")

            if time.monotonic() >= deadline:
                raise CrawlError(
                    f"Firecrawl crawl {crawl_id} did not finish within {self.poll_timeout:.0f}s"
                )

            logger.debug(
                f"Crawl {crawl_id}: {status.get('completed', 0)}/{status.get('total', '?')} pages"
            )
            await asyncio.sleep(self.poll_interval)

    async def _collect_pages(self, crawl_id: str, status: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Follow "next" links of a completed crawl."""
        documents = list(status.get("data") or [])
        next_url = status.get("next")

        while next_url and len(documents) < self.max_pages:
            try:
                status = await self.client.get_crawl_status(crawl_id, next_url=next_url)
            except FirecrawlError as e:
                raise CrawlError(f"Firecrawl pagination failed: {e}") from e
            documents.extend(status.get("data") or [])
            next_url = status.get("next")

        return documents[: self.max_pages]

    def _to_pages(self, documents: List[Dict[str, Any]]) -> List[CrawledPage]:
        pages = []
        seen = set()

        for doc in documents:
            try:
                page = parse_crawled_document(doc)
            except (TypeError, ValueError, AttributeError) as e:
                logger.warning(f"Skipping malformed crawl document: {e}")
                continue

            if page.url in seen:
                continue
            seen.add(page.url)
            pages.append(page)

        return pages


def parse_crawled_document(doc: Dict[str, Any]) -> CrawledPage:
    """
    Normalize one Firecrawl document.

    Content prefers the LLM-extracted main content and falls back to markdown.

    Raises:
        ValueError: If the document has no URL
    """
    metadata = doc.get("metadata") or {}
    extract = doc.get("extract") or {}
    markdown = doc.get("markdown") or ""

    url = metadata.get("sourceURL") or metadata.get("url") or doc.get("url")
    if not url:
        raise ValueError("crawl document has no URL")

    topics = extract.get("topics") or []

    return CrawledPage(
        url=url,
        title=extract.get("title") or metadata.get("title") or "",
        content=extract.get("content") or markdown,
        markdown=markdown,
        topics=[str(t) for t in topics],
    )
