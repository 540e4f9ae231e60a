"""
External API Integrations

Clients for third-party APIs used by internal-linking analysis:
- Firecrawl: Site crawling for the page corpus
- Search Console: Query × page performance data
- Config: Unified configuration and client management
"""

from .firecrawl import (
    FirecrawlClient,
    FirecrawlError,
    CrawlError,
    CrawledPage,
    SiteCrawler,
    parse_crawled_document,
)
from .search_console import (
    SearchConsoleClient,
    SearchConsoleError,
    GSCCredentials,
    aggregate_search_rows,
)
from .config import (
    ExternalAPIConfig,
    ExternalAPIClients,
)

__all__ = [
    # Firecrawl
    "FirecrawlClient",
    "FirecrawlError",
    "CrawlError",
    "CrawledPage",
    "SiteCrawler",
    "parse_crawled_document",
    # Search Console
    "SearchConsoleClient",
    "SearchConsoleError",
    "GSCCredentials",
    "aggregate_search_rows",
    # Config
    "ExternalAPIConfig",
    "ExternalAPIClients",
]
