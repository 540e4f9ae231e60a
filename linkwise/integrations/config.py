"""
External API Configuration

Configuration and factory for the external API clients used by an
internal-linking analysis run.

Credentials come from Settings (environment / .env):
- FIRECRAWL_API_KEY: Firecrawl API key (required to crawl)
- DATAFORSEO_LOGIN / DATAFORSEO_PASSWORD: keyword volume (optional)
- GSC_ACCESS_TOKEN, GSC_REFRESH_TOKEN, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET:
  Search Console (optional)
"""

import logging
from typing import Optional

from linkwise.collector.client import DataForSEOClient
from linkwise.utils.config import Settings, get_settings

from .firecrawl import FirecrawlClient
from .search_console import GSCCredentials, SearchConsoleClient

logger = logging.getLogger(__name__)


class ExternalAPIConfig:
    """Configuration for external APIs."""

    def __init__(self, settings: Optional[Settings] = None):
        """
        Initialize external API configuration.

        Args:
            settings: Application settings (defaults to get_settings())
        """
        settings = settings or get_settings()
        self.firecrawl_api_key = settings.FIRECRAWL_API_KEY
        self.dataforseo_login = settings.DATAFORSEO_LOGIN
        self.dataforseo_password = settings.DATAFORSEO_PASSWORD
        self.gsc_credentials = GSCCredentials(
            access_token=settings.GSC_ACCESS_TOKEN,
            refresh_token=settings.GSC_REFRESH_TOKEN,
            expires_at=settings.GSC_TOKEN_EXPIRES_AT,
            client_id=settings.GOOGLE_CLIENT_ID,
            client_secret=settings.GOOGLE_CLIENT_SECRET,
        )
        self.timeout = float(settings.API_TIMEOUT)

    @property
    def has_firecrawl(self) -> bool:
        return bool(self.firecrawl_api_key)

    @property
    def has_dataforseo(self) -> bool:
        return bool(self.dataforseo_login and self.dataforseo_password)

    @property
    def has_search_console(self) -> bool:
        return self.gsc_credentials.is_usable

    def log_status(self):
        """Log configuration status."""
        logger.info(
            f"External API status: "
            f"Firecrawl={'enabled' if self.has_firecrawl else 'disabled'}, "
            f"DataForSEO={'enabled' if self.has_dataforseo else 'disabled'}, "
            f"SearchConsole={'enabled' if self.has_search_console else 'disabled'}"
        )


class ExternalAPIClients:
    """
    Factory and manager for external API clients.

    Clients are created lazily; a property returns None when the service is
    not configured.

    Usage:
        async with ExternalAPIClients(ExternalAPIConfig()) as clients:
            if clients.dataforseo:
                ...
    """

    def __init__(self, config: Optional[ExternalAPIConfig] = None):
        self.config = config or ExternalAPIConfig()
        self._firecrawl: Optional[FirecrawlClient] = None
        self._dataforseo: Optional[DataForSEOClient] = None
        self._search_console: Optional[SearchConsoleClient] = None

    @property
    def firecrawl(self) -> Optional[FirecrawlClient]:
        """Get or create Firecrawl client."""
        if not self.config.has_firecrawl:
            return None

        if self._firecrawl is None:
            self._firecrawl = FirecrawlClient(
                api_key=self.config.firecrawl_api_key,
                timeout=self.config.timeout,
            )
            logger.info("Initialized Firecrawl client")

        return self._firecrawl

    @property
    def dataforseo(self) -> Optional[DataForSEOClient]:
        """Get or create DataForSEO client."""
        if not self.config.has_dataforseo:
            return None

        if self._dataforseo is None:
            self._dataforseo = DataForSEOClient(
                login=self.config.dataforseo_login,
                password=self.config.dataforseo_password,
                timeout=self.config.timeout,
            )
            logger.info("Initialized DataForSEO client")

        return self._dataforseo

    @property
    def search_console(self) -> Optional[SearchConsoleClient]:
        """Get or create Search Console client."""
        if not self.config.has_search_console:
            return None

        if self._search_console is None:
            self._search_console = SearchConsoleClient(
                credentials=self.config.gsc_credentials,
                timeout=self.config.timeout,
            )
            logger.info("Initialized Search Console client")

        return self._search_console

    async def close(self):
        """Close all clients."""
        for name in ("_firecrawl", "_dataforseo", "_search_console"):
            client = getattr(self, name)
            if client is not None:
                await client.close()
                setattr(self, name, None)

        logger.info("Closed external API clients")

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
