"""
Google Search Console Client

Fetches Search Analytics rows (query × page) used to weight link
opportunities with real impressions, clicks and positions.

Handles:
- Bearer token auth with optional refresh-token renewal
- startRow pagination up to the API row cap
- Aggregation of raw rows per (query, page)

API: https://developers.google.com/webmaster-tools/v1/searchanalytics/query
"""

import logging
import time
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import quote

import httpx

from linkwise.models import SearchPerformanceMetric, performance_key

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"

# Search Analytics returns at most 25k rows per request
MAX_ROWS_PER_REQUEST = 25000
MAX_TOTAL_ROWS = 25000
LOOKBACK_DAYS = 90


class SearchConsoleError(Exception):
    """Custom exception for Search Console API errors."""

    def __init__(self, message: str, status_code: int = None, response: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


@dataclass
class GSCCredentials:
    """OAuth credentials for Search Console."""
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[float] = None  # Epoch seconds
    client_id: Optional[str] = None
    client_secret: Optional[str] = None

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token and self.client_id and self.client_secret)

    @property
    def is_expired(self) -> bool:
        return self.expires_at is not None and time.time() >= self.expires_at

    @property
    def is_usable(self) -> bool:
        return bool(self.access_token) or self.can_refresh


class SearchConsoleClient:
    """
    Async client for the Search Console Search Analytics API.

    Usage:
        client = SearchConsoleClient(GSCCredentials(access_token="..."))
        rows = await client.fetch_all_rows("https://example.com/")
        await client.close()
    """

    BASE_URL = "https://www.googleapis.com/webmasters/v3"

    def __init__(self, credentials: GSCCredentials, timeout: float = 60.0):
        self.credentials = credentials
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout))
        self._closed = False

    async def ensure_access_token(self) -> str:
        """Return a valid access token, refreshing it when expired or missing."""
        creds = self.credentials
        if creds.access_token and not creds.is_expired:
            return creds.access_token

        if not creds.can_refresh:
            if creds.access_token:
                # No way to refresh; let the API reject it if it really expired
                return creds.access_token
            raise SearchConsoleError("No Search Console access token configured")

        logger.info("Search Console token expired, refreshing...")
        response = await self._client.post(
            TOKEN_URL,
            data={
                "client_id": creds.client_id,
                "client_secret": creds.client_secret,
                "refresh_token": creds.refresh_token,
                "grant_type": "refresh_token",
            },
        )
        if response.status_code != 200:
            raise SearchConsoleError(
                f"Token refresh failed: {response.status_code}",
                status_code=response.status_code,
                response=response.text,
            )

        payload = response.json()
        creds.access_token = payload["access_token"]
        creds.expires_at = time.time() + int(payload.get("expires_in", 3600))
        return creds.access_token

    async def query(
        self,
        site_url: str,
        start_date: str,
        end_date: str,
        dimensions: List[str] = None,
        row_limit: int = MAX_ROWS_PER_REQUEST,
        start_row: int = 0,
    ) -> Dict[str, Any]:
        """
        Run one Search Analytics query.

        Raises:
            SearchConsoleError: On non-200 responses or transport failures
        """
        if self._closed:
            raise SearchConsoleError("Client has been closed")

        token = await self.ensure_access_token()
        endpoint = f"{self.BASE_URL}/sites/{quote(site_url, safe='')}/searchAnalytics/query"

        try:
            response = await self._client.post(
                endpoint,
                headers={"Authorization": f"Bearer {token}"},
                json={
                    "startDate": start_date,
                    "endDate": end_date,
                    "dimensions": dimensions or ["query", "page"],
                    "rowLimit": row_limit,
                    "startRow": start_row,
                },
            )
        except httpx.TimeoutException as e:
            raise SearchConsoleError(f"Request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise SearchConsoleError(f"HTTP error: {e}") from e

        if response.status_code != 200:
            raise SearchConsoleError(
                f"GSC API error: {response.status_code}",
                status_code=response.status_code,
                response=response.text,
            )

        return response.json()

    async def fetch_all_rows(
        self,
        site_url: str,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        max_rows: int = MAX_TOTAL_ROWS,
    ) -> List[Dict[str, Any]]:
        """
        Fetch query × page rows, paginating until exhausted or max_rows.

        Dates default to the last LOOKBACK_DAYS days.
        """
        today = date.today()
        start_date = start_date or (today - timedelta(days=LOOKBACK_DAYS)).isoformat()
        end_date = end_date or today.isoformat()

        rows: List[Dict[str, Any]] = []
        start_row = 0
        batch_size = min(MAX_ROWS_PER_REQUEST, max_rows)

        while len(rows) < max_rows:
            data = await self.query(
                site_url, start_date, end_date,
                row_limit=batch_size, start_row=start_row,
            )
            batch = data.get("rows") or []
            rows.extend(batch)
            logger.debug(f"Fetched {len(batch)} GSC rows (total {len(rows)})")

            if len(batch) < batch_size:
                break
            start_row += batch_size

        return rows[:max_rows]

    async def close(self):
        """Close the HTTP client."""
        if not self._closed:
            await self._client.aclose()
            self._closed = True

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()


def aggregate_search_rows(rows: Iterable[Dict[str, Any]]) -> Dict[str, SearchPerformanceMetric]:
    """
    Aggregate raw Search Analytics rows per (query, page).

    Impressions and clicks are summed; position keeps the best (minimum)
    value seen. Rows without both keys are ignored.
    """
    metrics: Dict[str, SearchPerformanceMetric] = {}

    for row in rows:
        keys = row.get("keys") or []
        if len(keys) < 2:
            continue
        query, page = keys[0], keys[1]
        key = performance_key(query, page)

        metric = metrics.get(key)
        if metric is None:
            metric = SearchPerformanceMetric(query=query, page_url=page)
            metrics[key] = metric

        metric.impressions += int(row.get("impressions") or 0)
        metric.clicks += int(row.get("clicks") or 0)
        metric.position = min(metric.position, float(row.get("position") or 100))

    return metrics
