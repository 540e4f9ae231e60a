"""
DataForSEO API Client

Async HTTP client with:
- Connection pooling
- Automatic retry with exponential backoff
- Graceful error handling
- Request/response logging
"""

import asyncio
import httpx
import base64
import logging
from typing import Any, Dict, List, Optional
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Google Ads search volume endpoint accepts at most this many keywords per task
KEYWORD_BATCH_SIZE = 100


def safe_get_result(response: Dict) -> List[Dict[str, Any]]:
    """
    Safely extract the result list of the first task in a DataForSEO response.

    Handles cases where result is None, empty, or malformed.

    Args:
        response: Raw API response dict

    Returns:
        List of result objects, or empty list on failure
    """
    try:
        tasks = response.get("tasks")
        if not tasks or not isinstance(tasks, list):
            return []

        result = tasks[0].get("result")
        if not result or not isinstance(result, list):
            return []

        return [item for item in result if isinstance(item, dict)]
    except (TypeError, IndexError, KeyError, AttributeError) as e:
        logger.debug(f"Safe result extraction failed: {e}")
        return []


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_retries: int = 3
    initial_delay: float = 1.0
    max_delay: float = 10.0
    exponential_base: float = 2.0
    retryable_status_codes: tuple = (429, 500, 502, 503, 504)


class DataForSEOError(Exception):
    """Custom exception for DataForSEO API errors."""
    def __init__(self, message: str, status_code: int = None, response: dict = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


def _error_body(response: httpx.Response) -> Any:
    """Decoded error body; gateways often answer with HTML instead of JSON."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class DataForSEOClient:
    """
    Async client for DataForSEO API.

    Usage:
        client = DataForSEOClient(login="your_login", password="your_password")

        volumes = await client.get_search_volume(["running shoes", "trail shoes"])

        await client.close()
    """

    BASE_URL = "https://api.dataforseo.com/v3"

    def __init__(
        self,
        login: str,
        password: str,
        retry_config: Optional[RetryConfig] = None,
        max_connections: int = 10,
        timeout: float = 60.0,
    ):
        """
        Initialize DataForSEO client.

        Args:
            login: DataForSEO login email
            password: DataForSEO API password
            retry_config: Retry configuration (optional)
            max_connections: Maximum concurrent connections
            timeout: Request timeout in seconds
        """
        self.login = login
        self.password = password
        self.retry_config = retry_config or RetryConfig()

        # Create auth header
        credentials = f"{login}:{password}"
        auth_token = base64.b64encode(credentials.encode()).decode()

        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            headers={
                "Authorization": f"Basic {auth_token}",
                "Content-Type": "application/json",
            },
            limits=httpx.Limits(
                max_connections=max_connections,
                max_keepalive_connections=max(max_connections // 2, 1),
            ),
            timeout=httpx.Timeout(timeout),
        )

        self._closed = False

    async def post(
        self,
        endpoint: str,
        data: List[Dict[str, Any]],
        retry: bool = True
    ) -> Dict[str, Any]:
        """
        Make POST request to DataForSEO API.

        Args:
            endpoint: API endpoint path (e.g., "keywords_data/google_ads/search_volume/live")
            data: Request payload (list of task objects)
            retry: Whether to retry on failure

        Returns:
            API response as dictionary

        Raises:
            DataForSEOError: On API error
        """
        if self._closed:
            raise DataForSEOError("Client is closed")

        url = f"/{endpoint}"

        if retry:
            return await self._request_with_retry(url, data)
        else:
            return await self._make_request(url, data)

    async def _make_request(self, url: str, data: List[Dict]) -> Dict[str, Any]:
        """Make a single HTTP request."""
        logger.debug(f"POST {url}")

        response = await self._client.post(url, json=data)

        if response.status_code != 200:
            raise DataForSEOError(
                f"API request failed: {response.status_code}",
                status_code=response.status_code,
                response=_error_body(response),
            )

        try:
            result = response.json()
        except ValueError as e:
            raise DataForSEOError(
                f"Invalid JSON response: {e}",
                status_code=response.status_code,
                response=response.text,
            ) from e

        # Check for API-level errors
        if result.get("status_code") != 20000:
            error_msg = result.get("status_message", "Unknown error")
            raise DataForSEOError(
                f"API error: {error_msg}",
                status_code=result.get("status_code"),
                response=result,
            )

        for task in result.get("tasks", []):
            task_status = task.get("status_code")
            if task_status not in [20000, 20100]:
                error_msg = task.get("status_message", "Task error")
                logger.error(
                    f"DataForSEO task error in {url}: {error_msg} (status: {task_status})"
                )

        return result

    async def _request_with_retry(self, url: str, data: List[Dict]) -> Dict[str, Any]:
        """Make request with automatic retry on failure."""
        last_exception = None
        delay = self.retry_config.initial_delay

        for attempt in range(self.retry_config.max_retries + 1):
            try:
                return await self._make_request(url, data)

            except DataForSEOError as e:
                last_exception = e

                # Don't retry client errors (4xx except 429)
                if e.status_code and 400 <= e.status_code < 500 and e.status_code != 429:
                    raise

            except httpx.TimeoutException as e:
                last_exception = DataForSEOError(f"Request timed out: {e}")

            except httpx.HTTPError as e:
                last_exception = DataForSEOError(f"HTTP error: {e}")

            if attempt < self.retry_config.max_retries:
                logger.warning(
                    f"Request failed (attempt {attempt + 1}/{self.retry_config.max_retries + 1}): "
                    f"{last_exception}. Retrying in {delay}s..."
                )
                await asyncio.sleep(delay)
                delay = min(
                    delay * self.retry_config.exponential_base,
                    self.retry_config.max_delay
                )

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

    # ========================================================================
    # KEYWORD DATA
    # ========================================================================

    async def get_search_volume(
        self,
        keywords: List[str],
        location_name: str = "United States",
        language_name: str = "English",
    ) -> List[Dict[str, Any]]:
        """
        Get Google Ads search volume for up to KEYWORD_BATCH_SIZE keywords.

        Args:
            keywords: Keywords to look up (at most 100)
            location_name: DataForSEO location name
            language_name: DataForSEO language name

        Returns:
            List of dicts with keyword, search_volume, competition_index, cpc

        Raises:
            DataForSEOError: On API error, or when the batch is too large
        """
        if len(keywords) > KEYWORD_BATCH_SIZE:
            raise DataForSEOError(
                f"Search volume batch too large: {len(keywords)} > {KEYWORD_BATCH_SIZE}"
            )
        if not keywords:
            return []

        result = await self.post(
            "keywords_data/google_ads/search_volume/live",
            [{
                "keywords": keywords,
                "location_name": location_name,
                "language_name": language_name,
            }]
        )

        return [
            {
                "keyword": item.get("keyword", ""),
                "search_volume": item.get("search_volume") or 0,
                "competition_index": item.get("competition_index") or 0,
                "cpc": item.get("cpc") or 0.0,
            }
            for item in safe_get_result(result)
            if item.get("keyword")
        ]
